from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
