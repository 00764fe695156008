from __future__ import annotations

from .entities import UserRef
from .enums import Role

TASK_PERMISSIONS = (
    "tasks:create",
    "tasks:read",
    "tasks:update",
    "tasks:delete",
    "tasks:assign",
)

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    Role.ADMIN.value: frozenset({
        *TASK_PERMISSIONS,
        "tasks:read-all",
        "tasks:update-all",
        "tasks:delete-all",
        "users:read",
        "users:update",
        "users:create",
        "users:delete",
        "users:manage-roles",
        "reports:view",
        "reports:export",
        "system:settings",
    }),
    Role.MANAGER.value: frozenset({
        *TASK_PERMISSIONS,
        "tasks:read-all",
        "tasks:update-all",
        "tasks:delete-all",
        "users:read",
        "reports:view",
        "reports:export",
    }),
    Role.MEMBER.value: frozenset(TASK_PERMISSIONS),
}


def has_permission(user: UserRef | None, permission: str) -> bool:
    if user is None or not user.role:
        return False
    return permission in ROLE_PERMISSIONS.get(str(user.role), frozenset())
