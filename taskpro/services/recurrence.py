from __future__ import annotations

from datetime import date, timedelta

from taskpro.domain.entities import TaskEntity
from taskpro.domain.enums import RecurrenceType


def next_due_date(task: TaskEntity) -> date:
    """Return the due date of the occurrence that follows ``task.due_date``.

    Weekday indices in ``recurrence_days`` count from Sunday (0) to
    Saturday (6).
    """
    current = task.due_date
    interval = _interval(task.recurrence_interval)
    rule = task.recurrence_type

    if rule == RecurrenceType.WEEKLY:
        if task.recurrence_days:
            return _next_selected_weekday(current, task.recurrence_days)
        return current + timedelta(weeks=interval)
    if rule == RecurrenceType.MONTHLY:
        if task.recurrence_day_of_month:
            return _day_of_next_month(current, task.recurrence_day_of_month)
        return _add_months(current, interval)
    # daily, custom, and anything unrecognised step by days
    return current + timedelta(days=interval)


def _interval(value: object) -> int:
    try:
        return max(int(value or 1), 1)
    except (TypeError, ValueError):
        return 1


def _weekday_index(value: date) -> int:
    return value.isoweekday() % 7


def _next_selected_weekday(current: date, days: tuple[int, ...]) -> date:
    selected = sorted(set(days))
    today = _weekday_index(current)
    later = [day for day in selected if day > today]
    if later:
        return current + timedelta(days=later[0] - today)
    return current + timedelta(days=7 - today + selected[0])


def _day_of_next_month(base: date, day_of_month: int) -> date:
    first = _add_months(base.replace(day=1), 1)
    day = min(max(day_of_month, 1), _days_in_month(first.year, first.month))
    return first.replace(day=day)


def _add_months(base: date, months: int) -> date:
    year = base.year + (base.month - 1 + months) // 12
    month = (base.month - 1 + months) % 12 + 1
    day = min(base.day, _days_in_month(year, month))
    return date(year, month, day)


def _days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - timedelta(days=1)).day
