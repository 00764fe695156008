from __future__ import annotations

from datetime import date

import pytest

from taskpro.domain.entities import UserRef
from taskpro.domain.enums import NotificationKind, RecurrenceType, Role, TaskStatus
from taskpro.domain.errors import PermissionDeniedError, TaskValidationError
from taskpro.services.instance_factory import InstanceFactory
from taskpro.services.task_service import TaskService

from fakes import FakeNotifier, FakeRepo

OWNER = UserRef(id=1, role=Role.MEMBER)
OTHER_MEMBER = UserRef(id=2, role=Role.MEMBER)
MANAGER = UserRef(id=3, role=Role.MANAGER)


def build(notifier: FakeNotifier | None = None) -> tuple[TaskService, FakeRepo, FakeNotifier]:
    repo = FakeRepo()
    notifier = notifier or FakeNotifier()
    service = TaskService(repo, InstanceFactory(repo, notifier), notifier)
    return service, repo, notifier


def daily_root(**overrides) -> dict:
    data = {
        "title": "Daily",
        "description": "",
        "priority": "medium",
        "due_date": date(2026, 1, 1),
        "is_recurring": True,
        "recurrence_type": RecurrenceType.DAILY,
        "recurrence_interval": 1,
    }
    data.update(overrides)
    return data


def test_creating_a_recurring_task_generates_first_instance() -> None:
    service, repo, _ = build()

    root = service.create_task(daily_root(), actor=OWNER)

    assert root.created_by == OWNER.id
    assert root.assigned_to == OWNER.id
    [instance] = repo.instances_of(root.id)
    assert instance.due_date == date(2026, 1, 2)


def test_plain_task_has_no_instances() -> None:
    service, repo, _ = build()

    task = service.create_task(
        {"title": "Once", "description": "", "priority": "low", "due_date": date(2026, 1, 1)},
        actor=OWNER,
    )

    assert task.is_recurring is False
    assert repo.instances_of(task.id) == []


@pytest.mark.parametrize(
    "overrides",
    [
        {"recurrence_type": None},
        {"recurrence_type": "hourly"},
        {"recurrence_interval": 0},
        {"recurrence_type": RecurrenceType.WEEKLY, "recurrence_days": (1, 7)},
        {"recurrence_type": RecurrenceType.MONTHLY, "recurrence_day_of_month": 32},
        {"parent_id": 99},
    ],
)
def test_invalid_recurrence_settings_are_rejected(overrides: dict) -> None:
    service, repo, _ = build()

    with pytest.raises(TaskValidationError):
        service.create_task(daily_root(**overrides), actor=OWNER)
    assert repo.tasks == []


def test_completing_an_instance_schedules_the_next_one() -> None:
    service, repo, _ = build()
    root = service.create_task(daily_root(), actor=OWNER)
    [instance] = repo.instances_of(root.id)

    done = service.mark_done(instance.id, actor=OWNER)

    assert done.status == TaskStatus.COMPLETED
    assert done.completed_at is not None
    assert [t.due_date for t in repo.instances_of(root.id)] == [date(2026, 1, 2), date(2026, 1, 3)]


def test_completing_the_root_does_not_duplicate_pending_instance() -> None:
    service, repo, _ = build()
    root = service.create_task(daily_root(), actor=OWNER)

    service.mark_done(root.id, actor=OWNER)

    assert len(repo.instances_of(root.id)) == 1


def test_reopening_clears_completed_at() -> None:
    service, repo, _ = build()
    task = service.create_task(
        {"title": "Once", "description": "", "priority": "low", "due_date": date(2026, 1, 1)},
        actor=OWNER,
    )
    service.mark_done(task.id, actor=OWNER)

    reopened = service.update_task(task.id, {"status": TaskStatus.TODO}, actor=OWNER)

    assert reopened.completed_at is None


def test_changing_recurrence_replaces_pending_instances() -> None:
    service, repo, _ = build()
    root = service.create_task(daily_root(), actor=OWNER)

    service.update_task(
        root.id,
        {"recurrence_type": RecurrenceType.WEEKLY, "recurrence_days": (5,)},
        actor=OWNER,
    )

    # 2026-01-01 is a Thursday
    assert [t.due_date for t in repo.instances_of(root.id)] == [date(2026, 1, 2)]
    service.update_task(root.id, {"recurrence_type": RecurrenceType.MONTHLY}, actor=OWNER)
    assert [t.due_date for t in repo.instances_of(root.id)] == [date(2026, 2, 1)]


def test_instance_cannot_become_recurring() -> None:
    service, repo, _ = build()
    root = service.create_task(daily_root(), actor=OWNER)
    [instance] = repo.instances_of(root.id)

    with pytest.raises(TaskValidationError):
        service.update_task(instance.id, {"is_recurring": True}, actor=OWNER)


def test_members_cannot_edit_tasks_of_others() -> None:
    service, _, _ = build()
    task = service.create_task(daily_root(is_recurring=False), actor=OWNER)

    with pytest.raises(PermissionDeniedError):
        service.update_task(task.id, {"title": "Mine now"}, actor=OTHER_MEMBER)
    with pytest.raises(PermissionDeniedError):
        service.delete_task(task.id, actor=OTHER_MEMBER)


def test_managers_can_edit_any_task() -> None:
    service, _, _ = build()
    task = service.create_task(daily_root(is_recurring=False), actor=OWNER)

    updated = service.update_task(task.id, {"title": "Renamed"}, actor=MANAGER)

    assert updated.title == "Renamed"


def test_update_missing_task_returns_none() -> None:
    service, _, _ = build()

    assert service.update_task(404, {"title": "x"}, actor=OWNER) is None


def test_assignment_and_completion_notify_users() -> None:
    service, _, notifier = build()
    task = service.create_task(daily_root(is_recurring=False, assigned_to=2), actor=OWNER)

    service.mark_done(task.id, actor=MANAGER)

    kinds = [(n.user_id, n.kind) for n in notifier.sent]
    assert kinds == [
        (2, NotificationKind.TASK_ASSIGNED),
        (OWNER.id, NotificationKind.TASK_COMPLETED),
        (2, NotificationKind.TASK_UPDATED),
    ]


def test_notification_outage_does_not_block_edits() -> None:
    service, repo, _ = build(FakeNotifier(fail=True))

    root = service.create_task(daily_root(assigned_to=2), actor=OWNER)

    assert len(repo.instances_of(root.id)) == 1


def test_deleting_a_root_removes_pending_instances() -> None:
    service, repo, _ = build()
    root = service.create_task(daily_root(), actor=OWNER)
    [instance] = repo.instances_of(root.id)
    service.mark_done(instance.id, actor=OWNER)

    service.delete_task(root.id, actor=OWNER)

    [kept] = repo.tasks
    assert kept.id == instance.id
    assert kept.parent_id is None


def test_assignee_hears_about_edits_by_others() -> None:
    service, _, notifier = build()
    task = service.create_task(daily_root(is_recurring=False, assigned_to=2), actor=OWNER)
    notifier.sent.clear()

    service.update_task(task.id, {"title": "Daily review"}, actor=MANAGER)

    [sent] = notifier.sent
    assert (sent.user_id, sent.kind) == (2, NotificationKind.TASK_UPDATED)
    assert sent.message == "Task updated: Daily review"


def test_reassignment_notifies_only_the_new_assignee() -> None:
    service, _, notifier = build()
    task = service.create_task(daily_root(is_recurring=False, assigned_to=2), actor=OWNER)
    notifier.sent.clear()

    service.update_task(task.id, {"assigned_to": 4}, actor=MANAGER)

    assert [(n.user_id, n.kind) for n in notifier.sent] == [(4, NotificationKind.TASK_ASSIGNED)]


def test_own_edits_send_no_update_notice() -> None:
    service, _, notifier = build()
    task = service.create_task(daily_root(is_recurring=False), actor=OWNER)

    service.update_task(task.id, {"title": "Renamed"}, actor=OWNER)

    assert notifier.sent == []


def test_deleting_a_root_releases_its_series_lock() -> None:
    repo = FakeRepo()
    notifier = FakeNotifier()
    factory = InstanceFactory(repo, notifier)
    service = TaskService(repo, factory, notifier)
    root = service.create_task(daily_root(), actor=OWNER)
    assert root.id in factory._locks

    service.delete_task(root.id, actor=OWNER)

    assert root.id not in factory._locks
