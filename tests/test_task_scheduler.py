# tests/test_task_scheduler.py

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import date

import pytest

from supertask.core.ports import NotificationPermission
from supertask.tasks.task_models import TaskStatus
from supertask.tasks.task_scheduler import ReminderScheduler, is_due, needs_reminder
from supertask.tasks.task_store import TaskStore

from .fakes import FakeNotifier, MemoryBlobStorage, make_task

TODAY = date(2024, 1, 2)


def _scheduler(store: TaskStore, notifier: FakeNotifier, **kwargs) -> ReminderScheduler:
    kwargs.setdefault("today", lambda: TODAY)
    return ReminderScheduler(store, notifier, **kwargs)


def test_is_due_compares_calendar_dates() -> None:
    assert is_due(make_task("a", due_date=date(2024, 1, 1)), TODAY)
    assert is_due(make_task("b", due_date=TODAY), TODAY)
    assert not is_due(make_task("c", due_date=date(2024, 1, 3)), TODAY)
    assert not is_due(make_task("d"), TODAY)


def test_done_or_notified_tasks_need_no_reminder() -> None:
    past = date(2023, 12, 31)
    assert not needs_reminder(make_task("a", due_date=past, status=TaskStatus.DONE), TODAY)
    assert not needs_reminder(make_task("b", due_date=past, notified=True), TODAY)
    assert needs_reminder(make_task("c", due_date=past, status=TaskStatus.IN_PROGRESS), TODAY)


@pytest.mark.asyncio
async def test_due_task_is_notified_exactly_once(store: TaskStore, notifier: FakeNotifier) -> None:
    store.add(make_task("t1", title="Renew passport", due_date=date(2024, 1, 1)))
    sched = _scheduler(store, notifier)

    sent = await sched.check_reminders()

    assert [r.task_id for r in sent] == ["t1"]
    assert store.get("t1").notified is True
    assert len(notifier.sent) == 1
    assert notifier.sent[0].title == "Reminder: Renew passport"
    assert "2024-01-01" in notifier.sent[0].body

    assert await sched.check_reminders() == []
    assert len(notifier.sent) == 1


@pytest.mark.asyncio
async def test_far_future_task_is_never_notified(store: TaskStore, notifier: FakeNotifier) -> None:
    store.add(make_task("later", due_date=date(2099, 1, 1)))
    sched = _scheduler(store, notifier)

    for _ in range(5):
        assert await sched.check_reminders() == []

    assert notifier.sent == []
    assert store.get("later").notified is False


@pytest.mark.asyncio
async def test_done_and_undated_tasks_are_skipped(store: TaskStore, notifier: FakeNotifier) -> None:
    store.add(make_task("done", due_date=date(2024, 1, 1), status=TaskStatus.DONE))
    store.add(make_task("nodate"))
    sched = _scheduler(store, notifier)

    assert await sched.check_reminders() == []
    assert store.get("done").notified is False
    assert store.get("nodate").notified is False


@pytest.mark.asyncio
async def test_no_permission_means_no_mutation(storage: MemoryBlobStorage, store: TaskStore) -> None:
    store.add(make_task("t1", due_date=date(2024, 1, 1)))
    writes_before = storage.writes

    for permission in (NotificationPermission.UNDETERMINED, NotificationPermission.DENIED):
        notifier = FakeNotifier(permission=permission)
        sched = _scheduler(store, notifier)
        assert await sched.check_reminders() == []
        assert notifier.attempts == 0

    assert store.get("t1").notified is False
    assert storage.writes == writes_before


@pytest.mark.asyncio
async def test_newly_due_tasks_are_written_in_one_batch(
    storage: MemoryBlobStorage, store: TaskStore, notifier: FakeNotifier
) -> None:
    for i in range(3):
        store.add(make_task(f"t{i}", due_date=date(2023, 12, 29 + i)))
    writes_before = storage.writes

    sent = await _scheduler(store, notifier).check_reminders()

    assert len(sent) == 3
    assert storage.writes == writes_before + 1
    assert all(t.notified for t in store.snapshot())


@pytest.mark.asyncio
async def test_failed_delivery_is_not_retried(store: TaskStore) -> None:
    notifier = FakeNotifier(fail=True)
    store.add(make_task("t1", due_date=date(2024, 1, 1)))
    sched = _scheduler(store, notifier)

    assert await sched.check_reminders() == []
    assert store.get("t1").notified is True

    notifier.fail = False
    assert await sched.check_reminders() == []
    assert notifier.attempts == 1


@pytest.mark.asyncio
async def test_notified_flag_is_never_reset(store: TaskStore, notifier: FakeNotifier) -> None:
    store.add(make_task("t1", due_date=date(2024, 1, 1)))
    sched = _scheduler(store, notifier)
    await sched.check_reminders()

    # Move the due date out and back, reopen after done: still no second reminder.
    task = store.get("t1")
    store.update(replace(task, due_date=date(2099, 1, 1)))
    await sched.check_reminders()
    task = store.get("t1")
    store.update(replace(task, due_date=date(2024, 1, 1), status=TaskStatus.DONE))
    task = store.get("t1")
    store.update(replace(task, status=TaskStatus.TODO))
    await sched.check_reminders()

    assert len(notifier.sent) == 1
    assert store.get("t1").notified is True


@pytest.mark.asyncio
async def test_run_loop_evaluates_immediately_on_start(store: TaskStore, notifier: FakeNotifier) -> None:
    store.add(make_task("t1", due_date=date(2024, 1, 1)))
    sched = _scheduler(store, notifier, interval_seconds=3600)

    assert sched.start() is True
    await asyncio.sleep(0.05)
    await sched.stop()

    assert len(notifier.sent) == 1
    assert not sched.running


@pytest.mark.asyncio
async def test_run_loop_keeps_polling(store: TaskStore, notifier: FakeNotifier) -> None:
    sched = _scheduler(store, notifier, interval_seconds=0.01)
    sched.start()
    await asyncio.sleep(0.03)

    store.add(make_task("late", due_date=date(2024, 1, 2)))
    await asyncio.sleep(0.05)
    await sched.stop()

    assert [n.title for n in notifier.sent] == ["Reminder: task late"]


@pytest.mark.asyncio
async def test_permission_grant_rearms_scheduler(store: TaskStore) -> None:
    notifier = FakeNotifier(permission=NotificationPermission.UNDETERMINED)
    store.add(make_task("t1", due_date=date(2024, 1, 1)))
    sched = _scheduler(store, notifier, interval_seconds=3600)

    assert sched.start() is False
    assert not sched.running

    notifier.request_permission()
    assert await sched.on_permission_changed() is True
    await asyncio.sleep(0.05)

    assert sched.running
    assert len(notifier.sent) == 1

    notifier.permission = NotificationPermission.DENIED
    assert await sched.on_permission_changed() is False
    assert not sched.running


def test_interval_must_be_positive(store: TaskStore, notifier: FakeNotifier) -> None:
    with pytest.raises(ValueError):
        ReminderScheduler(store, notifier, interval_seconds=0)
