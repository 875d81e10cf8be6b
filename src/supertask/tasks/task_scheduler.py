# src/supertask/tasks/task_scheduler.py

from __future__ import annotations

"""
Reminder scheduler.

A small polling loop that:
- evaluates every task once on start, then every interval_seconds,
- marks newly due tasks as notified in one batched store update,
- sends one reminder per newly due task via the injected notifier.

Delivery is at-most-once: a failed notification is logged and the flag
stays set. Nothing runs while notification permission is not granted.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime

from ..core.ports import NotificationPermission, Notifier
from .task_models import Task, TaskStatus
from .task_store import TaskStore

logger = logging.getLogger(__name__)


def utc_today() -> date:
    return datetime.now(UTC).date()


def is_due(task: Task, today: date) -> bool:
    """A task is due when it has a due date on or before today."""
    return task.due_date is not None and task.due_date <= today


def needs_reminder(task: Task, today: date) -> bool:
    if task.notified or task.status == TaskStatus.DONE:
        return False
    return is_due(task, today)


@dataclass(slots=True, frozen=True)
class Reminder:
    """What the scheduler wants to send for one task."""

    task_id: str
    title: str
    body: str


def build_reminder(task: Task) -> Reminder:
    due = task.due_date.isoformat() if task.due_date else "today"
    return Reminder(
        task_id=task.id,
        title=f"Reminder: {task.title}",
        body=f"This task is due on {due}.",
    )


class ReminderScheduler:
    """
    Owns the reminder polling task.

    To stop the loop, call stop() (it cancels and awaits the task).
    """

    def __init__(
        self,
        store: TaskStore,
        notifier: Notifier,
        *,
        interval_seconds: float = 60.0,
        today: Callable[[], date] = utc_today,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._store = store
        self._notifier = notifier
        self._interval = float(interval_seconds)
        self._today = today
        self._runner: asyncio.Task[None] | None = None
        # Task ids already handed to the notifier during this process.
        self._dispatched: set[str] = set()

    @property
    def running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    def today(self) -> date:
        """The date reminders are evaluated against."""
        return self._today()

    def _authorized(self) -> bool:
        return self._notifier.permission == NotificationPermission.GRANTED

    async def check_reminders(self) -> list[Reminder]:
        """
        One evaluation tick.

        Returns the reminders dispatched on this tick (empty when nothing
        became due or when notifications are not authorized).
        """
        if not self._authorized():
            return []

        today = self._today()
        due = [
            t
            for t in self._store.snapshot()
            if needs_reminder(t, today) and t.id not in self._dispatched
        ]
        if not due:
            return []

        # One store write for the whole batch.
        self._store.update_many(replace(t, notified=True) for t in due)

        sent: list[Reminder] = []
        for task in due:
            self._dispatched.add(task.id)
            reminder = build_reminder(task)
            try:
                await self._notifier.notify(title=reminder.title, body=reminder.body)
            except Exception:
                logger.exception("Reminder delivery failed task_id=%s (not retried)", task.id)
                continue
            logger.info("Reminder sent task_id=%s due=%s", task.id, task.due_date)
            sent.append(reminder)
        return sent

    async def run(self) -> None:
        """Evaluate immediately, then every interval until cancelled."""
        logger.info("Reminder scheduler started (interval=%.1fs)", self._interval)
        while True:
            try:
                await self.check_reminders()
            except Exception:
                logger.exception("Reminder tick failed")
            await asyncio.sleep(self._interval)

    def start(self) -> bool:
        """Start the loop if authorized and not already running. Needs a running event loop."""
        if self.running:
            return True
        if not self._authorized():
            logger.info("Reminder scheduler not started: permission=%s", self._notifier.permission)
            return False
        self._runner = asyncio.get_running_loop().create_task(self.run(), name="reminders")
        return True

    async def stop(self) -> None:
        runner, self._runner = self._runner, None
        if runner is None:
            return
        runner.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await runner
        logger.info("Reminder scheduler stopped")

    async def on_permission_changed(self) -> bool:
        """
        Re-arm after the notifier's authorization changed.

        Granted -> (re)start from a fresh immediate evaluation.
        Anything else -> stop.
        """
        await self.stop()
        if self._authorized():
            return self.start()
        return False
