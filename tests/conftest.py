# tests/conftest.py

from __future__ import annotations

from datetime import date
from pathlib import Path
from types import SimpleNamespace

import pytest

from supertask.core.state import AppState
from supertask.tasks.task_scheduler import ReminderScheduler
from supertask.tasks.task_store import TaskStore

from .fakes import FakeGateway, FakeNotifier, MemoryBlobStorage

TODAY = date(2024, 1, 2)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="supertask-test",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        storage_key="supertask-todos",
        reminder_interval_seconds=60.0,
        notifications="granted",
    )


@pytest.fixture()
def storage() -> MemoryBlobStorage:
    return MemoryBlobStorage()


@pytest.fixture()
def store(storage: MemoryBlobStorage) -> TaskStore:
    return TaskStore(storage)


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    store: TaskStore,
    gateway: FakeGateway,
    notifier: FakeNotifier,
) -> AppState:
    """AppState wired with deterministic fakes and a fixed 'today'."""
    return AppState(
        settings=settings,
        task_store=store,
        gateway=gateway,
        notifier=notifier,
        reminders=ReminderScheduler(store, notifier, interval_seconds=60.0, today=lambda: TODAY),
    )
