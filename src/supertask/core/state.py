# src/supertask/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..tasks.task_models import SortMode, StatusFilter
from ..tasks.task_scheduler import ReminderScheduler
from ..tasks.task_store import TaskStore
from .ports import AssistantGateway, Notifier


@dataclass(slots=True)
class ViewOptions:
    """How the task list is currently displayed (not persisted)."""

    status_filter: StatusFilter = StatusFilter.ALL
    search: str = ""
    sort_mode: SortMode = SortMode.DEFAULT


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    task_store: TaskStore
    gateway: AssistantGateway
    notifier: Notifier
    reminders: ReminderScheduler

    view: ViewOptions = field(default_factory=ViewOptions)
    advice: str | None = None
