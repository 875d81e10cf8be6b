# src/supertask/tasks/task_api.py

"""
High-level task operations used by the console front-end.

These combine the store with the assistant gateway. Gateway calls are
awaited; anything can happen to the store meanwhile, so every merge
re-reads the task by id and does nothing if it is gone.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import date
from typing import Any

from ..core.state import AppState
from .task_models import DEFAULT_CATEGORY, Priority, SortMode, StatusFilter, Subtask, Task, TaskStatus
from .task_ordering import compute_view

logger = logging.getLogger(__name__)

# Fields edit_task() accepts; everything else is managed by dedicated operations.
EDITABLE_FIELDS = frozenset(
    {"title", "description", "status", "priority", "category", "tags", "due_date"}
)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_id() -> str:
    return str(uuid.uuid4())


def add_task(
    state: AppState,
    *,
    title: str,
    description: str = "",
    priority: Priority = Priority.MEDIUM,
    category: str = DEFAULT_CATEGORY,
    tags: Sequence[str] = (),
    due_date: date | None = None,
) -> Task:
    task = Task(
        id=_new_id(),
        title=title,
        created_at=_now_ms(),
        description=description,
        priority=priority,
        category=category or DEFAULT_CATEGORY,
        tags=list(tags),
        due_date=due_date,
    )
    state.task_store.add(task)
    return task


async def add_task_from_text(state: AppState, text: str) -> Task | None:
    """Let the assistant turn free text into a task. Empty input adds nothing."""
    if not text or not text.strip():
        return None

    parsed = await state.gateway.parse(text)
    task = add_task(
        state,
        title=parsed.title,
        description=parsed.description,
        priority=parsed.priority,
        category=parsed.category,
        tags=parsed.tags,
        due_date=parsed.due_date,
    )
    logger.info("Task created from text id=%s priority=%s", task.id, task.priority)
    return task


def toggle_status(state: AppState, task_id: str) -> Task | None:
    """done -> todo, anything else -> done. The notified flag is left alone."""
    task = state.task_store.get(task_id)
    if task is None:
        return None
    new_status = TaskStatus.TODO if task.status == TaskStatus.DONE else TaskStatus.DONE
    updated = replace(task, status=new_status)
    state.task_store.update(updated)
    return updated


def toggle_subtask(state: AppState, task_id: str, subtask_id: str) -> Task | None:
    task = state.task_store.get(task_id)
    if task is None:
        return None
    if not any(st.id == subtask_id for st in task.subtasks):
        return None
    subtasks = [
        replace(st, completed=not st.completed) if st.id == subtask_id else st for st in task.subtasks
    ]
    updated = replace(task, subtasks=subtasks)
    state.task_store.update(updated)
    return updated


def edit_task(state: AppState, task_id: str, **fields: Any) -> Task | None:
    """Merge field edits into the current record and store the full result."""
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Not editable: {', '.join(sorted(unknown))}")

    task = state.task_store.get(task_id)
    if task is None:
        return None
    updated = replace(task, **fields)
    state.task_store.update(updated)
    return updated


def delete_task(state: AppState, task_id: str) -> bool:
    return state.task_store.delete(task_id)


async def decompose_task(state: AppState, task_id: str) -> list[Subtask]:
    """
    Ask the assistant for subtasks.

    A task that already has subtasks keeps them (no assistant call).
    If the task is deleted while the assistant answers, nothing is merged.
    """
    task = state.task_store.get(task_id)
    if task is None:
        return []
    if task.subtasks:
        return task.subtasks

    titles = await state.gateway.decompose(task.title, task.description)

    current = state.task_store.get(task_id)
    if current is None:
        logger.debug("decompose result dropped: task %s was deleted", task_id)
        return []

    subtasks = [Subtask(id=_new_id(), title=title) for title in titles]
    state.task_store.update(replace(current, subtasks=subtasks))
    logger.info("Task %s decomposed into %d subtasks", task_id, len(subtasks))
    return subtasks


async def smart_prioritize(state: AppState) -> bool:
    """
    Ask the assistant for an execution order and switch to smart sorting.

    Ranks are computed against the snapshot taken here: tasks added while
    the assistant answers keep their rank, deleted ones are skipped.
    Needs at least two open tasks.
    """
    snapshot = state.task_store.snapshot()
    active = [t for t in snapshot if t.status != TaskStatus.DONE]
    if len(active) < 2:
        return False

    ordered_ids = await state.gateway.rank(active)

    ranks: dict[str, int] = {}
    for index, task_id in enumerate(ordered_ids):
        ranks.setdefault(task_id, index)

    state.task_store.bulk_assign_rank(ranks, snapshot_ids=[t.id for t in snapshot])
    state.view.sort_mode = SortMode.SMART
    return True


async def get_advice(state: AppState, *, refresh: bool = False) -> str:
    """Cached advice; the gateway is only asked on first use or on refresh."""
    if state.advice is not None and not refresh:
        return state.advice
    open_tasks = [t for t in state.task_store.snapshot() if t.status != TaskStatus.DONE]
    state.advice = await state.gateway.advise(open_tasks)
    return state.advice


async def prefetch_advice(state: AppState) -> str | None:
    """Fetch advice once at startup when there are tasks to advise on."""
    if state.advice is not None or not state.task_store.count():
        return state.advice
    return await get_advice(state)


def set_filter(state: AppState, status_filter: StatusFilter) -> None:
    """Switching back to "all" also leaves smart sorting."""
    state.view.status_filter = status_filter
    if status_filter == StatusFilter.ALL:
        state.view.sort_mode = SortMode.DEFAULT


def current_view(state: AppState) -> list[Task]:
    v = state.view
    return compute_view(state.task_store.snapshot(), v.status_filter, v.search, v.sort_mode)


def _percent(part: int, total: int) -> int:
    # Round half up.
    return (part * 200 + total) // (total * 2)


@dataclass(slots=True, frozen=True)
class TaskStats:
    total: int
    completed: int
    progress: int  # percent


def compute_stats(tasks: Sequence[Task]) -> TaskStats:
    total = len(tasks)
    completed = sum(1 for t in tasks if t.status == TaskStatus.DONE)
    progress = 0 if total == 0 else _percent(completed, total)
    return TaskStats(total=total, completed=completed, progress=progress)


def subtask_progress(task: Task) -> tuple[int, int, int]:
    total = len(task.subtasks)
    done = sum(1 for st in task.subtasks if st.completed)
    percent = 0 if total == 0 else _percent(done, total)
    return done, total, percent
