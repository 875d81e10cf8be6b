# src/supertask/tasks/task_ordering.py

"""
Task list ordering.

compute_view() is a pure function over a snapshot:
1) filter by status (all / active / completed)
2) filter by a case-insensitive search term (title, category or any tag)
3) sort: done last, then rank (smart mode only), then priority, then newest first
"""

from __future__ import annotations

from collections.abc import Iterable

from .task_models import Priority, SortMode, StatusFilter, Task, TaskStatus

# Rank used for tasks the assistant did not place. Rank lists longer than
# this would collide with it.
UNRANKED = 9999

PRIORITY_ORDER: dict[Priority, int] = {
    Priority.CRITICAL: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}


def priority_order(priority: Priority) -> int:
    return PRIORITY_ORDER.get(priority, PRIORITY_ORDER[Priority.MEDIUM])


def filter_by_status(tasks: Iterable[Task], status_filter: StatusFilter) -> list[Task]:
    if status_filter == StatusFilter.ACTIVE:
        return [t for t in tasks if t.status != TaskStatus.DONE]
    if status_filter == StatusFilter.COMPLETED:
        return [t for t in tasks if t.status == TaskStatus.DONE]
    return list(tasks)


def matches_search(task: Task, term: str) -> bool:
    if not term:
        return True
    needle = term.lower()
    if needle in task.title.lower():
        return True
    if needle in task.category.lower():
        return True
    return any(needle in tag.lower() for tag in task.tags)


def sort_key(task: Task, sort_mode: SortMode) -> tuple[int, int, int, int]:
    done = 1 if task.status == TaskStatus.DONE else 0
    if sort_mode == SortMode.SMART:
        rank = task.rank if task.rank is not None else UNRANKED
    else:
        rank = 0
    return (done, rank, priority_order(task.priority), -task.created_at)


def compute_view(
    tasks: Iterable[Task],
    status_filter: StatusFilter = StatusFilter.ALL,
    search_term: str = "",
    sort_mode: SortMode = SortMode.DEFAULT,
) -> list[Task]:
    """Return the filtered, ordered view. Does not modify the input."""
    visible = [
        t for t in filter_by_status(tasks, status_filter) if matches_search(t, search_term or "")
    ]
    return sorted(visible, key=lambda t: sort_key(t, sort_mode))
