# src/supertask/tasks/task_store.py

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Iterable, Mapping

from ..core.ports import BlobStorage
from .task_models import Task
from .task_ordering import UNRANKED

logger = logging.getLogger(__name__)

STORAGE_KEY = "supertask-todos"


class TaskStore:
    """
    In-memory task store persisted as one JSON blob.

    - hydrated wholesale from storage on construction
    - every mutation re-writes the full snapshot before returning
    - a failed write keeps the in-memory state; the next mutation
      (or flush()) retries the full write

    Invariant violations (duplicate id, unknown id) are no-ops that
    return False rather than raising.
    """

    def __init__(self, storage: BlobStorage, *, key: str = STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key
        self._tasks: list[Task] = []
        self._dirty = False
        self._load()
        logger.info("TaskStore ready key=%s total=%s", self._key, len(self._tasks))

    # ---- persistence ----

    def _load(self) -> None:
        try:
            raw = self._storage.get_item(self._key)
        except Exception:
            logger.exception("Failed to read tasks blob key=%s; starting empty.", self._key)
            return

        if not raw:
            return

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.exception("Tasks blob is not valid JSON key=%s; starting empty.", self._key)
            return

        if not isinstance(data, list):
            logger.warning("Tasks blob is not a list (got %s); starting empty.", type(data).__name__)
            return

        seen: set[str] = set()
        for item in data:
            task = Task.from_dict(item)
            if task is None:
                logger.warning("Skipping unreadable task record: %r", item)
                continue
            if task.id in seen:
                logger.warning("Skipping duplicate task id=%s", task.id)
                continue
            seen.add(task.id)
            self._tasks.append(task)

    def _persist(self) -> bool:
        blob = json.dumps([t.to_dict() for t in self._tasks], ensure_ascii=False)
        try:
            self._storage.set_item(self._key, blob)
        except Exception:
            self._dirty = True
            logger.exception("Failed to persist tasks (total=%d); will retry.", len(self._tasks))
            return False
        self._dirty = False
        return True

    @property
    def dirty(self) -> bool:
        return self._dirty

    def flush(self) -> bool:
        """Retry a failed write. No-op when the last write succeeded."""
        if not self._dirty:
            return True
        return self._persist()

    # ---- lookups ----

    def _index_of(self, task_id: str) -> int | None:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return None

    def count(self) -> int:
        return len(self._tasks)

    def get(self, task_id: str) -> Task | None:
        idx = self._index_of(task_id)
        if idx is None:
            return None
        return copy.deepcopy(self._tasks[idx])

    def snapshot(self) -> list[Task]:
        """Deep copy of all tasks; callers may not mutate the store through it."""
        return copy.deepcopy(self._tasks)

    # ---- mutations ----

    def add(self, task: Task) -> bool:
        if self._index_of(task.id) is not None:
            logger.debug("add ignored: duplicate id=%s", task.id)
            return False
        self._tasks.insert(0, copy.deepcopy(task))
        self._persist()
        logger.debug("Task added id=%s priority=%s due=%s", task.id, task.priority, task.due_date)
        return True

    def update(self, task: Task) -> bool:
        """Replace the record with the same id. The caller supplies the full record."""
        idx = self._index_of(task.id)
        if idx is None:
            logger.debug("update ignored: unknown id=%s", task.id)
            return False
        self._tasks[idx] = copy.deepcopy(task)
        self._persist()
        return True

    def update_many(self, tasks: Iterable[Task]) -> int:
        """Batched replace-by-id with a single write. Unknown ids are skipped."""
        applied = 0
        for task in tasks:
            idx = self._index_of(task.id)
            if idx is None:
                logger.debug("update_many skipped unknown id=%s", task.id)
                continue
            self._tasks[idx] = copy.deepcopy(task)
            applied += 1
        if applied:
            self._persist()
        return applied

    def delete(self, task_id: str) -> bool:
        idx = self._index_of(task_id)
        if idx is None:
            logger.debug("delete ignored: unknown id=%s", task_id)
            return False
        del self._tasks[idx]
        self._persist()
        logger.debug("Task deleted id=%s", task_id)
        return True

    def bulk_assign_rank(
        self,
        ranks: Mapping[str, int],
        *,
        snapshot_ids: Iterable[str] | None = None,
    ) -> None:
        """
        Apply an assistant ordering.

        Mapped tasks get their rank, unmapped ones get UNRANKED.
        With snapshot_ids, tasks created after that snapshot keep their
        current rank. Ranks for ids that no longer exist are dropped.
        """
        scope = set(snapshot_ids) if snapshot_ids is not None else None
        for task in self._tasks:
            if scope is not None and task.id not in scope:
                continue
            task.rank = ranks.get(task.id, UNRANKED)
        self._persist()
        logger.info("Ranks assigned ranked=%d total=%d", len(ranks), len(self._tasks))
