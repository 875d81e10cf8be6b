# src/supertask/tasks/task_models.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class TaskStatus(StrEnum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"

    @classmethod
    def from_raw(cls, raw: Any) -> TaskStatus:
        if not raw:
            return cls.TODO
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.TODO


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def from_raw(cls, raw: Any, default: Priority | None = None) -> Priority:
        """
        Lenient priority parsing.

        Accepts the canonical values, any casing, and the French labels
        older saved data (and some assistant answers) still use.
        """
        fallback = cls.MEDIUM if default is None else default
        if raw is None:
            return fallback
        s = str(raw).strip().lower()
        if not s:
            return fallback
        return _PRIORITY_ALIASES.get(s, fallback)


_PRIORITY_ALIASES: dict[str, Priority] = {
    "low": Priority.LOW,
    "basse": Priority.LOW,
    "medium": Priority.MEDIUM,
    "normal": Priority.MEDIUM,
    "moyenne": Priority.MEDIUM,
    "high": Priority.HIGH,
    "haute": Priority.HIGH,
    "critical": Priority.CRITICAL,
    "critique": Priority.CRITICAL,
    "urgent": Priority.CRITICAL,
}


class StatusFilter(StrEnum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


class SortMode(StrEnum):
    DEFAULT = "default"
    SMART = "smart"


DEFAULT_CATEGORY = "general"


def parse_due_date(raw: Any) -> date | None:
    """Accept a date or an ISO string (date part only); anything else -> None."""
    if raw is None:
        return None
    if isinstance(raw, date):
        return raw
    s = str(raw).strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        return None


def parse_flag(raw: Any) -> bool:
    """Only a real True or the strings "true"/"1" count as set."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        return raw.strip().lower() in ("true", "1")
    return False


@dataclass(slots=True)
class Subtask:
    id: str
    title: str
    completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "completed": self.completed}

    @classmethod
    def from_dict(cls, data: Any) -> Subtask | None:
        if not isinstance(data, dict):
            return None
        sid = data.get("id")
        title = data.get("title")
        if not sid or title is None:
            return None
        return cls(id=str(sid), title=str(title), completed=parse_flag(data.get("completed")))


@dataclass(slots=True)
class Task:
    id: str
    title: str
    created_at: int  # epoch milliseconds

    status: TaskStatus = TaskStatus.TODO
    priority: Priority = Priority.MEDIUM
    description: str = ""
    category: str = DEFAULT_CATEGORY
    tags: list[str] = field(default_factory=list)
    due_date: date | None = None
    subtasks: list[Subtask] = field(default_factory=list)

    # Position suggested by the assistant; only read in smart sort mode.
    rank: int | None = None
    # Set once by the reminder scheduler, never reset.
    notified: bool = False
    ai_analysis: str | None = None

    @property
    def is_done(self) -> bool:
        return self.status == TaskStatus.DONE

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the camelCase keys of the persisted blob."""
        out: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "category": self.category,
            "tags": list(self.tags),
            "createdAt": self.created_at,
            "subtasks": [s.to_dict() for s in self.subtasks],
            "notified": self.notified,
        }
        if self.due_date is not None:
            out["dueDate"] = self.due_date.isoformat()
        if self.rank is not None:
            out["aiOrder"] = self.rank
        if self.ai_analysis:
            out["aiAnalysis"] = self.ai_analysis
        return out

    @classmethod
    def from_dict(cls, data: Any) -> Task | None:
        """
        Tolerant decode of one persisted record.

        Missing optional fields get defaults. Returns None only when the
        record has no usable id or title.
        """
        if not isinstance(data, dict):
            return None

        tid = data.get("id")
        title = data.get("title")
        if not tid or title is None or not str(title).strip():
            return None

        try:
            created_at = int(data.get("createdAt") or 0)
        except (TypeError, ValueError):
            created_at = 0

        raw_tags = data.get("tags")
        tags = [str(t) for t in raw_tags if t is not None] if isinstance(raw_tags, list) else []

        raw_subtasks = data.get("subtasks")
        subtasks: list[Subtask] = []
        if isinstance(raw_subtasks, list):
            for raw in raw_subtasks:
                st = Subtask.from_dict(raw)
                if st is not None:
                    subtasks.append(st)

        rank: int | None
        raw_rank = data.get("aiOrder")
        try:
            rank = int(raw_rank) if raw_rank is not None else None
        except (TypeError, ValueError):
            rank = None

        analysis = data.get("aiAnalysis")

        return cls(
            id=str(tid),
            title=str(title),
            created_at=created_at,
            status=TaskStatus.from_raw(data.get("status")),
            priority=Priority.from_raw(data.get("priority")),
            description=str(data.get("description") or ""),
            category=str(data.get("category") or DEFAULT_CATEGORY),
            tags=tags,
            due_date=parse_due_date(data.get("dueDate")),
            subtasks=subtasks,
            rank=rank,
            notified=parse_flag(data.get("notified")),
            ai_analysis=str(analysis) if analysis else None,
        )
