# src/supertask/assistant/gateway.py

"""
Assistant gateway.

Turns the LLM into four narrow operations: parse free text into task
fields, decompose a task into subtasks, rank tasks, and give a short
piece of advice.

The assistant is never trusted:
- every call is wrapped; failures return the documented fallback,
- JSON is extracted leniently and validated field by field,
- partial answers are completed with defaults.

The blocking LLM call runs in a worker thread so the event loop (store
mutations, reminder ticks) keeps going while a request is in flight.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any

from ..core.ports import LLMClient
from ..tasks.task_models import DEFAULT_CATEGORY, Priority, Task, parse_due_date

logger = logging.getLogger(__name__)

ADVICE_FALLBACK = "Organize your priorities for a productive day."
ADVICE_EMPTY = "Keep up the good work!"

PARSE_SYSTEM_PROMPT = """
You are a task parser for a personal to-do list.

Extract structured fields from the user's input describing one task.

Rules:
- title: short and concise.
- description: extra detail or context, "" if none.
- priority: one of "low", "medium", "high", "critical". If unclear, use "medium".
- category: e.g. Work, Personal, Health. If unclear, use "general".
- tags: 1 to 3 relevant tags.
- dueDate: infer it if mentioned ("tomorrow", "next friday"), format YYYY-MM-DD, else null.

Output format:
Return STRICT JSON only, one object with keys
title, description, priority, category, tags, dueDate. No Markdown.
""".strip()

DECOMPOSE_SYSTEM_PROMPT = """
You are a subtask planner acting as a productivity expert.

Break the given task into 3 to 5 concrete, actionable subtasks.

Output format:
Return STRICT JSON only: an array of strings. No Markdown.
""".strip()

RANK_SYSTEM_PROMPT = """
You are a task prioritizer using the Eisenhower matrix.

Determine the optimal execution order for the given tasks.

Criteria:
1. Due date (urgency).
2. Priority (importance: critical > high > medium > low).
3. Complexity and estimated effort (from title and description).

Output format:
Return STRICT JSON only: an array of the task ids, first to do first. No Markdown.
""".strip()

ADVICE_SYSTEM_PROMPT = """
You are a productivity coach.

Given the user's open tasks, give one short piece of advice (max 2 sentences)
to motivate them or suggest where to start. Be professional and encouraging.
Plain text only.
""".strip()


@dataclass(slots=True)
class ParsedTask:
    title: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    category: str = DEFAULT_CATEGORY
    tags: list[str] = field(default_factory=list)
    due_date: date | None = None

    @classmethod
    def fallback(cls, free_text: str) -> ParsedTask:
        return cls(title=free_text)


def _extract_json(raw: str, opener: str, closer: str) -> str:
    raw = raw.strip()
    if raw.startswith(opener) and raw.endswith(closer):
        return raw
    first = raw.find(opener)
    last = raw.rfind(closer)
    if first != -1 and last != -1 and last > first:
        return raw[first : last + 1]
    return raw


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    out: list[str] = []
    for item in value:
        if isinstance(item, (str, int)) and not isinstance(item, bool):
            s = str(item).strip()
            if s:
                out.append(s)
    return out


def _parsed_from_payload(payload: dict[str, Any], free_text: str) -> ParsedTask:
    title = payload.get("title")
    title_s = str(title).strip() if isinstance(title, str) else ""

    description = payload.get("description")
    category = payload.get("category")
    category_s = str(category).strip() if isinstance(category, str) else ""

    return ParsedTask(
        title=title_s or free_text,
        description=str(description).strip() if isinstance(description, str) else "",
        priority=Priority.from_raw(payload.get("priority")),
        category=category_s or DEFAULT_CATEGORY,
        tags=_string_list(payload.get("tags")),
        due_date=parse_due_date(payload.get("dueDate")),
    )


class LLMAssistantGateway:
    """AssistantGateway backed by an injected LLMClient."""

    def __init__(self, llm: LLMClient, *, today: Callable[[], date] | None = None) -> None:
        self._llm = llm
        self._today = today or (lambda: datetime.now(UTC).date())

    def _complete(self, user_message: str, system_prompt: str) -> str:
        raw = ""
        for piece in self._llm.stream_chat([{"role": "user", "content": user_message}], system_prompt):
            raw += piece
        return raw.strip()

    async def _ask(self, user_message: str, system_prompt: str) -> str:
        return await asyncio.to_thread(self._complete, user_message, system_prompt)

    async def parse(self, free_text: str) -> ParsedTask:
        text = (free_text or "").strip()
        if not text:
            return ParsedTask.fallback(free_text)

        user_message = f"Today is {self._today().isoformat()}.\n\nUser input: {text!r}"
        try:
            raw = await self._ask(user_message, PARSE_SYSTEM_PROMPT)
            payload = json.loads(_extract_json(raw, "{", "}"))
        except Exception:
            logger.exception("Assistant parse failed; using fallback for %r", text[:200])
            return ParsedTask.fallback(free_text)

        if not isinstance(payload, dict):
            logger.warning("Assistant parse returned %s; using fallback", type(payload).__name__)
            return ParsedTask.fallback(free_text)

        parsed = _parsed_from_payload(payload, free_text)
        logger.debug("Assistant parsed title=%r priority=%s due=%s", parsed.title, parsed.priority, parsed.due_date)
        return parsed

    async def decompose(self, title: str, description: str | None = None) -> list[str]:
        user_message = f"Task: {title}\nContext: {description or 'None'}"
        try:
            raw = await self._ask(user_message, DECOMPOSE_SYSTEM_PROMPT)
            if not raw:
                return []
            items = json.loads(_extract_json(raw, "[", "]"))
        except Exception:
            logger.exception("Assistant decompose failed title=%r", title[:200])
            return []
        return _string_list(items)

    async def rank(self, tasks: Sequence[Task]) -> list[str]:
        if not tasks:
            return []

        rows = [
            {
                "id": t.id,
                "title": t.title,
                "priority": t.priority.value,
                "dueDate": t.due_date.isoformat() if t.due_date else None,
                "description": t.description,
            }
            for t in tasks
        ]
        user_message = "Tasks to order:\n" + json.dumps(rows, ensure_ascii=False)
        try:
            raw = await self._ask(user_message, RANK_SYSTEM_PROMPT)
            if not raw:
                return []
            items = json.loads(_extract_json(raw, "[", "]"))
        except Exception:
            logger.exception("Assistant rank failed (tasks=%d)", len(tasks))
            return []

        known = {t.id for t in tasks}
        ordered: list[str] = []
        for task_id in _string_list(items):
            if task_id in known and task_id not in ordered:
                ordered.append(task_id)
        if len(ordered) < len(tasks):
            logger.info("Assistant ranked %d of %d tasks", len(ordered), len(tasks))
        return ordered

    async def advise(self, tasks: Sequence[Task]) -> str:
        rows = [{"title": t.title, "priority": t.priority.value, "status": t.status.value} for t in tasks]
        user_message = "Tasks:\n" + json.dumps(rows, ensure_ascii=False)
        try:
            raw = await self._ask(user_message, ADVICE_SYSTEM_PROMPT)
        except Exception:
            logger.exception("Assistant advice failed")
            return ADVICE_FALLBACK
        return raw or ADVICE_EMPTY
