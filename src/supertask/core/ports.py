# src/supertask/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage, notification delivery and LLM providers swappable
and makes testing easier.
"""

from collections.abc import Awaitable, Iterable, Sequence
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..assistant.gateway import ParsedTask
    from ..tasks.task_models import Task

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI/OpenRouter-compatible)."""
    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]: ...


class BlobStorage(Protocol):
    """Single-key blob persistence (localStorage-like)."""

    def get_item(self, key: str) -> str | None: ...
    def set_item(self, key: str, value: str) -> None: ...


class NotificationPermission(StrEnum):
    UNDETERMINED = "undetermined"
    GRANTED = "granted"
    DENIED = "denied"

    @classmethod
    def from_raw(cls, raw: str | None) -> NotificationPermission:
        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            return cls.UNDETERMINED


class Notifier(Protocol):
    """
    Boundary for reminder delivery.

    The permission state is owned by the notifier; the reminder scheduler
    only reads it and must be told when it changes.
    """

    @property
    def permission(self) -> NotificationPermission: ...

    def request_permission(self) -> NotificationPermission: ...

    def notify(self, *, title: str, body: str) -> Awaitable[None]: ...


class AssistantGateway(Protocol):
    """Text-understanding oracle. Implementations never raise; they fall back."""

    async def parse(self, free_text: str) -> ParsedTask: ...
    async def decompose(self, title: str, description: str | None = None) -> list[str]: ...
    async def rank(self, tasks: Sequence[Task]) -> list[str]: ...
    async def advise(self, tasks: Sequence[Task]) -> str: ...
