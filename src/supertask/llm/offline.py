# src/supertask/llm/offline.py

from __future__ import annotations

from collections.abc import Iterable

from ..core.ports import ChatMessage


class OfflineLLMClient:
    """
    Offline deterministic LLM client used when no external API is configured.

    Behavior:
    - Task parser prompts -> returns {} (gateway fills defaults from the raw text)
    - Subtask / prioritizer prompts -> returns [] (no subtasks, no ranking)
    - Anything else (advice) -> a short static hint
    """

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        sp = (system_prompt or "").lower()

        if "task parser" in sp:
            yield "{}"
            return

        if "subtask planner" in sp or "task prioritizer" in sp:
            yield "[]"
            return

        yield (
            "Offline mode: no external LLM is configured. "
            "Start with your most urgent critical task."
        )
