# src/supertask/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState
  (LLM -> gateway, blob storage -> task store, notifier -> reminders).
"""

from __future__ import annotations

import logging

from ..assistant.gateway import LLMAssistantGateway
from ..config import get_settings
from ..connectors.console_notifier import ConsoleNotifier
from ..core.ports import LLMClient, NotificationPermission
from ..core.state import AppState
from ..llm.client import OpenRouterLLMClient, friendly_llm_error_message
from ..llm.offline import OfflineLLMClient
from ..tasks.blob_storage import SqliteBlobStorage
from ..tasks.task_scheduler import ReminderScheduler
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    llm_client: LLMClient
    try:
        llm_client = OpenRouterLLMClient(settings)
    except RuntimeError as e:
        # Fallback for local runs without an API key: every assistant call degrades.
        logger.info("Assistant offline: %s", friendly_llm_error_message(e))
        llm_client = OfflineLLMClient()

    task_store = TaskStore(SqliteBlobStorage(settings.tasks_db_path), key=settings.storage_key)
    notifier = ConsoleNotifier(NotificationPermission.from_raw(settings.notifications))

    return AppState(
        settings=settings,
        task_store=task_store,
        gateway=LLMAssistantGateway(llm_client),
        notifier=notifier,
        reminders=ReminderScheduler(
            task_store,
            notifier,
            interval_seconds=settings.reminder_interval_seconds,
        ),
    )
