# src/supertask/connectors/console_notifier.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from ..core.ports import NotificationPermission

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


class ConsoleNotifier:
    """
    Notifier that prints reminders to the terminal.

    Permission mimics a desktop notification API: it starts from
    configuration, a request grants it unless it was denied, and a
    denial is sticky for the process.
    """

    def __init__(
        self,
        permission: NotificationPermission = NotificationPermission.UNDETERMINED,
        *,
        output: Callable[[str], None] = print,
    ) -> None:
        self._permission = permission
        self._output = output

    @property
    def permission(self) -> NotificationPermission:
        return self._permission

    def request_permission(self) -> NotificationPermission:
        if self._permission == NotificationPermission.UNDETERMINED:
            self._permission = NotificationPermission.GRANTED
            logger.info("Notification permission granted")
        return self._permission

    async def notify(self, *, title: str, body: str) -> None:
        self._output(f"\n[{_ts_local()}] [REMINDER] {title} - {body}")
