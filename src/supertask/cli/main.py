# src/supertask/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs on one event loop:
- the reminder scheduler (if notifications are authorized),
- the console REPL, after showing startup advice when there are tasks.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging
from ..tasks import task_api

logger = logging.getLogger(__name__)


async def _run(state: AppState) -> None:
    state.reminders.start()
    try:
        if await task_api.prefetch_advice(state):
            print(f"[ASSISTANT] {state.advice}", flush=True)
        await run_console_loop(state)
    finally:
        await state.reminders.stop()
        if not state.task_store.flush():
            logger.error("Tasks could not be saved on exit.")


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)

    try:
        asyncio.run(_run(state))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    main()
