# src/supertask/connectors/console_connector.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)

PROMPT_THREAD_NAME = "console-input"


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


async def read_line(prompt: str, reader: Callable[[str], str] = input) -> str:
    """
    Read one line without blocking the event loop.

    The blocking read runs on a daemon thread owned by this call (not the
    loop's default executor), so cancelling the await lets the process exit
    even while the thread is still waiting for stdin.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[str] = loop.create_future()

    def _deliver(result: str | None, error: BaseException | None) -> None:
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result or "")

    def _worker() -> None:
        try:
            line = reader(prompt)
        except BaseException as e:
            result, error = None, e
        else:
            result, error = line, None
        # The loop may already be closed after a Ctrl-C.
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(_deliver, result, error)

    threading.Thread(target=_worker, name=PROMPT_THREAD_NAME, daemon=True).start()
    return await future


async def run_console_loop(state: AppState, *, reader: Callable[[str], str] = input) -> None:
    """
    Line-oriented console.

    Reading happens off the event loop so the reminder scheduler keeps
    ticking while we wait for the user.
    """
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands, /exit to quit. Plain text adds a task.\n")

    while True:
        try:
            user_input = (await read_line(">>> ", reader)).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        # Plain text is shorthand for /add.
        line = user_input if user_input.startswith("/") else f"/add {user_input}"

        try:
            response = await command_registry.handle(state, line, emit=_print_ts)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is not None:
            _print_ts(response)

    logger.info("Console connector finished.")
