# src/weekplan/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from rich.console import Console

from ..cli.commands import registry as command_registry
from ..cli.render import build_week_table
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def run_console_loop(state: AppState, *, console: Console | None = None) -> None:
    """Line-oriented front end: every input line is a slash command."""
    console = console or Console()
    logger.info("Console connector started (week=%s).", state.week_start)

    app_name = str(getattr(getattr(state, "settings", None), "app_name", "weekplan"))
    console.print(f"[{_ts_local()}] [{app_name}] Use /help for commands, /exit to quit.", markup=False)
    console.print(build_week_table(state))

    def emit(text: str) -> None:
        # Immediate feedback for longer operations (import).
        console.print(f"[{_ts_local()}] {text}", markup=False)

    while True:
        try:
            user_input = console.input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            console.print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not user_input.startswith("/"):
            user_input = "/" + user_input

        try:
            response = command_registry.handle(state, user_input, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is None:
            continue

        if user_input.split(maxsplit=1)[0].lower() in ("/show", "/s"):
            console.print(build_week_table(state))
        else:
            console.print(f"[{_ts_local()}] {response}", markup=False, highlight=False)

    logger.info("Console connector finished.")
