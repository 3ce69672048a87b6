# src/todo_companion/cli/main.py

"""
CLI entrypoint.

Initializes logging, validates settings, builds AppState, then runs one
connector in the main thread:
- telegram: long polling + reminder scheduler on the same event loop,
- console: REPL, reminders in a background thread.

Exit codes: 0 on normal shutdown, 2 on configuration or store init failure.
"""

from __future__ import annotations

import logging
import sys

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..core.errors import ConfigurationError, StoreError
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s (connector=%s)...", settings.app_name, settings.connector)

    try:
        settings.validate()
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return 2

    try:
        state = create_initial_state(settings=settings)
    except StoreError as exc:
        logger.error("Task store initialization failed: %s", exc)
        return 2

    if settings.connector == "console":
        from ..connectors.console_connector import run_console_loop

        run_console_loop(state)
    else:
        from ..connectors.telegram_connector import run_telegram_bot

        run_telegram_bot(state)

    logger.info("Bye.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
