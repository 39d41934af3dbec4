"""Logging setup for the editor_profiles package."""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler


LOG_LEVEL_ENV = "EDITOR_PROFILES_LOG_LEVEL"
PACKAGE_LOGGER = "editor_profiles"

_LOGGING_CONFIGURED = False


def setup_logging(level: str | None = None, console: Console | None = None) -> None:
    """Attach a rich handler to the package logger.

    The level comes from ``level``, then ``EDITOR_PROFILES_LOG_LEVEL``,
    then defaults to WARNING. Only the first call configures anything.
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    level_name = (level or os.environ.get(LOG_LEVEL_ENV) or "WARNING").upper()
    resolved = getattr(logging, level_name, logging.WARNING)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    app_logger = logging.getLogger(PACKAGE_LOGGER)
    app_logger.handlers.clear()
    app_logger.addHandler(handler)
    app_logger.setLevel(resolved)

    logging.getLogger(__name__).debug("Logging configured. level=%s", level_name)
    _LOGGING_CONFIGURED = True
