"""Process-level logging setup."""

from __future__ import annotations

import sys

from loguru import logger
from rich import get_console
from rich.logging import RichHandler

from .settings import resolve_log_level

_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | {name}:{function}:{line} | {message}"
_CONFIGURED: tuple[str, bool] | None = None


def configure_logging(level: str | None = None, *, rich: bool = False) -> None:
    """Install one stderr sink for loguru; repeated calls with the same options are no-ops.

    Example:
        ```python
        configure_logging("DEBUG", rich=True)
        ```
    """
    global _CONFIGURED
    resolved = resolve_log_level(level)
    if _CONFIGURED == (resolved, rich):
        return

    logger.remove()
    if rich:
        handler = RichHandler(
            console=get_console(),
            show_level=True,
            show_time=False,
            show_path=False,
            markup=False,
            rich_tracebacks=False,
        )
        logger.add(handler, level=resolved, format="{message}", backtrace=False, diagnose=False)
    else:
        logger.add(sys.stderr, level=resolved, format=_FORMAT, backtrace=False, diagnose=False)
    _CONFIGURED = (resolved, rich)
