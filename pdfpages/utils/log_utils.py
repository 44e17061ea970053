"""Logging utilities shared across the pdfpages package."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from loguru import logger
from rich.logging import RichHandler

from pdfpages.config import get_settings


_CONFIGURED: bool = False

DEFAULT_FILE_LEVEL = "DEBUG"
DEFAULT_FILE_ROTATION = "5 MB"
DEFAULT_FILE_RETENTION = 2

_RICH_HANDLER_KWARGS: dict[str, Any] = {
    "markup": True,
    "show_time": False,
}


def configure_logging(*, level: str | None = None, force: bool = False) -> None:
    """Configure the shared logger once per process.

    Args:
        level: Console level; defaults to the ``PDFPAGES_LOG_LEVEL`` setting.
        force: Reconfigure even if logging was already set up.
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    settings = get_settings().logging
    logger.remove()

    logger.add(
        RichHandler(**_RICH_HANDLER_KWARGS),  # type: ignore[arg-type]
        level=level or settings.level,
        format="{message}",
    )

    if settings.file_path:
        resolved_file_path = Path(settings.file_path).expanduser().resolve()
        resolved_file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(resolved_file_path),
            level=DEFAULT_FILE_LEVEL,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {process} | {name} | {message}",
            rotation=DEFAULT_FILE_ROTATION,
            retention=DEFAULT_FILE_RETENTION,
            enqueue=True,
        )

    _CONFIGURED = True


__all__ = ["logger", "configure_logging"]

# Configure logging on import so callers only need to import `logger`.
configure_logging()
