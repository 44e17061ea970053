"""Centralised environment configuration for pdfpages.

This module ensures `.env` loading happens in one place and exposes a
typed snapshot of output, pool, and logging knobs. Downstream modules call
`get_settings()` instead of touching `os.environ` directly, making it easier
to validate values and override behaviour in tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os
from pathlib import Path

from dotenv import load_dotenv


_DEFAULT_ENV_PATH = Path(".env")

DEFAULT_OUTPUT_DIR = "output"
DEFAULT_RENDER_DPI = 100
DEFAULT_LOG_FILE = "debug_logs.log"
DEFAULT_LOG_LEVEL = "INFO"
LOG_LEVEL_ENV = "PDFPAGES_LOG_LEVEL"


def _coerce_positive_int(value: str | None) -> int | None:
    if value is None or value == "":
        return None
    try:
        parsed = int(value)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


@dataclass(frozen=True)
class LoggingSettings:
    level: str
    file_path: str | None


@dataclass(frozen=True)
class PdfPagesSettings:
    """Top-level snapshot of configuration values."""

    env_file: Path
    output_dir: Path
    workers: int | None
    render_dpi: int
    max_pages: int | None
    logging: LoggingSettings


def _resolve_env_path(env_file: os.PathLike[str] | str | None) -> Path:
    if env_file is None:
        return _DEFAULT_ENV_PATH.resolve()
    return Path(env_file).resolve()


@lru_cache(maxsize=4)
def _load_settings(env_path: Path) -> PdfPagesSettings:
    # Existing environment variables take precedence over `.env` defaults.
    load_dotenv(dotenv_path=env_path, override=False)

    log_file = os.getenv("PDFPAGES_LOG_FILE", DEFAULT_LOG_FILE)
    logging_settings = LoggingSettings(
        level=(os.getenv(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper(),
        file_path=log_file or None,
    )

    return PdfPagesSettings(
        env_file=env_path,
        output_dir=Path(os.getenv("PDFPAGES_OUTPUT_DIR") or DEFAULT_OUTPUT_DIR),
        workers=_coerce_positive_int(os.getenv("PDFPAGES_WORKERS")),
        render_dpi=_coerce_positive_int(os.getenv("PDFPAGES_RENDER_DPI"))
        or DEFAULT_RENDER_DPI,
        max_pages=_coerce_positive_int(os.getenv("PDFPAGES_MAX_PAGES")),
        logging=logging_settings,
    )


def get_settings(
    env_file: os.PathLike[str] | str | None = None,
    *,
    reload: bool = False,
) -> PdfPagesSettings:
    """Return the cached settings snapshot.

    Args:
        env_file: Optional explicit path to a `.env` file. When omitted the
            `.env` file of the working directory is used.
        reload: When True the cached snapshot is cleared before loading.
    """
    env_path = _resolve_env_path(env_file)
    if reload:
        _load_settings.cache_clear()
    return _load_settings(env_path)
