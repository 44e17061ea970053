"""Configuration helpers for pdfpages.

Expose `get_settings` as the canonical accessor for environment-driven
configuration. Modules should avoid loading `.env` directly and instead
import from this package to retrieve typed snapshots.
"""

from .settings import PdfPagesSettings, get_settings


__all__ = ["PdfPagesSettings", "get_settings"]
