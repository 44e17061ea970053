"""Split PDFs into dated single-page files with optional compression and WebP previews."""

__version__ = "0.1.0"
