"""Custom exception types for the page splitting pipeline."""

from __future__ import annotations


class PdfPagesError(RuntimeError):
    """Base class for all pipeline errors.

    Every subclass takes a single message argument so instances survive the
    round trip through a process pool unchanged.
    """

    pass


class InputNotFoundError(PdfPagesError):
    """Raised when the input file or directory does not exist."""

    pass


class OutputRootError(PdfPagesError):
    """Raised when the output root directory cannot be created."""

    pass


class DocumentOpenError(PdfPagesError):
    """Raised when a source file is unreadable or not a valid PDF container."""

    pass


class ToolUnavailableError(PdfPagesError):
    """Raised when Ghostscript is required but no discovery step found it."""

    pass


class ToolInvocationError(PdfPagesError):
    """Raised when Ghostscript ran but produced no usable compressed output."""

    pass


class RenderError(PdfPagesError):
    """Raised when a page cannot be rasterized, encoded, or thumbnailed."""

    pass


__all__ = [
    "PdfPagesError",
    "InputNotFoundError",
    "OutputRootError",
    "DocumentOpenError",
    "ToolUnavailableError",
    "ToolInvocationError",
    "RenderError",
]
