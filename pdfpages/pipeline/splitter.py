"""Split a source PDF into single-page PDF buffers with PyMuPDF."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import fitz  # PyMuPDF

from pdfpages.errors import DocumentOpenError
from pdfpages.pipeline.models import PageUnit, SourceFile
from pdfpages.utils.log_utils import logger


def _open_document(path: Path) -> fitz.Document:
    if not path.is_file():
        raise DocumentOpenError(f"{path} does not exist or is not a file")
    try:
        doc = fitz.open(path.as_posix(), filetype="pdf")
    except Exception as exc:
        raise DocumentOpenError(f"Failed to load PDF {path.name}: {exc}") from exc

    if not doc.is_pdf:
        doc.close()
        raise DocumentOpenError(f"{path.name} is not a PDF container")
    if doc.needs_pass:
        doc.close()
        raise DocumentOpenError(f"{path.name} is password protected")
    if doc.page_count == 0:
        doc.close()
        raise DocumentOpenError(f"{path.name} contains no pages")
    return doc


def _extract_page(doc: fitz.Document, page_index: int) -> bytes:
    single = fitz.open()
    try:
        single.insert_pdf(doc, from_page=page_index, to_page=page_index)
        return single.tobytes(garbage=3, deflate=True)
    finally:
        single.close()


class PageSplitter:
    """Yields the pages of one document as independent single-page PDFs."""

    def __init__(self, *, max_pages: int | None = None) -> None:
        if max_pages is not None and max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        self._max_pages = max_pages

    def iter_pages(self, source: SourceFile, destination: Path) -> Iterator[PageUnit]:
        """Yield ``PageUnit`` 1..N in source order.

        The document is opened on first iteration, so a ``DocumentOpenError``
        surfaces when the iterator is first advanced. A page that cannot be
        extracted still yields a unit (carrying ``split_error``) to keep the
        numbering gap-free.
        """
        doc = _open_document(source.path)
        try:
            total = doc.page_count
            limit = total if self._max_pages is None else min(total, self._max_pages)
            if limit < total:
                logger.info(f"{source.name}: limiting output to the first {limit} of {total} pages")
            for page_index in range(limit):
                ordinal = page_index + 1
                try:
                    data = _extract_page(doc, page_index)
                except Exception as exc:
                    logger.error(f"Failed to extract page {ordinal} of {source.name}: {exc}")
                    yield PageUnit(
                        source=source,
                        ordinal=ordinal,
                        destination=destination,
                        data=None,
                        split_error=f"page extraction failed: {exc}",
                    )
                    continue
                yield PageUnit(source=source, ordinal=ordinal, destination=destination, data=data)
        finally:
            doc.close()


def split_source(
    source: SourceFile, destination: Path, max_pages: int | None = None
) -> list[PageUnit]:
    """Materialize every page of ``source``; the picklable entry point used by the pool."""
    return list(PageSplitter(max_pages=max_pages).iter_pages(source, destination))


def count_pages(path: Path) -> int:
    """Best-effort page count used for progress estimation; 0 when unreadable."""
    try:
        with fitz.open(path.as_posix(), filetype="pdf") as doc:
            return doc.page_count
    except Exception as exc:
        logger.debug(f"Failed to open {path} for progress estimation: {exc}")
        return 0


__all__ = ["PageSplitter", "count_pages", "split_source"]
