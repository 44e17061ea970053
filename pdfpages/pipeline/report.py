"""Run summary reporting: log lines for humans, JSON for tooling."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from pdfpages.pipeline.models import PageStatus, RunSummary, StageStatus
from pdfpages.utils.log_utils import logger


class PageReport(BaseModel):
    source: str
    ordinal: int = Field(..., ge=1, description="1-based page number within the source")
    status: PageStatus
    split: StageStatus
    compress: StageStatus
    render: StageStatus
    thumbnail: StageStatus
    artifacts: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class FileFailureReport(BaseModel):
    source: str
    error: str


class RunReport(BaseModel):
    """Serializable snapshot of a finished ``RunSummary``."""

    files_found: int
    files_processed: int
    files_failed: int
    pages_total: int
    pages_succeeded: int
    pages_degraded: int
    pages_failed: int
    tool_available: bool
    tool_executable: str | None = None
    pages: list[PageReport] = Field(default_factory=list)
    file_failures: list[FileFailureReport] = Field(default_factory=list)

    @classmethod
    def from_summary(cls, summary: RunSummary) -> RunReport:
        return cls(
            files_found=summary.files_found,
            files_processed=summary.files_processed,
            files_failed=summary.files_failed,
            pages_total=summary.pages_total,
            pages_succeeded=summary.pages_succeeded,
            pages_degraded=summary.pages_degraded,
            pages_failed=summary.pages_failed,
            tool_available=summary.tool_available,
            tool_executable=summary.tool_executable,
            pages=[
                PageReport(
                    source=str(page.source),
                    ordinal=page.ordinal,
                    status=page.status,
                    split=page.split,
                    compress=page.compress,
                    render=page.render,
                    thumbnail=page.thumbnail,
                    artifacts=[str(path) for path in page.artifacts],
                    errors=list(page.errors),
                )
                for page in summary.pages
            ],
            file_failures=[
                FileFailureReport(source=str(failure.source), error=failure.error)
                for failure in summary.file_failures
            ],
        )


def write_report(summary: RunSummary, path: Path) -> Path:
    """Write the JSON report for ``summary`` to ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(RunReport.from_summary(summary).model_dump_json(indent=2), encoding="utf-8")
    return path


def log_summary(summary: RunSummary) -> None:
    logger.info(
        f"Run complete. Files: {summary.files_found} found, {summary.files_processed} processed, "
        f"{summary.files_failed} failed | Pages: {summary.pages_total} total, "
        f"{summary.pages_succeeded} succeeded, {summary.pages_degraded} degraded, "
        f"{summary.pages_failed} failed"
    )
    if not summary.tool_available and summary.pages_total:
        logger.info("Ghostscript unavailable: compressed PDFs and WebP images were not produced.")
    for failure in summary.file_failures:
        logger.error(f"File failed: {failure.source}: {failure.error}")
    for page in summary.pages:
        if page.status is PageStatus.SUCCEEDED:
            continue
        if page.status is PageStatus.FAILED or page.errors:
            level = "ERROR" if page.status is PageStatus.FAILED else "WARNING"
            logger.log(
                level,
                f"Page {page.ordinal:02d} of {page.source.name} {page.status.value}: "
                + "; ".join(page.errors),
            )


__all__ = ["RunReport", "PageReport", "FileFailureReport", "log_summary", "write_report"]
