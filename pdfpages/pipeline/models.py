"""Shared data models for the page pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pdfpages.errors import ToolUnavailableError


class StageStatus(str, Enum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


class PageStatus(str, Enum):
    SUCCEEDED = "succeeded"
    DEGRADED = "degraded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class SourceFile:
    """An input PDF discovered at run start."""

    path: Path

    @classmethod
    def from_path(cls, path: str | Path) -> SourceFile:
        return cls(path=Path(path).resolve())

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True, slots=True)
class ToolLocation:
    """Ghostscript as discovered once per run; ``executable`` is None when absent."""

    executable: str | None = None
    origin: str | None = None
    version: str | None = None

    @property
    def available(self) -> bool:
        return self.executable is not None

    def require(self) -> str:
        if self.executable is None:
            raise ToolUnavailableError(
                "Ghostscript was not found; place gs (or gswin32c.exe) next to the program "
                "or install it on PATH."
            )
        return self.executable


@dataclass(frozen=True, slots=True)
class PageUnit:
    """One extracted page, owned by exactly one worker.

    ``data`` holds the single-page PDF; when the page could not be extracted
    it is ``None`` and ``split_error`` says why.
    """

    source: SourceFile
    ordinal: int
    destination: Path
    data: bytes | None
    split_error: str | None = None

    @property
    def stem(self) -> str:
        return page_stem(self.ordinal)


def page_stem(ordinal: int) -> str:
    """Zero-padded output name for a page ordinal (``1`` -> ``"01"``)."""
    return f"{ordinal:02d}"


@dataclass(frozen=True, slots=True)
class PageOptions:
    render_dpi: int = 100
    thumbnail_width: int = 310


@dataclass(frozen=True, slots=True)
class PageResult:
    """Outcome of one page; each stage succeeds independently."""

    source: Path
    ordinal: int
    split: StageStatus
    compress: StageStatus
    render: StageStatus
    thumbnail: StageStatus
    artifacts: tuple[Path, ...] = ()
    errors: tuple[str, ...] = ()

    @property
    def status(self) -> PageStatus:
        if self.split is not StageStatus.SUCCEEDED:
            return PageStatus.FAILED
        stages = (self.compress, self.render, self.thumbnail)
        if all(stage is StageStatus.SUCCEEDED for stage in stages):
            return PageStatus.SUCCEEDED
        return PageStatus.DEGRADED

    @property
    def key(self) -> tuple[str, int]:
        return str(self.source), self.ordinal


@dataclass(frozen=True, slots=True)
class FileFailure:
    source: Path
    error: str


@dataclass(slots=True)
class RunSummary:
    """Aggregate outcome of a batch, filled by a single aggregator."""

    files_found: int = 0
    tool_available: bool = False
    tool_executable: str | None = None
    pages: list[PageResult] = field(default_factory=list)
    file_failures: list[FileFailure] = field(default_factory=list)
    _finalized: bool = field(default=False, init=False, repr=False)

    def record(self, result: PageResult) -> None:
        if self._finalized:
            raise RuntimeError("RunSummary is already finalized")
        self.pages.append(result)

    def record_failure(self, failure: FileFailure) -> None:
        if self._finalized:
            raise RuntimeError("RunSummary is already finalized")
        self.file_failures.append(failure)

    def finalize(self) -> RunSummary:
        """Order pages by (source, ordinal) and freeze the summary."""
        self.pages.sort(key=lambda page: page.key)
        self.file_failures.sort(key=lambda failure: str(failure.source))
        self._finalized = True
        return self

    @property
    def files_failed(self) -> int:
        return len(self.file_failures)

    @property
    def files_processed(self) -> int:
        return self.files_found - self.files_failed

    @property
    def pages_total(self) -> int:
        return len(self.pages)

    def _count(self, status: PageStatus) -> int:
        return sum(1 for page in self.pages if page.status is status)

    @property
    def pages_succeeded(self) -> int:
        return self._count(PageStatus.SUCCEEDED)

    @property
    def pages_degraded(self) -> int:
        return self._count(PageStatus.DEGRADED)

    @property
    def pages_failed(self) -> int:
        return self._count(PageStatus.FAILED)

    def pages_for(self, source: str | Path) -> list[PageResult]:
        target = Path(source)
        return [page for page in self.pages if page.source == target]
