"""Batch orchestration: discover inputs, split, and fan pages out to one process pool."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from concurrent.futures import Executor, ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from dataclasses import dataclass
from multiprocessing import get_context
import os
from pathlib import Path
from typing import Any, TypeVar

from pdfpages.errors import DocumentOpenError, InputNotFoundError, OutputRootError
from pdfpages.pipeline.destination import DestinationResolver
from pdfpages.pipeline.ghostscript import DEFAULT_RENDER_DPI, locate_tool
from pdfpages.pipeline.models import (
    FileFailure,
    PageOptions,
    PageResult,
    PageUnit,
    RunSummary,
    SourceFile,
    StageStatus,
    ToolLocation,
)
from pdfpages.pipeline.splitter import count_pages, split_source
from pdfpages.pipeline.worker import process_page
from pdfpages.utils.concurrency import ProgressReporter, default_worker_count
from pdfpages.utils.image.transform import THUMBNAIL_WIDTH
from pdfpages.utils.log_utils import logger


PDF_SUFFIX = ".pdf"

_T = TypeVar("_T")


def discover_sources(input_path: Path) -> list[SourceFile]:
    """Return the input file, or the PDFs directly inside a directory (sorted).

    Subdirectories are not searched.
    """
    if not input_path.exists():
        raise InputNotFoundError(f"Input path not found: {input_path}")
    if input_path.is_dir():
        paths = sorted(
            path
            for path in input_path.iterdir()
            if path.is_file() and path.suffix.lower() == PDF_SUFFIX
        )
    else:
        paths = [input_path]
    return [SourceFile.from_path(path) for path in paths]


def ensure_output_root(output_dir: Path) -> Path:
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OutputRootError(f"Cannot create output directory {output_dir}: {exc}") from exc
    return output_dir


@dataclass(slots=True)
class BatchConfig:
    output_dir: Path
    workers: int | None = None
    render_dpi: int = DEFAULT_RENDER_DPI
    max_pages: int | None = None
    dry_run: bool = False


class SummaryAggregator:
    """The only writer of the ``RunSummary``; fed through a queue."""

    def __init__(self, summary: RunSummary, progress: ProgressReporter | None = None) -> None:
        self._summary = summary
        self._progress = progress

    async def consume(self, queue: asyncio.Queue[PageResult | FileFailure | None]) -> None:
        while True:
            item = await queue.get()
            if item is None:
                queue.task_done()
                break
            if isinstance(item, FileFailure):
                self._summary.record_failure(item)
            else:
                self._summary.record(item)
                if self._progress:
                    self._progress.increment()
            queue.task_done()


def _crashed_page(unit: PageUnit, exc: BaseException) -> PageResult:
    return PageResult(
        source=unit.source.path,
        ordinal=unit.ordinal,
        split=StageStatus.FAILED,
        compress=StageStatus.SKIPPED,
        render=StageStatus.SKIPPED,
        thumbnail=StageStatus.SKIPPED,
        errors=(f"worker: {type(exc).__name__}: {exc}",),
    )


class WorkerPool:
    """Spawn-context process pool that outlives the death of a worker process.

    A worker killed mid-task (OOM, a crash inside MuPDF) breaks every pending
    future of its ``ProcessPoolExecutor``. The shared executor is then
    replaced, and each call caught in the broken one is re-run alone in a
    single-worker executor, so only the call whose process died raises
    ``BrokenProcessPool``.
    """

    def __init__(self, workers: int) -> None:
        self._workers = workers
        self._ctx = get_context("spawn")
        self._shared = self._new_executor(workers)
        self._isolated: Executor | None = None
        self._isolation_lock = asyncio.Lock()
        self.restarts = 0

    def _new_executor(self, workers: int) -> Executor:
        return ProcessPoolExecutor(max_workers=workers, mp_context=self._ctx)

    async def run(self, fn: Callable[..., _T], *args: Any) -> _T:
        loop = asyncio.get_running_loop()
        executor = self._shared
        try:
            return await loop.run_in_executor(executor, fn, *args)
        except BrokenProcessPool:
            self._replace_shared(executor)
        return await self._run_isolated(fn, *args)

    def _replace_shared(self, broken: Executor) -> None:
        if self._shared is not broken:
            return
        logger.warning("A worker process died unexpectedly; restarting the process pool")
        broken.shutdown(wait=False, cancel_futures=True)
        self._shared = self._new_executor(self._workers)
        self.restarts += 1

    async def _run_isolated(self, fn: Callable[..., _T], *args: Any) -> _T:
        loop = asyncio.get_running_loop()
        async with self._isolation_lock:
            if self._isolated is None:
                self._isolated = self._new_executor(1)
            executor = self._isolated
            try:
                return await loop.run_in_executor(executor, fn, *args)
            except BrokenProcessPool:
                executor.shutdown(wait=False, cancel_futures=True)
                self._isolated = None
                raise

    def shutdown(self) -> None:
        self._shared.shutdown(wait=True)
        if self._isolated is not None:
            self._isolated.shutdown(wait=True)
            self._isolated = None

    def __enter__(self) -> WorkerPool:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()


class BatchOrchestrator:
    """High-level coordinator for one batch run."""

    def __init__(
        self,
        config: BatchConfig,
        *,
        tool: ToolLocation,
        resolver: DestinationResolver | None = None,
        progress_reporter: ProgressReporter | None = None,
    ) -> None:
        self._config = config
        self._tool = tool
        self._resolver = resolver or DestinationResolver()
        self._progress = progress_reporter
        self._options = PageOptions(render_dpi=config.render_dpi, thumbnail_width=THUMBNAIL_WIDTH)

    async def run(self, input_path: str | os.PathLike[str]) -> RunSummary:
        sources = discover_sources(Path(input_path))
        summary = RunSummary(
            files_found=len(sources),
            tool_available=self._tool.available,
            tool_executable=self._tool.executable,
        )
        if not sources:
            logger.warning(f"No PDF files found in {input_path}")
            return summary.finalize()

        logger.info(f"Found {len(sources)} file(s) to process.")
        logger.info(f"Output directory: {self._config.output_dir}")

        if self._config.dry_run:
            for source in sources:
                destination = self._config.output_dir / self._resolver.resolve(source.name)
                logger.info(f"DRY RUN: {source.path} -> {destination}")
            return summary.finalize()

        output_root = ensure_output_root(self._config.output_dir)
        workers = default_worker_count(self._config.workers)

        progress_started = False
        if self._progress:
            loop = asyncio.get_running_loop()
            total_pages = await loop.run_in_executor(None, self._estimate_total_pages, sources)
            if total_pages:
                self._progress.start(total_pages)
                progress_started = True

        queue: asyncio.Queue[PageResult | FileFailure | None] = asyncio.Queue()
        aggregator = SummaryAggregator(summary, self._progress)
        # Bounds how many documents are split and held in memory at once.
        split_slots = asyncio.Semaphore(workers)

        try:
            with WorkerPool(workers) as pool:
                consumer = asyncio.create_task(aggregator.consume(queue))
                await asyncio.gather(
                    *(
                        self._process_source(pool, source, output_root, queue, split_slots)
                        for source in sources
                    )
                )
                await queue.put(None)
                await consumer
        finally:
            if progress_started and self._progress:
                self._progress.close()

        return summary.finalize()

    async def _process_source(
        self,
        pool: WorkerPool,
        source: SourceFile,
        output_root: Path,
        queue: asyncio.Queue[PageResult | FileFailure | None],
        split_slots: asyncio.Semaphore,
    ) -> None:
        destination = output_root / self._resolver.resolve(source.name)
        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error(f"Skipping {source.path}: cannot create {destination} ({exc})")
            await queue.put(FileFailure(source=source.path, error=f"destination: {exc}"))
            return

        async with split_slots:
            try:
                units: list[PageUnit] = await pool.run(
                    split_source, source, destination, self._config.max_pages
                )
            except DocumentOpenError as exc:
                logger.error(f"Skipping {source.path}: cannot open ({exc})")
                await queue.put(FileFailure(source=source.path, error=str(exc)))
                return
            except Exception as exc:
                logger.exception(f"Splitting {source.path} failed")
                await queue.put(FileFailure(source=source.path, error=f"split: {exc}"))
                return

        logger.debug(f"{source.name}: {len(units)} page(s) -> {destination}")
        await asyncio.gather(*(self._run_page(pool, unit, queue) for unit in units))

    async def _run_page(
        self,
        pool: WorkerPool,
        unit: PageUnit,
        queue: asyncio.Queue[PageResult | FileFailure | None],
    ) -> None:
        try:
            result = await pool.run(process_page, unit, self._tool, self._options)
        except Exception as exc:
            logger.exception(f"Worker crashed on page {unit.ordinal} of {unit.source.name}")
            result = _crashed_page(unit, exc)
        await queue.put(result)

    def _estimate_total_pages(self, sources: Sequence[SourceFile]) -> int:
        total = 0
        for source in sources:
            pages = count_pages(source.path)
            if self._config.max_pages is not None:
                pages = min(pages, self._config.max_pages)
            total += pages
        return total


async def run_batch(
    input_path: str | os.PathLike[str],
    output_dir: str | os.PathLike[str],
    *,
    tool: ToolLocation | None = None,
    workers: int | None = None,
    render_dpi: int = DEFAULT_RENDER_DPI,
    max_pages: int | None = None,
    dry_run: bool = False,
    resolver: DestinationResolver | None = None,
    progress_reporter: ProgressReporter | None = None,
) -> RunSummary:
    """Process ``input_path`` into ``output_dir``; Ghostscript is located when ``tool`` is None."""
    config = BatchConfig(
        output_dir=Path(output_dir),
        workers=workers,
        render_dpi=render_dpi,
        max_pages=max_pages,
        dry_run=dry_run,
    )
    orchestrator = BatchOrchestrator(
        config,
        tool=tool if tool is not None else locate_tool(),
        resolver=resolver,
        progress_reporter=progress_reporter,
    )
    return await orchestrator.run(input_path)
