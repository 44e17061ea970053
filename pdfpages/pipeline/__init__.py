"""PDF page splitting pipeline.

Primary public entry point:
    ``run_batch`` – an asyncio coordinator that:
      1. Discovers the input PDFs (a single file or the PDFs in a directory).
      2. Resolves each file's ``{year}/{month}/{day}/{location}/pages`` directory.
      3. Splits each document into single-page PDFs in a process pool.
      4. Writes, compresses, and renders every page in the same pool.
      5. Aggregates per-page results into a ``RunSummary``.

Multiprocessing:
    Always uses the ``spawn`` start method to avoid fork-related deadlocks with
    threads or async runtimes.
"""

from .destination import DestinationResolver, resolve_destination
from .ghostscript import GhostscriptRunner, locate_tool
from .models import PageResult, PageStatus, RunSummary, StageStatus, ToolLocation
from .runner import BatchConfig, BatchOrchestrator, run_batch
from .splitter import PageSplitter
from .worker import process_page


__all__ = [
    "BatchConfig",
    "BatchOrchestrator",
    "DestinationResolver",
    "GhostscriptRunner",
    "PageResult",
    "PageSplitter",
    "PageStatus",
    "RunSummary",
    "StageStatus",
    "ToolLocation",
    "locate_tool",
    "process_page",
    "resolve_destination",
    "run_batch",
]
