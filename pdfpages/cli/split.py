from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pdfpages.errors import InputNotFoundError, OutputRootError
from pdfpages.pipeline import locate_tool, run_batch
from pdfpages.pipeline.report import log_summary, write_report
from pdfpages.utils.concurrency import TqdmProgressReporter
from pdfpages.utils.log_utils import logger


EXIT_OK = 0
EXIT_SETUP_FAILURE = 1


@dataclass(slots=True)
class SplitOptions:
    input_path: Path
    output_dir: Path
    workers: int | None
    dpi: int
    max_pages: int | None
    report: Path | None
    dry_run: bool


async def run(options: SplitOptions) -> int:
    """Run one batch and return the process exit code.

    Degraded or failed pages and unreadable files still exit 0; only a
    missing input or an uncreatable output root is a setup failure.
    """
    tool = locate_tool()
    progress = TqdmProgressReporter("pdfpages")
    try:
        summary = await run_batch(
            options.input_path,
            options.output_dir,
            tool=tool,
            workers=options.workers,
            render_dpi=options.dpi,
            max_pages=options.max_pages,
            dry_run=options.dry_run,
            progress_reporter=progress,
        )
    except (InputNotFoundError, OutputRootError) as exc:
        logger.error(f"Error: {exc}")
        return EXIT_SETUP_FAILURE
    finally:
        progress.close()

    if options.dry_run:
        return EXIT_OK

    log_summary(summary)
    if options.report is not None:
        path = write_report(summary, options.report)
        logger.info(f"Report written to {path}")
    return EXIT_OK
