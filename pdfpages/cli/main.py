from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine, Sequence
from functools import wraps
import os
from pathlib import Path
from typing import Any, ParamSpec, TypeVar

import typer

from pdfpages.config import get_settings
from pdfpages.config.settings import LOG_LEVEL_ENV
from pdfpages.pipeline import locate_tool
from pdfpages.utils.log_utils import configure_logging, logger

from . import split


app = typer.Typer(
    help="Splits, compresses and generates WebP images from PDFs.",
)


_P = ParamSpec("_P")
_T = TypeVar("_T")


def _synchronous(handler: Callable[_P, Coroutine[Any, Any, _T]]) -> Callable[_P, _T]:
    @wraps(handler)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _T:
        try:
            return asyncio.run(handler(*args, **kwargs))
        except KeyboardInterrupt as err:
            logger.info("Interrupted by user")
            raise typer.Exit(code=130) from err

    return wrapper


@app.command("split")
@_synchronous
async def split_command(
    input_path: Path = typer.Argument(
        ...,
        help="A PDF file, or a directory whose PDF files are processed (not recursive).",
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Output root directory. Defaults to PDFPAGES_OUTPUT_DIR or 'output'.",
        file_okay=False,
        dir_okay=True,
    ),
    workers: int | None = typer.Option(
        None,
        "--workers",
        min=1,
        help="Size of the page process pool. Defaults to the number of CPUs.",
    ),
    dpi: int | None = typer.Option(
        None,
        "--dpi",
        min=1,
        help="Rasterization DPI for WebP images. Defaults to PDFPAGES_RENDER_DPI or 100.",
    ),
    max_pages: int | None = typer.Option(
        None,
        "--max-pages",
        min=1,
        help="Only split the first N pages of each document.",
    ),
    report: Path | None = typer.Option(
        None,
        "--report",
        help="Write a JSON run report to this path.",
        dir_okay=False,
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="List the PDFs and their destinations then exit without processing.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log debug messages to the console.",
    ),
) -> int:
    if verbose:
        # Spawned workers configure logging from the environment on import.
        os.environ[LOG_LEVEL_ENV] = "DEBUG"
        configure_logging(level="DEBUG", force=True)
    settings = get_settings()

    options = split.SplitOptions(
        input_path=input_path,
        output_dir=output_dir if output_dir is not None else settings.output_dir,
        workers=workers if workers is not None else settings.workers,
        dpi=dpi if dpi is not None else settings.render_dpi,
        max_pages=max_pages if max_pages is not None else settings.max_pages,
        report=report,
        dry_run=dry_run,
    )
    result = await split.run(options)
    if result != 0:
        raise typer.Exit(code=result)
    return result


@app.command("locate-tool")
def locate_tool_command() -> int:
    """Report which Ghostscript binary would be used."""
    tool = locate_tool()
    if tool.available:
        typer.echo(f"{tool.executable} ({tool.origin}, version {tool.version})")
    else:
        typer.echo("Ghostscript not found; compression and images will be skipped.")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return its exit code instead of exiting."""
    try:
        app(args=list(argv) if argv is not None else None, prog_name="pdfpages")
    except SystemExit as exc:
        if exc.code is None:
            return 0
        return exc.code if isinstance(exc.code, int) else 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    app()
