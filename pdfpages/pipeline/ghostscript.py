"""Ghostscript discovery and invocation.

Ghostscript is optional. ``locate_tool`` looks for it once per run and
returns a ``ToolLocation`` that is handed to every worker; when nothing is
found the compress and render stages are skipped rather than failed.

Discovery order:
  * Windows: ``gswin32c.exe`` then ``gswin64c.exe`` in the search directory,
    then ``gswin32c`` on ``PATH``.
  * Elsewhere: an executable ``gs`` in the search directory, then ``gs`` on
    ``PATH``.
"""

from __future__ import annotations

import os
from pathlib import Path
import shutil
import subprocess
import sys

from PIL import Image

from pdfpages.errors import RenderError, ToolInvocationError
from pdfpages.pipeline.models import ToolLocation
from pdfpages.utils.image.transform import THUMBNAIL_WIDTH, save_thumbnail, save_webp
from pdfpages.utils.log_utils import logger


WINDOWS_LOCAL_NAMES: tuple[str, ...] = ("gswin32c.exe", "gswin64c.exe")
WINDOWS_COMMAND = "gswin32c"
UNIX_LOCAL_NAME = "gs"
UNIX_COMMAND = "gs"

COMPRESS_ARGS: tuple[str, ...] = (
    "-sDEVICE=pdfwrite",
    "-dCompatibilityLevel=1.4",
    "-dPDFSETTINGS=/ebook",
    "-dNOPAUSE",
    "-dQUIET",
    "-dBATCH",
)
RASTER_ARGS: tuple[str, ...] = (
    "-sDEVICE=png16m",
    "-dTextAlphaBits=4",
    "-dGraphicsAlphaBits=4",
    "-dNOPAUSE",
    "-dQUIET",
    "-dBATCH",
)
DEFAULT_RENDER_DPI = 100
_STDERR_TAIL = 400


def candidate_executables(
    search_dir: Path | None = None, platform: str | None = None
) -> list[tuple[str, str]]:
    """Return ``(executable, origin)`` pairs in discovery order."""
    directory = Path.cwd() if search_dir is None else Path(search_dir)
    platform = sys.platform if platform is None else platform
    candidates: list[tuple[str, str]] = []

    if platform == "win32":
        for name in WINDOWS_LOCAL_NAMES:
            local = directory / name
            if local.is_file():
                candidates.append((str(local), "local"))
        command = WINDOWS_COMMAND
    else:
        local = directory / UNIX_LOCAL_NAME
        if local.is_file() and os.access(local, os.X_OK):
            candidates.append((str(local), "local"))
        command = UNIX_COMMAND

    found = shutil.which(command)
    if found:
        candidates.append((found, "path"))
    return candidates


def probe_executable(executable: str) -> str | None:
    """Run ``<executable> --version``; return the version, or None if it is unusable."""
    try:
        completed = subprocess.run(
            [executable, "--version"],
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
        )
    except OSError as exc:
        logger.debug(f"Ghostscript candidate {executable} cannot be launched: {exc}")
        return None
    if completed.returncode != 0:
        logger.debug(
            f"Ghostscript candidate {executable} exited with {completed.returncode} on --version"
        )
        return None
    return completed.stdout.strip() or "unknown"


def locate_tool(search_dir: Path | None = None, platform: str | None = None) -> ToolLocation:
    """Resolve Ghostscript once; never raises when it is missing."""
    for executable, origin in candidate_executables(search_dir, platform):
        version = probe_executable(executable)
        if version is not None:
            logger.info(f"Ghostscript {version} detected at {executable} ({origin}).")
            return ToolLocation(executable=executable, origin=origin, version=version)

    logger.warning(
        "Ghostscript not found. Compression and image generation will be skipped. "
        "To enable, place 'gs' (Linux/macOS) or 'gswin32c.exe' (Windows) in the working directory "
        "or install Ghostscript on PATH."
    )
    return ToolLocation()


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.debug(f"Could not remove partial output {path}: {exc}")


class GhostscriptRunner:
    """Runs the located Ghostscript binary for a single page at a time."""

    def __init__(self, location: ToolLocation) -> None:
        self._executable = location.require()

    @property
    def executable(self) -> str:
        return self._executable

    def _invoke(
        self,
        args: tuple[str, ...],
        input_path: Path,
        output_path: Path,
        error_cls: type[ToolInvocationError] | type[RenderError],
    ) -> Path:
        command = [self._executable, *args, f"-sOutputFile={output_path}", str(input_path)]
        logger.debug(f"Running {' '.join(command)}")
        try:
            completed = subprocess.run(
                command, capture_output=True, text=True, errors="replace", check=False
            )
        except OSError as exc:
            _discard(output_path)
            raise error_cls(f"Could not launch {self._executable}: {exc}") from exc

        if completed.returncode != 0:
            _discard(output_path)
            stderr = (completed.stderr or "").strip()[-_STDERR_TAIL:]
            raise error_cls(
                f"Ghostscript exited with code {completed.returncode} for {input_path.name}"
                + (f": {stderr}" if stderr else "")
            )
        if not output_path.is_file() or output_path.stat().st_size == 0:
            _discard(output_path)
            raise error_cls(f"Ghostscript produced no output for {input_path.name}")
        return output_path

    def compress(self, page_pdf_path: Path, output_path: Path) -> Path:
        """Write an ``/ebook`` profile copy of ``page_pdf_path`` to ``output_path``."""
        if output_path == page_pdf_path:
            raise ValueError("Compression output must differ from its input")
        return self._invoke(COMPRESS_ARGS, page_pdf_path, output_path, ToolInvocationError)

    def rasterize(self, page_pdf_path: Path, png_path: Path, dpi: int = DEFAULT_RENDER_DPI) -> Path:
        """Render the page to an RGB PNG at ``dpi``."""
        return self._invoke((*RASTER_ARGS, f"-r{dpi}"), page_pdf_path, png_path, RenderError)

    def render(
        self, page_pdf_path: Path, full_out: Path, dpi: int = DEFAULT_RENDER_DPI
    ) -> Image.Image:
        """Rasterize the page, write the full-size WebP, and return the decoded raster.

        The intermediate PNG lives beside the page and is always removed.
        """
        temp_png = page_pdf_path.with_name(f"{page_pdf_path.stem}.temp.png")
        try:
            self.rasterize(page_pdf_path, temp_png, dpi)
            image: Image.Image | None = None
            try:
                with Image.open(temp_png) as raster:
                    raster.load()
                    image = raster.copy()
                save_webp(image, full_out)
            except Exception as exc:
                if image is not None:
                    image.close()
                _discard(full_out)
                raise RenderError(
                    f"Could not encode {full_out.name}: {type(exc).__name__}: {exc}"
                ) from exc
            return image
        finally:
            _discard(temp_png)


def write_thumbnail(
    image: Image.Image, thumb_out: Path, target_width: int = THUMBNAIL_WIDTH
) -> Path:
    """Save the proportional thumbnail, converting Pillow errors to ``RenderError``."""
    try:
        save_thumbnail(image, thumb_out, target_width)
    except Exception as exc:
        _discard(thumb_out)
        raise RenderError(
            f"Could not write thumbnail {thumb_out.name}: {type(exc).__name__}: {exc}"
        ) from exc
    return thumb_out


__all__ = [
    "GhostscriptRunner",
    "candidate_executables",
    "locate_tool",
    "probe_executable",
    "write_thumbnail",
]
