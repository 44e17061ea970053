"""Per-page processing: write, compress, render, thumbnail.

``process_page`` runs inside a spawned worker process. Every stage after the
original page write is optional; a skipped or failed stage is recorded on the
``PageResult`` and the next stage still runs.
"""

from __future__ import annotations

from pathlib import Path

from PIL import Image

from pdfpages.errors import PdfPagesError
from pdfpages.pipeline.ghostscript import GhostscriptRunner, write_thumbnail
from pdfpages.pipeline.models import PageOptions, PageResult, PageUnit, StageStatus, ToolLocation
from pdfpages.utils.log_utils import logger


def artifact_paths(destination: Path, stem: str) -> dict[str, Path]:
    return {
        "split": destination / f"{stem}.pdf",
        "compress": destination / f"{stem}_compress.pdf",
        "render": destination / f"{stem}.webp",
        "thumbnail": destination / f"{stem}_thumb.webp",
    }


def _describe(exc: Exception) -> str:
    if isinstance(exc, PdfPagesError):
        return str(exc)
    return f"{type(exc).__name__}: {exc}"


class _ResultBuilder:
    def __init__(self, unit: PageUnit) -> None:
        self._unit = unit
        self.stages: dict[str, StageStatus] = {
            "split": StageStatus.SKIPPED,
            "compress": StageStatus.SKIPPED,
            "render": StageStatus.SKIPPED,
            "thumbnail": StageStatus.SKIPPED,
        }
        self.artifacts: list[Path] = []
        self.errors: list[str] = []

    def succeeded(self, stage: str, artifact: Path) -> None:
        self.stages[stage] = StageStatus.SUCCEEDED
        self.artifacts.append(artifact)

    def failed(self, stage: str, message: str) -> None:
        self.stages[stage] = StageStatus.FAILED
        self.errors.append(f"{stage}: {message}")
        logger.warning(f"{self._unit.source.name} page {self._unit.ordinal}: {stage} failed ({message})")

    def build(self) -> PageResult:
        return PageResult(
            source=self._unit.source.path,
            ordinal=self._unit.ordinal,
            split=self.stages["split"],
            compress=self.stages["compress"],
            render=self.stages["render"],
            thumbnail=self.stages["thumbnail"],
            artifacts=tuple(self.artifacts),
            errors=tuple(self.errors),
        )


def process_page(
    unit: PageUnit, tool: ToolLocation, options: PageOptions | None = None
) -> PageResult:
    """Run every stage for ``unit``; page-scoped problems never raise."""
    options = options or PageOptions()
    paths = artifact_paths(unit.destination, unit.stem)
    result = _ResultBuilder(unit)

    if unit.data is None:
        result.failed("split", unit.split_error or "page could not be extracted")
        return result.build()
    try:
        paths["split"].write_bytes(unit.data)
    except OSError as exc:
        result.failed("split", f"could not write {paths['split'].name}: {exc}")
        return result.build()
    result.succeeded("split", paths["split"])

    if not tool.available:
        return result.build()
    runner = GhostscriptRunner(tool)

    try:
        runner.compress(paths["split"], paths["compress"])
    except Exception as exc:
        result.failed("compress", _describe(exc))
    else:
        result.succeeded("compress", paths["compress"])

    # Rendered from the original page so a failed compression does not block it.
    image: Image.Image | None = None
    try:
        image = runner.render(paths["split"], paths["render"], dpi=options.render_dpi)
    except Exception as exc:
        result.failed("render", _describe(exc))
    else:
        result.succeeded("render", paths["render"])

    if image is not None:
        try:
            write_thumbnail(image, paths["thumbnail"], options.thumbnail_width)
        except Exception as exc:
            result.failed("thumbnail", _describe(exc))
        else:
            result.succeeded("thumbnail", paths["thumbnail"])
        finally:
            image.close()

    return result.build()


__all__ = ["artifact_paths", "process_page"]
