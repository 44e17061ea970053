from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Executor, Future
from pathlib import Path
import shutil
import subprocess
from types import TracebackType

import fitz
from PIL import Image
import pytest

from pdfpages.pipeline.models import ToolLocation


PdfFactory = Callable[..., Path]


class _InlineExecutor(Executor):
    def __init__(self, *args: object, **kwargs: object) -> None:
        super().__init__()

    def submit(
        self, fn: Callable[..., object], /, *args: object, **kwargs: object
    ) -> Future[object]:
        future: Future[object] = Future()
        try:
            result: object = fn(*args, **kwargs)
        except Exception as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)
        return future

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        return None

    def __enter__(self) -> _InlineExecutor:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool:
        return False


@pytest.fixture
def inline_process_pool(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "pdfpages.pipeline.runner.ProcessPoolExecutor",
        _InlineExecutor,
    )


class FakeGhostscript:
    """Stands in for ``subprocess.run`` and mimics the two Ghostscript devices."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.raster_size: tuple[int, int] = (850, 1100)
        self.fail_compress: set[str] = set()
        self.empty_compress: set[str] = set()
        self.fail_render: set[str] = set()
        self.version_returncode = 0

    def __call__(self, command: list[str], *args: object, **kwargs: object) -> subprocess.CompletedProcess[str]:
        command = [str(part) for part in command]
        self.calls.append(command)
        if command[1:] == ["--version"]:
            return subprocess.CompletedProcess(command, self.version_returncode, "10.02.1\n", "")

        output = Path(next(arg.split("=", 1)[1] for arg in command if arg.startswith("-sOutputFile=")))
        source = Path(command[-1])
        if "-sDEVICE=pdfwrite" in command:
            if source.name in self.fail_compress:
                return subprocess.CompletedProcess(command, 1, "", "Error: /undefined in --showpage--")
            if source.name in self.empty_compress:
                output.write_bytes(b"")
            else:
                shutil.copyfile(source, output)
        elif "-sDEVICE=png16m" in command:
            if source.name in self.fail_render:
                return subprocess.CompletedProcess(command, 1, "", "Error: /rangecheck")
            Image.new("RGB", self.raster_size, color="white").save(output, format="PNG")
        return subprocess.CompletedProcess(command, 0, "", "")

    def devices(self) -> list[str]:
        return [
            arg.split("=", 1)[1]
            for call in self.calls
            for arg in call
            if arg.startswith("-sDEVICE=")
        ]


@pytest.fixture
def fake_gs(monkeypatch: pytest.MonkeyPatch) -> FakeGhostscript:
    fake = FakeGhostscript()
    monkeypatch.setattr("pdfpages.pipeline.ghostscript.subprocess.run", fake)
    return fake


@pytest.fixture
def gs_tool() -> ToolLocation:
    return ToolLocation(executable="gs", origin="path", version="10.02.1")


def write_pdf(path: Path, page_sizes: list[tuple[float, float]]) -> Path:
    doc = fitz.open()
    for index, (width, height) in enumerate(page_sizes, start=1):
        page = doc.new_page(width=width, height=height)
        page.insert_text((36, 72), f"Page {index}", fontsize=24)
    doc.save(path.as_posix())
    doc.close()
    return path


@pytest.fixture
def pdf_factory(tmp_path: Path) -> PdfFactory:
    def factory(
        name: str,
        pages: int = 3,
        size: tuple[float, float] = (595, 842),
        directory: Path | None = None,
    ) -> Path:
        target_dir = directory or tmp_path / "inputs"
        target_dir.mkdir(parents=True, exist_ok=True)
        return write_pdf(target_dir / name, [size] * pages)

    return factory
