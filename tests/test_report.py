from __future__ import annotations

from collections.abc import Iterator
import json
from pathlib import Path

import pytest

from pdfpages.pipeline.models import FileFailure, PageResult, RunSummary, StageStatus
from pdfpages.pipeline.report import RunReport, log_summary, write_report
from pdfpages.utils.log_utils import logger


def _page(ordinal: int, **stages: StageStatus) -> PageResult:
    values = {
        "split": StageStatus.SUCCEEDED,
        "compress": StageStatus.SUCCEEDED,
        "render": StageStatus.SUCCEEDED,
        "thumbnail": StageStatus.SUCCEEDED,
    }
    values.update(stages)
    errors = tuple(f"{name}: boom" for name, status in stages.items() if status is StageStatus.FAILED)
    return PageResult(
        source=Path("/scans/REPLIM200182.pdf"),
        ordinal=ordinal,
        artifacts=(Path(f"/out/{ordinal:02d}.pdf"),),
        errors=errors,
        **values,
    )


@pytest.fixture
def summary() -> RunSummary:
    run = RunSummary(files_found=2, tool_available=True, tool_executable="gs")
    run.record(_page(2, compress=StageStatus.FAILED))
    run.record(_page(1))
    run.record(
        _page(
            3,
            split=StageStatus.FAILED,
            compress=StageStatus.SKIPPED,
            render=StageStatus.SKIPPED,
            thumbnail=StageStatus.SKIPPED,
        )
    )
    run.record_failure(FileFailure(source=Path("/scans/broken.pdf"), error="not a PDF"))
    return run.finalize()


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    messages: list[str] = []
    sink_id = logger.add(lambda message: messages.append(str(message)), format="{level}|{message}")
    yield messages
    logger.remove(sink_id)


def test_report_counts_and_page_order(summary: RunSummary) -> None:
    report = RunReport.from_summary(summary)

    assert report.files_found == 2
    assert report.files_processed == 1
    assert report.files_failed == 1
    assert (report.pages_succeeded, report.pages_degraded, report.pages_failed) == (1, 1, 1)
    assert [page.ordinal for page in report.pages] == [1, 2, 3]
    assert report.pages[1].status == "degraded"
    assert report.pages[1].errors == ["compress: boom"]
    assert report.file_failures[0].error == "not a PDF"


def test_write_report_creates_parent(summary: RunSummary, tmp_path: Path) -> None:
    path = write_report(summary, tmp_path / "nested" / "report.json")

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["tool_executable"] == "gs"
    assert payload["pages"][2]["split"] == "failed"
    assert payload["pages"][0]["artifacts"] == [str(Path("/out/01.pdf"))]


def test_log_summary_reports_problems(summary: RunSummary, log_messages: list[str]) -> None:
    log_summary(summary)

    joined = "\n".join(log_messages)
    assert "1 processed, 1 failed" in joined
    assert "ERROR|File failed: " in joined
    assert "WARNING|Page 02 of REPLIM200182.pdf degraded: compress: boom" in joined
    assert "ERROR|Page 03 of REPLIM200182.pdf failed" in joined
    assert "Page 01" not in joined
