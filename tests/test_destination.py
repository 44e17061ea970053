from __future__ import annotations

import re

import pytest

from pdfpages.pipeline.destination import DestinationResolver, expand_year, resolve_destination


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("REPLIM200182.pdf", "1982/01/20/lima/pages"),
        ("REPLIM311299.pdf", "1999/12/31/lima/pages"),
        ("REPLIM010105.pdf", "2005/01/01/lima/pages"),
        ("replim200182.PDF", "1982/01/20/lima/pages"),
        ("scan_REPLIM150360_final.pdf", "2060/03/15/lima/pages"),
        ("REPLIM 20-01-1982.pdf", "1982/01/20/lima/pages"),
        ("REPLIM20012005.pdf", "2005/01/20/lima/pages"),
        ("REPLIM_5.7.82.pdf", "1982/07/05/lima/pages"),
        ("REPCUZ200182.pdf", "1982/01/20/cuz/pages"),
    ],
)
def test_resolves_date_and_location(filename: str, expected: str) -> None:
    assert resolve_destination(filename) == expected


def test_two_digit_year_pivot() -> None:
    assert expand_year("61") == 1961
    assert expand_year("60") == 2060
    assert expand_year("00") == 2000
    assert expand_year("1975") == 1975


def test_resolution_is_pure() -> None:
    first = resolve_destination("REPLIM200182.pdf")
    assert all(resolve_destination("REPLIM200182.pdf") == first for _ in range(5))
    assert DestinationResolver().resolve("REPLIM200182.pdf") == first


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("holiday photos.pdf", "unsorted/holiday_photos/pages"),
        ("REPLIM201382.pdf", "unsorted/REPLIM201382/pages"),
        ("REPLIM300282.pdf", "unsorted/REPLIM300282/pages"),
        ("REPLIM2001.pdf", "unsorted/REPLIM2001/pages"),
        ("REPLIM2001821.pdf", "unsorted/REPLIM2001821/pages"),
        ("REPLIM20018201.pdf", "unsorted/REPLIM20018201/pages"),
        ("REPLIM 20-01-8201.pdf", "unsorted/REPLIM_20-01-8201/pages"),
        ("...pdf", "unsorted/unnamed/pages"),
    ],
)
def test_malformed_names_fall_back_without_raising(filename: str, expected: str) -> None:
    assert resolve_destination(filename) == expected


def test_accepts_paths_not_just_names() -> None:
    assert resolve_destination("/data/in/REPLIM200182.pdf") == "1982/01/20/lima/pages"


def test_custom_rule_is_pluggable() -> None:
    resolver = DestinationResolver(
        patterns=(
            re.compile(
                r"(?P<location>[A-Z]{3})-(?P<year>\d{4})(?P<month>\d{2})(?P<day>\d{2})"
            ),
        ),
        locations={"CUZ": "cusco"},
        fallback_dir="misc",
    )

    assert resolver.resolve("CUZ-19820120.pdf") == "1982/01/20/cusco/pages"
    assert resolver.resolve("REPLIM200182.pdf") == "misc/REPLIM200182/pages"


@pytest.mark.parametrize("year", ["8201", "1899", "2100", "198", "19820"])
def test_expand_year_rejects_out_of_range_years(year: str) -> None:
    with pytest.raises(ValueError):
        expand_year(year)
