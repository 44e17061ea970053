"""Derive the ``{year}/{month}/{day}/{location}/pages`` directory from a filename.

Source documents are named after the report they carry, e.g.
``REPLIM200182.pdf``: the ``REP`` marker, a three-letter location code
(``LIM``), then the day, month and two-digit year. A separated variant such as
``REPLIM 20-01-1982`` is accepted as well. Names that do not match end up in
an ``unsorted`` bucket instead of failing the run.

Resolution never reads the clock, so the same filename always lands in the
same directory.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import datetime
from pathlib import PurePath, PurePosixPath
import re


COMPACT_PATTERN = re.compile(
    r"REP(?P<location>[A-Z]{3})(?P<day>\d{2})(?P<month>\d{2})(?P<year>(?:19|20)\d{2}|\d{2})(?!\d)",
    re.IGNORECASE,
)
SEPARATED_PATTERN = re.compile(
    r"REP(?P<location>[A-Z]{3})[\s_-]*"
    r"(?P<day>\d{1,2})[\s._-]+(?P<month>\d{1,2})[\s._-]+(?P<year>(?:19|20)\d{2}|\d{2})(?!\d)",
    re.IGNORECASE,
)
DEFAULT_PATTERNS: tuple[re.Pattern[str], ...] = (COMPACT_PATTERN, SEPARATED_PATTERN)

DEFAULT_LOCATIONS: dict[str, str] = {"LIM": "lima"}

# Two-digit years above the pivot belong to the 1900s.
CENTURY_PIVOT = 60
MIN_YEAR = 1900
MAX_YEAR = 2099
PAGES_DIR = "pages"
FALLBACK_DIR = "unsorted"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True, slots=True)
class FilenameDate:
    year: int
    month: int
    day: int
    location: str

    def as_path(self) -> PurePosixPath:
        return PurePosixPath(
            f"{self.year:04d}", f"{self.month:02d}", f"{self.day:02d}", self.location, PAGES_DIR
        )


def expand_year(year: str) -> int:
    """Four-digit years must fall in 1900..2099; two-digit years pivot at 60."""
    value = int(year)
    if len(year) == 4:
        if not MIN_YEAR <= value <= MAX_YEAR:
            raise ValueError(f"year {year} is out of range")
        return value
    if len(year) != 2:
        raise ValueError(f"year {year!r} must have two or four digits")
    return 1900 + value if value > CENTURY_PIVOT else 2000 + value


def _stem(filename: str) -> str:
    name = PurePath(filename).name
    if name.lower().endswith(".pdf"):
        return name[:-4]
    return name


def _safe_stem(stem: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("_", stem).strip("._")
    return cleaned or "unnamed"


@dataclass(frozen=True)
class DestinationResolver:
    """Pure filename -> destination rule with a documented fallback."""

    patterns: Sequence[re.Pattern[str]] = DEFAULT_PATTERNS
    locations: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_LOCATIONS))
    fallback_dir: str = FALLBACK_DIR

    def parse(self, filename: str) -> FilenameDate | None:
        """Return the embedded date and location, or ``None`` for malformed names."""
        stem = _stem(filename)
        for pattern in self.patterns:
            match = pattern.search(stem)
            if match is None:
                continue
            try:
                date = datetime.date(
                    expand_year(match.group("year")),
                    int(match.group("month")),
                    int(match.group("day")),
                )
            except ValueError:
                continue
            code = match.group("location").upper()
            location = self.locations.get(code, code.lower())
            return FilenameDate(year=date.year, month=date.month, day=date.day, location=location)
        return None

    def resolve(self, filename: str) -> str:
        """Return the relative destination directory for ``filename``."""
        parsed = self.parse(filename)
        if parsed is not None:
            return str(parsed.as_path())
        stem = _safe_stem(_stem(filename))
        return str(PurePosixPath(self.fallback_dir, stem, PAGES_DIR))


_DEFAULT_RESOLVER = DestinationResolver()


def resolve_destination(filename: str) -> str:
    """Resolve ``filename`` with the default ``REP<LOC><DDMMYY>`` rule."""
    return _DEFAULT_RESOLVER.resolve(filename)


__all__ = [
    "DestinationResolver",
    "FilenameDate",
    "resolve_destination",
    "expand_year",
]
