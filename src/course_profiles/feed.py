"""Course feed: a published spreadsheet CSV with loosely named columns.

Header names in the sheet drift over time ("Event" vs "name", "Gain" vs
"Ascent"), so each field is matched against a list of case-insensitive
patterns once, when the feed is loaded, and every row is turned into a
CourseSummary with documented defaults for missing values.
"""

import io
import logging
import math
import re
from collections.abc import Iterable, Iterator, Mapping

import pandas as pd
import requests

from course_profiles.classify import parse_ascent
from course_profiles.errors import NotFoundError
from course_profiles.identifiers import course_id
from course_profiles.listing import provinces as group_by_province
from course_profiles.models import CourseSummary

logger = logging.getLogger(__name__)

# field -> header patterns, tried in order against each header
COLUMN_ALIASES: dict[str, list[str]] = {
    "name": ["name", "event"],
    "latitude": ["lat"],
    "longitude": ["lon"],
    "ascent": ["ascent", "gain"],
    "descent": ["descent", "loss"],
    "county": ["county", "region"],
    "route_type": ["route_type", "type"],
    "terrain": ["profile", "terrain"],
    "time": ["time"],
    "website": ["website", "url"],
}

# field -> pattern that disqualifies an otherwise matching header
COLUMN_EXCLUDES: dict[str, str] = {
    "latitude": "location",
    "longitude": "location",
}

FETCH_TIMEOUT_SECONDS = 30


def resolve_columns(
    headers: Iterable[str],
    aliases: Mapping[str, list[str]] | None = None,
    excludes: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Resolve feed fields to actual header names.

    Each field is resolved independently: the first header matching any of the
    field's patterns wins, so one header ("Profile Type") may feed several
    fields. Fields with no matching header are left out.
    """
    if aliases is None:
        aliases = COLUMN_ALIASES
    if excludes is None:
        excludes = COLUMN_EXCLUDES

    headers = list(headers)
    columns: dict[str, str] = {}
    for field, patterns in aliases.items():
        pattern = re.compile("|".join(patterns), re.IGNORECASE)
        exclude = excludes.get(field)
        for header in headers:
            if not pattern.search(header):
                continue
            if exclude and re.search(exclude, header, re.IGNORECASE):
                continue
            columns[field] = header
            break
    return columns


def _cell(row: Mapping[str, str], columns: Mapping[str, str], field: str) -> str | None:
    header = columns.get(field)
    if header is None:
        return None
    value = row.get(header)
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value).strip()
    return text or None


def _float_cell(row: Mapping[str, str], columns: Mapping[str, str], field: str) -> float | None:
    text = _cell(row, columns, field)
    if text is None:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def summarize_row(row: Mapping[str, str], columns: Mapping[str, str]) -> CourseSummary | None:
    """Turn one feed row into a CourseSummary, or None if the row has no name."""
    name = _cell(row, columns, "name")
    if not name:
        return None
    return CourseSummary(
        name=name,
        course_id=course_id(name),
        ascent_m=parse_ascent(_cell(row, columns, "ascent")),
        descent_m=parse_ascent(_cell(row, columns, "descent")),
        time=_cell(row, columns, "time") or "9:30 AM",
        route_type=_cell(row, columns, "route_type") or "Course",
        terrain=_cell(row, columns, "terrain"),
        website=_cell(row, columns, "website"),
        county=_cell(row, columns, "county"),
        latitude=_float_cell(row, columns, "latitude"),
        longitude=_float_cell(row, columns, "longitude"),
    )


class CourseFeed:
    """Resolved feed rows in sheet order, indexed by course identifier."""

    def __init__(self, courses: Iterable[CourseSummary], columns: Mapping[str, str] | None = None):
        self.courses = list(courses)
        self.columns = dict(columns or {})
        self._by_id: dict[str, CourseSummary] = {}
        for course in self.courses:
            # First row wins when two names normalize to the same identifier
            self._by_id.setdefault(course.course_id, course)

    def __iter__(self) -> Iterator[CourseSummary]:
        return iter(self.courses)

    def __len__(self) -> int:
        return len(self.courses)

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._by_id

    def get(self, identifier: str) -> CourseSummary:
        """Look up a course by identifier.

        Raises:
            NotFoundError: If no row normalizes to this identifier.
        """
        try:
            return self._by_id[identifier]
        except KeyError:
            raise NotFoundError(f"No course metadata for '{identifier}'") from None

    def find(self, name_or_id: str) -> CourseSummary:
        """Look up a course by display name or identifier.

        Raises:
            NotFoundError: If neither form matches.
        """
        if name_or_id in self._by_id:
            return self._by_id[name_or_id]
        return self.get(course_id(name_or_id))

    def route_types(self) -> list[str]:
        return sorted({c.route_type for c in self.courses if c.route_type})

    def terrains(self) -> list[str]:
        return sorted({c.terrain for c in self.courses if c.terrain})

    def counties(self) -> list[str]:
        return sorted({c.county for c in self.courses if c.county})

    def provinces(self) -> dict[str, list[str]]:
        return group_by_province(self.courses)


def parse_feed(
    text: str,
    aliases: Mapping[str, list[str]] | None = None,
) -> CourseFeed:
    """Parse CSV feed text into a CourseFeed.

    Rows with more cells than the header (an unquoted comma in a name) are
    logged and skipped; the rest of the feed still loads.
    """
    def skip_bad_line(cells: list[str]) -> None:
        logger.warning("Skipping malformed feed row (%d cells): %s", len(cells), ",".join(cells))
        return None

    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            on_bad_lines=skip_bad_line,
            engine="python",
        )
    except pd.errors.EmptyDataError:
        logger.warning("Course feed is empty")
        return CourseFeed([])

    columns = resolve_columns(df.columns, aliases)
    if "name" not in columns:
        logger.warning("Course feed has no name column (headers: %s)", ", ".join(df.columns))

    courses = []
    for row in df.to_dict(orient="records"):
        summary = summarize_row(row, columns)
        if summary is not None:
            courses.append(summary)
    logger.debug("Loaded %d courses from %d feed rows", len(courses), len(df))
    return CourseFeed(courses, columns)


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def fetch_feed_text(source: str) -> str:
    """Read the raw CSV text from a URL or a local file.

    Raises:
        requests.RequestException: If the download fails.
        FileNotFoundError: If a local feed file does not exist.
    """
    if _is_url(source):
        try:
            response = requests.get(source, timeout=FETCH_TIMEOUT_SECONDS)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Failed to fetch course feed %s: %s", source, e)
            raise
        if "charset" not in response.headers.get("Content-Type", "").lower():
            # Published sheets are UTF-8; requests would assume ISO-8859-1 for text/*
            response.encoding = "utf-8"
        return response.text
    with open(source, "r", encoding="utf-8") as f:
        return f.read()


def load_feed(source: str, aliases: Mapping[str, list[str]] | None = None) -> CourseFeed:
    """Fetch and parse the course feed from a URL or a local CSV path."""
    return parse_feed(fetch_feed_text(source), aliases)
