"""Ascent categories for course hilliness."""

import math
import re
from typing import Any

from course_profiles.models import AscentCategory

# (lower bound exclusive, category) evaluated as a cascade: each match overrides
# the previous one, so a value sitting exactly on a bound stays in the flatter bucket.
ASCENT_THRESHOLDS = [
    (10.0, AscentCategory.FLAT),
    (20.0, AscentCategory.UNDULATING),
    (40.0, AscentCategory.HILLY),
    (60.0, AscentCategory.VERY_HILLY),
]

_LEADING_NUMBER = re.compile(r"^\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+))")


def parse_ascent(value: Any) -> float:
    """Parse a feed ascent cell leniently.

    Numbers pass through, strings contribute their leading number ("45m" -> 45.0),
    and anything else (blank, "n/a", None, NaN) is 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    match = _LEADING_NUMBER.match(str(value))
    if not match:
        return 0.0
    return float(match.group(1))


def classify(ascent: Any) -> AscentCategory:
    """Map total ascent in meters to a hilliness category.

    | ascent (m) | category   |
    |------------|------------|
    | <= 10      | Very Flat  |
    | (10, 20]   | Flat       |
    | (20, 40]   | Undulating |
    | (40, 60]   | Hilly      |
    | > 60       | Very Hilly |

    Negative or non-numeric ascent is treated as 0 (Very Flat) rather than
    rejected; missing feed data should not hide a course.
    """
    meters = parse_ascent(ascent)
    if meters < 0:
        meters = 0.0

    category = AscentCategory.VERY_FLAT
    for threshold, bucket in ASCENT_THRESHOLDS:
        if meters > threshold:
            category = bucket
    return category
