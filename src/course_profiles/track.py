"""Build a Track from raw GPS samples."""

import math
from collections.abc import Iterable, Mapping
from typing import Any

from course_profiles.distance import distance_km
from course_profiles.errors import ParseError
from course_profiles.models import Track, TrackPoint

_MISSING = object()


def _field(raw: Any, name: str) -> Any:
    """Read a field from a mapping or an object attribute (gpxpy points, TrackPoints)."""
    if isinstance(raw, Mapping):
        return raw.get(name, _MISSING)
    return getattr(raw, name, _MISSING)


def _parse_coordinate(raw: Any, name: str, index: int) -> float:
    value = _field(raw, name)
    if value is _MISSING or value is None:
        raise ParseError(f"Trackpoint {index} has no {name}")
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        raise ParseError(f"Trackpoint {index} has unparsable {name}: {value!r}")
    if not math.isfinite(parsed):
        raise ParseError(f"Trackpoint {index} has non-finite {name}: {value!r}")
    return parsed


def _parse_elevation(raw: Any) -> float:
    """Elevation is optional; anything missing or unparsable counts as 0."""
    value = _field(raw, "elevation")
    if value is _MISSING or value is None:
        return 0.0
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def load_track(raw_points: Iterable[Any]) -> Track:
    """Parse raw samples into a Track with aligned coordinate, elevation and distance series.

    Each raw point must supply `latitude` and `longitude`, either as attributes
    or as mapping keys; `elevation` is optional. Points are processed strictly
    in input order: cumulative distance at index i is the distance at i-1 plus
    the haversine distance from point i-1 to point i.

    Raises:
        ParseError: If there are no points or a point lacks a usable lat/lon.
    """
    points: list[TrackPoint] = []
    for i, raw in enumerate(raw_points):
        points.append(
            TrackPoint(
                latitude=_parse_coordinate(raw, "latitude", i),
                longitude=_parse_coordinate(raw, "longitude", i),
                elevation=_parse_elevation(raw),
            )
        )

    if not points:
        raise ParseError("Track contains no trackpoints")

    cumulative = [0.0]
    for prev, curr in zip(points, points[1:]):
        cumulative.append(
            cumulative[-1] + distance_km(prev.latitude, prev.longitude, curr.latitude, curr.longitude)
        )

    return Track(
        points=tuple(points),
        coordinates=tuple((pt.longitude, pt.latitude) for pt in points),
        elevations=tuple(pt.elevation for pt in points),
        cumulative_km=tuple(cumulative),
    )
