"""Map and chart payloads for a rendered course view."""

import math
from collections.abc import Sequence
from dataclasses import dataclass

from course_profiles.formatters import format_km, format_meters
from course_profiles.models import AscentCategory, NormalizedTrack

# Profiles spanning less than this many meters are drawn in a fixed window
FLAT_PROFILE_RANGE_M = 30.0
FLAT_PROFILE_HALF_SPAN_M = 15.0

# Chart line smoothing factors; courses climbing less than FLAT_SMOOTHING_BELOW_M get the softer line
FLAT_SMOOTHING = 0.6
DEFAULT_SMOOTHING = 0.1
FLAT_SMOOTHING_BELOW_M = 10.0


@dataclass(frozen=True)
class YAxisBounds:
    minimum: float
    maximum: float
    auto_scaled: bool  # True when the bounds are just the data min/max


@dataclass(frozen=True)
class RenderPayload:
    """Everything the map and chart surfaces need for one course.

    `line`, `series` and `actual_km` are index-aligned: position i in the chart
    is trackpoint i on the map, which is what hover highlighting relies on.
    """
    category: AscentCategory
    line: tuple[tuple[float, float], ...]  # (lon, lat)
    bounds: tuple[tuple[float, float], tuple[float, float]]  # ((min_lon, min_lat), (max_lon, max_lat))
    start: tuple[float, float]
    end: tuple[float, float]
    series: tuple[tuple[float, float], ...]  # (stretched km, elevation m)
    actual_km: tuple[float, ...]
    y_bounds: YAxisBounds
    x_max: float
    smoothing: float

    def __len__(self) -> int:
        return len(self.series)

    def coordinate_at(self, index: int) -> tuple[float, float]:
        """Map coordinate for a chart data index."""
        return self.line[index]

    def tooltip(self, index: int) -> str:
        """Hover text for a chart data index: real distance, then elevation."""
        return f"{format_km(self.actual_km[index])}\n{format_meters(self.series[index][1])}"

    def to_dict(self) -> dict:
        """JSON-ready representation: a GeoJSON feature for the map plus the chart options."""
        return {
            "category": {
                "label": self.category.label,
                "css_class": self.category.css_class,
                "color": self.category.color,
            },
            "map": {
                "route": {
                    "type": "Feature",
                    "geometry": {
                        "type": "LineString",
                        "coordinates": [list(c) for c in self.line],
                    },
                    "properties": {},
                },
                "bounds": [list(self.bounds[0]), list(self.bounds[1])],
                "start": list(self.start),
                "end": list(self.end),
            },
            "chart": {
                "series": [list(p) for p in self.series],
                "actual_km": list(self.actual_km),
                "x_max": self.x_max,
                "y_min": self.y_bounds.minimum,
                "y_max": self.y_bounds.maximum,
                "auto_scaled": self.y_bounds.auto_scaled,
                "smoothing": self.smoothing,
            },
        }


def y_axis_bounds(elevations: Sequence[float]) -> YAxisBounds:
    """Choose chart y-axis bounds for an elevation series.

    A range under 30 m is shown as a 30 m window centered on the midpoint
    (never below 0); anything larger uses the data's own min/max.
    """
    low = min(elevations)
    high = max(elevations)
    if high - low < FLAT_PROFILE_RANGE_M:
        center = (high + low) / 2
        y_min = max(math.floor(center - FLAT_PROFILE_HALF_SPAN_M), 0)
        y_max = math.ceil(center + FLAT_PROFILE_HALF_SPAN_M)
        return YAxisBounds(minimum=float(y_min), maximum=float(y_max), auto_scaled=False)
    return YAxisBounds(minimum=float(low), maximum=float(high), auto_scaled=True)


def _line_bounds(line: Sequence[tuple[float, float]]) -> tuple[tuple[float, float], tuple[float, float]]:
    lons = [c[0] for c in line]
    lats = [c[1] for c in line]
    return (min(lons), min(lats)), (max(lons), max(lats))


def _smoothing(category: AscentCategory, ascent: float | None) -> float:
    if ascent is None:
        flat = category == AscentCategory.VERY_FLAT
    else:
        flat = ascent < FLAT_SMOOTHING_BELOW_M
    return FLAT_SMOOTHING if flat else DEFAULT_SMOOTHING


def build_payload(
    normalized: NormalizedTrack,
    category: AscentCategory,
    actual_distances: Sequence[float] | None = None,
    ascent: float | None = None,
) -> RenderPayload:
    """Assemble the map geometry and elevation chart for a normalized track.

    Args:
        normalized: Track with stretched distances
        category: Ascent category of the course
        actual_distances: Per-point distances shown in tooltips; defaults to
            the track's measured cumulative distance.
        ascent: Course ascent in meters; below 10 m the chart line is smoothed
            more. Without it, a Very Flat category picks the flat smoothing.

    Raises:
        ValueError: If actual_distances is not aligned with the track.
    """
    if actual_distances is None:
        actual_distances = normalized.cumulative_km
    if len(actual_distances) != len(normalized):
        raise ValueError(
            f"actual_distances has {len(actual_distances)} values for {len(normalized)} trackpoints"
        )

    line = normalized.coordinates
    elevations = normalized.elevations
    return RenderPayload(
        category=category,
        line=line,
        bounds=_line_bounds(line),
        start=line[0],
        end=line[-1],
        series=tuple(zip(normalized.stretched_km, elevations)),
        actual_km=tuple(float(d) for d in actual_distances),
        y_bounds=y_axis_bounds(elevations),
        x_max=normalized.nominal_length_km,
        smoothing=_smoothing(category, ascent),
    )
