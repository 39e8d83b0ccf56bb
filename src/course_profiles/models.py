from dataclasses import dataclass
from enum import IntEnum

NOMINAL_LENGTH_KM = 5.0  # every course is charted as a 5k


@dataclass(frozen=True)
class TrackPoint:
    latitude: float
    longitude: float
    elevation: float = 0.0  # meters


@dataclass(frozen=True)
class Track:
    """Parsed track with per-point series, all index-aligned with `points`."""
    points: tuple[TrackPoint, ...]
    coordinates: tuple[tuple[float, float], ...]  # (lon, lat)
    elevations: tuple[float, ...]  # meters
    cumulative_km: tuple[float, ...]  # starts at 0, non-decreasing

    def __len__(self) -> int:
        return len(self.points)

    @property
    def total_km(self) -> float:
        return self.cumulative_km[-1]


@dataclass(frozen=True)
class NormalizedTrack:
    """Track whose cumulative distance has been stretched onto [0, nominal_length_km]."""
    track: Track
    stretched_km: tuple[float, ...]
    nominal_length_km: float = NOMINAL_LENGTH_KM

    def __len__(self) -> int:
        return len(self.track)

    @property
    def coordinates(self) -> tuple[tuple[float, float], ...]:
        return self.track.coordinates

    @property
    def elevations(self) -> tuple[float, ...]:
        return self.track.elevations

    @property
    def cumulative_km(self) -> tuple[float, ...]:
        return self.track.cumulative_km


class AscentCategory(IntEnum):
    """Hilliness bucket for a course, ordered flattest first."""
    VERY_FLAT = 0
    FLAT = 1
    UNDULATING = 2
    HILLY = 3
    VERY_HILLY = 4

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]

    @property
    def css_class(self) -> str:
        return self.label.lower().replace(" ", "-")

    @property
    def color(self) -> str:
        return _CATEGORY_COLORS[self]

    @classmethod
    def from_label(cls, label: str) -> "AscentCategory":
        """Look up a category by display label ("Very Flat") or member name ("VERY_FLAT").

        Raises:
            ValueError: If the label matches no category.
        """
        key = label.strip().lower().replace("_", " ").replace("-", " ")
        for category in cls:
            if category.label.lower() == key:
                return category
        raise ValueError(f"Unknown ascent category: {label}")


_CATEGORY_LABELS = {
    AscentCategory.VERY_FLAT: "Very Flat",
    AscentCategory.FLAT: "Flat",
    AscentCategory.UNDULATING: "Undulating",
    AscentCategory.HILLY: "Hilly",
    AscentCategory.VERY_HILLY: "Very Hilly",
}

# Map pin / badge colours
_CATEGORY_COLORS = {
    AscentCategory.VERY_FLAT: "#eab308",
    AscentCategory.FLAT: "#10b981",
    AscentCategory.UNDULATING: "#3b82f6",
    AscentCategory.HILLY: "#f59e0b",
    AscentCategory.VERY_HILLY: "#ef4444",
}


@dataclass(frozen=True)
class CourseSummary:
    """One resolved row of the course feed."""
    name: str
    course_id: str
    ascent_m: float = 0.0
    descent_m: float = 0.0
    time: str = "9:30 AM"
    route_type: str = "Course"
    terrain: str | None = None
    website: str | None = None
    county: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None
