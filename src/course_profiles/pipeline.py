"""Per-course pipeline: feed row + GPX file -> render payload."""

import logging
from dataclasses import dataclass
from pathlib import Path

from course_profiles.classify import classify
from course_profiles.config import Settings
from course_profiles.errors import NotFoundError
from course_profiles.feed import CourseFeed, load_feed
from course_profiles.models import NOMINAL_LENGTH_KM, AscentCategory, CourseSummary, Track
from course_profiles.normalize import normalize
from course_profiles.parser import parse_gpx
from course_profiles.payload import RenderPayload, build_payload
from course_profiles.track import load_track

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CourseContext:
    """Inputs shared by course views: the loaded feed and where the track files live."""
    feed: CourseFeed
    gpx_dir: Path
    nominal_length_km: float = NOMINAL_LENGTH_KM

    @classmethod
    def from_settings(cls, settings: Settings) -> "CourseContext":
        """Load the feed named by the settings and build a context around it."""
        return cls(
            feed=load_feed(settings.sheet_url),
            gpx_dir=Path(settings.gpx_dir),
            nominal_length_km=settings.nominal_length_km,
        )

    def gpx_path(self, course_id: str) -> Path:
        return self.gpx_dir / f"{course_id}.gpx"


@dataclass(frozen=True)
class CourseView:
    summary: CourseSummary
    category: AscentCategory
    track: Track
    payload: RenderPayload

    def to_dict(self) -> dict:
        s = self.summary
        return {
            "course": {
                "id": s.course_id,
                "name": s.name,
                "ascent_m": s.ascent_m,
                "descent_m": s.descent_m,
                "time": s.time,
                "route_type": s.route_type,
                "terrain": s.terrain,
                "website": s.website,
                "county": s.county,
                "distance_km": self.track.total_km,
            },
            **self.payload.to_dict(),
        }


def load_course_track(context: CourseContext, course_id: str) -> Track:
    """Read and parse the GPX file for a course.

    Raises:
        NotFoundError: If there is no GPX file for the course.
        ParseError: If the file is not valid GPX or has no usable points.
    """
    path = context.gpx_path(course_id)
    if not path.is_file():
        raise NotFoundError(f"No GPX file for '{course_id}' ({path})")
    track = load_track(parse_gpx(str(path)))
    logger.debug("Loaded %s: %d points, %.3f km", course_id, len(track), track.total_km)
    return track


def build_course_view(context: CourseContext, course_id: str) -> CourseView:
    """Run the full pipeline for one course.

    Each call is independent; a failure affects only the requested course.

    Raises:
        NotFoundError: No feed row or no GPX file for the identifier.
        ParseError: The GPX file is malformed.
        DegenerateTrackError: The track has zero total distance.
    """
    summary = context.feed.get(course_id)
    track = load_course_track(context, course_id)
    normalized = normalize(track, context.nominal_length_km)
    category = classify(summary.ascent_m)
    payload = build_payload(normalized, category, ascent=summary.ascent_m)
    return CourseView(summary=summary, category=category, track=track, payload=payload)
