from course_profiles.errors import DegenerateTrackError
from course_profiles.models import NOMINAL_LENGTH_KM, NormalizedTrack, Track


def normalize(track: Track, nominal_length_km: float = NOMINAL_LENGTH_KM) -> NormalizedTrack:
    """Rescale cumulative distance onto [0, nominal_length_km] for charting.

    Every course is drawn on the same x axis regardless of its GPS-measured
    length, so a 4.9 km trace and a 5.1 km trace both end at 5.

    Raises:
        DegenerateTrackError: If the track's total distance is zero.
    """
    total = track.total_km
    if total <= 0:
        raise DegenerateTrackError(
            f"Track of {len(track)} point(s) has zero total distance"
        )
    stretched = [d / total * nominal_length_km for d in track.cumulative_km]
    # Pin the end exactly; division can leave it a ulp short
    stretched[-1] = float(nominal_length_km)
    return NormalizedTrack(
        track=track,
        stretched_km=tuple(stretched),
        nominal_length_km=nominal_length_km,
    )
