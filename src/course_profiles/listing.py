"""Filtering, sorting and map pins for the course listing."""

from collections.abc import Iterable

from course_profiles.classify import classify
from course_profiles.models import AscentCategory, CourseSummary

PROVINCES: dict[str, list[str]] = {
    "Leinster": [
        "Dublin", "Kildare", "Meath", "Wicklow", "Wexford", "Louth", "Kilkenny",
        "Carlow", "Laois", "Offaly", "Westmeath", "Longford",
    ],
    "Munster": ["Cork", "Kerry", "Limerick", "Tipperary", "Clare", "Waterford"],
    "Connacht": ["Galway", "Mayo", "Sligo", "Roscommon", "Leitrim"],
    "Ulster": ["Donegal", "Cavan", "Monaghan"],
}

SORT_ORDERS = ("default", "flat", "hilly")
ALL = "All"


def provinces(courses: Iterable[CourseSummary]) -> dict[str, list[str]]:
    """Group the counties present in the listing by province.

    Provinces with no courses are omitted; counties are sorted. Counties outside
    the province table are not listed.
    """
    present = {c.county for c in courses if c.county}
    grouped = {}
    for province, counties in PROVINCES.items():
        found = sorted(c for c in counties if c in present)
        if found:
            grouped[province] = found
    return grouped


def _grade(grade: AscentCategory | str | None) -> AscentCategory | None:
    if grade is None or isinstance(grade, AscentCategory):
        return grade
    if grade == ALL or not grade.strip():
        return None
    return AscentCategory.from_label(grade)


def _is_all(value: str | None) -> bool:
    return value is None or value == ALL or value == ""


def filter_courses(
    courses: Iterable[CourseSummary],
    search: str = "",
    counties: Iterable[str] = (),
    grade: AscentCategory | str | None = None,
    route_type: str | None = None,
    terrain: str | None = None,
    sort: str = "default",
) -> list[CourseSummary]:
    """Apply the listing filters and sort order.

    Args:
        courses: Courses in feed order
        search: Case-insensitive substring of the course name
        counties: Allowed counties; empty allows every county
        grade: Ascent category (or its label); None or "All" allows every grade
        route_type: Exact route type; None or "All" allows every type
        terrain: Exact terrain; None or "All" allows every terrain
        sort: "flat" (least ascent first), "hilly" (most first) or "default" (feed order)

    Raises:
        ValueError: If grade or sort is not recognised.
    """
    if sort not in SORT_ORDERS:
        raise ValueError(f"Unknown sort order: {sort}")
    wanted_grade = _grade(grade)
    wanted_counties = set(counties)
    needle = search.strip().lower()

    filtered = []
    for course in courses:
        if needle and needle not in course.name.lower():
            continue
        if wanted_counties and course.county not in wanted_counties:
            continue
        if wanted_grade is not None and classify(course.ascent_m) != wanted_grade:
            continue
        if not _is_all(route_type) and course.route_type != route_type:
            continue
        if not _is_all(terrain) and course.terrain != terrain:
            continue
        filtered.append(course)

    if sort == "flat":
        filtered.sort(key=lambda c: max(c.ascent_m, 0.0))
    elif sort == "hilly":
        filtered.sort(key=lambda c: max(c.ascent_m, 0.0), reverse=True)
    return filtered


def course_pins(courses: Iterable[CourseSummary]) -> dict:
    """GeoJSON FeatureCollection of map pins for courses that have coordinates."""
    features = []
    for course in courses:
        if not course.has_location:
            continue
        category = classify(course.ascent_m)
        features.append({
            "type": "Feature",
            "geometry": {
                "type": "Point",
                "coordinates": [course.longitude, course.latitude],
            },
            "properties": {
                "name": course.name,
                "id": course.course_id,
                "iconName": f"pin-{category.label}",
                "color": category.color,
            },
        })
    return {"type": "FeatureCollection", "features": features}
