import argparse
import json
import logging
import sys
from pathlib import Path

import requests

from course_profiles.charts import generate_course_profile, render_cards
from course_profiles.classify import classify
from course_profiles.config import Settings, get_settings
from course_profiles.errors import CourseDataError
from course_profiles.formatters import format_km, format_meters
from course_profiles.listing import SORT_ORDERS, filter_courses
from course_profiles.models import AscentCategory
from course_profiles.normalize import normalize
from course_profiles.parser import parse_gpx
from course_profiles.payload import RenderPayload, build_payload
from course_profiles.pipeline import CourseContext, build_course_view
from course_profiles.track import load_track

GRADE_CHOICES = [c.label for c in AscentCategory]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="course-profiles",
        description="Elevation profiles and listings for 5k courses from a CSV feed and GPX tracks.",
    )
    parser.add_argument("--sheet", default=None, help="Course feed CSV: URL or local path (default: from config)")
    parser.add_argument("--gpx-dir", default=None, help="Directory of <course-id>.gpx files (default: gpx)")
    parser.add_argument("--charts-dir", default=None, help="Directory for card images (default: charts)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    show = subparsers.add_parser("show", help="Show the profile of one course")
    show.add_argument("course", help="Course name or identifier")
    show.add_argument("--json", action="store_true", help="Print the render payload as JSON")
    show.add_argument("--chart", default=None, help="Write the profile chart PNG to this path")
    show.set_defaults(func=cmd_show)

    listing = subparsers.add_parser("list", help="List courses with optional filters")
    listing.add_argument("--search", default="", help="Case-insensitive name filter")
    listing.add_argument("--county", action="append", default=[], help="County filter (repeatable)")
    listing.add_argument("--grade", choices=GRADE_CHOICES, default=None, help="Ascent category filter")
    listing.add_argument("--type", dest="route_type", default=None, help="Route type filter")
    listing.add_argument("--terrain", default=None, help="Terrain filter")
    listing.add_argument("--sort", choices=SORT_ORDERS, default="default", help="Sort order (default: feed order)")
    listing.set_defaults(func=cmd_list)

    gpx = subparsers.add_parser("gpx", help="Profile a single GPX file without the feed")
    gpx.add_argument("gpx_file", help="Path to GPX file")
    gpx.add_argument("--ascent", type=float, default=0.0, help="Course ascent in meters, for the category (default: 0)")
    gpx.add_argument("--json", action="store_true", help="Print the render payload as JSON")
    gpx.add_argument("--chart", default=None, help="Write the profile chart PNG to this path")
    gpx.set_defaults(func=cmd_gpx)

    render = subparsers.add_parser("render", help="Write card images for every course")
    render.set_defaults(func=cmd_render)
    return parser


def _settings(args) -> Settings:
    return get_settings(sheet_url=args.sheet, gpx_dir=args.gpx_dir, charts_dir=args.charts_dir)


def _context(args) -> CourseContext:
    return CourseContext.from_settings(_settings(args))


def _print_profile(payload: RenderPayload, distance_km: float) -> None:
    elevations = [p[1] for p in payload.series]
    window = "data range" if payload.y_bounds.auto_scaled else "fixed window"
    print(f"Distance:       {format_km(distance_km)} (charted as {payload.x_max:g} km)")
    print(f"Points:         {len(payload)}")
    print(f"Elevation:      {format_meters(min(elevations))} - {format_meters(max(elevations))}")
    print(f"Chart Y Axis:   {payload.y_bounds.minimum:.0f} - {payload.y_bounds.maximum:.0f} ({window})")


def _write_chart(path: str, payload: RenderPayload, title: str | None) -> None:
    Path(path).write_bytes(generate_course_profile(payload, title=title))
    print(f"Chart written to {path}")


def cmd_show(args) -> None:
    context = _context(args)
    summary = context.feed.find(args.course)
    view = build_course_view(context, summary.course_id)

    if args.json:
        print(json.dumps(view.to_dict(), indent=2))
        return

    print("=== Course Profile ===")
    print(f"Course:         {summary.name}")
    print(f"Category:       {view.category.label}")
    print(f"Ascent:         {format_meters(summary.ascent_m)}")
    print(f"Descent:        {format_meters(summary.descent_m)}")
    print(f"Start Time:     {summary.time}")
    print(f"Type:           {summary.route_type}")
    if summary.terrain:
        print(f"Terrain:        {summary.terrain}")
    if summary.website:
        print(f"Website:        {summary.website}")
    _print_profile(view.payload, view.track.total_km)
    if args.chart:
        _write_chart(args.chart, view.payload, summary.name)


def cmd_list(args) -> None:
    context = _context(args)
    courses = filter_courses(
        context.feed,
        search=args.search,
        counties=args.county,
        grade=args.grade,
        route_type=args.route_type,
        terrain=args.terrain,
        sort=args.sort,
    )
    for course in courses:
        category = classify(course.ascent_m)
        location = course.county or ""
        print(
            f"{course.name:<36} {category.label:<11} {format_meters(course.ascent_m):>6}  "
            f"{course.route_type:<12} {location:<12} {course.time}"
        )
    print(f"{len(courses)} course(s)")


def cmd_gpx(args) -> None:
    track = load_track(parse_gpx(args.gpx_file))
    category = classify(args.ascent)
    payload = build_payload(normalize(track), category, ascent=args.ascent)

    if args.json:
        print(json.dumps(payload.to_dict(), indent=2))
        return

    print("=== GPX Course Profile ===")
    print(f"File:           {args.gpx_file}")
    print(f"Category:       {category.label}")
    _print_profile(payload, track.total_km)
    if args.chart:
        _write_chart(args.chart, payload, Path(args.gpx_file).stem)


def cmd_render(args) -> None:
    settings = _settings(args)
    context = CourseContext.from_settings(settings)
    written = render_cards(context, Path(settings.charts_dir))
    print(f"Wrote {len(written)} card image(s) to {settings.charts_dir}")


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        args.func(args)
    except CourseDataError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}", file=sys.stderr)
        sys.exit(1)
    except requests.RequestException as e:
        print(f"Error downloading course feed: {e}", file=sys.stderr)
        sys.exit(1)
