"""Simple web interface: course listing, course pages and JSON for the map/chart front end."""

import logging
import os

from flask import Flask, Response, abort, jsonify, render_template_string, request

from course_profiles import __version_date__
from course_profiles.charts import generate_card_elevation, generate_course_profile
from course_profiles.classify import classify
from course_profiles.config import get_settings
from course_profiles.errors import CourseDataError, NotFoundError
from course_profiles.formatters import format_km, format_meters, format_signed_meters
from course_profiles.listing import SORT_ORDERS, course_pins, filter_courses
from course_profiles.models import AscentCategory
from course_profiles.pipeline import CourseContext, build_course_view

logger = logging.getLogger(__name__)

BASE_STYLE = """
<style>
  body { font-family: 'Inter', system-ui, sans-serif; margin: 0; color: #0f172a; }
  header { padding: 16px 24px; border-bottom: 1px solid #e2e8f0; }
  main { padding: 16px 24px; }
  .badge-container { display: flex; gap: 6px; flex-wrap: wrap; }
  .category-badge, .stat-badge { padding: 2px 8px; border-radius: 999px; font-size: 12px; font-weight: 600; }
  .stat-badge { background: #f1f5f9; color: #475569; }
  .very-flat { background: #fef9c3; color: #a16207; }
  .flat { background: #d1fae5; color: #047857; }
  .undulating { background: #dbeafe; color: #1d4ed8; }
  .hilly { background: #fef3c7; color: #b45309; }
  .very-hilly { background: #fee2e2; color: #b91c1c; }
  .list-row { display: flex; justify-content: space-between; padding: 12px 0; border-bottom: 1px solid #e2e8f0; }
  .row-chart img { height: 60px; }
  .meta { color: #64748b; font-size: 14px; }
  footer { padding: 16px 24px; color: #94a3b8; font-size: 12px; }
</style>
"""

LIST_TEMPLATE = """<!doctype html>
<html><head><meta charset="utf-8"><title>Course Profiles</title>""" + BASE_STYLE + """</head>
<body>
<header><h1>Course Profiles</h1>
<form method="get" action="/">
  <input type="text" name="q" value="{{ filters.q }}" placeholder="Search courses">
  <select name="county">
    <option value="">All counties</option>
    {% for province, counties in provinces.items() %}
    <optgroup label="{{ province }}">
      {% for county in counties %}
      <option value="{{ county }}" {% if county in filters.counties %}selected{% endif %}>{{ county }}</option>
      {% endfor %}
    </optgroup>
    {% endfor %}
  </select>
  <select name="grade">
    <option value="All">All grades</option>
    {% for grade in grades %}
    <option value="{{ grade }}" {% if grade == filters.grade %}selected{% endif %}>{{ grade }}</option>
    {% endfor %}
  </select>
  <select name="type">
    <option value="All">All types</option>
    {% for t in route_types %}
    <option value="{{ t }}" {% if t == filters.route_type %}selected{% endif %}>{{ t }}</option>
    {% endfor %}
  </select>
  <select name="terrain">
    <option value="All">All terrain</option>
    {% for t in terrains %}
    <option value="{{ t }}" {% if t == filters.terrain %}selected{% endif %}>{{ t }}</option>
    {% endfor %}
  </select>
  <select name="sort">
    {% for s in sort_orders %}
    <option value="{{ s }}" {% if s == filters.sort %}selected{% endif %}>{{ s }}</option>
    {% endfor %}
  </select>
  <button type="submit">Filter</button> <a href="/">Reset</a>
</form></header>
<main id="full-list-container">
{% if not rows %}
  <div class="empty">No races match filters.</div>
{% endif %}
{% for row in rows %}
  <div class="list-row">
    <div class="row-info">
      <div class="badge-container">
        <span class="category-badge {{ row.category.css_class }}">{{ row.category.label }}</span>
        <span class="stat-badge">{{ row.course.route_type }}</span>
        {% if row.course.terrain %}<span class="stat-badge">{{ row.course.terrain }}</span>{% endif %}
        <span class="stat-badge">{{ row.ascent }}</span>
      </div>
      <h3><a href="/course?id={{ row.course.course_id }}">{{ row.course.name }}</a></h3>
      <div class="meta">{{ row.course.county or '' }} &bull; {{ row.course.time }}</div>
    </div>
    <div class="row-chart">
      <img src="/charts/{{ row.course.course_id }}_card_elevation.png" onerror="this.style.display='none'" alt="Profile">
    </div>
  </div>
{% endfor %}
</main>
<footer>{{ count }} course(s) &middot; {{ version }}</footer>
</body></html>
"""

COURSE_TEMPLATE = """<!doctype html>
<html><head><meta charset="utf-8"><title>{{ title }} | Profile</title>""" + BASE_STYLE + """</head>
<body>
<header><a class="back-link" href="/">&larr; All courses</a></header>
<main id="capture-area">
{% if view %}
  <h1 id="course-title">{{ view.summary.name }}</h1>
  <div class="badge-container" id="course-badges">
    <span class="category-badge {{ view.category.css_class }}">{{ view.category.label }}</span>
    <span class="stat-badge">{{ view.summary.route_type }}</span>
    {% if view.summary.terrain %}<span class="stat-badge">{{ view.summary.terrain }}</span>{% endif %}
  </div>
  <p class="meta">
    Ascent <span id="ascent-val">{{ ascent }}</span> &middot;
    Descent <span id="descent-val">{{ descent }}</span> &middot;
    Start <span id="time-val">{{ view.summary.time }}</span> &middot;
    Measured {{ distance }}
  </p>
  {% if view.summary.website %}<a id="course-website" href="{{ view.summary.website }}">Website</a>{% endif %}
  <div id="elevationChart"><img src="/charts/{{ view.summary.course_id }}_profile.png" alt="Elevation profile"></div>
  <div id="course-map" data-payload="/api/course/{{ view.summary.course_id }}"></div>
{% else %}
  <h1 id="course-title">{{ title }}</h1>
  <p class="meta">{{ message }}</p>
{% endif %}
</main>
</body></html>
"""


def _list_filters(args) -> dict:
    return {
        "q": args.get("q", ""),
        "counties": [c for c in args.getlist("county") if c],
        "grade": args.get("grade", "All"),
        "route_type": args.get("type", "All"),
        "terrain": args.get("terrain", "All"),
        "sort": args.get("sort", "default"),
    }


def _filtered(context: CourseContext, filters: dict):
    if filters["sort"] not in SORT_ORDERS:
        abort(400, description=f"Unknown sort order: {filters['sort']}")
    try:
        return filter_courses(
            context.feed,
            search=filters["q"],
            counties=filters["counties"],
            grade=filters["grade"],
            route_type=filters["route_type"],
            terrain=filters["terrain"],
            sort=filters["sort"],
        )
    except ValueError as e:
        abort(400, description=str(e))


def create_app(context: CourseContext | None = None) -> Flask:
    """Create the Flask app around a course context.

    Without a context, the feed is loaded from the configured sheet on the
    first request and reused afterwards.
    """
    app = Flask(__name__)
    state = {"context": context}

    def get_context() -> CourseContext:
        if state["context"] is None:
            state["context"] = CourseContext.from_settings(get_settings())
        return state["context"]

    def unavailable(course_id: str, e: CourseDataError):
        logger.warning("Course %s unavailable: %s", course_id, e)
        return jsonify({"error": str(e), "available": False}), 404

    @app.route("/")
    def index():
        context = get_context()
        filters = _list_filters(request.args)
        rows = [
            {
                "course": course,
                "category": classify(course.ascent_m),
                "ascent": format_signed_meters(course.ascent_m, "▲"),
            }
            for course in _filtered(context, filters)
        ]
        return render_template_string(
            LIST_TEMPLATE,
            rows=rows,
            count=len(rows),
            filters=filters,
            provinces=context.feed.provinces(),
            grades=[c.label for c in AscentCategory],
            route_types=context.feed.route_types(),
            terrains=context.feed.terrains(),
            sort_orders=SORT_ORDERS,
            version=__version_date__,
        )

    @app.route("/course")
    def course_page():
        course_id = request.args.get("id", "")
        context = get_context()
        try:
            view = build_course_view(context, course_id)
        except NotFoundError as e:
            title = "Course Not Found" if course_id not in context.feed else "Course not available"
            logger.warning("Course %s unavailable: %s", course_id, e)
            return render_template_string(COURSE_TEMPLATE, view=None, title=title, message=str(e)), 404
        except CourseDataError as e:
            logger.warning("Course %s unavailable: %s", course_id, e)
            return render_template_string(
                COURSE_TEMPLATE, view=None, title="Course not available", message=str(e)
            ), 404
        return render_template_string(
            COURSE_TEMPLATE,
            view=view,
            title=view.summary.name,
            ascent=format_meters(view.summary.ascent_m),
            descent=format_meters(view.summary.descent_m),
            distance=format_km(view.track.total_km),
        )

    @app.route("/api/courses")
    def api_courses():
        context = get_context()
        return jsonify(course_pins(_filtered(context, _list_filters(request.args))))

    @app.route("/api/course/<course_id>")
    def api_course(course_id: str):
        try:
            view = build_course_view(get_context(), course_id)
        except CourseDataError as e:
            return unavailable(course_id, e)
        return jsonify({"available": True, **view.to_dict()})

    @app.route("/charts/<course_id>_card_elevation.png")
    def card_image(course_id: str):
        try:
            view = build_course_view(get_context(), course_id)
        except CourseDataError as e:
            return unavailable(course_id, e)
        return Response(generate_card_elevation(view.payload), mimetype="image/png")

    @app.route("/charts/<course_id>_profile.png")
    def profile_image(course_id: str):
        try:
            view = build_course_view(get_context(), course_id)
        except CourseDataError as e:
            return unavailable(course_id, e)
        return Response(generate_course_profile(view.payload), mimetype="image/png")

    return app


def main():
    """Run the web server."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    port = int(os.environ.get("PORT", 5050))
    print("Starting Course Profiles web server...")
    print(f"Open http://localhost:{port} in your browser")
    create_app().run(host="0.0.0.0", port=port, debug=True)


if __name__ == "__main__":
    main()
