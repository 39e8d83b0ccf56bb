"""Elevation profile chart images."""

import io
import logging
from pathlib import Path

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend for server
import matplotlib.pyplot as plt
from matplotlib.ticker import FuncFormatter, MultipleLocator

from course_profiles.errors import CourseDataError
from course_profiles.formatters import format_axis_km
from course_profiles.payload import RenderPayload
from course_profiles.pipeline import CourseContext, build_course_view

logger = logging.getLogger(__name__)

LINE_COLOR = '#3b82f6'
AREA_ALPHA = 0.1


def _fill_profile(ax, payload: RenderPayload, linewidth: float) -> None:
    distances = [p[0] for p in payload.series]
    elevations = [p[1] for p in payload.series]
    ax.fill_between(distances, payload.y_bounds.minimum, elevations,
                    color=LINE_COLOR, alpha=AREA_ALPHA, linewidth=0)
    ax.plot(distances, elevations, color=LINE_COLOR, linewidth=linewidth)
    ax.set_xlim(0, payload.x_max)
    ax.set_ylim(payload.y_bounds.minimum, payload.y_bounds.maximum)


def _to_png(fig, dpi: int = 100) -> bytes:
    buf = io.BytesIO()
    fig.savefig(buf, format='png', dpi=dpi, facecolor='white', edgecolor='none')
    plt.close(fig)
    buf.seek(0)
    return buf.getvalue()


def generate_card_elevation(payload: RenderPayload, aspect_ratio: float = 3.0) -> bytes:
    """Generate the compact profile image shown on listing cards.

    No axes or labels, just the filled profile.

    Returns PNG image as bytes.
    """
    fig_height = 1.0
    fig, ax = plt.subplots(figsize=(fig_height * aspect_ratio, fig_height), facecolor='white')
    _fill_profile(ax, payload, linewidth=1.5)
    ax.axis('off')
    fig.subplots_adjust(left=0, right=1, bottom=0, top=1)
    return _to_png(fig, dpi=120)


def generate_course_profile(payload: RenderPayload, title: str | None = None,
                            aspect_ratio: float = 2.5) -> bytes:
    """Generate the full elevation profile chart for a course page.

    X axis runs over the nominal course length with "1k" style labels; the y axis
    uses the payload's bounds with whole-meter tick labels.

    Returns PNG image as bytes.
    """
    fig_height = 4
    fig, ax = plt.subplots(figsize=(fig_height * aspect_ratio, fig_height), facecolor='white')
    _fill_profile(ax, payload, linewidth=2)

    ax.xaxis.set_major_locator(MultipleLocator(1))
    ax.xaxis.set_major_formatter(FuncFormatter(lambda v, _pos: format_axis_km(v)))
    ax.yaxis.set_major_formatter(FuncFormatter(lambda v, _pos: f"{round(v)}"))
    ax.set_ylabel('Elevation (m)', fontsize=10)
    if title:
        ax.set_title(title, fontsize=12, fontweight='bold', loc='left')

    ax.spines['top'].set_visible(False)
    ax.spines['right'].set_visible(False)
    ax.grid(axis='y', alpha=0.3, linestyle='-', linewidth=0.5)
    fig.tight_layout()
    return _to_png(fig)


def card_path(charts_dir: Path, course_id: str) -> Path:
    return Path(charts_dir) / f"{course_id}_card_elevation.png"


def render_cards(context: CourseContext, charts_dir: Path) -> list[Path]:
    """Write a card image for every course in the feed.

    Courses whose pipeline fails (no GPX, bad GPX, zero-length track) are
    logged and skipped.

    Returns:
        Paths of the images written.
    """
    charts_dir = Path(charts_dir)
    charts_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for summary in context.feed:
        try:
            view = build_course_view(context, summary.course_id)
        except CourseDataError as e:
            logger.warning("Skipping %s: %s", summary.name, e)
            continue
        path = card_path(charts_dir, summary.course_id)
        path.write_bytes(generate_card_elevation(view.payload))
        logger.debug("Wrote %s", path)
        written.append(path)
    return written
