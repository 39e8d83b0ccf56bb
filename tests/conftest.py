import os
from pathlib import Path

import pytest

from course_profiles.feed import load_feed
from course_profiles.models import TrackPoint
from course_profiles.pipeline import CourseContext

DATA_DIR = Path(os.path.dirname(__file__)) / "functional" / "data"
SAMPLE_FEED_PATH = DATA_DIR / "courses.csv"


@pytest.fixture
def three_points():
    """Three samples 0.001 degrees of latitude apart, climbing 10 -> 12 -> 15 m."""
    return [
        TrackPoint(latitude=53.0, longitude=-8.0, elevation=10.0),
        TrackPoint(latitude=53.001, longitude=-8.0, elevation=12.0),
        TrackPoint(latitude=53.002, longitude=-8.0, elevation=15.0),
    ]


@pytest.fixture
def sample_feed():
    return load_feed(str(SAMPLE_FEED_PATH))


@pytest.fixture
def context(sample_feed):
    return CourseContext(feed=sample_feed, gpx_dir=DATA_DIR)


@pytest.fixture
def no_config(tmp_path, monkeypatch):
    """Ensure no config files or environment overrides are picked up."""
    from course_profiles import config
    missing = tmp_path / "nonexistent" / "course-profiles.json"
    monkeypatch.setattr(config, "CONFIG_PATH", missing)
    monkeypatch.setattr(config, "LOCAL_CONFIG_PATH", missing)
    for env_var in config.ENV_OVERRIDES.values():
        monkeypatch.delenv(env_var, raising=False)
