"""Configuration loading.

Settings come from JSON config files, overridden by environment variables:

1. ~/.config/course-profiles/course-profiles.json (global, loaded first)
2. ./course-profiles.json (local, overrides global)
3. COURSE_PROFILES_SHEET_URL, COURSE_PROFILES_GPX_DIR, COURSE_PROFILES_CHARTS_DIR

Example config file:
    {
        "sheet_url": "https://docs.google.com/spreadsheets/d/e/.../pub?output=csv",
        "gpx_dir": "gpx",
        "charts_dir": "charts"
    }
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path

from course_profiles.models import NOMINAL_LENGTH_KM

CONFIG_DIR = Path.home() / ".config" / "course-profiles"
CONFIG_PATH = CONFIG_DIR / "course-profiles.json"
LOCAL_CONFIG_PATH = Path("course-profiles.json")

DEFAULT_SHEET_URL = (
    "https://docs.google.com/spreadsheets/d/e/"
    "2PACX-1vSjtsbIOgM43Hj89GWHkC8QYS1ujZKvS_S3m89em5RHWPhSXnxbT1bopKlaKsU0mdcoYVXZrnl_0OLs"
    "/pub?output=csv"
)

ENV_OVERRIDES = {
    "sheet_url": "COURSE_PROFILES_SHEET_URL",
    "gpx_dir": "COURSE_PROFILES_GPX_DIR",
    "charts_dir": "COURSE_PROFILES_CHARTS_DIR",
}


@dataclass
class Settings:
    sheet_url: str = DEFAULT_SHEET_URL  # CSV feed: URL or local path
    gpx_dir: str = "gpx"
    charts_dir: str = "charts"
    nominal_length_km: float = NOMINAL_LENGTH_KM


def load_config() -> dict:
    """Merge the global and local config files.

    Returns:
        Dict with merged config values, empty dict if no files exist.
        Unreadable or invalid files are skipped.
    """
    config = {}
    for config_path in [CONFIG_PATH, LOCAL_CONFIG_PATH]:
        if config_path.exists():
            try:
                with config_path.open() as f:
                    config.update(json.load(f))
            except (json.JSONDecodeError, OSError):
                continue
    return config


def get_settings(**overrides) -> Settings:
    """Resolve settings: config files, then environment, then explicit overrides.

    Overrides whose value is None are ignored, so argparse results can be
    passed straight through.
    """
    config = load_config()
    settings = Settings(
        sheet_url=config.get("sheet_url", DEFAULT_SHEET_URL),
        gpx_dir=config.get("gpx_dir", "gpx"),
        charts_dir=config.get("charts_dir", "charts"),
        nominal_length_km=float(config.get("nominal_length_km", NOMINAL_LENGTH_KM)),
    )
    for key, env_var in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            setattr(settings, key, value)
    for key, value in overrides.items():
        if value is not None:
            setattr(settings, key, value)
    return settings
