"""Course Profiles - elevation profiles and listings for 5k running courses."""

__version_date__ = "2026-10-19"
