"""Exceptions raised while turning feed rows and GPX files into course views."""


class CourseDataError(Exception):
    """Base class for problems that make a single course unavailable."""


class ParseError(CourseDataError, ValueError):
    """Track input is empty or a point lacks a usable latitude/longitude."""


class DegenerateTrackError(CourseDataError, ValueError):
    """Track has zero total distance and cannot be stretched to a nominal length."""


class NotFoundError(CourseDataError, LookupError):
    """No feed row or no GPX file exists for a course identifier."""
