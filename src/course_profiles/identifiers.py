import re

_PARKRUN = re.compile(r"parkrun", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


def course_id(name: str) -> str:
    """Derive the course identifier used in URLs, GPX file names and chart file names.

    Lowercase, drop "parkrun" and commas, trim, then remove whitespace runs:
    "Marlay Park parkrun" -> "marlaypark".
    """
    slug = _PARKRUN.sub("", name.lower())
    slug = slug.replace(",", "").strip()
    return _WHITESPACE.sub("", slug)
