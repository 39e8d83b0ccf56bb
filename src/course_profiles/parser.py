import logging
import re

import gpxpy
import gpxpy.gpx

from course_profiles.errors import ParseError

logger = logging.getLogger(__name__)

_XML_DECLARATION = re.compile(rb"""^\s*<\?xml[^>]*?encoding\s*=\s*["']([A-Za-z0-9._-]+)["'][^>]*\?>""")


def _decode(data: bytes) -> str:
    """Decode GPX bytes using the encoding named in the XML declaration (UTF-8 if none).

    Raises:
        ParseError: If the bytes do not decode with that encoding.
    """
    data = data.removeprefix(b"\xef\xbb\xbf")
    match = _XML_DECLARATION.match(data)
    encoding = match.group(1).decode("ascii") if match else "utf-8"
    try:
        text = data.decode(encoding)
    except LookupError:
        raise ParseError(f"Invalid GPX: unknown encoding {encoding!r}") from None
    except UnicodeDecodeError as e:
        raise ParseError(f"Invalid GPX: not valid {encoding}: {e}") from e
    # The text is already decoded; drop the declaration so it is not applied twice
    if match:
        text = text[len(match.group(0).decode(encoding)):]
    return text


def parse_gpx_string(content: str | bytes) -> list[gpxpy.gpx.GPXTrackPoint]:
    """Parse GPX text and return every track point of every track segment, in document order.

    Raw bytes are decoded according to their XML declaration first.

    Raises:
        ParseError: If the content is not valid GPX.
    """
    if isinstance(content, bytes):
        content = _decode(content)
    try:
        gpx = gpxpy.parse(content)
    except gpxpy.gpx.GPXException as e:
        raise ParseError(f"Invalid GPX: {e}") from e

    points: list[gpxpy.gpx.GPXTrackPoint] = []
    for track in gpx.tracks:
        for segment in track.segments:
            points.extend(segment.points)
    logger.debug("Parsed %d track points", len(points))
    return points


def parse_gpx(filepath: str) -> list[gpxpy.gpx.GPXTrackPoint]:
    """Parse a GPX file and return its track points.

    Raises:
        FileNotFoundError: If the file does not exist.
        ParseError: If the file is not valid GPX or does not decode.
    """
    with open(filepath, "rb") as f:
        return parse_gpx_string(f.read())
