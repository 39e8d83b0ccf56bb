from unittest.mock import MagicMock, patch

import pytest
import requests
from requests.structures import CaseInsensitiveDict
from requests.utils import get_encoding_from_headers

from course_profiles.errors import NotFoundError
from course_profiles.feed import (
    CourseFeed,
    load_feed,
    parse_feed,
    resolve_columns,
    summarize_row,
)


class TestResolveColumns:
    def test_sheet_headers(self):
        headers = ["Event", "County", "Lat", "Lon", "Ascent", "Descent", "Type", "Profile", "Time", "Website"]
        columns = resolve_columns(headers)
        assert columns == {
            "name": "Event",
            "latitude": "Lat",
            "longitude": "Lon",
            "ascent": "Ascent",
            "descent": "Descent",
            "county": "County",
            "route_type": "Type",
            "terrain": "Profile",
            "time": "Time",
            "website": "Website",
        }

    def test_lowercase_aliases(self):
        headers = ["name", "latitude", "longitude", "elevation_gain", "route_type", "terrain", "region"]
        columns = resolve_columns(headers)
        assert columns["name"] == "name"
        assert columns["ascent"] == "elevation_gain"
        assert columns["route_type"] == "route_type"
        assert columns["terrain"] == "terrain"
        assert columns["county"] == "region"

    def test_location_columns_are_not_coordinates(self):
        columns = resolve_columns(["Name", "Location Lat", "Location Lon", "lat", "lng_lon"])
        assert columns["latitude"] == "lat"
        assert columns["longitude"] == "lng_lon"

    def test_missing_fields_are_omitted(self):
        columns = resolve_columns(["Name", "Ascent"])
        assert set(columns) == {"name", "ascent"}

    def test_header_can_feed_several_fields(self):
        columns = resolve_columns(["Event", "Profile Type"])
        assert columns["route_type"] == "Profile Type"
        assert columns["terrain"] == "Profile Type"

    def test_first_matching_header_wins(self):
        columns = resolve_columns(["Event Time", "Course Name"])
        assert columns["name"] == "Event Time"
        assert columns["time"] == "Event Time"

    def test_custom_aliases(self):
        columns = resolve_columns(["Parkrun", "Climb"], aliases={"name": ["parkrun"], "ascent": ["climb"]})
        assert columns == {"name": "Parkrun", "ascent": "Climb"}


class TestSummarizeRow:
    COLUMNS = {"name": "Event", "ascent": "Ascent", "descent": "Descent", "time": "Time",
               "route_type": "Type", "terrain": "Profile", "website": "Website",
               "latitude": "Lat", "longitude": "Lon", "county": "County"}

    def test_full_row(self):
        row = {"Event": "Marlay Park parkrun", "Ascent": "25", "Descent": "24", "Time": "9:00 AM",
               "Type": "Loop", "Profile": "Mixed", "Website": "https://example.ie",
               "Lat": "53.27", "Lon": "-6.27", "County": "Dublin"}
        summary = summarize_row(row, self.COLUMNS)
        assert summary.name == "Marlay Park parkrun"
        assert summary.course_id == "marlaypark"
        assert summary.ascent_m == 25.0
        assert summary.descent_m == 24.0
        assert summary.time == "9:00 AM"
        assert summary.route_type == "Loop"
        assert summary.terrain == "Mixed"
        assert summary.website == "https://example.ie"
        assert (summary.latitude, summary.longitude) == (53.27, -6.27)
        assert summary.county == "Dublin"

    def test_defaults_for_blank_cells(self):
        row = {"Event": "Newbridge parkrun", "Ascent": "", "Descent": " ", "Time": "",
               "Type": "", "Profile": "", "Website": "", "Lat": "x", "Lon": "", "County": ""}
        summary = summarize_row(row, self.COLUMNS)
        assert summary.ascent_m == 0.0
        assert summary.descent_m == 0.0
        assert summary.time == "9:30 AM"
        assert summary.route_type == "Course"
        assert summary.terrain is None
        assert summary.website is None
        assert summary.latitude is None
        assert summary.county is None

    def test_missing_columns_use_defaults(self):
        summary = summarize_row({"name": "Tymon parkrun"}, {"name": "name"})
        assert summary.course_id == "tymon"
        assert summary.route_type == "Course"

    def test_row_without_name(self):
        assert summarize_row({"Event": "  "}, self.COLUMNS) is None


class TestParseFeed:
    def test_sample_feed(self, sample_feed):
        # Blank line and the unnamed row are dropped
        assert len(sample_feed) == 7
        names = [c.name for c in sample_feed]
        assert names[0] == "Marlay Park parkrun"
        assert "Bushy Park, Dublin parkrun" in names

    def test_lenient_values(self, sample_feed):
        assert sample_feed.get("bereisland").ascent_m == 75.0
        assert sample_feed.get("ballycastle").ascent_m == 0.0
        assert sample_feed.get("ballycastle").descent_m == 0.0
        assert sample_feed.get("bushyparkdublin").time == "9:30 AM"

    def test_empty_text(self):
        assert len(parse_feed("")) == 0

    def test_header_only(self):
        assert len(parse_feed("Event,Ascent\n")) == 0

    def test_na_strings_are_kept_as_text(self):
        feed = parse_feed("Event,Profile\nNA parkrun,NA\n")
        assert feed.get("na").terrain == "NA"

    def test_ragged_row_is_skipped(self, caplog):
        text = (
            "name,ascent,county\n"
            "Marlay Park parkrun,25,Dublin\n"
            "Tymon, Dublin parkrun,12,Dublin\n"
            "Bere Island parkrun,75,Cork\n"
        )
        with caplog.at_level("WARNING", logger="course_profiles.feed"):
            feed = parse_feed(text)
        assert [c.course_id for c in feed] == ["marlaypark", "bereisland"]
        assert "Skipping malformed feed row" in caplog.text

    def test_short_row_uses_defaults(self):
        feed = parse_feed("name,ascent,county,time\nTymon parkrun,12\n")
        course = feed.get("tymon")
        assert course.county is None
        assert course.time == "9:30 AM"


class TestCourseFeed:
    def test_get_unknown_raises(self, sample_feed):
        with pytest.raises(NotFoundError):
            sample_feed.get("atlantis")

    def test_not_found_is_lookup_error(self, sample_feed):
        with pytest.raises(LookupError):
            sample_feed.get("atlantis")

    def test_find_by_name_or_id(self, sample_feed):
        assert sample_feed.find("Marlay Park parkrun").course_id == "marlaypark"
        assert sample_feed.find("marlaypark").name == "Marlay Park parkrun"

    def test_contains(self, sample_feed):
        assert "marlaypark" in sample_feed
        assert "atlantis" not in sample_feed

    def test_first_duplicate_wins(self):
        feed = parse_feed("Event,Ascent\nTymon parkrun,5\nTymon,50\n")
        assert len(feed) == 2
        assert feed.get("tymon").ascent_m == 5.0

    def test_distinct_values(self, sample_feed):
        assert sample_feed.route_types() == ["Laps", "Loop", "Out & Back"]
        assert sample_feed.terrains() == ["Grass", "Mixed", "Road", "Trail"]
        assert sample_feed.counties() == ["Cork", "Dublin", "Galway", "Kerry", "Mayo", "Sligo"]

    def test_provinces(self, sample_feed):
        assert sample_feed.provinces() == {
            "Munster": ["Cork", "Kerry"],
            "Leinster": ["Dublin"],
            "Connacht": ["Galway", "Mayo", "Sligo"],
        }

    def test_empty(self):
        feed = CourseFeed([])
        assert list(feed) == []
        assert feed.route_types() == []


def make_response(body: bytes, content_type: str) -> requests.Response:
    """A real Response whose encoding is derived from its headers, as requests does."""
    response = requests.Response()
    response.status_code = 200
    response._content = body
    response.headers = CaseInsensitiveDict({"Content-Type": content_type})
    response.encoding = get_encoding_from_headers(response.headers)
    response.url = "https://example.com/pub?output=csv"
    return response


class TestLoadFeed:
    def test_from_url(self):
        response = make_response("name,ascent\nTymon parkrun,12\n".encode(), "text/csv")
        with patch("course_profiles.feed.requests.get", return_value=response) as mock_get:
            feed = load_feed("https://example.com/pub?output=csv")
        mock_get.assert_called_once()
        assert mock_get.call_args[0][0] == "https://example.com/pub?output=csv"
        assert feed.get("tymon").ascent_m == 12.0

    def test_http_error_propagates(self):
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = requests.HTTPError("404 Not Found")
        with patch("course_profiles.feed.requests.get", return_value=mock_response):
            with pytest.raises(requests.RequestException):
                load_feed("https://example.com/missing.csv")

    def test_missing_local_file(self):
        with pytest.raises(FileNotFoundError):
            load_feed("/nonexistent/courses.csv")

    def test_url_without_charset_is_utf8(self):
        body = "name,ascent\nPáirc Mhuire parkrun,12\n".encode("utf-8")
        response = make_response(body, "text/csv")
        with patch("course_profiles.feed.requests.get", return_value=response):
            feed = load_feed("https://example.com/pub?output=csv")
        assert feed.get("páircmhuire").name == "Páirc Mhuire parkrun"

    def test_url_charset_is_respected(self):
        body = "name,ascent\nPáirc Mhuire parkrun,12\n".encode("latin-1")
        response = make_response(body, "text/csv; charset=ISO-8859-1")
        with patch("course_profiles.feed.requests.get", return_value=response):
            feed = load_feed("https://example.com/pub?output=csv")
        assert "páircmhuire" in feed
