import json
import os
import subprocess
import sys

import pytest

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")
SAMPLE_FEED_PATH = os.path.join(DATA_DIR, "courses.csv")
MARLAY_GPX_PATH = os.path.join(DATA_DIR, "marlaypark.gpx")
BROKEN_GPX_PATH = os.path.join(DATA_DIR, "brokentrack.gpx")
SRC_DIR = os.path.join(os.path.dirname(__file__), os.pardir, os.pardir, "src")


@pytest.fixture
def run_cli(tmp_path):
    """Run the CLI in a scratch directory with no config files or overrides."""
    env = {k: v for k, v in os.environ.items() if not k.startswith("COURSE_PROFILES_")}
    env["HOME"] = str(tmp_path)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [os.path.abspath(SRC_DIR), env.get("PYTHONPATH")]))

    def run(*args):
        return subprocess.run(
            [sys.executable, "-m", "course_profiles", *args],
            capture_output=True,
            text=True,
            cwd=tmp_path,
            env=env,
        )
    return run


def feed_args():
    return ["--sheet", SAMPLE_FEED_PATH, "--gpx-dir", DATA_DIR]


class TestShow:
    def test_show_by_id(self, run_cli):
        result = run_cli(*feed_args(), "show", "marlaypark")
        assert result.returncode == 0
        output = result.stdout
        assert "=== Course Profile ===" in output
        assert "Course:         Marlay Park parkrun" in output
        assert "Category:       Undulating" in output
        assert "Ascent:         25 m" in output
        assert "Website:        https://www.parkrun.ie/marlay/" in output
        assert "Distance:       0.22 km (charted as 5 km)" in output
        assert "Points:         3" in output

    def test_show_by_name(self, run_cli):
        result = run_cli(*feed_args(), "show", "Bushy Park, Dublin parkrun")
        assert result.returncode == 0
        assert "Category:       Very Flat" in result.stdout
        assert "(fixed window)" in result.stdout

    def test_show_json(self, run_cli):
        result = run_cli(*feed_args(), "show", "bereisland", "--json")
        assert result.returncode == 0
        data = json.loads(result.stdout)
        assert data["course"]["id"] == "bereisland"
        assert data["category"]["label"] == "Very Hilly"
        assert data["chart"]["series"][0] == [0.0, 50.0]
        assert data["chart"]["series"][-1][0] == 5.0

    def test_show_writes_chart(self, run_cli, tmp_path):
        chart = tmp_path / "marlay.png"
        result = run_cli(*feed_args(), "show", "marlaypark", "--chart", str(chart))
        assert result.returncode == 0
        assert chart.read_bytes().startswith(b"\x89PNG")

    def test_unknown_course(self, run_cli):
        result = run_cli(*feed_args(), "show", "atlantis")
        assert result.returncode == 1
        assert "No course metadata for 'atlantis'" in result.stderr

    def test_course_without_gpx(self, run_cli):
        result = run_cli(*feed_args(), "show", "lonelypoint")
        assert result.returncode == 1
        assert "No GPX file" in result.stderr

    def test_degenerate_track(self, run_cli):
        result = run_cli(*feed_args(), "show", "singlespot")
        assert result.returncode == 1
        assert "Error:" in result.stderr


class TestList:
    def test_lists_feed(self, run_cli):
        result = run_cli(*feed_args(), "list")
        assert result.returncode == 0
        lines = result.stdout.splitlines()
        assert lines[0].startswith("Marlay Park parkrun")
        assert lines[-1] == "7 course(s)"

    def test_sort_hilly(self, run_cli):
        result = run_cli(*feed_args(), "list", "--sort", "hilly")
        assert result.returncode == 0
        assert result.stdout.splitlines()[0].startswith("Bere Island parkrun")

    def test_grade_filter(self, run_cli):
        result = run_cli(*feed_args(), "list", "--grade", "Very Flat")
        assert result.returncode == 0
        assert result.stdout.splitlines()[-1] == "3 course(s)"

    def test_county_filter(self, run_cli):
        result = run_cli(*feed_args(), "list", "--county", "Cork", "--county", "Kerry")
        assert result.returncode == 0
        assert "Bere Island parkrun" in result.stdout
        assert "Broken Track parkrun" in result.stdout
        assert "2 course(s)" in result.stdout

    def test_invalid_sort(self, run_cli):
        result = run_cli(*feed_args(), "list", "--sort", "random")
        assert result.returncode != 0

    def test_missing_feed_file(self, run_cli):
        result = run_cli("--sheet", "missing.csv", "list")
        assert result.returncode == 1
        assert "Error: File not found: missing.csv" in result.stderr


class TestGpx:
    def test_profile_gpx_file(self, run_cli):
        result = run_cli("gpx", MARLAY_GPX_PATH, "--ascent", "25")
        assert result.returncode == 0
        output = result.stdout
        assert "=== GPX Course Profile ===" in output
        assert "Category:       Undulating" in output
        assert "Chart Y Axis:   0 - 28 (fixed window)" in output

    def test_gpx_json(self, run_cli):
        result = run_cli("gpx", MARLAY_GPX_PATH, "--json")
        assert result.returncode == 0
        data = json.loads(result.stdout)
        assert data["category"]["label"] == "Very Flat"
        assert data["chart"]["smoothing"] == 0.6

    def test_broken_gpx(self, run_cli):
        result = run_cli("gpx", BROKEN_GPX_PATH)
        assert result.returncode == 1
        assert "Error:" in result.stderr

    def test_nonexistent_file(self, run_cli):
        result = run_cli("gpx", "nonexistent.gpx")
        assert result.returncode == 1
        assert "Error: File not found" in result.stderr


class TestRender:
    def test_render_cards(self, run_cli, tmp_path):
        charts_dir = tmp_path / "charts"
        result = run_cli(*feed_args(), "--charts-dir", str(charts_dir), "render")
        assert result.returncode == 0
        assert f"Wrote 3 card image(s) to {charts_dir}" in result.stdout
        assert (charts_dir / "marlaypark_card_elevation.png").exists()
        assert not (charts_dir / "lonelypoint_card_elevation.png").exists()


def test_no_arguments(run_cli):
    result = run_cli()
    assert result.returncode != 0
