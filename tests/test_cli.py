"""
Tests for the command line interface (mock mode).
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from daytimeline import __version__
from daytimeline.cli.app import app

runner = CliRunner()

DAY_ARGS = ["--date", "2024-01-10", "--mock"]


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Config pointing the mock store at a file inside tmp_path."""
    path = tmp_path / "config.yaml"
    path.write_text(f"mock_data_file: '{tmp_path / 'records.json'}'\n", encoding="utf-8")
    return path


def _invoke(*args, config_file: Path, input=None):
    return runner.invoke(app, [*args, *DAY_ARGS, "--config", str(config_file)], input=input)


def _stored(config_file: Path) -> list:
    data_file = config_file.parent / "records.json"
    return json.loads(data_file.read_text(encoding="utf-8"))


class TestCli:
    """Tests for the CLI commands."""

    def test_show(self, config_file: Path):
        result = _invoke("show", config_file=config_file)

        assert result.exit_code == 0, result.output
        assert "Morning" in result.output
        assert "Totals" in result.output

    def test_show_empty_day(self, config_file: Path):
        result = runner.invoke(
            app, ["show", "--date", "2030-01-01", "--mock", "--config", str(config_file)]
        )

        assert result.exit_code == 0
        assert "No slots recorded" in result.output

    def test_add(self, config_file: Path):
        result = _invoke("add", "10:00", "11:00", "study", "--title", "Reading", config_file=config_file)

        assert result.exit_code == 0, result.output
        assert "Added" in result.output
        added = [r for r in _stored(config_file) if r.get("title") == "Reading"]
        assert len(added) == 1
        assert (added[0]["startTime"], added[0]["endTime"]) == (600, 660)

    def test_add_overlap(self, config_file: Path):
        result = _invoke("add", "09:30", "10:30", config_file=config_file)

        assert result.exit_code == 1
        assert "overlap" in result.output

    def test_add_invalid_clock(self, config_file: Path):
        result = _invoke("add", "9h", "10:30", config_file=config_file)

        assert result.exit_code == 1
        assert "Invalid clock time" in result.output

    def test_draw_is_clamped(self, config_file: Path):
        """Test that a drawn slot stops at the next slot."""
        result = _invoke("draw", "12:00", "16:00", "study", config_file=config_file)

        assert result.exit_code == 0, result.output
        assert "12:00 - 14:00" in result.output

    def test_draw_inside_slot_fails(self, config_file: Path):
        result = _invoke("draw", "09:30", "11:00", config_file=config_file)

        assert result.exit_code == 1
        assert "inside an existing slot" in result.output

    def test_add_suggests_category(self, config_file: Path):
        """Test that a missing category is filled from the recommendation."""
        # the sample work slot covers 09:15 on 2024-01-10
        result = runner.invoke(
            app,
            ["add", "09:15", "09:45", "--date", "2024-01-11", "--mock", "--config", str(config_file)],
        )

        assert result.exit_code == 0, result.output
        added = [r for r in _stored(config_file) if r["date"] == "2024-01-11"]
        assert added[0]["categoryId"] == "work"

    def test_add_falls_back_to_default_category(self, config_file: Path):
        result = _invoke("add", "16:00", "17:00", config_file=config_file)

        assert result.exit_code == 0, result.output
        added = [r for r in _stored(config_file) if r["startTime"] == 960]
        assert added[0]["categoryId"] == "study"

    def test_next(self, config_file: Path):
        result = _invoke("next", "--yes", config_file=config_file)

        assert result.exit_code == 0, result.output
        assert "18:45 - 19:30" in result.output
        added = [r for r in _stored(config_file) if r["startTime"] == 1125]
        assert added[0]["categoryId"] == "exercise"

    def test_next_declined(self, config_file: Path):
        result = _invoke("next", config_file=config_file, input="n\n")

        assert result.exit_code == 0
        assert "Suggested" in result.output
        assert not (config_file.parent / "records.json").exists()

    def test_next_without_records(self, config_file: Path):
        result = runner.invoke(
            app, ["next", "--date", "2030-01-01", "--mock", "--config", str(config_file)]
        )

        assert result.exit_code == 0
        assert "No suggestion" in result.output

    def test_week(self, config_file: Path):
        result = _invoke("week", config_file=config_file)

        assert result.exit_code == 0, result.output
        assert "Week of 08.01.2024" in result.output
        assert "Wed 10.01" in result.output

    def test_move(self, config_file: Path):
        result = _invoke("move", "sample-work-0900", "11:00", config_file=config_file)

        assert result.exit_code == 0, result.output
        moved = [r for r in _stored(config_file) if r["id"] == "sample-work-0900"][0]
        assert (moved["startTime"], moved["endTime"]) == (660, 720)

    def test_resize(self, config_file: Path):
        result = _invoke("resize", "sample-work-0900", "bottom", "16:00", config_file=config_file)

        assert result.exit_code == 0, result.output
        assert "09:00 - 14:00" in result.output

    def test_move_unknown_slot(self, config_file: Path):
        result = _invoke("move", "nope", "11:00", config_file=config_file)

        assert result.exit_code == 1
        assert "No slot with id" in result.output

    def test_delete(self, config_file: Path):
        result = _invoke("delete", "sample-rest-1400", config_file=config_file)

        assert result.exit_code == 0, result.output
        assert "sample-rest-1400" not in [r["id"] for r in _stored(config_file)]

    def test_clear(self, config_file: Path):
        result = _invoke("clear", "--yes", config_file=config_file)

        assert result.exit_code == 0, result.output
        assert "Removed 3 slot(s)" in result.output
        assert _stored(config_file) == []

    def test_clear_aborted(self, config_file: Path):
        result = _invoke("clear", config_file=config_file, input="n\n")

        assert result.exit_code == 1
        assert not (config_file.parent / "records.json").exists()

    def test_categories(self, config_file: Path):
        result = runner.invoke(app, ["categories", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "finance-investment" in result.output
        assert "(default)" in result.output

    def test_backend_mode_requires_api_section(self, config_file: Path):
        result = runner.invoke(app, ["show", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "api" in result.output

    def test_missing_config(self, tmp_path: Path):
        result = runner.invoke(app, ["show", "--config", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output
