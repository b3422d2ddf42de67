"""Tests for the command-line interface."""

import json

import pytest
from typer.testing import CliRunner

from track_analyzer.cli import app

runner = CliRunner()


def parse_json(output: str):
    return json.loads(output[output.index("{"):])


class TestBpmCommand:
    def test_json(self, click_wav):
        result = runner.invoke(app, ["bpm", str(click_wav), "--json"])

        assert result.exit_code == 0, result.output
        data = parse_json(result.output)
        assert 110.0 <= data["bpm"] <= 130.0
        assert data["reliable"] is True
        assert data["beat_count"] == len(data["beats"])
        assert "load" in data["timing"]["stages"]

    def test_table(self, click_wav):
        result = runner.invoke(app, ["bpm", str(click_wav), "--beats"])
        assert result.exit_code == 0, result.output
        assert "Tempo" in result.output
        assert "Detected Beats" in result.output

    def test_unweighted_and_threshold(self, click_wav):
        result = runner.invoke(
            app, ["bpm", str(click_wav), "--json", "--unweighted", "--threshold", "0.9"]
        )
        assert result.exit_code == 0, result.output
        assert 110.0 <= parse_json(result.output)["bpm"] <= 130.0

    def test_invalid_threshold(self, click_wav):
        result = runner.invoke(app, ["bpm", str(click_wav), "--threshold", "1.5"])
        assert result.exit_code == 1
        assert "threshold_percentage" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["bpm", str(tmp_path / "missing.wav")])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestKeyCommand:
    def test_json(self, tone_wav):
        result = runner.invoke(app, ["key", str(tone_wav), "--json"])

        assert result.exit_code == 0, result.output
        data = parse_json(result.output)
        assert data["key"] in ("A", "Am")
        assert data["camelot"] in ("11B", "8A")
        assert data["chroma"]["A"] == max(data["chroma"].values())

    def test_template_confidence(self, tone_wav):
        default = parse_json(runner.invoke(app, ["key", str(tone_wav), "--json"]).output)
        scaled = parse_json(
            runner.invoke(app, ["key", str(tone_wav), "--json", "--template-confidence"]).output
        )
        assert scaled["confidence"] >= default["confidence"]

    def test_table(self, tone_wav):
        result = runner.invoke(app, ["key", str(tone_wav), "--verbose"])
        assert result.exit_code == 0, result.output
        assert "Camelot" in result.output
        assert "A major" in result.output or "A minor" in result.output
        assert "Chroma Profile" in result.output


class TestAnalyzeCommand:
    def test_json(self, click_wav):
        result = runner.invoke(app, ["analyze", f"file://{click_wav}", "--json"])

        assert result.exit_code == 0, result.output
        data = parse_json(result.output)
        assert set(data) >= {"bpm", "key", "duration", "sample_rate", "timing"}
        assert data["sample_rate"] == 44100

    def test_table(self, click_wav):
        result = runner.invoke(app, ["analyze", str(click_wav)])
        assert result.exit_code == 0, result.output
        assert "Tempo" in result.output
        assert "Key" in result.output


def test_info(tone_wav):
    result = runner.invoke(app, ["info", str(tone_wav)])
    assert result.exit_code == 0, result.output
    assert "44100 Hz" in result.output
    assert "3.00 seconds" in result.output


@pytest.mark.parametrize("command", ["bpm", "key", "analyze", "info"])
def test_unsupported_format(tmp_path, command):
    path = tmp_path / "notes.txt"
    path.write_text("not audio")
    result = runner.invoke(app, [command, str(path)])
    assert result.exit_code == 1
    assert "Unsupported format" in result.output
