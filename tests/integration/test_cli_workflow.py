"""Integration tests for end-to-end CLI workflows.

Covers converting values, resolving preferences from files written to
disk, catalog inspection and validation, and the server watch command
with the network replaced.
"""

import json
import os
import tempfile

import pytest
from click.testing import CliRunner

from sk_units.cli.main import cli
from sk_units.core.converter import Converter
from sk_units.core.errors import ChannelConnectionError, MetadataFetchError

PREFS = {
    "meta": {"name": "Cruising"},
    "categories": {
        "speed": {"targetUnit": "kn", "displayFormat": "0.0"},
        "temperature": {"targetUnit": "celsius", "displayFormat": "0.0"},
    },
    "pathOverrides": {
        "environment.water.temperature": {"targetUnit": "fahrenheit", "displayFormat": "0", "baseUnit": "K"}
    },
    "pathPatterns": [
        {"pattern": "navigation.speed*", "category": "speed", "priority": 10},
        {"pattern": "**.temperature", "category": "temperature"},
    ],
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def tmp_dir():
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def prefs_file(tmp_dir):
    path = os.path.join(tmp_dir, "prefs.json")
    with open(path, "w") as f:
        json.dump(PREFS, f)
    return path


class TestConvertCommands:
    def test_convert_json(self, runner):
        result = runner.invoke(cli, ["convert", "5", "m/s", "kn", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["formatted"] == "9.7 kn"
        assert data["value"] == pytest.approx(9.7192, rel=1e-4)

    def test_convert_table(self, runner):
        result = runner.invoke(cli, ["convert", "300", "K", "celsius", "-f", "0.00"])
        assert result.exit_code == 0, result.output
        assert "26.85" in result.output

    def test_convert_boolean(self, runner):
        result = runner.invoke(cli, ["convert", "true", "bool", "on-off", "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["formatted"] == "true"

    def test_convert_date(self, runner):
        result = runner.invoke(cli, ["convert", "1970-01-01T00:00:00Z", "RFC 3339 (UTC)", "short-date", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["formatted"] == "Jan 1, 1970"
        assert data["isDate"] is True

    def test_convert_unknown_base_unit(self, runner):
        result = runner.invoke(cli, ["convert", "5", "nonexistent-unit", "x"])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_convert_type_mismatch(self, runner):
        result = runner.invoke(cli, ["convert", "abc", "m/s", "kn"])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_path_with_preferences(self, runner, prefs_file):
        result = runner.invoke(cli, ["path", "navigation.speedOverGround", "5", "-p", prefs_file, "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["formatted"] == "9.7 kn"

    def test_path_override(self, runner, prefs_file):
        result = runner.invoke(cli, ["path", "environment.water.temperature", "293.15", "-p", prefs_file, "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["formatted"] == "68 °F"

    def test_path_without_conversion(self, runner):
        result = runner.invoke(cli, ["path", "navigation.speedOverGround", "5"])
        assert result.exit_code == 1
        assert "No conversion available" in result.output

    def test_path_with_metadata_snapshot(self, runner, tmp_dir):
        snapshot = os.path.join(tmp_dir, "metadata.json")
        with open(snapshot, "w") as f:
            json.dump(
                {
                    "navigation.speedOverGround": {
                        "baseUnit": "m/s",
                        "category": "speed",
                        "conversions": {"km/h": {"formula": "value * 3.6", "symbol": "km/h"}},
                    }
                },
                f,
            )
        result = runner.invoke(cli, ["path", "navigation.speedOverGround", "10", "-m", snapshot, "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["formatted"] == "36.0 km/h"


class TestResolveCommand:
    def test_resolve_json(self, runner, prefs_file):
        result = runner.invoke(
            cli,
            [
                "resolve",
                "environment.water.temperature",
                "navigation.speedThroughWater",
                "electrical.batteries.1.voltage",
                "notifications.mob",
                "-p",
                prefs_file,
                "-n",
                "electrical.batteries.1.voltage=V",
                "--json",
            ],
        )
        assert result.exit_code == 0, result.output
        sources = [r["source"] for r in json.loads(result.output)]
        assert sources == ["override", "pattern", "native-only", "none"]

    def test_resolve_table(self, runner, prefs_file):
        result = runner.invoke(cli, ["resolve", "navigation.speedOverGround", "-p", prefs_file])
        assert result.exit_code == 0, result.output
        assert "Path Resolution" in result.output

    def test_resolve_bad_native(self, runner):
        result = runner.invoke(cli, ["resolve", "a.b", "-n", "no-equals-sign"])
        assert result.exit_code == 2

    def test_resolve_invalid_preferences(self, runner, tmp_dir):
        path = os.path.join(tmp_dir, "broken.json")
        with open(path, "w") as f:
            f.write("{not json")
        result = runner.invoke(cli, ["resolve", "a.b", "-p", path])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestInfoCommands:
    def test_units(self, runner):
        result = runner.invoke(cli, ["info", "units"])
        assert result.exit_code == 0, result.output
        assert "Base Units" in result.output

    def test_conversions(self, runner):
        result = runner.invoke(cli, ["info", "conversions", "m/s"])
        assert result.exit_code == 0, result.output
        assert "kn" in result.output

    def test_conversions_unknown(self, runner):
        result = runner.invoke(cli, ["info", "conversions", "nonexistent-unit"])
        assert result.exit_code == 1

    def test_categories(self, runner):
        result = runner.invoke(cli, ["info", "categories"])
        assert result.exit_code == 0, result.output
        assert "speed" in result.output

    def test_date_formats(self, runner):
        result = runner.invoke(cli, ["info", "date-formats"])
        assert result.exit_code == 0, result.output
        assert "short-date" in result.output

    def test_durations(self, runner):
        result = runner.invoke(cli, ["info", "durations"])
        assert result.exit_code == 0, result.output
        assert "DHMS" in result.output


class TestValidateAndFormula:
    def test_validate_bundled_catalog(self, runner):
        result = runner.invoke(cli, ["validate"])
        assert result.exit_code == 0, result.output
        assert "0 error(s)" in result.output

    def test_validate_bad_snapshot(self, runner, tmp_dir):
        snapshot = os.path.join(tmp_dir, "bad.json")
        with open(snapshot, "w") as f:
            json.dump(
                {"m/s": {"baseUnit": "m/s", "conversions": {"kn": {"formula": "value * 2", "inverseFormula": "value * 2"}}}},
                f,
            )
        result = runner.invoke(cli, ["validate", "-m", snapshot])
        assert result.exit_code == 1
        assert "1 error(s)" in result.output

    def test_formula_json(self, runner):
        result = runner.invoke(cli, ["formula", "K", "celsius", "--json"])
        assert result.exit_code == 0, result.output
        entry = json.loads(result.output)["celsius"]
        assert entry["symbol"] == "°C"
        assert "273.15" in entry["formula"]

    def test_formula_targets(self, runner):
        result = runner.invoke(cli, ["formula", "m/s"])
        assert result.exit_code == 0, result.output
        assert "kn" in result.output

    def test_formula_incompatible(self, runner):
        result = runner.invoke(cli, ["formula", "m", "kn"])
        assert result.exit_code == 1


class TestWatchCommand:
    def test_fetch_failure(self, runner, monkeypatch):
        async def fail(server_url, options=None, session=None):
            raise MetadataFetchError(server_url + options.api_path, "connection refused")

        monkeypatch.setattr(Converter, "from_server", staticmethod(fail))
        result = runner.invoke(cli, ["watch", "http://boat.local:3000", "--once"])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_stream_failure_with_once(self, runner, monkeypatch):
        async def offline(server_url, options=None, session=None):
            return Converter.from_defaults()

        async def refuse(self, server_url, ws_path, session=None):
            raise ChannelConnectionError(server_url + ws_path, "refused")

        monkeypatch.setattr(Converter, "from_server", staticmethod(offline))
        monkeypatch.setattr(Converter, "watch_preferences", refuse)
        result = runner.invoke(cli, ["watch", "http://boat.local:3000", "--once"])
        assert result.exit_code == 1
        assert "refused" in result.output

    def test_stream_closes_with_once(self, runner, monkeypatch):
        class ClosedChannel:
            url = "ws://boat.local:3000/signalk/v1/conversions/stream"

            async def wait_closed(self):
                return None

        async def offline(server_url, options=None, session=None):
            return Converter.from_defaults()

        async def connect(self, server_url, ws_path, session=None):
            return ClosedChannel()

        monkeypatch.setattr(Converter, "from_server", staticmethod(offline))
        monkeypatch.setattr(Converter, "watch_preferences", connect)
        result = runner.invoke(cli, ["watch", "http://boat.local:3000", "--once"])
        assert result.exit_code == 0, result.output
        assert "Watching" in result.output


class TestVersion:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output
