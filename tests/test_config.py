"""Tests for preference state and JSON persistence."""

import json

import pytest

from sk_units.core.catalog import default_metadata
from sk_units.core.config import (
    ConverterOptions,
    PreferenceSet,
    PreferencesMeta,
    load_metadata,
    load_preferences,
    save_metadata,
    save_preferences,
)
from sk_units.core.errors import PreferencesError
from sk_units.core.models import CategoryPreference, PathOverride, PathPattern
from sk_units.core.resolution import ResolutionSource

PREFS_DOC = {
    "meta": {"name": "Sailing", "description": "Offshore passage"},
    "categories": {
        "speed": {"targetUnit": "kn", "displayFormat": "0.0"},
        "temperature": {"targetUnit": "celsius"},
        "engineHours": {"targetUnit": "h", "baseUnit": "s", "displayFormat": "0.0"},
    },
    "pathOverrides": {
        "navigation.speedThroughWater": {"targetUnit": "km/h", "displayFormat": "0.00"}
    },
    "pathPatterns": [
        {"pattern": "propulsion.*.runTime", "category": "engineHours", "priority": 20},
        {"pattern": "**.temperature", "category": "temperature"},
    ],
}


class TestPreferencesMeta:
    def test_defaults(self):
        meta = PreferencesMeta()
        assert meta.name == "Untitled"
        assert meta.modified == ""

    def test_touch(self):
        meta = PreferencesMeta(name="Test")
        meta.touch()
        assert meta.modified != ""


class TestPreferenceSet:
    def test_from_dict(self):
        prefs = PreferenceSet.from_dict(PREFS_DOC)
        assert prefs.meta.name == "Sailing"
        assert prefs.categories["speed"].target_unit == "kn"
        assert prefs.categories["temperature"].display_format == "0.0"
        assert prefs.path_overrides["navigation.speedThroughWater"].path == "navigation.speedThroughWater"
        assert [p.priority for p in prefs.path_patterns] == [20, 0]

    def test_override_list_form(self):
        prefs = PreferenceSet.from_dict(
            {"pathOverrides": [{"path": "a.b", "targetUnit": "kn"}, {"path": "c.d", "target_unit": "V"}]}
        )
        assert set(prefs.path_overrides) == {"a.b", "c.d"}
        assert prefs.path_overrides["c.d"].target_unit == "V"

    def test_snake_case_keys(self):
        prefs = PreferenceSet.from_dict(
            {
                "path_patterns": [{"pattern": "a.*", "category": "speed", "target_unit": "kn"}],
                "category_base_units": {"boatSpeed": "m/s"},
            }
        )
        assert prefs.path_patterns[0].target_unit == "kn"
        assert prefs.category_base_units == {"boatSpeed": "m/s"}

    @pytest.mark.parametrize(
        "doc",
        [
            [],
            {"meta": {"author": "x"}},
            {"categories": {"speed": {"displayFormat": "0"}}},
            {"pathPatterns": [{"pattern": "a.*"}]},
            {"pathPatterns": [{"pattern": "a.*", "category": "speed", "priority": "high"}]},
            {"pathOverrides": [{"targetUnit": "kn"}]},
        ],
    )
    def test_malformed(self, doc):
        with pytest.raises(PreferencesError):
            PreferenceSet.from_dict(doc)

    def test_to_dict_round_trip(self):
        prefs = PreferenceSet.from_dict(PREFS_DOC)
        again = PreferenceSet.from_dict(prefs.to_dict())
        assert again.categories == prefs.categories
        assert again.path_overrides == prefs.path_overrides
        assert again.path_patterns == prefs.path_patterns

    def test_to_dict_omits_empty_base_unit_map(self):
        assert "categoryToBaseUnit" not in PreferenceSet().to_dict()

    def test_resolve_each_tier(self):
        prefs = PreferenceSet.from_dict(PREFS_DOC)
        assert prefs.resolve("navigation.speedThroughWater", "m/s").source is ResolutionSource.OVERRIDE
        run_time = prefs.resolve("propulsion.port.runTime", "s")
        assert run_time.source is ResolutionSource.PATTERN
        assert run_time.base_unit == "s"
        assert run_time.target_unit == "h"
        assert prefs.resolve("navigation.speedOverGround", "m/s").source is ResolutionSource.AUTO
        assert prefs.resolve("electrical.batteries.1.voltage", "V").source is ResolutionSource.NATIVE_ONLY
        assert prefs.resolve("navigation.position").source is ResolutionSource.NONE

    def test_custom_category_base_units(self):
        prefs = PreferenceSet(
            categories={"boatSpeed": CategoryPreference(target_unit="km/h")},
            category_base_units={"boatSpeed": "m/s"},
        )
        res = prefs.resolve("navigation.log.speed", "m/s")
        # catalog categories are kept; "speed" appears first in the merged map
        assert res.category == "speed"
        assert res.source is ResolutionSource.NATIVE_ONLY

        prefs.category_base_units = {"speed": "kn"}
        prefs.categories = {"speed": CategoryPreference(target_unit="km/h")}
        res = prefs.resolve("navigation.speedOverGround", "kn")
        assert res.source is ResolutionSource.AUTO

    def test_resolve_all(self):
        prefs = PreferenceSet.from_dict(PREFS_DOC)
        results = prefs.resolve_all(
            ["environment.water.temperature", "navigation.speedOverGround"],
            {"navigation.speedOverGround": {"units": "m/s"}},
        )
        assert results["environment.water.temperature"].target_unit == "celsius"
        assert results["navigation.speedOverGround"].target_unit == "kn"


class TestConverterOptions:
    def test_defaults(self):
        options = ConverterOptions()
        assert options.api_path == "/signalk/v1/conversions"
        assert options.ws_path == "/signalk/v1/conversions/stream"
        assert options.auto_connect is False


class TestJsonPersistence:
    def test_save_and_load_preferences(self, tmp_path):
        prefs = PreferenceSet(
            meta=PreferencesMeta(name="Racing"),
            categories={"speed": CategoryPreference(target_unit="kn", display_format="0.00")},
            path_overrides={"a.b": PathOverride(path="a.b", target_unit="km/h")},
            path_patterns=[PathPattern(pattern="**.speed*", category="speed", priority=5)],
        )
        path = tmp_path / "prefs.json"
        save_preferences(prefs, path)

        assert prefs.meta.modified != ""
        with open(path) as f:
            data = json.load(f)
        assert data["categories"]["speed"]["targetUnit"] == "kn"
        assert data["pathPatterns"][0]["priority"] == 5

        loaded = load_preferences(path)
        assert loaded.meta.name == "Racing"
        assert loaded.categories["speed"].display_format == "0.00"
        assert loaded.path_overrides["a.b"].target_unit == "km/h"

    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PreferencesError, match="not valid JSON"):
            load_preferences(path)

    def test_save_and_load_metadata(self, tmp_path):
        path = tmp_path / "metadata.json"
        save_metadata(default_metadata(), path)
        loaded = load_metadata(path)
        assert loaded["m/s"].conversions["kn"].symbol == "kn"
        assert loaded["RFC 3339 (UTC)"].conversions["short-date-24hrs-local"].use_local_time is True

    def test_load_metadata_rejects_non_object(self, tmp_path):
        path = tmp_path / "metadata.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(PreferencesError):
            load_metadata(path)
