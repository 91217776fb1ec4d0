"""Tests for duration formatting."""

import math

import pytest

from sk_units.core.durations import (
    DurationFormatKind,
    duration_target_units,
    format_duration,
    is_duration_formula,
    is_duration_target,
    parse_duration_kind,
)
from sk_units.core.errors import InvalidDuration, UnknownDurationFormat


class TestFormatNames:
    @pytest.mark.parametrize(
        "name",
        ["HMS", DurationFormatKind.HMS, "HH:MM:SS", "formatDurationHMS(value)"],
    )
    def test_all_spellings_resolve(self, name):
        assert parse_duration_kind(name) is DurationFormatKind.HMS

    def test_millis_variants(self):
        assert parse_duration_kind("HMS+millis") is DurationFormatKind.HMS_MILLIS
        assert parse_duration_kind("MM:SS.mmm") is DurationFormatKind.MS_MILLIS
        assert parse_duration_kind("formatDurationMSMillis(value)") is DurationFormatKind.MS_MILLIS

    def test_unknown_name(self):
        with pytest.raises(UnknownDurationFormat, match="Unknown duration format"):
            parse_duration_kind("formatDurationWeeks(value)")

    def test_unknown_name_in_format(self):
        with pytest.raises(UnknownDurationFormat):
            format_duration("fortnights", 10)

    def test_target_units(self):
        targets = duration_target_units()
        assert "DD:HH:MM:SS" in targets
        assert "duration-compact" in targets
        assert len(targets) == len(DurationFormatKind)
        assert is_duration_target("MM:SS")
        assert not is_duration_target("min")

    def test_legacy_formula_detection(self):
        assert is_duration_formula("formatDurationVerbose(value)")
        assert not is_duration_formula("value / 60")


class TestFixedLayouts:
    def test_hms(self):
        assert format_duration("HMS", 3661) == "01:01:01"

    def test_dhms(self):
        assert format_duration("DHMS", 90061) == "01:01:01:01"

    def test_hms_has_no_day_field(self):
        assert format_duration("HMS", 90061) == "25:01:01"

    def test_ms(self):
        assert format_duration("MS", 3661) == "61:01"

    def test_hms_millis(self):
        assert format_duration("HMS+millis", 3661.25) == "01:01:01.250"

    def test_ms_millis(self):
        assert format_duration("MS+millis", 75.5) == "01:15.500"

    def test_millis_never_reach_a_thousand(self):
        assert format_duration("MS+millis", 59.9996) == "00:59.999"

    def test_fractional_seconds_floor(self):
        assert format_duration("HMS", 59.9) == "00:00:59"

    def test_zero(self):
        assert format_duration("DHMS", 0) == "00:00:00:00"


class TestCompact:
    def test_hours_minutes(self):
        assert format_duration("compact", 3661) == "1h 1m"

    def test_days_hours(self):
        assert format_duration("compact", 2 * 86400 + 3 * 3600 + 59) == "2d 3h"

    def test_minutes_seconds(self):
        assert format_duration("compact", 125) == "2m 5s"

    def test_seconds_only(self):
        assert format_duration("compact", 42) == "42s"

    def test_zero(self):
        assert format_duration("compact", 0) == "0s"


class TestVerbose:
    def test_plural_and_omitted_zero_units(self):
        assert format_duration("verbose", 2 * 3600 + 15 * 60) == "2 hours 15 minutes"

    def test_singular(self):
        assert format_duration("verbose", 90061) == "1 day 1 hour 1 minute 1 second"

    def test_days_are_not_capped(self):
        assert format_duration("verbose", 45 * 86400) == "45 days"

    def test_zero_is_empty(self):
        assert format_duration("verbose", 0) == ""


class TestInvalidInput:
    @pytest.mark.parametrize("seconds", [-1, math.nan, math.inf])
    def test_rejected(self, seconds):
        with pytest.raises(InvalidDuration):
            format_duration("HMS", seconds)
