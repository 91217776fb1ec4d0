"""Tests for the exception hierarchy."""

import pytest

from sk_units.core.errors import (
    ChannelConnectionError,
    ChannelError,
    ConversionError,
    FormulaError,
    InvalidDate,
    InvalidDuration,
    MetadataFetchError,
    NonFiniteResult,
    PreferencesError,
    TypeMismatch,
    UnitsError,
    UnknownBaseUnit,
    UnknownConversion,
    UnknownDurationFormat,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "error,builtin",
        [
            (UnknownBaseUnit("x"), LookupError),
            (UnknownConversion("x", "y"), LookupError),
            (UnknownDurationFormat("x"), LookupError),
            (TypeMismatch("abc", "m/s", "kn"), TypeError),
            (InvalidDate("tomorrow"), ValueError),
            (InvalidDuration(-1), ValueError),
            (NonFiniteResult("1 / value", "division by zero"), ValueError),
            (FormulaError("value +", "invalid syntax"), ValueError),
        ],
    )
    def test_conversion_errors(self, error, builtin):
        assert isinstance(error, ConversionError)
        assert isinstance(error, UnitsError)
        assert isinstance(error, builtin)

    def test_preferences_error(self):
        assert issubclass(PreferencesError, UnitsError)
        assert issubclass(PreferencesError, ValueError)
        assert not issubclass(PreferencesError, ConversionError)

    def test_channel_errors(self):
        for error in (ChannelConnectionError("ws://h", "refused"), MetadataFetchError("http://h", "404")):
            assert isinstance(error, ChannelError)
            assert isinstance(error, UnitsError)
            assert error.url in str(error)


class TestMessages:
    def test_unknown_base_unit(self):
        error = UnknownBaseUnit("nonexistent-unit")
        assert error.base_unit == "nonexistent-unit"
        assert "nonexistent-unit" in str(error)

    def test_unknown_conversion(self):
        error = UnknownConversion("m/s", "parsecs")
        assert (error.base_unit, error.target_unit) == ("m/s", "parsecs")
        assert "m/s" in str(error) and "parsecs" in str(error)

    def test_type_mismatch_names_type(self):
        assert "str" in str(TypeMismatch("abc", "m/s", "kn"))

    def test_non_finite(self):
        error = NonFiniteResult("value * 1e308", float("inf"))
        assert error.result == float("inf")
        assert "inf" in str(error)
