"""Exception hierarchy for SK Units.

Every error raised by the conversion engine, the preference resolver and
the live update channel derives from ``UnitsError``.  Conversion failures
additionally derive from the closest built-in exception so callers can
catch them either way.
"""

from __future__ import annotations

from typing import Any


class UnitsError(Exception):
    """Base class for all SK Units errors."""


class ConversionError(UnitsError):
    """Raised when a value cannot be converted or formatted."""


class UnknownBaseUnit(ConversionError, LookupError):
    """No metadata entry declares the requested base unit."""

    def __init__(self, base_unit: str):
        self.base_unit = base_unit
        super().__init__(f"No conversion metadata found for base unit: {base_unit}")


class UnknownConversion(ConversionError, LookupError):
    """The base unit is known but the target unit is not reachable."""

    def __init__(self, base_unit: str, target_unit: str):
        self.base_unit = base_unit
        self.target_unit = target_unit
        super().__init__(f"No conversion found from {base_unit} to {target_unit}")


class TypeMismatch(ConversionError, TypeError):
    """A numeric conversion was requested for a non-numeric value."""

    def __init__(self, value: Any, base_unit: str, target_unit: str):
        self.value = value
        self.base_unit = base_unit
        self.target_unit = target_unit
        super().__init__(
            f"Expected number value for {base_unit} -> {target_unit}, "
            f"got {type(value).__name__}"
        )


class InvalidDate(ConversionError, ValueError):
    """A date value could not be turned into a representable instant."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Invalid date value: {value!r}")


class UnknownDurationFormat(ConversionError, LookupError):
    """Duration formatting was requested with an unrecognised format name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown duration format: {name}")


class InvalidDuration(ConversionError, ValueError):
    """A duration was negative or not finite."""

    def __init__(self, seconds: Any):
        self.seconds = seconds
        super().__init__(f"Invalid duration value: {seconds!r}")


class NonFiniteResult(ConversionError, ValueError):
    """A formula was fed, or produced, NaN or infinity."""

    def __init__(self, formula: str, result: Any):
        self.formula = formula
        self.result = result
        super().__init__(f"Formula {formula!r} produced invalid result: {result}")


class FormulaError(ConversionError, ValueError):
    """A formula string is malformed or uses something outside the whitelist."""

    def __init__(self, formula: str, reason: str):
        self.formula = formula
        self.reason = reason
        super().__init__(f"Failed to evaluate formula {formula!r}: {reason}")


class PreferencesError(UnitsError, ValueError):
    """A preference or metadata document is malformed."""


class ChannelError(UnitsError):
    """Base class for live update channel failures."""


class ChannelConnectionError(ChannelError):
    """The conversions stream could not be opened."""

    def __init__(self, url: str, reason: Any):
        self.url = url
        super().__init__(f"Cannot connect to conversions stream {url}: {reason}")


class MetadataFetchError(ChannelError):
    """The conversions metadata could not be fetched from the server."""

    def __init__(self, url: str, reason: Any):
        self.url = url
        super().__init__(f"Failed to fetch conversions metadata from {url}: {reason}")
