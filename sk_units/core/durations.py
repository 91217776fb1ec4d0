"""Duration formatting for second-count values.

Durations are calendar-free: a day is always 86400 s and there are no
month or year fields.  Conversion catalogs select a format either by a
duration target unit (``HH:MM:SS``), by the format name (``HMS``), or by
the legacy JSON formula string (``formatDurationHMS(value)``); all three
resolve to a ``DurationFormatKind``.
"""

from __future__ import annotations

import math
from enum import Enum

from sk_units.core.errors import InvalidDuration, UnknownDurationFormat
from sk_units.utils.constants import (
    MILLIS_PER_SECOND,
    SECONDS_PER_DAY,
    SECONDS_PER_HOUR,
    SECONDS_PER_MINUTE,
)


class DurationFormatKind(Enum):
    """Named duration layouts."""

    DHMS = "DHMS"
    HMS = "HMS"
    HMS_MILLIS = "HMS+millis"
    MS = "MS"
    MS_MILLIS = "MS+millis"
    COMPACT = "compact"
    VERBOSE = "verbose"

    @property
    def target_unit(self) -> str:
        return _TARGET_UNIT_BY_KIND[self]

    @property
    def legacy_formula(self) -> str:
        return _LEGACY_FORMULA_BY_KIND[self]


_TARGET_UNIT_BY_KIND = {
    DurationFormatKind.DHMS: "DD:HH:MM:SS",
    DurationFormatKind.HMS: "HH:MM:SS",
    DurationFormatKind.HMS_MILLIS: "HH:MM:SS.mmm",
    DurationFormatKind.MS: "MM:SS",
    DurationFormatKind.MS_MILLIS: "MM:SS.mmm",
    DurationFormatKind.COMPACT: "duration-compact",
    DurationFormatKind.VERBOSE: "duration-verbose",
}

_LEGACY_FORMULA_BY_KIND = {
    DurationFormatKind.DHMS: "formatDurationDHMS(value)",
    DurationFormatKind.HMS: "formatDurationHMS(value)",
    DurationFormatKind.HMS_MILLIS: "formatDurationHMSMillis(value)",
    DurationFormatKind.MS: "formatDurationMS(value)",
    DurationFormatKind.MS_MILLIS: "formatDurationMSMillis(value)",
    DurationFormatKind.COMPACT: "formatDurationCompact(value)",
    DurationFormatKind.VERBOSE: "formatDurationVerbose(value)",
}

_LEGACY_PREFIX = "formatDuration"

_KIND_BY_NAME: dict[str, DurationFormatKind] = {}
for _kind in DurationFormatKind:
    _KIND_BY_NAME[_kind.name] = _kind
    _KIND_BY_NAME[_kind.value] = _kind
    _KIND_BY_NAME[_kind.target_unit] = _kind
    _KIND_BY_NAME[_kind.legacy_formula] = _kind
del _kind


def duration_target_units() -> list[str]:
    """Return the target-unit names that select a duration format."""
    return [kind.target_unit for kind in DurationFormatKind]


def is_duration_target(target_unit: str) -> bool:
    return target_unit in duration_target_units()


def is_duration_formula(formula: str) -> bool:
    """True for formula strings that name a duration formatter."""
    return formula.strip().startswith(_LEGACY_PREFIX)


def parse_duration_kind(name: str | DurationFormatKind) -> DurationFormatKind:
    """Resolve a format name, target unit or legacy formula to a kind.

    Raises:
        UnknownDurationFormat: If *name* is not recognised.
    """
    if isinstance(name, DurationFormatKind):
        return name
    kind = _KIND_BY_NAME.get(str(name).strip())
    if kind is None:
        raise UnknownDurationFormat(str(name))
    return kind


# --- Decomposition helpers ---


def _pad2(value: int) -> str:
    return f"{value:02d}"


def _pad3(value: int) -> str:
    return f"{value:03d}"


def _millis(total_seconds: float) -> int:
    # Half-up rounding of the fractional part.
    return min(int(math.floor((total_seconds % 1) * MILLIS_PER_SECOND + 0.5)), MILLIS_PER_SECOND - 1)


def _split_days(total_seconds: float) -> tuple[int, int, int, int]:
    days = int(total_seconds // SECONDS_PER_DAY)
    hours = int((total_seconds % SECONDS_PER_DAY) // SECONDS_PER_HOUR)
    minutes = int((total_seconds % SECONDS_PER_HOUR) // SECONDS_PER_MINUTE)
    seconds = int(total_seconds % SECONDS_PER_MINUTE)
    return days, hours, minutes, seconds


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_duration(kind: str | DurationFormatKind, total_seconds: float) -> str:
    """Render a second count in the named duration format.

    Args:
        kind: A ``DurationFormatKind`` or any name ``parse_duration_kind``
            accepts.
        total_seconds: Non-negative, possibly fractional, second count.

    Returns:
        The formatted duration, e.g. ``"01:01:01"`` for HMS and 3661 s.

    Raises:
        UnknownDurationFormat: If *kind* is not recognised.
        InvalidDuration: If *total_seconds* is negative or not finite.
    """
    kind = parse_duration_kind(kind)
    if (
        isinstance(total_seconds, bool)
        or not isinstance(total_seconds, (int, float))
        or not math.isfinite(total_seconds)
        or total_seconds < 0
    ):
        raise InvalidDuration(total_seconds)

    days, hours, minutes, seconds = _split_days(total_seconds)

    if kind is DurationFormatKind.DHMS:
        return f"{_pad2(days)}:{_pad2(hours)}:{_pad2(minutes)}:{_pad2(seconds)}"

    if kind in (DurationFormatKind.HMS, DurationFormatKind.HMS_MILLIS):
        total_hours = int(total_seconds // SECONDS_PER_HOUR)
        text = f"{_pad2(total_hours)}:{_pad2(minutes)}:{_pad2(seconds)}"
        if kind is DurationFormatKind.HMS_MILLIS:
            text += f".{_pad3(_millis(total_seconds))}"
        return text

    if kind in (DurationFormatKind.MS, DurationFormatKind.MS_MILLIS):
        total_minutes = int(total_seconds // SECONDS_PER_MINUTE)
        text = f"{_pad2(total_minutes)}:{_pad2(seconds)}"
        if kind is DurationFormatKind.MS_MILLIS:
            text += f".{_pad3(_millis(total_seconds))}"
        return text

    if kind is DurationFormatKind.COMPACT:
        if days > 0:
            return f"{days}d {hours}h"
        if hours > 0:
            return f"{hours}h {minutes}m"
        if minutes > 0:
            return f"{minutes}m {seconds}s"
        return f"{seconds}s"

    # VERBOSE: zero-valued units are left out entirely
    parts = [
        _plural(count, unit)
        for count, unit in zip((days, hours, minutes, seconds), ("day", "hour", "minute", "second"))
        if count
    ]
    return " ".join(parts)
