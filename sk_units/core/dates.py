"""Date and time formatting for timestamp base units.

Symbolic format keys (``short-date``, ``dd/mm/yyyy-24hrs``...) map to a
fixed layout.  Every key has a ``-local`` twin with the same layout,
rendered after moving the instant into the runtime's local timezone.
Month and weekday names are always English so output does not depend on
the process locale.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Any

from sk_units.core.errors import InvalidDate
from sk_units.core.models import ConversionDefinition, ConversionResult
from sk_units.utils.constants import (
    DATE_DISPATCH_MARKERS,
    DATE_TIME_BASE_MARKERS,
    EPOCH_MARKER,
    EPOCH_SECONDS_FORMAT,
    LOCAL_TIME_SUFFIX,
)

_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
_WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

# Layout fields: {b}/{B} month name short/long, {A} weekday, {d} day,
# {dd}/{mm} zero-padded day/month, {Y} year, {HH}/{hh} 24h/12h hour,
# {MM} minutes, {SS} seconds, {p} AM/PM.
_DATE_LAYOUTS = {
    "short-date": "{b} {d}, {Y}",
    "long-date": "{A}, {B} {d}, {Y}",
    "dd/mm/yyyy": "{dd}/{mm}/{Y}",
    "mm/dd/yyyy": "{mm}/{dd}/{Y}",
    "mm/yyyy": "{mm}/{Y}",
}
_TIME_LAYOUTS = {
    "24hrs": "{HH}:{MM}:{SS}",
    "am/pm": "{hh}:{MM}:{SS} {p}",
}


def _build_layouts() -> dict[str, str]:
    layouts = dict(_DATE_LAYOUTS)
    for suffix, time_layout in _TIME_LAYOUTS.items():
        layouts[f"time-{suffix}"] = time_layout
        for key, date_layout in _DATE_LAYOUTS.items():
            layouts[f"{key}-{suffix}"] = f"{date_layout} {time_layout}"
    layouts.update({f"{key}{LOCAL_TIME_SUFFIX}": layout for key, layout in list(layouts.items())})
    return layouts


DATE_LAYOUTS: dict[str, str] = _build_layouts()


def date_format_keys() -> list[str]:
    """All recognised symbolic format keys, ``epoch-seconds`` included."""
    return sorted(DATE_LAYOUTS) + [EPOCH_SECONDS_FORMAT]


def get_date_layout(format_key: str) -> str | None:
    """Return the layout for a symbolic key (case-insensitive), or None."""
    return DATE_LAYOUTS.get(format_key.lower())


def is_date_format(format_key: str) -> bool:
    key = format_key.lower()
    return key == EPOCH_SECONDS_FORMAT or key in DATE_LAYOUTS


def is_date_time_base_unit(base_unit: str) -> bool:
    """True if conversions for *base_unit* may be synthesised from a format key."""
    lower = base_unit.lower()
    return any(marker in lower for marker in DATE_TIME_BASE_MARKERS)


def is_timestamp_base_unit(base_unit: str) -> bool:
    """True if values in *base_unit* are always routed to the date formatter."""
    lower = base_unit.lower()
    return any(marker in lower for marker in DATE_DISPATCH_MARKERS)


def render(moment: datetime, layout: str) -> str:
    """Render *moment* using a layout from ``DATE_LAYOUTS``."""
    hour12 = moment.hour % 12 or 12
    month = _MONTH_NAMES[moment.month - 1]
    return layout.format(
        b=month[:3],
        B=month,
        A=_WEEKDAY_NAMES[moment.weekday()],
        d=moment.day,
        dd=f"{moment.day:02d}",
        mm=f"{moment.month:02d}",
        Y=f"{moment.year:04d}",
        HH=f"{moment.hour:02d}",
        hh=f"{hour12:02d}",
        MM=f"{moment.minute:02d}",
        SS=f"{moment.second:02d}",
        p="AM" if moment.hour < 12 else "PM",
    )


# ISO 8601 forms datetime.fromisoformat only accepts from Python 3.11 on
_BASIC_DATE_TIME = re.compile(r"^(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})")
_FRACTION = re.compile(r"([T ]\d{2}:\d{2}:\d{2})[.,](\d+)")
_COMPACT_OFFSET = re.compile(r"([T ][\d:.]+)([+-]\d{2})(\d{2})$")


def _normalise_iso(text: str) -> str:
    """Rewrite basic-format stamps, odd-length fractions and ``+hhmm`` offsets."""
    text = _BASIC_DATE_TIME.sub(r"\1-\2-\3T\4:\5:\6", text)
    text = _FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text)
    return _COMPACT_OFFSET.sub(r"\1\2:\3", text)


def parse_instant(value: Any, base_unit: str) -> datetime:
    """Turn a raw timestamp into an aware UTC datetime.

    Epoch-based base units and numeric values are read as seconds since
    the epoch; anything else must be an ISO 8601 string.  Naive ISO
    strings are taken as UTC.

    Raises:
        InvalidDate: If the value does not describe a representable instant.
    """
    if EPOCH_MARKER in base_unit.lower() or (
        isinstance(value, (int, float)) and not isinstance(value, bool)
    ):
        try:
            seconds = float(value)
            if not math.isfinite(seconds):
                raise InvalidDate(value)
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError) as exc:
            raise InvalidDate(value) from exc

    if not isinstance(value, str):
        raise InvalidDate(value)

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(_normalise_iso(text))
    except ValueError as exc:
        raise InvalidDate(value) from exc
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def format_date(
    value: Any,
    base_unit: str,
    target_unit: str,
    conversion: ConversionDefinition,
) -> ConversionResult:
    """Format a timestamp according to the conversion's date format.

    An unrecognised format key is not an error: the raw value is passed
    through with ``is_date`` set.
    """
    format_key = conversion.date_format or target_unit
    if conversion.use_local_time is not None:
        use_local_time = conversion.use_local_time
    else:
        use_local_time = target_unit.endswith(LOCAL_TIME_SUFFIX)
    formula = f"date format: {format_key}"

    def result(formatted: str, raw: Any = None) -> ConversionResult:
        return ConversionResult(
            value=formatted if raw is None else raw,
            formatted=formatted,
            symbol="",
            base_unit=base_unit,
            target_unit=target_unit,
            formula=formula,
            is_date=True,
        )

    if format_key.lower() == EPOCH_SECONDS_FORMAT:
        moment = parse_instant(value, base_unit)
        return result(str(math.floor(moment.timestamp())))

    layout = get_date_layout(format_key)
    if layout is None:
        return result(str(value), raw=value)

    moment = parse_instant(value, base_unit)
    if use_local_time:
        moment = moment.astimezone()
    return result(render(moment, layout))
