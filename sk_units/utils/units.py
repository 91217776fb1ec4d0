"""Unit registry helpers for SK Units.

Built on pint.  Used to suggest conversion formulas for the catalog
(linear or affine, found by probing the conversion at 0 and 1) and to
list which display units are compatible with a base unit.  Formulas
produced here are plain strings, evaluated later like any other catalog
formula.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

import pint

from sk_units.core.errors import UnknownBaseUnit, UnknownConversion

# Module-level unit registry (singleton)
_ureg = pint.UnitRegistry()

Q_ = _ureg.Quantity


def get_unit_registry() -> pint.UnitRegistry:
    """Return the shared pint UnitRegistry instance."""
    return _ureg


# SignalK / display unit names → pint unit expressions
_PINT_NAMES: dict[str, str] = {
    # Speed
    "m/s": "m/s",
    "kn": "knot",
    "knots": "knot",
    "km/h": "km/h",
    "mph": "mile/hour",
    "ft/s": "foot/s",
    # Temperature
    "K": "kelvin",
    "kelvin": "kelvin",
    "celsius": "degC",
    "°C": "degC",
    "fahrenheit": "degF",
    "°F": "degF",
    # Pressure
    "Pa": "Pa",
    "hPa": "hPa",
    "kPa": "kPa",
    "mbar": "millibar",
    "bar": "bar",
    "psi": "psi",
    "inHg": "inch_Hg",
    "mmHg": "millimeter_Hg",
    "atm": "atm",
    "torr": "torr",
    # Length
    "m": "m",
    "km": "km",
    "nm": "nautical_mile",
    "nmi": "nautical_mile",
    "mi": "mile",
    "ft": "foot",
    "yd": "yard",
    "in": "inch",
    "cm": "cm",
    "mm": "mm",
    "fathom": "fathom",
    # Angle
    "rad": "radian",
    "deg": "degree",
    "°": "degree",
    "grad": "gradian",
    # Volume
    "m3": "m**3",
    "m³": "m**3",
    "L": "liter",
    "gal": "gallon",
    "gal(UK)": "imperial_gallon",
    "qt": "quart",
    "pt": "pint",
    # Electrical
    "V": "volt",
    "mV": "millivolt",
    "kV": "kilovolt",
    "A": "ampere",
    "mA": "milliampere",
    "kA": "kiloampere",
    "W": "watt",
    "kW": "kilowatt",
    "MW": "megawatt",
    "hp": "horsepower",
    # Charge
    "C": "coulomb",
    "Ah": "ampere_hour",
    "mAh": "milliampere_hour",
    # Frequency
    "Hz": "hertz",
    "kHz": "kilohertz",
    "MHz": "megahertz",
    "GHz": "gigahertz",
    # Angular velocity
    "rad/s": "radian/s",
    "deg/s": "degree/s",
    "rpm": "revolution/minute",
    # Time
    "s": "second",
    "ms": "millisecond",
    "min": "minute",
    "h": "hour",
    "d": "day",
    "week": "week",
    # Volume rate
    "m3/s": "m**3/s",
    "m³/s": "m**3/s",
    "L/s": "liter/s",
    "L/min": "liter/minute",
    "L/h": "liter/hour",
    "gal/min": "gallon/minute",
    "gal/h": "gallon/hour",
}

# Display units offered per quantity kind (first entry is the SI base)
_UNITS_BY_KIND: dict[str, list[str]] = {
    "speed": ["m/s", "kn", "km/h", "mph", "ft/s"],
    "temperature": ["K", "celsius", "fahrenheit"],
    "pressure": ["Pa", "hPa", "kPa", "mbar", "bar", "psi", "inHg", "mmHg", "atm", "torr"],
    "length": ["m", "km", "nm", "mi", "ft", "yd", "fathom", "cm", "mm", "in"],
    "angle": ["rad", "deg", "grad"],
    "angular_velocity": ["rad/s", "deg/s", "rpm"],
    "volume": ["m3", "L", "gal", "gal(UK)", "qt", "pt"],
    "time": ["s", "ms", "min", "h", "d", "week"],
    "current": ["A", "mA", "kA"],
    "potential": ["V", "mV", "kV"],
    "power": ["W", "kW", "MW", "hp"],
    "charge": ["C", "Ah", "mAh"],
    "frequency": ["Hz", "kHz", "MHz", "GHz"],
    "volumetric_flow": ["m3/s", "L/s", "L/min", "L/h", "gal/min", "gal/h"],
}

_SYMBOLS: dict[str, str] = {
    "knots": "kn",
    "celsius": "°C",
    "fahrenheit": "°F",
    "kelvin": "K",
    "nmi": "nm",
    "deg": "°",
    "m3": "m³",
    "m3/s": "m³/s",
}

_OFFSET_TOLERANCE = 1e-4


@dataclass
class TargetUnitOption:
    """A display unit reachable from some base unit."""

    unit: str
    pint_unit: str
    symbol: str
    factor: float


@dataclass
class GeneratedFormula:
    """Formula pair suggested for a base → target conversion."""

    formula: str
    inverse_formula: str
    symbol: str
    factor: float
    is_offset: bool


def pint_unit_name(unit: str) -> str | None:
    """Return the pint expression for a display unit name, or None."""
    return _PINT_NAMES.get(unit)


def symbol_for_unit(unit: str) -> str:
    return _SYMBOLS.get(unit, unit)


def get_quantity_kind(unit: str) -> str | None:
    """Return the quantity kind a unit belongs to (``"speed"``...), or None."""
    for kind, units in _UNITS_BY_KIND.items():
        if unit in units:
            return kind
    return None


@lru_cache(maxsize=256)
def convert_quantity(value: float, from_unit: str, to_unit: str) -> float:
    """Convert between two display unit names using pint.

    Raises:
        UnknownBaseUnit: If either unit has no pint equivalent.
        UnknownConversion: If the units are dimensionally incompatible.
    """
    source = pint_unit_name(from_unit)
    target = pint_unit_name(to_unit)
    if source is None:
        raise UnknownBaseUnit(from_unit)
    if target is None:
        raise UnknownConversion(from_unit, to_unit)
    try:
        return float(Q_(value, source).to(target).magnitude)
    except pint.DimensionalityError as exc:
        raise UnknownConversion(from_unit, to_unit) from exc


def _number(x: float) -> str:
    return format(x, ".12g")


def generate_formula(base_unit: str, target_unit: str) -> GeneratedFormula:
    """Suggest ``formula``/``inverse_formula`` strings for a conversion.

    Conversions with a non-zero offset (temperatures) produce
    ``value * slope + offset``; all others ``value * factor``.

    Raises:
        UnknownBaseUnit: If *base_unit* has no pint equivalent.
        UnknownConversion: If *target_unit* is unknown or incompatible.
    """
    at_zero = convert_quantity(0.0, base_unit, target_unit)
    at_one = convert_quantity(1.0, base_unit, target_unit)
    slope = at_one - at_zero
    symbol = symbol_for_unit(target_unit)

    if abs(at_zero) > _OFFSET_TOLERANCE:
        sign = "+" if at_zero >= 0 else "-"
        inverse_sign = "-" if at_zero >= 0 else "+"
        offset = _number(abs(at_zero))
        return GeneratedFormula(
            formula=f"value * {_number(slope)} {sign} {offset}",
            inverse_formula=f"(value {inverse_sign} {offset}) / {_number(slope)}",
            symbol=symbol,
            factor=slope,
            is_offset=True,
        )

    return GeneratedFormula(
        formula=f"value * {_number(at_one)}",
        inverse_formula=f"value / {_number(at_one)}",
        symbol=symbol,
        factor=at_one,
        is_offset=False,
    )


def available_target_units(base_unit: str) -> list[TargetUnitOption]:
    """List display units of the same kind that pint can convert *base_unit* to."""
    kind = get_quantity_kind(base_unit)
    if kind is None:
        return []

    options = []
    for unit in _UNITS_BY_KIND[kind]:
        try:
            factor = convert_quantity(1.0, base_unit, unit)
        except UnknownConversion:
            continue
        options.append(
            TargetUnitOption(
                unit=unit,
                pint_unit=_PINT_NAMES[unit],
                symbol=symbol_for_unit(unit),
                factor=factor,
            )
        )
    return options
