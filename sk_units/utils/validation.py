"""Catalog checking for SK Units metadata tables."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from sk_units.core.dates import is_date_format, is_date_time_base_unit
from sk_units.core.durations import is_duration_formula
from sk_units.core.errors import ConversionError
from sk_units.core.formula import evaluate_formula, parse_formula
from sk_units.core.models import UnitMetadata

# Representative inputs used for the inverse round-trip check
_SAMPLE_VALUES = (0.0, 1.0, 12.5, 273.15, 101325.0)
_REL_TOLERANCE = 1e-9
_ABS_TOLERANCE = 1e-9


class Severity(Enum):
    """Severity level for validation messages."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class ValidationMessage:
    """A single validation finding."""

    severity: Severity
    parameter: str
    message: str
    value: Any = None


@dataclass
class ValidationResult:
    """Aggregated validation result."""

    messages: list[ValidationMessage] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not any(m.severity == Severity.ERROR for m in self.messages)

    @property
    def has_warnings(self) -> bool:
        return any(m.severity == Severity.WARNING for m in self.messages)

    @property
    def errors(self) -> list[ValidationMessage]:
        return [m for m in self.messages if m.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationMessage]:
        return [m for m in self.messages if m.severity == Severity.WARNING]

    def add(self, severity: Severity, parameter: str, message: str, **kwargs: Any) -> None:
        self.messages.append(
            ValidationMessage(severity=severity, parameter=parameter, message=message, **kwargs)
        )

    def error(self, parameter: str, message: str, **kwargs: Any) -> None:
        self.add(Severity.ERROR, parameter, message, **kwargs)

    def warning(self, parameter: str, message: str, **kwargs: Any) -> None:
        self.add(Severity.WARNING, parameter, message, **kwargs)

    def info(self, parameter: str, message: str, **kwargs: Any) -> None:
        self.add(Severity.INFO, parameter, message, **kwargs)

    def merge(self, other: ValidationResult) -> None:
        self.messages.extend(other.messages)


def check_round_trip(formula: str, inverse_formula: str, value: float) -> float | None:
    """Return ``inverse(formula(value))``, or None if it stays within tolerance of *value*."""
    forward = evaluate_formula(formula, value)
    back = evaluate_formula(inverse_formula, forward)
    if math.isclose(back, value, rel_tol=_REL_TOLERANCE, abs_tol=_ABS_TOLERANCE):
        return None
    return back


def validate_unit(key: str, meta: UnitMetadata) -> ValidationResult:
    """Check every conversion of one metadata entry."""
    result = ValidationResult()

    if not meta.base_unit:
        result.error(key, "Entry has no base unit")
        return result
    if not meta.conversions:
        result.warning(key, f"No conversions defined for {meta.base_unit}")

    date_unit = is_date_time_base_unit(meta.base_unit)

    for target, conv in meta.conversions.items():
        name = f"{key} -> {target}"

        if conv.date_format or date_unit:
            fmt = conv.date_format or target
            if not is_date_format(fmt):
                result.warning(name, f"Unknown date format '{fmt}'; values pass through unformatted")
            continue

        if is_duration_formula(conv.formula):
            continue

        try:
            parse_formula(conv.formula)
        except ConversionError as exc:
            result.error(name, str(exc), value=conv.formula)
            continue

        if not conv.symbol and target != meta.base_unit:
            result.info(name, "Conversion has no display symbol")

        if not conv.inverse_formula:
            result.warning(name, "No inverse formula")
            continue
        try:
            parse_formula(conv.inverse_formula)
        except ConversionError as exc:
            result.error(name, f"Inverse: {exc}", value=conv.inverse_formula)
            continue

        for sample in _SAMPLE_VALUES:
            try:
                back = check_round_trip(conv.formula, conv.inverse_formula, sample)
            except ConversionError as exc:
                result.warning(name, f"Round trip at {sample} failed: {exc}", value=sample)
                break
            if back is not None:
                result.error(
                    name,
                    f"Inverse formula does not undo formula: {sample} -> {back}",
                    value=sample,
                )
                break

    return result


def validate_metadata(table: Mapping[str, UnitMetadata]) -> ValidationResult:
    """Run validation checks on a whole metadata table.

    Checks that formulas parse, that inverse formulas undo their formula at
    representative values, and that date conversions use known format keys.
    """
    result = ValidationResult()
    for key, meta in table.items():
        result.merge(validate_unit(key, meta))
    return result
