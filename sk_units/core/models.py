"""Data records shared by the conversion engine and the preference resolver.

All records read the camelCase JSON keys used on the wire (``baseUnit``,
``targetUnit``, ``displayFormat``...) as well as their snake_case
equivalents, and write camelCase back out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from sk_units.core.errors import PreferencesError
from sk_units.utils.constants import DEFAULT_DISPLAY_FORMAT, IDENTITY_FORMULA


def _pick(data: Mapping[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None."""
    return {k: v for k, v in data.items() if v is not None}


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise PreferencesError(f"{what} must be an object, got {type(data).__name__}")
    return data


@dataclass
class ConversionDefinition:
    """One directed conversion from a base unit to a target unit.

    ``formula`` uses the single variable ``value`` and maps base → target;
    ``inverse_formula`` maps target → base.
    """

    formula: str = IDENTITY_FORMULA
    symbol: str = ""
    inverse_formula: str | None = None
    display_format: str | None = None
    date_format: str | None = None
    use_local_time: bool | None = None
    long_name: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ConversionDefinition:
        data = _require_mapping(data, "Conversion definition")
        use_local = _pick(data, "useLocalTime", "use_local_time")
        return cls(
            formula=str(data.get("formula") or IDENTITY_FORMULA),
            symbol=str(data.get("symbol") or ""),
            inverse_formula=_pick(data, "inverseFormula", "inverse_formula"),
            display_format=_pick(data, "displayFormat", "display_format"),
            date_format=_pick(data, "dateFormat", "date_format"),
            use_local_time=None if use_local is None else bool(use_local),
            long_name=_pick(data, "longName", "long_name"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "formula": self.formula,
                "inverseFormula": self.inverse_formula,
                "symbol": self.symbol,
                "displayFormat": self.display_format,
                "dateFormat": self.date_format,
                "useLocalTime": self.use_local_time,
                "longName": self.long_name,
            }
        )


@dataclass
class UnitMetadata:
    """Base unit, category and available conversions for a path or base unit."""

    base_unit: str | None
    category: str = "custom"
    conversions: dict[str, ConversionDefinition] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> UnitMetadata:
        data = _require_mapping(data, "Unit metadata")
        raw_conversions = _require_mapping(data.get("conversions") or {}, "Conversions")
        conversions = {
            key: conv if isinstance(conv, ConversionDefinition) else ConversionDefinition.from_dict(conv)
            for key, conv in raw_conversions.items()
        }
        return cls(
            base_unit=_pick(data, "baseUnit", "base_unit"),
            category=str(data.get("category") or "custom"),
            conversions=conversions,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "baseUnit": self.base_unit,
            "category": self.category,
            "conversions": {k: v.to_dict() for k, v in self.conversions.items()},
        }


def parse_metadata_table(data: Mapping[str, Any]) -> dict[str, UnitMetadata]:
    """Build a metadata table from a snapshot keyed by path or base unit.

    Raises:
        PreferencesError: If the snapshot or any entry is not an object.
    """
    data = _require_mapping(data, "Metadata snapshot")
    return {
        key: meta if isinstance(meta, UnitMetadata) else UnitMetadata.from_dict(meta)
        for key, meta in data.items()
    }


@dataclass
class PathOverride:
    """Exact, single-path display preference. Highest precedence."""

    path: str
    target_unit: str
    display_format: str = DEFAULT_DISPLAY_FORMAT
    base_unit: str | None = None
    category: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str | None = None) -> PathOverride:
        data = _require_mapping(data, "Path override")
        path = data.get("path") or path
        target = _pick(data, "targetUnit", "target_unit")
        if not path or not target:
            raise PreferencesError("Path override requires 'path' and 'targetUnit'")
        return cls(
            path=path,
            target_unit=target,
            display_format=_pick(data, "displayFormat", "display_format") or DEFAULT_DISPLAY_FORMAT,
            base_unit=_pick(data, "baseUnit", "base_unit"),
            category=data.get("category"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "path": self.path,
                "baseUnit": self.base_unit,
                "targetUnit": self.target_unit,
                "displayFormat": self.display_format,
                "category": self.category,
            }
        )


@dataclass
class PathPattern:
    """Wildcard rule assigning a category (and optionally units) to many paths."""

    pattern: str
    category: str
    base_unit: str | None = None
    target_unit: str | None = None
    display_format: str | None = None
    priority: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PathPattern:
        data = _require_mapping(data, "Path pattern")
        if not data.get("pattern") or not data.get("category"):
            raise PreferencesError("Path pattern requires 'pattern' and 'category'")
        try:
            priority = int(data.get("priority") or 0)
        except (TypeError, ValueError) as exc:
            raise PreferencesError(f"Invalid priority for pattern {data['pattern']!r}") from exc
        return cls(
            pattern=data["pattern"],
            category=data["category"],
            base_unit=_pick(data, "baseUnit", "base_unit"),
            target_unit=_pick(data, "targetUnit", "target_unit"),
            display_format=_pick(data, "displayFormat", "display_format"),
            priority=priority,
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "pattern": self.pattern,
                "category": self.category,
                "baseUnit": self.base_unit,
                "targetUnit": self.target_unit,
                "displayFormat": self.display_format,
                "priority": self.priority,
            }
        )


@dataclass
class CategoryPreference:
    """Default display unit and format for a category."""

    target_unit: str
    display_format: str = DEFAULT_DISPLAY_FORMAT
    base_unit: str | None = None  # only for user-created categories

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CategoryPreference:
        data = _require_mapping(data, "Category preference")
        target = _pick(data, "targetUnit", "target_unit")
        if not target:
            raise PreferencesError("Category preference requires 'targetUnit'")
        return cls(
            target_unit=target,
            display_format=_pick(data, "displayFormat", "display_format") or DEFAULT_DISPLAY_FORMAT,
            base_unit=_pick(data, "baseUnit", "base_unit"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "baseUnit": self.base_unit,
                "targetUnit": self.target_unit,
                "displayFormat": self.display_format,
            }
        )


@dataclass
class ConversionResult:
    """Outcome of a single conversion.

    For date and duration conversions ``value`` holds the same formatted
    string as ``formatted``.
    """

    value: Any
    formatted: str
    symbol: str
    base_unit: str | None
    target_unit: str
    formula: str | None = None
    is_date: bool = False
    is_duration: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "value": self.value,
            "formatted": self.formatted,
            "symbol": self.symbol,
            "baseUnit": self.base_unit,
            "targetUnit": self.target_unit,
        }
        if self.formula is not None:
            data["formula"] = self.formula
        if self.is_date:
            data["isDate"] = True
        if self.is_duration:
            data["isDuration"] = True
        return data
