"""Path → display unit resolution.

Decides, for a single telemetry path, which base unit, category, target
unit and display format apply.  Four tiers are consulted and the first
one that applies wins:

1. an exact path override,
2. the highest-priority matching path pattern,
3. metadata the data source declares for the path (auto / native-only),
4. nothing (unresolved).

The tier that decided is reported as ``Resolution.source`` and drives the
status labels shown by consumers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping

from sk_units.core.catalog import category_to_base_unit, get_category_for_base_unit
from sk_units.core.models import CategoryPreference, PathOverride, PathPattern, UnitMetadata
from sk_units.core.patterns import find_matching_pattern
from sk_units.utils.constants import DEFAULT_DISPLAY_FORMAT

logger = logging.getLogger(__name__)


class ResolutionSource(Enum):
    """Which tier produced a resolution."""

    OVERRIDE = "override"
    PATTERN = "pattern"
    AUTO = "auto"
    NATIVE_ONLY = "native-only"
    NONE = "none"


_STATUS_LABELS = {
    ResolutionSource.OVERRIDE: "Path Override",
    ResolutionSource.AUTO: "SignalK Auto",
    ResolutionSource.NATIVE_ONLY: "SignalK Only",
    ResolutionSource.NONE: "None",
}


@dataclass
class Resolution:
    """Outcome of resolving one path."""

    path: str
    source: ResolutionSource
    base_unit: str | None = None
    category: str | None = None
    target_unit: str | None = None
    display_format: str = DEFAULT_DISPLAY_FORMAT
    pattern: PathPattern | None = None

    @property
    def status(self) -> str:
        """Human-readable label for the deciding tier."""
        if self.source is ResolutionSource.PATTERN and self.pattern is not None:
            return f"Pattern: {self.pattern.pattern}"
        return _STATUS_LABELS.get(self.source, "Pattern")

    @property
    def is_resolved(self) -> bool:
        return self.source is not ResolutionSource.NONE

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "baseUnit": self.base_unit,
            "category": self.category,
            "targetUnit": self.target_unit,
            "displayFormat": self.display_format,
            "source": self.source.value,
            "status": self.status,
        }


# --- Helpers ---


def _native_fields(native: Any) -> tuple[str | None, str | None]:
    """Extract (base_unit, category) from whatever the source declared.

    Accepts a bare base-unit string, a ``UnitMetadata``, or a SignalK-style
    meta mapping (``units`` or ``baseUnit``, optional ``category``).
    """
    if native is None:
        return None, None
    if isinstance(native, str):
        return native or None, None
    if isinstance(native, UnitMetadata):
        return native.base_unit, native.category
    if isinstance(native, Mapping):
        base = native.get("baseUnit") or native.get("base_unit") or native.get("units")
        return base, native.get("category")
    return None, None


def _category_map(
    categories: Mapping[str, CategoryPreference],
    category_base_units: Mapping[str, str] | None,
) -> dict[str, str]:
    merged = dict(category_to_base_unit() if category_base_units is None else category_base_units)
    # User-created categories carry their own base unit.
    for name, pref in categories.items():
        if pref.base_unit and name not in merged:
            merged[name] = pref.base_unit
    return merged


def _find_override(
    path: str, overrides: Mapping[str, PathOverride] | Iterable[PathOverride] | None
) -> PathOverride | None:
    if not overrides:
        return None
    if isinstance(overrides, Mapping):
        return overrides.get(path)
    for override in overrides:
        if override.path == path:
            return override
    return None


# --- Resolution ---


def resolve(
    path: str,
    overrides: Mapping[str, PathOverride] | Iterable[PathOverride] | None,
    patterns: Iterable[PathPattern] | None,
    categories: Mapping[str, CategoryPreference] | None,
    native_metadata: Any = None,
    category_base_units: Mapping[str, str] | None = None,
) -> Resolution:
    """Resolve the display unit for *path*.

    Args:
        path: Dot-delimited telemetry path.
        overrides: Path overrides, keyed by path or as a list.
        patterns: Wildcard pattern rules in their configured order.
        categories: Category defaults keyed by category name.
        native_metadata: What the data source declares for this path, if
            anything: a base-unit string, ``UnitMetadata`` or meta mapping.
        category_base_units: Category → base unit map. Defaults to the
            bundled catalog's map.

    Returns:
        A ``Resolution``. Its ``source`` is ``ResolutionSource.NONE`` when
        no tier applies.
    """
    categories = categories or {}
    category_map = _category_map(categories, category_base_units)
    native_base, native_category = _native_fields(native_metadata)

    override = _find_override(path, overrides)
    if override is not None:
        base_unit = override.base_unit or native_base
        category = override.category or native_category or get_category_for_base_unit(
            base_unit, path, category_map
        )
        logger.debug("%s resolved by path override -> %s", path, override.target_unit)
        return Resolution(
            path=path,
            source=ResolutionSource.OVERRIDE,
            base_unit=base_unit,
            category=category,
            target_unit=override.target_unit,
            display_format=override.display_format or DEFAULT_DISPLAY_FORMAT,
        )

    rule = find_matching_pattern(path, patterns)
    if rule is not None:
        pref = categories.get(rule.category)
        base_unit = (
            rule.base_unit
            or category_map.get(rule.category)
            or (pref.base_unit if pref else None)
            or native_base
        )
        target_unit = rule.target_unit or (pref.target_unit if pref else None) or base_unit
        display_format = (
            rule.display_format or (pref.display_format if pref else None) or DEFAULT_DISPLAY_FORMAT
        )
        return Resolution(
            path=path,
            source=ResolutionSource.PATTERN,
            base_unit=base_unit,
            category=rule.category,
            target_unit=target_unit,
            display_format=display_format,
            pattern=rule,
        )

    if native_base:
        if native_category and native_category in categories:
            category = native_category
        else:
            category = get_category_for_base_unit(native_base, path, category_map) or native_category
        pref = categories.get(category) if category else None
        if pref is not None and pref.target_unit:
            logger.debug("%s auto-assigned to category %s", path, category)
            return Resolution(
                path=path,
                source=ResolutionSource.AUTO,
                base_unit=native_base,
                category=category,
                target_unit=pref.target_unit,
                display_format=pref.display_format or DEFAULT_DISPLAY_FORMAT,
            )
        return Resolution(
            path=path,
            source=ResolutionSource.NATIVE_ONLY,
            base_unit=native_base,
            category=category,
            target_unit=native_base,
        )

    return Resolution(path=path, source=ResolutionSource.NONE)


def resolve_all(
    paths: Iterable[str],
    overrides: Mapping[str, PathOverride] | Iterable[PathOverride] | None,
    patterns: Iterable[PathPattern] | None,
    categories: Mapping[str, CategoryPreference] | None,
    native_metadata: Mapping[str, Any] | None = None,
    category_base_units: Mapping[str, str] | None = None,
) -> dict[str, Resolution]:
    """Resolve many paths at once.

    *native_metadata* is keyed by path here.
    """
    patterns = list(patterns or [])
    if overrides is not None and not isinstance(overrides, Mapping):
        overrides = list(overrides)
    native_metadata = native_metadata or {}
    return {
        path: resolve(
            path,
            overrides,
            patterns,
            categories,
            native_metadata.get(path),
            category_base_units,
        )
        for path in paths
    }
