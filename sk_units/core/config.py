"""Preference state and file I/O for SK Units.

Handles loading and saving display preferences (category defaults, path
overrides, path patterns) and metadata snapshots as JSON.  Files use the
camelCase keys of the server's wire format.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping

from sk_units.core.catalog import category_to_base_unit
from sk_units.core.errors import PreferencesError
from sk_units.core.models import (
    CategoryPreference,
    PathOverride,
    PathPattern,
    UnitMetadata,
    parse_metadata_table,
)
from sk_units.core.resolution import Resolution, resolve, resolve_all
from sk_units.utils.constants import DEFAULT_API_PATH, DEFAULT_WS_PATH

logger = logging.getLogger(__name__)


# --- Preference metadata ---


@dataclass
class PreferencesMeta:
    """Descriptive fields stored alongside a preference set."""

    name: str = "Untitled"
    description: str = ""
    modified: str = ""

    def touch(self) -> None:
        """Update the modified timestamp."""
        self.modified = datetime.now(timezone.utc).isoformat()


@dataclass
class PreferenceSet:
    """Everything preference resolution needs for a vessel.

    ``category_base_units`` extends (and may redefine) the bundled
    category → base unit map.
    """

    meta: PreferencesMeta = field(default_factory=PreferencesMeta)
    categories: dict[str, CategoryPreference] = field(default_factory=dict)
    path_overrides: dict[str, PathOverride] = field(default_factory=dict)
    path_patterns: list[PathPattern] = field(default_factory=list)
    category_base_units: dict[str, str] = field(default_factory=dict)

    def _category_map(self) -> dict[str, str] | None:
        if not self.category_base_units:
            return None
        return {**category_to_base_unit(), **self.category_base_units}

    def resolve(self, path: str, native_metadata: Any = None) -> Resolution:
        """Resolve *path* against this preference set."""
        return resolve(
            path,
            self.path_overrides,
            self.path_patterns,
            self.categories,
            native_metadata,
            self._category_map(),
        )

    def resolve_all(
        self, paths: Iterable[str], native_metadata: Mapping[str, Any] | None = None
    ) -> dict[str, Resolution]:
        return resolve_all(
            paths,
            self.path_overrides,
            self.path_patterns,
            self.categories,
            native_metadata,
            self._category_map(),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PreferenceSet:
        """Build a preference set from its JSON document.

        Raises:
            PreferencesError: If any section is malformed.
        """
        if not isinstance(data, Mapping):
            raise PreferencesError("Preferences document must be an object")

        meta_data = data.get("meta") or {}
        try:
            meta = PreferencesMeta(**meta_data)
        except TypeError as exc:
            raise PreferencesError(f"Invalid preferences meta: {exc}") from exc

        categories = {
            name: CategoryPreference.from_dict(pref)
            for name, pref in (data.get("categories") or {}).items()
        }

        raw_overrides = data.get("pathOverrides") or data.get("path_overrides") or {}
        if isinstance(raw_overrides, Mapping):
            overrides = {p: PathOverride.from_dict(o, path=p) for p, o in raw_overrides.items()}
        else:
            overrides = {}
            for item in raw_overrides:
                override = PathOverride.from_dict(item)
                overrides[override.path] = override

        patterns = [
            PathPattern.from_dict(p)
            for p in (data.get("pathPatterns") or data.get("path_patterns") or [])
        ]
        base_units = dict(data.get("categoryToBaseUnit") or data.get("category_base_units") or {})

        return cls(
            meta=meta,
            categories=categories,
            path_overrides=overrides,
            path_patterns=patterns,
            category_base_units=base_units,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "meta": {
                "name": self.meta.name,
                "description": self.meta.description,
                "modified": self.meta.modified,
            },
            "categories": {name: pref.to_dict() for name, pref in self.categories.items()},
            "pathOverrides": {p: o.to_dict() for p, o in self.path_overrides.items()},
            "pathPatterns": [p.to_dict() for p in self.path_patterns],
        }
        if self.category_base_units:
            data["categoryToBaseUnit"] = dict(self.category_base_units)
        return data


@dataclass
class ConverterOptions:
    """How a converter reaches its server."""

    server_url: str = ""
    api_path: str = DEFAULT_API_PATH
    ws_path: str = DEFAULT_WS_PATH
    auto_connect: bool = False


# --- JSON I/O ---


def _read_json(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise PreferencesError(f"{path} is not valid JSON: {exc}") from exc


def save_preferences(prefs: PreferenceSet, path: str | Path) -> None:
    """Save a preference set to a JSON file."""
    path = Path(path)
    prefs.meta.touch()
    with open(path, "w", encoding="utf-8") as f:
        json.dump(prefs.to_dict(), f, indent=2, ensure_ascii=False)
    logger.info("Saved preferences to %s", path)


def load_preferences(path: str | Path) -> PreferenceSet:
    """Load a preference set from a JSON file.

    Raises:
        PreferencesError: If the file is not valid JSON or not a
            preferences document.
    """
    path = Path(path)
    prefs = PreferenceSet.from_dict(_read_json(path))
    logger.info(
        "Loaded preferences from %s (%d categories, %d overrides, %d patterns)",
        path,
        len(prefs.categories),
        len(prefs.path_overrides),
        len(prefs.path_patterns),
    )
    return prefs


def save_metadata(metadata: Mapping[str, UnitMetadata], path: str | Path) -> None:
    """Save a metadata snapshot (keyed by path or base unit) to JSON."""
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump({k: v.to_dict() for k, v in metadata.items()}, f, indent=2, ensure_ascii=False)
    logger.info("Saved %d metadata entries to %s", len(metadata), path)


def load_metadata(path: str | Path) -> dict[str, UnitMetadata]:
    """Load a metadata snapshot from JSON.

    Raises:
        PreferencesError: If the file is not a metadata snapshot.
    """
    path = Path(path)
    table = parse_metadata_table(_read_json(path))
    logger.info("Loaded %d metadata entries from %s", len(table), path)
    return table
