"""Bundled default conversion catalog.

Loads the base-unit keyed conversion catalog and the category → base-unit
map from the JSON data file shipped with the package.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

from sk_units.core.errors import UnknownBaseUnit
from sk_units.core.models import UnitMetadata

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).resolve().parent.parent / "data"
_CATALOG_PATH = _DATA_DIR / "default_units.json"


@lru_cache(maxsize=1)
def _load_catalog() -> dict[str, Any]:
    if not _CATALOG_PATH.exists():
        logger.warning("Default unit catalog not found at %s", _CATALOG_PATH)
        return {}
    with open(_CATALOG_PATH, encoding="utf-8") as f:
        data = json.load(f)
    logger.info("Loaded %d base units from %s", len(data.get("units", {})), _CATALOG_PATH)
    return data


def list_base_units() -> list[str]:
    """Return all base units in the catalog."""
    return list(_load_catalog().get("units", {}).keys())


def list_categories() -> list[str]:
    """Return all categories in the category → base-unit map."""
    return list(category_to_base_unit().keys())


def category_to_base_unit() -> dict[str, str]:
    """Return a copy of the category → base-unit map."""
    return dict(_load_catalog().get("categoryToBaseUnit", {}))


def get_base_unit_info(base_unit: str) -> UnitMetadata:
    """Return the catalog entry for a base unit.

    Raises:
        UnknownBaseUnit: If the base unit is not in the catalog.
    """
    units = _load_catalog().get("units", {})
    if base_unit not in units:
        raise UnknownBaseUnit(base_unit)
    return UnitMetadata.from_dict({"baseUnit": base_unit, **units[base_unit]})


def default_metadata() -> dict[str, UnitMetadata]:
    """Build a fresh metadata table keyed by base unit."""
    return {base_unit: get_base_unit_info(base_unit) for base_unit in list_base_units()}


def get_category_for_base_unit(
    base_unit: str | None,
    path: str | None = None,
    category_base_units: Mapping[str, str] | None = None,
) -> str | None:
    """Infer the category of a base unit.

    When several categories share the base unit (``m`` is distance, depth
    and length), the one whose name appears in the last segment of *path*
    wins; otherwise the first category in map order.
    """
    if not base_unit:
        return None
    if category_base_units is None:
        category_base_units = category_to_base_unit()

    candidates = [cat for cat, unit in category_base_units.items() if unit == base_unit]
    if not candidates:
        return None
    if len(candidates) == 1 or not path:
        return candidates[0]

    last_segment = path.rsplit(".", 1)[-1].lower()
    for category in candidates:
        if category.lower() in last_segment:
            logger.debug("Category for %s (%s) chosen from path: %s", path, base_unit, category)
            return category
    return candidates[0]
