"""Utility modules for SK Units."""

from sk_units.utils.constants import DEFAULT_API_PATH, DEFAULT_DISPLAY_FORMAT, DEFAULT_WS_PATH
from sk_units.utils.units import convert_quantity, get_unit_registry

__all__ = [
    "DEFAULT_API_PATH",
    "DEFAULT_DISPLAY_FORMAT",
    "DEFAULT_WS_PATH",
    "convert_quantity",
    "get_unit_registry",
]
