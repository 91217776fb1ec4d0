"""SK Units: unit conversion and display-preference resolution for SignalK telemetry."""

__app_name__ = "SK Units"
__version__ = "0.1.0"

from sk_units.core.converter import Converter  # noqa: E402
from sk_units.core.models import ConversionResult, UnitMetadata  # noqa: E402
from sk_units.core.resolution import Resolution, ResolutionSource, resolve  # noqa: E402

__all__ = [
    "Converter",
    "ConversionResult",
    "Resolution",
    "ResolutionSource",
    "UnitMetadata",
    "resolve",
]
