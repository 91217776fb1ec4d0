"""Conversion engine.

A ``Converter`` owns one metadata table (keyed by path or by base unit)
and the listeners interested in its replacement.  Conversions are pure
reads of the current table; replacing the table is a single reference
swap followed by listener notification.

Dispatch for one conversion:

1. find the metadata for the base unit (exact key, then any entry
   declaring that base unit),
2. find (or synthesise, for date/time and duration targets) the
   conversion definition,
3. boolean values are rendered ``"true"``/``"false"``,
4. timestamps go through the date formatter,
5. everything else is a numeric formula evaluation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping, Union

from sk_units.core.catalog import default_metadata
from sk_units.core.config import ConverterOptions, PreferenceSet
from sk_units.core.dates import format_date, is_date_time_base_unit, is_timestamp_base_unit
from sk_units.core.durations import is_duration_target, parse_duration_kind
from sk_units.core.errors import TypeMismatch, UnknownBaseUnit, UnknownConversion
from sk_units.core.formula import evaluate_formula, format_number
from sk_units.core.models import (
    ConversionDefinition,
    ConversionResult,
    UnitMetadata,
    parse_metadata_table,
)
from sk_units.remote.channel import LiveUpdateChannel, fetch_metadata
from sk_units.utils.constants import (
    BOOL_BASE_UNIT,
    BOOL_CATEGORY,
    DEFAULT_DISPLAY_FORMAT,
    DEFAULT_WS_PATH,
    IDENTITY_FORMULA,
    LOCAL_TIME_SUFFIX,
    SECONDS_BASE_UNIT,
)

if TYPE_CHECKING:
    import aiohttp

    from sk_units.core.resolution import Resolution

logger = logging.getLogger(__name__)

BatchItem = Union[tuple[str, Any], Mapping[str, Any]]


class Converter:
    """Converts raw telemetry values into display units.

    Args:
        metadata: Initial table keyed by path or base unit. Values may be
            ``UnitMetadata`` or their JSON dicts.
    """

    def __init__(self, metadata: Mapping[str, Any] | None = None):
        self._metadata: dict[str, UnitMetadata] = parse_metadata_table(metadata or {})
        self._subscribers: list[Callable[[], None]] = []
        self._channel: LiveUpdateChannel | None = None

    # --- Construction ---

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any]) -> Converter:
        """Create an offline converter from an existing snapshot."""
        return cls(metadata)

    @classmethod
    def from_defaults(cls) -> Converter:
        """Create an offline converter backed by the bundled catalog."""
        return cls(default_metadata())

    @classmethod
    async def from_server(
        cls,
        server_url: str,
        options: ConverterOptions | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> Converter:
        """Fetch the server's snapshot and optionally watch for updates.

        Raises:
            ValueError: If *server_url* is empty.
            MetadataFetchError: If the snapshot cannot be fetched.
            ChannelConnectionError: If ``auto_connect`` is set and the
                stream cannot be opened.
        """
        options = options or ConverterOptions(server_url=server_url)
        server_url = server_url or options.server_url
        if not server_url:
            raise ValueError("server_url is required")

        converter = cls(await fetch_metadata(server_url, options.api_path, session=session))
        if options.auto_connect:
            await converter.watch_preferences(server_url, options.ws_path, session=session)
        return converter

    # --- Metadata table ---

    def get_all_metadata(self) -> dict[str, UnitMetadata]:
        return dict(self._metadata)

    def get_path_metadata(self, path: str) -> UnitMetadata | None:
        return self._metadata.get(path)

    def get_conversions(self, base_unit: str) -> dict[str, ConversionDefinition] | None:
        """Conversions available for *base_unit*, or None if it is unknown."""
        unit_meta = self._find_unit_metadata(base_unit)
        return dict(unit_meta.conversions) if unit_meta is not None else None

    def replace_metadata(self, metadata: Mapping[str, Any]) -> None:
        """Swap in a new table and notify every listener."""
        self._metadata = parse_metadata_table(metadata)
        logger.info("Conversion metadata replaced (%d entries)", len(self._metadata))
        self._notify()

    def _find_unit_metadata(self, base_unit: str) -> UnitMetadata | None:
        meta = self._metadata.get(base_unit)
        if meta is not None:
            return meta
        for candidate in self._metadata.values():
            if candidate.base_unit == base_unit:
                return candidate
        return None

    # --- Listeners ---

    def on_preference_change(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register *callback* for table replacements.

        Returns:
            A function that unregisters this callback.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            for i, registered in enumerate(self._subscribers):
                if registered is callback:
                    del self._subscribers[i]
                    return

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            if not any(registered is callback for registered in self._subscribers):
                continue  # unsubscribed by an earlier listener
            try:
                callback()
            except Exception:
                logger.exception("Preference change listener %r failed", callback)

    # --- Live updates ---

    async def watch_preferences(
        self,
        server_url: str,
        ws_path: str = DEFAULT_WS_PATH,
        session: aiohttp.ClientSession | None = None,
    ) -> LiveUpdateChannel:
        """Subscribe to pushed snapshots.

        Raises:
            ChannelConnectionError: If the stream cannot be opened.
        """
        self.disconnect()
        channel = LiveUpdateChannel(self.replace_metadata, session=session)
        await channel.connect(server_url, ws_path)
        self._channel = channel
        return channel

    @property
    def channel(self) -> LiveUpdateChannel | None:
        return self._channel

    def disconnect(self) -> None:
        """Stop live updates. A no-op when not connected."""
        channel, self._channel = self._channel, None
        if channel is not None:
            channel.disconnect()

    async def aclose(self) -> None:
        channel, self._channel = self._channel, None
        if channel is not None:
            await channel.aclose()

    # --- Conversion ---

    def convert(
        self,
        value: Any,
        base_unit: str,
        target_unit: str,
        display_format: str | None = None,
    ) -> ConversionResult:
        """Convert *value* from *base_unit* to *target_unit*.

        Args:
            value: Raw value: a number, a timestamp (ISO string or epoch
                seconds) or a boolean.
            base_unit: Unit the value is expressed in.
            target_unit: Conversion key to apply.
            display_format: Overrides the conversion's own display format.

        Raises:
            UnknownBaseUnit: No metadata declares *base_unit*.
            UnknownConversion: The target is neither defined nor synthesisable.
            TypeMismatch: A numeric conversion got a non-number.
            InvalidDate: A timestamp could not be parsed.
            NonFiniteResult: The formula input or output is NaN/infinite.
        """
        unit_meta = self._find_unit_metadata(base_unit)
        if unit_meta is None:
            raise UnknownBaseUnit(base_unit)
        return self._convert_with(unit_meta, value, base_unit, target_unit, display_format)

    def convert_path(self, path: str, value: Any) -> ConversionResult | None:
        """Convert using the path's own metadata entry and its first conversion.

        Returns None when the path has no conversions.
        """
        path_meta = self._metadata.get(path)
        if path_meta is None or not path_meta.conversions:
            return None
        target_unit = next(iter(path_meta.conversions))
        return self._convert_with(path_meta, value, path_meta.base_unit or "", target_unit)

    def convert_batch(self, items: Iterable[BatchItem]) -> list[ConversionResult | None]:
        """Convert ``(path, value)`` pairs or ``{"path", "value"}`` mappings."""
        results = []
        for item in items:
            if isinstance(item, Mapping):
                path, value = item["path"], item.get("value")
            else:
                path, value = item
            results.append(self.convert_path(path, value))
        return results

    def convert_resolved(self, value: Any, resolution: Resolution) -> ConversionResult | None:
        """Convert according to a preference resolution.

        Returns None for unresolved paths.
        """
        if not resolution.is_resolved or not resolution.base_unit or not resolution.target_unit:
            return None
        return self.convert(
            value, resolution.base_unit, resolution.target_unit, resolution.display_format
        )

    def convert_with_preferences(
        self, path: str, value: Any, preferences: PreferenceSet
    ) -> ConversionResult | None:
        """Resolve *path* with *preferences* (using this table as native metadata) and convert."""
        resolution = preferences.resolve(path, self.get_path_metadata(path))
        return self.convert_resolved(value, resolution)

    def _lookup_conversion(
        self, unit_meta: UnitMetadata, base_unit: str, target_unit: str
    ) -> ConversionDefinition | None:
        conversion = unit_meta.conversions.get(target_unit)
        if conversion is not None:
            return conversion

        wanted = target_unit.lower()
        for candidate in unit_meta.conversions.values():
            if candidate.long_name and candidate.long_name.lower() == wanted:
                return candidate

        if is_date_time_base_unit(base_unit):
            return ConversionDefinition(
                formula=IDENTITY_FORMULA,
                inverse_formula=IDENTITY_FORMULA,
                date_format=target_unit,
                use_local_time=target_unit.endswith(LOCAL_TIME_SUFFIX),
            )
        if base_unit == SECONDS_BASE_UNIT and is_duration_target(target_unit):
            return ConversionDefinition(formula=parse_duration_kind(target_unit).legacy_formula)
        return None

    def _convert_with(
        self,
        unit_meta: UnitMetadata,
        value: Any,
        base_unit: str,
        target_unit: str,
        display_format: str | None = None,
    ) -> ConversionResult:
        conversion = self._lookup_conversion(unit_meta, base_unit, target_unit)

        if base_unit == BOOL_BASE_UNIT or unit_meta.category == BOOL_CATEGORY:
            text = "true" if value else "false"
            return ConversionResult(
                value=text,
                formatted=text,
                symbol="",
                base_unit=base_unit,
                target_unit=target_unit,
                formula="boolean",
            )

        if conversion is None:
            raise UnknownConversion(base_unit, target_unit)

        if conversion.date_format or is_timestamp_base_unit(base_unit):
            return format_date(value, base_unit, target_unit, conversion)

        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeMismatch(value, base_unit, target_unit)

        converted = evaluate_formula(conversion.formula, value)
        symbol = conversion.symbol

        if isinstance(converted, str):
            formatted = f"{converted} {symbol}".strip() if symbol else converted
            return ConversionResult(
                value=formatted,
                formatted=formatted,
                symbol=symbol,
                base_unit=unit_meta.base_unit or base_unit,
                target_unit=target_unit,
                formula=conversion.formula,
                is_duration=True,
            )

        fmt = display_format or conversion.display_format or DEFAULT_DISPLAY_FORMAT
        return ConversionResult(
            value=converted,
            formatted=f"{format_number(converted, fmt)} {symbol}".strip(),
            symbol=symbol,
            base_unit=unit_meta.base_unit or base_unit,
            target_unit=target_unit,
            formula=conversion.formula,
        )
