"""Live update channel for conversion metadata.

The server pushes JSON messages of the form
``{"type": "full" | "update", "conversions": {...}}`` over a WebSocket.
Each valid message replaces the whole metadata table; anything else is
logged and dropped so a bad push never disturbs ongoing conversions.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import re
from typing import Any, Callable

import aiohttp

from sk_units.core.errors import ChannelConnectionError, MetadataFetchError, PreferencesError
from sk_units.core.models import UnitMetadata, parse_metadata_table
from sk_units.utils.constants import DEFAULT_API_PATH, DEFAULT_WS_PATH

logger = logging.getLogger(__name__)

SnapshotHandler = Callable[[dict[str, UnitMetadata]], None]

_SNAPSHOT_TYPES = ("full", "update")


def ws_url(server_url: str, ws_path: str = DEFAULT_WS_PATH) -> str:
    """Build the stream URL (``http`` → ``ws``, ``https`` → ``wss``)."""
    return re.sub(r"^http", "ws", server_url.rstrip("/")) + ws_path


def parse_message(raw: str | bytes) -> dict[str, UnitMetadata] | None:
    """Decode one stream message.

    Returns:
        The new metadata table, or None for messages that carry no snapshot.

    Raises:
        ValueError: If the message is not valid JSON or the snapshot is
            malformed (``PreferencesError`` is a ``ValueError``).
    """
    message = json.loads(raw)
    if not isinstance(message, dict):
        raise PreferencesError("Conversions message must be a JSON object")
    if message.get("type") not in _SNAPSHOT_TYPES or message.get("conversions") is None:
        return None
    return parse_metadata_table(message["conversions"])


async def fetch_metadata(
    server_url: str,
    api_path: str = DEFAULT_API_PATH,
    session: aiohttp.ClientSession | None = None,
) -> dict[str, UnitMetadata]:
    """Fetch the current metadata snapshot over HTTP.

    Raises:
        MetadataFetchError: On connection failure, a non-2xx response or a
            body that is not a metadata snapshot.
    """
    url = server_url.rstrip("/") + api_path
    owns_session = session is None
    if owns_session:
        session = aiohttp.ClientSession()
    try:
        async with session.get(url) as response:
            if response.status >= 300:
                raise MetadataFetchError(url, f"HTTP {response.status} {response.reason}")
            data = await response.json(content_type=None)
    except aiohttp.ClientError as exc:
        raise MetadataFetchError(url, exc) from exc
    finally:
        if owns_session:
            await session.close()

    try:
        table = parse_metadata_table(data)
    except (PreferencesError, TypeError) as exc:
        raise MetadataFetchError(url, exc) from exc
    logger.info("Fetched %d metadata entries from %s", len(table), url)
    return table


class LiveUpdateChannel:
    """WebSocket subscription that feeds snapshots to *on_snapshot*.

    Args:
        on_snapshot: Called with each new metadata table, on the event loop.
        session: Optional aiohttp session to reuse; one is created (and
            closed with the channel) otherwise.
    """

    def __init__(self, on_snapshot: SnapshotHandler, session: aiohttp.ClientSession | None = None):
        self._on_snapshot = on_snapshot
        self._session = session
        self._owns_session = session is None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._task: asyncio.Task[None] | None = None
        self.url: str | None = None

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def connect(self, server_url: str, ws_path: str = DEFAULT_WS_PATH) -> None:
        """Open the stream and start reading in a background task.

        Raises:
            ChannelConnectionError: If the WebSocket cannot be opened.
        """
        self.url = ws_url(server_url, ws_path)
        if self._session is None:
            self._session = aiohttp.ClientSession()
        try:
            self._ws = await self._session.ws_connect(self.url)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            await self._close_resources()
            raise ChannelConnectionError(self.url, exc) from exc

        logger.info("Connected to conversions stream %s", self.url)
        self._task = asyncio.create_task(self._read_loop())

    def apply_message(self, raw: Any) -> bool:
        """Handle one raw message. Returns True if the table was replaced."""
        try:
            snapshot = parse_message(raw)
        except (ValueError, TypeError) as exc:
            logger.warning("Dropping malformed conversions message: %s", exc)
            return False
        if snapshot is None:
            logger.debug("Ignoring conversions message without a snapshot")
            return False
        self._on_snapshot(snapshot)
        return True

    async def _read_loop(self) -> None:
        ws = self._ws
        try:
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self.apply_message(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    logger.error("Conversions stream error: %s", ws.exception())
                    break
        finally:
            await self._close_resources()
            logger.info("Conversions stream %s closed", self.url)

    async def _close_resources(self) -> None:
        ws, self._ws = self._ws, None
        if ws is not None and not ws.closed:
            await ws.close()
        if self._owns_session and self._session is not None:
            session, self._session = self._session, None
            await session.close()

    async def wait_closed(self) -> None:
        """Wait until the stream ends, either remotely or via ``disconnect``."""
        if self._task is not None:
            await asyncio.wait({self._task})

    def disconnect(self) -> None:
        """Stop reading. Safe to call repeatedly or before ``connect``."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    async def aclose(self) -> None:
        """Disconnect and release the socket and any owned session."""
        task = self._task
        self.disconnect()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self._close_resources()
