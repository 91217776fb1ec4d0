"""CLI command for following live preference updates from a server."""

from __future__ import annotations

import asyncio
import logging

import click
from rich.console import Console

from sk_units.core.config import ConverterOptions
from sk_units.core.converter import Converter
from sk_units.core.errors import ChannelConnectionError, MetadataFetchError
from sk_units.utils.constants import DEFAULT_API_PATH, DEFAULT_WS_PATH

logger = logging.getLogger(__name__)


async def _watch(
    console: Console, options: ConverterOptions, reconnect_delay: float, once: bool
) -> None:
    converter = await Converter.from_server(options.server_url, options)
    console.print(f"Loaded {len(converter.get_all_metadata())} metadata entries")

    def report() -> None:
        console.print(f"[green]Update:[/green] {len(converter.get_all_metadata())} metadata entries")

    converter.on_preference_change(report)

    try:
        while True:
            try:
                channel = await converter.watch_preferences(options.server_url, options.ws_path)
            except ChannelConnectionError as e:
                if once:
                    raise
                logger.warning("%s; retrying in %.0f s", e, reconnect_delay)
                await asyncio.sleep(reconnect_delay)
                continue

            console.print(f"Watching {channel.url}")
            await channel.wait_closed()
            if once:
                return
            console.print(f"[yellow]Stream closed; reconnecting in {reconnect_delay:.0f} s[/yellow]")
            await asyncio.sleep(reconnect_delay)
    finally:
        await converter.aclose()


@click.command("watch")
@click.argument("server_url")
@click.option("--api-path", default=DEFAULT_API_PATH, show_default=True, help="Metadata endpoint.")
@click.option("--ws-path", default=DEFAULT_WS_PATH, show_default=True, help="Stream endpoint.")
@click.option(
    "--reconnect-delay",
    type=float,
    default=5.0,
    show_default=True,
    help="Seconds to wait before reconnecting.",
)
@click.option("--once", is_flag=True, help="Exit when the stream closes instead of reconnecting.")
@click.pass_context
def watch(
    ctx: click.Context,
    server_url: str,
    api_path: str,
    ws_path: str,
    reconnect_delay: float,
    once: bool,
) -> None:
    """Follow conversion metadata pushed by SERVER_URL."""
    console: Console = ctx.obj.get("console", Console())
    options = ConverterOptions(server_url=server_url, api_path=api_path, ws_path=ws_path)

    try:
        asyncio.run(_watch(console, options, reconnect_delay, once))
    except (MetadataFetchError, ChannelConnectionError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")
