"""CLI commands for listing base units, conversions, date and duration formats."""

from __future__ import annotations

from datetime import datetime, timezone

import click
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from sk_units.core.catalog import category_to_base_unit, get_base_unit_info, list_base_units
from sk_units.core.dates import DATE_LAYOUTS, date_format_keys, render
from sk_units.core.durations import DurationFormatKind, format_duration
from sk_units.core.errors import UnknownBaseUnit
from sk_units.utils.constants import EPOCH_SECONDS_FORMAT

# Instant used for the sample column of ``info date-formats``
_SAMPLE_MOMENT = datetime(2024, 7, 4, 15, 30, 45, tzinfo=timezone.utc)
_SAMPLE_SECONDS = 93784.5


@click.group("info")
@click.pass_context
def info(ctx: click.Context) -> None:
    """Inspect the bundled catalog and the supported formats."""
    pass


@info.command("units")
@click.pass_context
def info_units(ctx: click.Context) -> None:
    """List base units in the bundled catalog."""
    console: Console = ctx.obj.get("console", Console())
    table = Table(title="Base Units")
    table.add_column("Base Unit", style="cyan")
    table.add_column("Category", style="yellow")
    table.add_column("Conversions", justify="right")

    for base_unit in list_base_units():
        meta = get_base_unit_info(base_unit)
        table.add_row(base_unit, meta.category, str(len(meta.conversions)))
    console.print(table)


@info.command("conversions")
@click.argument("base_unit")
@click.pass_context
def info_conversions(ctx: click.Context, base_unit: str) -> None:
    """Show every conversion defined for BASE_UNIT."""
    console: Console = ctx.obj.get("console", Console())
    try:
        meta = get_base_unit_info(base_unit)
    except UnknownBaseUnit as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    tree = Tree(f"[bold]{base_unit}[/bold] ({meta.category})")
    for target, conv in meta.conversions.items():
        node = tree.add(f"[cyan]{target}[/cyan] {conv.long_name or ''}".rstrip())
        if conv.date_format:
            node.add(f"Date format: {conv.date_format}")
            if conv.use_local_time:
                node.add("Local time")
            continue
        node.add(f"Formula: {conv.formula}")
        if conv.inverse_formula:
            node.add(f"Inverse: {conv.inverse_formula}")
        node.add(f"Symbol: {conv.symbol or '—'}")
    console.print(tree)


@info.command("categories")
@click.pass_context
def info_categories(ctx: click.Context) -> None:
    """List categories and their base units."""
    console: Console = ctx.obj.get("console", Console())
    table = Table(title="Categories")
    table.add_column("Category", style="cyan")
    table.add_column("Base Unit", style="green")

    for category, base_unit in category_to_base_unit().items():
        table.add_row(category, base_unit)
    console.print(table)


@info.command("date-formats")
@click.pass_context
def info_date_formats(ctx: click.Context) -> None:
    """List the symbolic date/time format keys."""
    console: Console = ctx.obj.get("console", Console())
    table = Table(title="Date Formats")
    table.add_column("Key", style="cyan")
    table.add_column("Example (UTC)", style="green")

    for key in date_format_keys():
        if key.endswith("-local"):
            continue
        if key == EPOCH_SECONDS_FORMAT:
            sample = str(int(_SAMPLE_MOMENT.timestamp()))
        else:
            sample = render(_SAMPLE_MOMENT, DATE_LAYOUTS[key])
        table.add_row(key, sample)
    console.print(table)
    console.print("[dim]Append -local to any key (except epoch-seconds) for local time.[/dim]")


@info.command("durations")
@click.pass_context
def info_durations(ctx: click.Context) -> None:
    """List the duration formats."""
    console: Console = ctx.obj.get("console", Console())
    table = Table(title="Duration Formats")
    table.add_column("Name", style="cyan")
    table.add_column("Target Unit", style="yellow")
    table.add_column(f"Example ({_SAMPLE_SECONDS} s)", style="green")

    for kind in DurationFormatKind:
        table.add_row(kind.value, kind.target_unit, format_duration(kind, _SAMPLE_SECONDS))
    console.print(table)
