"""CLI commands for converting values by base unit or by path."""

from __future__ import annotations

import json
import math
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from sk_units.core.config import load_metadata, load_preferences
from sk_units.core.converter import Converter
from sk_units.core.errors import UnitsError
from sk_units.core.models import ConversionResult


def parse_value(text: str) -> Any:
    """Interpret a command-line value: boolean, number, or string."""
    lowered = text.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        number = float(text)
    except ValueError:
        return text
    if math.isfinite(number) and number.is_integer() and "." not in text and "e" not in lowered:
        return int(number)
    return number


def load_converter(metadata: str | None) -> Converter:
    """Converter over a metadata snapshot file, or the bundled catalog."""
    if metadata:
        return Converter.from_metadata(load_metadata(metadata))
    return Converter.from_defaults()


def print_result(console: Console, result: ConversionResult, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(result.to_dict(), ensure_ascii=False))
        return

    table = Table(title=f"{result.base_unit} → {result.target_unit}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Formatted", result.formatted)
    table.add_row("Value", str(result.value))
    table.add_row("Symbol", result.symbol or "—")
    table.add_row("Formula", result.formula or "—")
    if result.is_date:
        table.add_row("Kind", "date")
    elif result.is_duration:
        table.add_row("Kind", "duration")
    console.print(table)


@click.command("convert")
@click.argument("value")
@click.argument("base_unit")
@click.argument("target_unit")
@click.option(
    "--metadata",
    "-m",
    type=click.Path(exists=True),
    default=None,
    help="Metadata snapshot JSON (default: bundled catalog).",
)
@click.option("--format", "-f", "display_format", default=None, help='Display format, e.g. "0.00".')
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
@click.pass_context
def convert(
    ctx: click.Context,
    value: str,
    base_unit: str,
    target_unit: str,
    metadata: str | None,
    display_format: str | None,
    as_json: bool,
) -> None:
    """Convert VALUE from BASE_UNIT to TARGET_UNIT."""
    console: Console = ctx.obj.get("console", Console())

    try:
        converter = load_converter(metadata)
        result = converter.convert(parse_value(value), base_unit, target_unit, display_format)
    except UnitsError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    print_result(console, result, as_json)


@click.command("path")
@click.argument("signalk_path")
@click.argument("value")
@click.option(
    "--metadata",
    "-m",
    type=click.Path(exists=True),
    default=None,
    help="Metadata snapshot JSON (default: bundled catalog).",
)
@click.option(
    "--preferences",
    "-p",
    type=click.Path(exists=True),
    default=None,
    help="Preferences JSON used to resolve the display unit.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
@click.pass_context
def path(
    ctx: click.Context,
    signalk_path: str,
    value: str,
    metadata: str | None,
    preferences: str | None,
    as_json: bool,
) -> None:
    """Convert VALUE for SIGNALK_PATH.

    With --preferences the display unit is resolved from overrides,
    patterns and category defaults; otherwise the path's own metadata
    entry decides.
    """
    console: Console = ctx.obj.get("console", Console())

    try:
        converter = load_converter(metadata)
        raw = parse_value(value)
        if preferences:
            result = converter.convert_with_preferences(signalk_path, raw, load_preferences(preferences))
        else:
            result = converter.convert_path(signalk_path, raw)
    except UnitsError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    if result is None:
        console.print(f"[red]Error:[/red] No conversion available for {signalk_path}.")
        raise SystemExit(1)

    print_result(console, result, as_json)
