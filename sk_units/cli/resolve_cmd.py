"""CLI command for showing how paths resolve to display units."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.table import Table

from sk_units.core.config import PreferenceSet, load_metadata, load_preferences
from sk_units.core.errors import UnitsError
from sk_units.core.resolution import ResolutionSource

_SOURCE_STYLES = {
    ResolutionSource.OVERRIDE: "magenta",
    ResolutionSource.PATTERN: "blue",
    ResolutionSource.AUTO: "green",
    ResolutionSource.NATIVE_ONLY: "yellow",
    ResolutionSource.NONE: "dim",
}


def _parse_native(items: tuple[str, ...]) -> dict[str, str]:
    native = {}
    for item in items:
        path, sep, unit = item.partition("=")
        if not sep or not path or not unit:
            raise click.BadParameter(f"expected PATH=UNIT, got {item!r}", param_hint="--native")
        native[path] = unit
    return native


@click.command("resolve")
@click.argument("paths", nargs=-1, required=True)
@click.option(
    "--preferences",
    "-p",
    type=click.Path(exists=True),
    default=None,
    help="Preferences JSON (overrides, patterns, categories).",
)
@click.option(
    "--metadata",
    "-m",
    type=click.Path(exists=True),
    default=None,
    help="Path-keyed metadata snapshot supplying native base units.",
)
@click.option(
    "--native",
    "-n",
    multiple=True,
    help="Native base unit for a path, as PATH=UNIT. Repeatable.",
)
@click.option("--json", "as_json", is_flag=True, help="Print resolutions as JSON.")
@click.pass_context
def resolve(
    ctx: click.Context,
    paths: tuple[str, ...],
    preferences: str | None,
    metadata: str | None,
    native: tuple[str, ...],
    as_json: bool,
) -> None:
    """Show which display unit each of PATHS resolves to, and why."""
    console: Console = ctx.obj.get("console", Console())

    try:
        prefs = load_preferences(preferences) if preferences else PreferenceSet()
        native_metadata: dict = dict(load_metadata(metadata)) if metadata else {}
    except UnitsError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)
    native_metadata.update(_parse_native(native))

    resolutions = prefs.resolve_all(paths, native_metadata)

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in resolutions.values()], ensure_ascii=False))
        return

    table = Table(title="Path Resolution")
    table.add_column("Path", style="cyan")
    table.add_column("Status")
    table.add_column("Base", style="dim")
    table.add_column("Category")
    table.add_column("Target", style="green")
    table.add_column("Format", justify="right")

    for res in resolutions.values():
        style = _SOURCE_STYLES[res.source]
        table.add_row(
            res.path,
            f"[{style}]{res.status}[/{style}]",
            res.base_unit or "—",
            res.category or "—",
            res.target_unit or "—",
            res.display_format if res.is_resolved else "—",
        )
    console.print(table)
