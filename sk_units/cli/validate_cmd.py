"""CLI command for checking a conversion catalog."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from sk_units.core.catalog import default_metadata
from sk_units.core.config import load_metadata
from sk_units.core.errors import UnitsError
from sk_units.utils.validation import Severity, validate_metadata

_SEVERITY_STYLES = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "dim",
}


@click.command("validate")
@click.option(
    "--metadata",
    "-m",
    type=click.Path(exists=True),
    default=None,
    help="Metadata snapshot JSON (default: bundled catalog).",
)
@click.option("--show-info", is_flag=True, help="Include informational findings.")
@click.pass_context
def validate(ctx: click.Context, metadata: str | None, show_info: bool) -> None:
    """Check formulas, inverse round trips and date formats of a catalog."""
    console: Console = ctx.obj.get("console", Console())

    try:
        table_data = load_metadata(metadata) if metadata else default_metadata()
    except UnitsError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    result = validate_metadata(table_data)
    shown = [m for m in result.messages if show_info or m.severity is not Severity.INFO]

    if shown:
        table = Table(title="Validation Findings")
        table.add_column("Severity")
        table.add_column("Conversion", style="cyan")
        table.add_column("Message")
        for msg in shown:
            style = _SEVERITY_STYLES[msg.severity]
            table.add_row(f"[{style}]{msg.severity.value}[/{style}]", msg.parameter, msg.message)
        console.print(table)

    console.print(
        f"{len(table_data)} entries checked: "
        f"{len(result.errors)} error(s), {len(result.warnings)} warning(s)"
    )
    if not result.is_valid:
        raise SystemExit(1)
