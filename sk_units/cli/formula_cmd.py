"""CLI command for generating conversion formulas with pint."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.table import Table

from sk_units.core.errors import UnitsError
from sk_units.utils.units import available_target_units, generate_formula


@click.command("formula")
@click.argument("base_unit")
@click.argument("target_unit", required=False)
@click.option("--json", "as_json", is_flag=True, help="Print a catalog-ready conversion entry.")
@click.pass_context
def formula(ctx: click.Context, base_unit: str, target_unit: str | None, as_json: bool) -> None:
    """Suggest the formula for BASE_UNIT → TARGET_UNIT.

    Without TARGET_UNIT, list the units BASE_UNIT can be converted to.
    """
    console: Console = ctx.obj.get("console", Console())

    if target_unit is None:
        options = available_target_units(base_unit)
        if not options:
            console.print(f"[red]Error:[/red] No known target units for {base_unit}.")
            raise SystemExit(1)
        table = Table(title=f"Target units for {base_unit}")
        table.add_column("Unit", style="cyan")
        table.add_column("Symbol", style="green")
        table.add_column(f"1 {base_unit} =", justify="right")
        for opt in options:
            table.add_row(opt.unit, opt.symbol, f"{opt.factor:.6g}")
        console.print(table)
        return

    try:
        generated = generate_formula(base_unit, target_unit)
    except UnitsError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    if as_json:
        entry = {
            target_unit: {
                "formula": generated.formula,
                "inverseFormula": generated.inverse_formula,
                "symbol": generated.symbol,
            }
        }
        click.echo(json.dumps(entry, ensure_ascii=False))
        return

    table = Table(title=f"{base_unit} → {target_unit}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Formula", generated.formula)
    table.add_row("Inverse", generated.inverse_formula)
    table.add_row("Symbol", generated.symbol)
    table.add_row("Offset", "yes" if generated.is_offset else "no")
    console.print(table)
