"""SK Units command-line interface.

Entry point for the ``skunits`` CLI tool.
"""

from __future__ import annotations

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from sk_units import __app_name__, __version__

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name=__app_name__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """SK Units: SignalK unit conversion and display preferences.

    Convert raw telemetry values, resolve which display unit a path uses,
    and inspect or validate conversion catalogs.
    """
    ctx.ensure_object(dict)
    ctx.obj["console"] = console
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


# Import and register sub-commands
from sk_units.cli.convert_cmd import convert, path  # noqa: E402
from sk_units.cli.formula_cmd import formula  # noqa: E402
from sk_units.cli.info_cmd import info  # noqa: E402
from sk_units.cli.resolve_cmd import resolve  # noqa: E402
from sk_units.cli.validate_cmd import validate  # noqa: E402
from sk_units.cli.watch_cmd import watch  # noqa: E402

cli.add_command(convert)
cli.add_command(path)
cli.add_command(resolve)
cli.add_command(info)
cli.add_command(validate)
cli.add_command(formula)
cli.add_command(watch)


def main() -> None:
    """Convenience wrapper for entry-point scripts."""
    cli()
