"""SK Units command-line interface package.

Supports ``python -m sk_units.cli`` as an alternative to the ``skunits`` entry point.
"""

from sk_units.cli.main import cli, main

__all__ = ["cli", "main"]
