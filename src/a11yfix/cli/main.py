"""Click CLI entry point for a11yfix."""

from __future__ import annotations

import click

from a11yfix._version import __version__
from a11yfix.core.output import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="a11yfix")
@click.option("--verbose", is_flag=True, help="Show detailed logs")
def cli(verbose: bool):
    """a11yfix - find and fix accessibility issues in HTML files.

    Large documents are split into chunks and sent to the fix service one
    chunk at a time.
    """
    setup_logging(verbose)


# Import and register subcommands
from a11yfix.cli.scan_cmd import scan  # noqa: E402
from a11yfix.cli.fix_cmd import fix  # noqa: E402

cli.add_command(scan)
cli.add_command(fix)


if __name__ == "__main__":
    cli()
