"""CLI for the trackplan tracking-plan linter.

Convention-based: discovers .trackplan/ by walking up from cwd. Lint works
outside a project too; catalog commands need one.

Usage:
    trackplan init                               # Initialize .trackplan/ in cwd
    trackplan template -o plan.txt               # Write a blank tracking plan
    trackplan lint plan.txt                      # Check a plan
    trackplan lint plan.txt --prior old.txt      # Treat another plan's events as prior
    trackplan lint plan.txt --json --strict      # Machine output, fail on warnings
    trackplan rules                              # List lint rules
    trackplan record plan.txt                    # Add a merged plan's events to the catalog
    trackplan archive old_event_viewed           # Mark a catalog event archived
    trackplan events --status=active             # List catalog events
"""

from __future__ import annotations

import click

from trackplan import __version__
from trackplan.cli_commands.catalog import archive, events, init, record
from trackplan.cli_commands.lint import lint, rules, template


@click.group()
@click.version_option(version=__version__, prog_name="trackplan")
def cli() -> None:
    """trackplan -- tracking-plan linter."""


cli.add_command(init)
cli.add_command(lint)
cli.add_command(rules)
cli.add_command(template)
cli.add_command(record)
cli.add_command(archive)
cli.add_command(events)


if __name__ == "__main__":
    cli()
