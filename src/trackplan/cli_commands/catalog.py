"""CLI commands for the event catalog: init, record, archive, events."""

from __future__ import annotations

import json as json_mod
import sys
from datetime import datetime
from pathlib import Path

import click

from trackplan.catalog import CatalogError, EventCatalog
from trackplan.cli_common import fail, get_catalog, load_config
from trackplan.core import TRACKPLAN_DIR_NAME, default_config, write_config
from trackplan.linter import lint
from trackplan.logging import setup_logging
from trackplan.parser import parse_plan_file
from trackplan.reporter import format_diagnostic
from trackplan.rules import LintOptions
from trackplan.schema import TrackingPlanError


@click.command()
def init() -> None:
    """Initialize .trackplan/ in the current directory."""
    cwd = Path.cwd()
    trackplan_dir = cwd / TRACKPLAN_DIR_NAME

    if trackplan_dir.exists():
        click.echo(f"{TRACKPLAN_DIR_NAME}/ already exists in {cwd}")
        # Still ensure the catalog exists
        EventCatalog(trackplan_dir).initialize()
        return

    trackplan_dir.mkdir()
    write_config(trackplan_dir, default_config())
    EventCatalog(trackplan_dir).initialize()
    setup_logging(trackplan_dir).info("Initialized project", extra={"command": "init"})

    click.echo(f"Initialized {TRACKPLAN_DIR_NAME}/ in {cwd}")
    click.echo(f"  Config: {trackplan_dir / 'config.json'}")
    click.echo(f"  Catalog: {trackplan_dir / 'events.json'}")
    click.echo("\nNext: trackplan template -o plan.txt")


@click.command()
@click.argument("plan_path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--force", is_flag=True, help="Record even if the plan has lint errors")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def record(plan_path: Path, force: bool, as_json: bool) -> None:
    """Add a plan's new events to the catalog and mark its deprecations."""
    catalog = get_catalog()
    try:
        parsed = parse_plan_file(plan_path)
    except (OSError, UnicodeDecodeError, TrackingPlanError) as e:
        fail(f"cannot read {plan_path}: {e}", as_json=as_json, code=2)

    config = load_config(catalog.path.parent)
    options = catalog.lint_options(LintOptions.from_config(config))
    errors = [d for d in lint(parsed, options) if d.severity == "error"]
    if errors and not force:
        if as_json:
            click.echo(json_mod.dumps({"error": "plan has lint errors", "diagnostics": [d.to_dict() for d in errors]}))
        else:
            click.echo(f"Error: {plan_path} has {len(errors)} lint error(s); fix them or use --force", err=True)
            for d in errors:
                click.echo(format_diagnostic(d), err=True)
        sys.exit(1)

    try:
        result = catalog.record_plan(parsed.plan)
    except CatalogError as e:
        fail(str(e), as_json=as_json)

    if as_json:
        click.echo(json_mod.dumps({**result.to_dict(), "lint_errors": len(errors)}))
        return
    click.echo(f"Recorded {plan_path}")
    for label, names in (("Added", result.added), ("Updated", result.updated), ("Deprecated", result.deprecated)):
        if names:
            click.echo(f"  {label}: {', '.join(names)}")


@click.command()
@click.argument("event_name")
@click.option("--date", "on", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Archive date (default: today)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def archive(event_name: str, on: datetime | None, as_json: bool) -> None:
    """Mark a catalog event archived. Archived events are kept, never deleted."""
    catalog = get_catalog()
    try:
        entry = catalog.archive(event_name, on=on.date() if on else None)
    except CatalogError as e:
        fail(str(e), as_json=as_json)
    if as_json:
        click.echo(json_mod.dumps(entry.to_dict()))
    else:
        click.echo(f"Archived {entry.name} (since {entry.archived_since})")


@click.command()
@click.option(
    "--status",
    type=click.Choice(["active", "deprecated", "archived"]),
    default=None,
    help="Only show events with this status",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def events(status: str | None, as_json: bool) -> None:
    """List events recorded in the catalog."""
    catalog = get_catalog()
    entries = catalog.entries(status)  # type: ignore[arg-type]
    if as_json:
        click.echo(json_mod.dumps([e.to_dict() for e in entries], indent=2))
        return
    if not entries:
        click.echo("No events.")
        return
    for e in entries:
        detail = ""
        if e.status == "deprecated":
            detail = f" since {e.deprecated_since}" + (f", replaced by {e.replaced_by}" if e.replaced_by else "")
        elif e.status == "archived":
            detail = f" since {e.archived_since}"
        click.echo(f"{e.name:<40} {e.status}{detail}")
