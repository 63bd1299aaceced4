"""CLI commands for checking plans: lint, rules, template."""

from __future__ import annotations

import json as json_mod
import logging
import sys
import time
from pathlib import Path

import click

from trackplan.catalog import EventCatalog, merge_prior, read_prior_events
from trackplan.cli_common import fail, find_project, load_config
from trackplan.diagnostics import Diagnostic
from trackplan.linter import lint as run_lint
from trackplan.parser import parse_plan_file
from trackplan.reporter import (
    EXIT_OK,
    EXIT_UNREADABLE,
    count_by_severity,
    exit_code,
    render_text,
    report_dict,
)
from trackplan.rules import LintOptions, iter_rules
from trackplan.schema import TrackingPlanError
from trackplan.templates import render_template

logger = logging.getLogger(__name__)


def build_options(
    *,
    disabled: tuple[str, ...] = (),
    prior_files: tuple[Path, ...] = (),
    use_catalog: bool = True,
    as_json: bool = False,
) -> LintOptions:
    """Merge config, catalog, --prior files and --disable flags into LintOptions."""
    trackplan_dir = find_project()
    config = load_config(trackplan_dir)
    try:
        options = LintOptions.from_config(
            config,
            disabled_rules=frozenset(r.upper() for r in [*config.get("disabled_rules", []), *disabled]),
        )
    except ValueError as e:
        fail(str(e), as_json=as_json, code=EXIT_UNREADABLE)
    if trackplan_dir is not None and use_catalog:
        options = EventCatalog(trackplan_dir).lint_options(options)
    for path in prior_files:
        try:
            options = merge_prior(options, read_prior_events(path))
        except (OSError, UnicodeDecodeError, TrackingPlanError) as e:
            fail(f"Cannot read prior events from {path}: {e}", as_json=as_json, code=EXIT_UNREADABLE)
    return options


@click.command("lint")
@click.argument("plans", nargs=-1, required=True, type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--prior",
    "prior_files",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="File of prior events (JSON list, catalog, plan, or one name per line). Repeatable.",
)
@click.option("--no-catalog", is_flag=True, help="Ignore the project's event catalog")
@click.option("--disable", "disabled", multiple=True, help="Rule id to skip, e.g. TP105. Repeatable.")
@click.option("--strict", is_flag=True, help="Fail on warnings as well as errors")
@click.option(
    "--min-severity",
    type=click.Choice(["error", "warning", "info"]),
    default="info",
    help="Hide diagnostics below this severity (text output only)",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def lint(
    plans: tuple[Path, ...],
    prior_files: tuple[Path, ...],
    no_catalog: bool,
    disabled: tuple[str, ...],
    strict: bool,
    min_severity: str,
    as_json: bool,
) -> None:
    """Check tracking plans against naming, PII, funnel and property rules."""
    options = build_options(disabled=disabled, prior_files=prior_files, use_catalog=not no_catalog, as_json=as_json)

    results: dict[str, list[Diagnostic]] = {}
    unreadable: dict[str, str] = {}
    for path in plans:
        start = time.monotonic()
        try:
            parsed = parse_plan_file(path)
        except (OSError, UnicodeDecodeError, TrackingPlanError) as e:
            logger.warning("Cannot read plan %s", path, extra={"command": "lint", "error": str(e)})
            unreadable[str(path)] = str(e)
            continue
        diagnostics = run_lint(parsed, options).diagnostics()
        results[str(path)] = diagnostics
        logger.info(
            "Linted %s",
            path,
            extra={
                "command": "lint",
                "plan": str(path),
                "duration_ms": round((time.monotonic() - start) * 1000, 2),
                "counts": count_by_severity(diagnostics),
            },
        )

    all_diagnostics = [d for diags in results.values() for d in diags]
    if as_json:
        payload = report_dict(results)
        if unreadable:
            payload["unreadable"] = unreadable
        click.echo(json_mod.dumps(payload, indent=2))
    else:
        for source, message in unreadable.items():
            click.echo(f"Error: cannot read {source}: {message}", err=True)
        if results:
            click.echo(render_text(all_diagnostics, plans=len(results), min_severity=min_severity))

    if unreadable:
        sys.exit(EXIT_UNREADABLE)
    code = exit_code(all_diagnostics, strict=strict)
    if code != EXIT_OK:
        sys.exit(code)


@click.command("rules")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def rules(as_json: bool) -> None:
    """List the lint rules."""
    registry = iter_rules()
    if as_json:
        click.echo(json_mod.dumps([r.to_dict() for r in registry], indent=2))
        return
    for r in registry:
        click.echo(f"{r.rule_id}  {r.name:<32} {r.description}")


@click.command("template")
@click.option("--feature", default=None, help="Pre-fill the Feature field")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write to a file")
@click.option("--force", is_flag=True, help="Overwrite an existing output file")
def template(feature: str | None, output: Path | None, force: bool) -> None:
    """Print (or write) a blank tracking-plan template."""
    text = render_template(feature)
    if output is None:
        click.echo(text, nl=False)
        return
    if output.exists() and not force:
        click.echo(f"Error: {output} already exists (use --force to overwrite)", err=True)
        sys.exit(1)
    output.write_text(text, encoding="utf-8")
    click.echo(f"Wrote template to {output}")
    click.echo(f"\nNext: trackplan lint {output}")
