"""Shared CLI helpers.

Provides project discovery, config loading and catalog access for the
``cli_commands/*.py`` modules without circular imports.
"""

from __future__ import annotations

import json as json_mod
import sys
from pathlib import Path
from typing import NoReturn

import click

from trackplan.catalog import EventCatalog
from trackplan.core import TRACKPLAN_DIR_NAME, default_config, find_trackplan_root, read_config
from trackplan.logging import setup_logging
from trackplan.types.core import ProjectConfig


def find_project() -> Path | None:
    """Return the .trackplan/ directory above cwd, or None outside a project."""
    try:
        trackplan_dir = find_trackplan_root()
    except FileNotFoundError:
        return None
    setup_logging(trackplan_dir)
    return trackplan_dir


def load_config(trackplan_dir: Path | None) -> ProjectConfig:
    return read_config(trackplan_dir) if trackplan_dir is not None else default_config()


def get_catalog() -> EventCatalog:
    """Discover .trackplan/ and return its EventCatalog."""
    trackplan_dir = find_project()
    if trackplan_dir is None:
        click.echo(f"No {TRACKPLAN_DIR_NAME}/ found. Run 'trackplan init' first.", err=True)
        sys.exit(1)
    return EventCatalog(trackplan_dir)


def fail(message: str, *, as_json: bool, code: int = 1) -> NoReturn:
    """Report an error in the requested output format and exit."""
    if as_json:
        click.echo(json_mod.dumps({"error": message}))
    else:
        click.echo(f"Error: {message}", err=True)
    sys.exit(code)
