"""Shared pytest fixtures for trackplan tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from tests._plans import CLEAN_PLAN
from trackplan.catalog import EventCatalog
from trackplan.core import TRACKPLAN_DIR_NAME, default_config, write_config
from trackplan.parser import ParsedPlan, parse_plan


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def clean_plan() -> ParsedPlan:
    """The reference plan: parses cleanly and passes every rule."""
    return parse_plan(CLEAN_PLAN, source="plan.txt")


@pytest.fixture
def trackplan_dir(tmp_path: Path) -> Path:
    """A .trackplan/ directory with default config and an empty catalog."""
    d = tmp_path / TRACKPLAN_DIR_NAME
    d.mkdir()
    write_config(d, default_config())
    EventCatalog(d).initialize()
    return d


@pytest.fixture
def catalog(trackplan_dir: Path) -> EventCatalog:
    return EventCatalog(trackplan_dir)


@pytest.fixture(autouse=True)
def _reset_trackplan_logger() -> Generator[None, None, None]:
    """Detach file handlers added by setup_logging() so tests stay isolated."""
    yield
    logger = logging.getLogger("trackplan")
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)
