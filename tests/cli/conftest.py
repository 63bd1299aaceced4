"""Fixtures for CLI interface tests."""

from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from trackplan.cli import cli


@pytest.fixture
def cli_in_project(tmp_path: Path, cli_runner: CliRunner) -> Generator[tuple[CliRunner, Path], None, None]:
    """Initialize a trackplan project in tmp_path and return (runner, project_root)."""
    original_cwd = os.getcwd()
    os.chdir(str(tmp_path))
    result = cli_runner.invoke(cli, ["init"])
    assert result.exit_code == 0
    yield cli_runner, tmp_path
    os.chdir(original_cwd)


@pytest.fixture
def cli_outside_project(tmp_path: Path, cli_runner: CliRunner) -> Generator[tuple[CliRunner, Path], None, None]:
    """Run from an empty tmp_path with no .trackplan/ and return (runner, cwd)."""
    original_cwd = os.getcwd()
    os.chdir(str(tmp_path))
    yield cli_runner, tmp_path
    os.chdir(original_cwd)


def write_plan(directory: Path, text: str, name: str = "plan.txt") -> Path:
    path = directory / name
    path.write_text(text, encoding="utf-8")
    return path
