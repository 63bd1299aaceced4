"""trackplan -- linter for product-analytics tracking plans."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("trackplan")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from trackplan.catalog import EventCatalog
from trackplan.linter import LintRun, lint
from trackplan.parser import ParsedPlan, parse_plan, parse_plan_file, plan_from_dict
from trackplan.reporter import render_json, render_text
from trackplan.rules import LintOptions

__all__ = [
    "EventCatalog",
    "LintOptions",
    "LintRun",
    "ParsedPlan",
    "__version__",
    "lint",
    "parse_plan",
    "parse_plan_file",
    "plan_from_dict",
    "render_json",
    "render_text",
]
