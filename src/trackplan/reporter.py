"""Render lint diagnostics for humans (text) and machines (JSON)."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Sequence
from typing import Any

from trackplan.diagnostics import Diagnostic
from trackplan.schema import SEVERITY_ORDER
from trackplan.types.core import SeverityCounts

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_UNREADABLE = 2

_SYMBOLS = {"error": "E", "warning": "W", "info": "I"}

# Matches C0/C1 control characters except tab/newline (which we handle separately)
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")


def _sanitize(text: str) -> str:
    """Strip control characters and collapse newlines so one diagnostic stays on one line."""
    text = _CONTROL_CHARS_RE.sub("", text)
    return " ".join(text.replace("\r", " ").replace("\n", " ").split())


def count_by_severity(diagnostics: Iterable[Diagnostic]) -> SeverityCounts:
    counts: SeverityCounts = {"error": 0, "warning": 0, "info": 0}
    for d in diagnostics:
        counts[d.severity] += 1  # type: ignore[literal-required]
    return counts


def exit_code(diagnostics: Iterable[Diagnostic], *, strict: bool = False) -> int:
    """EXIT_FAILED if any error (or, with *strict*, any warning) was reported."""
    counts = count_by_severity(diagnostics)
    if counts["error"] or (strict and counts["warning"]):
        return EXIT_FAILED
    return EXIT_OK


def format_diagnostic(d: Diagnostic) -> str:
    line = f"{d.location} {_SYMBOLS[d.severity]} {d.rule_id} {d.rule}: {_sanitize(d.message)}"
    if d.suggestion:
        line += f"\n    -> {_sanitize(d.suggestion)}"
    return line


def format_summary(counts: SeverityCounts, plans: int = 1) -> str:
    noun = "plan" if plans == 1 else "plans"
    if not any(counts.values()):
        return f"{plans} {noun} checked: no problems found"
    return f"{plans} {noun} checked: {counts['error']} error(s), {counts['warning']} warning(s), {counts['info']} info"


def render_text(diagnostics: Sequence[Diagnostic], *, plans: int = 1, min_severity: str = "info") -> str:
    """Render diagnostics one per line (plus suggestions), followed by a summary."""
    threshold = SEVERITY_ORDER[min_severity]
    shown = sorted((d for d in diagnostics if SEVERITY_ORDER[d.severity] <= threshold), key=Diagnostic.sort_key)
    lines = [format_diagnostic(d) for d in shown]
    lines.append(format_summary(count_by_severity(diagnostics), plans))
    return "\n".join(lines)


def report_dict(results: dict[str, Sequence[Diagnostic]]) -> dict[str, Any]:
    """JSON-ready report keyed by plan source."""
    total: SeverityCounts = {"error": 0, "warning": 0, "info": 0}
    plans = []
    for source, diagnostics in results.items():
        counts = count_by_severity(diagnostics)
        for key in ("error", "warning", "info"):
            total[key] += counts[key]  # type: ignore[literal-required]
        plans.append(
            {
                "source": source,
                "counts": counts,
                "diagnostics": [d.to_dict() for d in diagnostics],
            }
        )
    return {"plans": plans, "counts": total}


def render_json(results: dict[str, Sequence[Diagnostic]]) -> str:
    return json.dumps(report_dict(results), indent=2)
