"""Diagnostic records produced by the parser and the lint rules."""

from __future__ import annotations

from dataclasses import dataclass

from trackplan.schema import SEVERITY_ORDER, DiagnosticKind, Severity
from trackplan.types.core import DiagnosticDict


@dataclass(frozen=True)
class Location:
    """Where a diagnostic points: source file, plan section, 1-based line."""

    source: str
    section: str | None = None
    line: int | None = None

    def __str__(self) -> str:
        parts = [self.source]
        if self.line is not None:
            parts.append(str(self.line))
        text = ":".join(parts)
        if self.section:
            text += f" [{self.section}]"
        return text


@dataclass(frozen=True)
class Diagnostic:
    rule_id: str
    rule: str
    severity: Severity
    kind: DiagnosticKind
    message: str
    location: Location
    suggestion: str | None = None

    def sort_key(self) -> tuple[str, int, int, str, str]:
        line = self.location.line if self.location.line is not None else 0
        return (self.location.source, line,SEVERITY_ORDER[self.severity], self.rule_id, self.message)

    def to_dict(self) -> DiagnosticDict:
        return {
            "rule_id": self.rule_id,
            "rule": self.rule,
            "severity": self.severity,
            "kind": self.kind,
            "message": self.message,
            "suggestion": self.suggestion,
            "location": {
                "source": self.location.source,
                "section": self.location.section,
                "line": self.location.line,
            },
        }
