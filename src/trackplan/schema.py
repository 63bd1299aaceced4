# src/trackplan/schema.py
"""Tracking-plan schema -- entities, recognised sections, and exceptions.

A tracking plan has two parts. The analytics design (feature, change,
business question, success metric, baseline, funnel) and the implementation
plan (new events, deprecated events, user property updates). Everything the
parser produces is a frozen dataclass defined here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Literal

# ---------------------------------------------------------------------------
# Name patterns
# ---------------------------------------------------------------------------

EVENT_NAME_PATTERN = re.compile(r"^[a-z]+(_[a-z]+)*$")
PROPERTY_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9]*(_[a-z0-9]+)*$")
BOOLEAN_PREFIXES: tuple[str, ...] = ("is_", "has_")

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------

Severity = Literal["error", "warning", "info"]
DiagnosticKind = Literal["structural", "violation", "ambiguous"]
WritePolicy = Literal["always-overwrite", "set-once"]

SEVERITY_ORDER: dict[str, int] = {"error": 0, "warning": 1, "info": 2}

BOOLEAN_TYPES: frozenset[str] = frozenset({"boolean", "bool"})
KNOWN_PROPERTY_TYPES: frozenset[str] = frozenset(
    {
        "string",
        "str",
        "number",
        "integer",
        "int",
        "float",
        "decimal",
        "boolean",
        "bool",
        "datetime",
        "date",
        "timestamp",
        "duration",
        "array",
        "list",
        "object",
        "enum",
        "url",
        "uuid",
        "currency",
    }
)

# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------
# Header fields are single-line "Key: value" entries; block sections own the
# indented lines that follow them.

SECTION_FEATURE = "feature"
SECTION_CHANGE = "change"
SECTION_BUSINESS_QUESTION = "business_question"
SECTION_SUCCESS_METRIC = "success_metric"
SECTION_BASELINE = "baseline"
SECTION_FUNNEL = "funnel"
SECTION_NEW_EVENTS = "new_events"
SECTION_DEPRECATED_EVENTS = "deprecated_events"
SECTION_USER_PROPERTIES = "user_property_updates"

HEADER_FIELDS: dict[str, str] = {
    "feature": SECTION_FEATURE,
    "change": SECTION_CHANGE,
    "business question": SECTION_BUSINESS_QUESTION,
    "success metric": SECTION_SUCCESS_METRIC,
    "baseline (pre)": SECTION_BASELINE,
    "baseline": SECTION_BASELINE,
}

BLOCK_SECTIONS: dict[str, str] = {
    "funnel definition": SECTION_FUNNEL,
    "funnel": SECTION_FUNNEL,
    "new events to add": SECTION_NEW_EVENTS,
    "new events": SECTION_NEW_EVENTS,
    "events to deprecate": SECTION_DEPRECATED_EVENTS,
    "deprecated events": SECTION_DEPRECATED_EVENTS,
    "user property updates": SECTION_USER_PROPERTIES,
    "user properties": SECTION_USER_PROPERTIES,
}

REQUIRED_SECTIONS: tuple[str, ...] = (
    SECTION_FEATURE,
    SECTION_CHANGE,
    SECTION_BUSINESS_QUESTION,
    SECTION_SUCCESS_METRIC,
    SECTION_BASELINE,
    SECTION_FUNNEL,
    SECTION_NEW_EVENTS,
)

SECTION_TITLES: dict[str, str] = {
    SECTION_FEATURE: "Feature",
    SECTION_CHANGE: "Change",
    SECTION_BUSINESS_QUESTION: "Business question",
    SECTION_SUCCESS_METRIC: "Success metric",
    SECTION_BASELINE: "Baseline (pre)",
    SECTION_FUNNEL: "Funnel definition",
    SECTION_NEW_EVENTS: "New events to add",
    SECTION_DEPRECATED_EVENTS: "Events to deprecate",
    SECTION_USER_PROPERTIES: "User property updates",
}

# ---------------------------------------------------------------------------
# Custom exceptions
# ---------------------------------------------------------------------------


class TrackingPlanError(ValueError):
    """Base class for tracking-plan errors."""


class StructuralError(TrackingPlanError):
    """Raised when a section of the document cannot be parsed.

    The parser converts it into a structural diagnostic and marks the section
    broken; rules that read a broken section are skipped for that run.
    """

    def __init__(self, section: str, message: str, *, line: int | None = None, rule_id: str = "TP002") -> None:
        self.section = section
        self.line = line
        self.rule_id = rule_id
        super().__init__(message)


class AmbiguousInput(TrackingPlanError):
    """Raised when a value cannot be confidently interpreted (e.g. an event name split)."""

    def __init__(self, value: str, message: str) -> None:
        self.value = value
        super().__init__(message)


# ---------------------------------------------------------------------------
# Frozen dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PropertyDefinition:
    """A property attached to an event: name, declared type, optional example."""

    name: str
    type: str
    example: str | None = None
    line: int | None = None

    @property
    def is_boolean(self) -> bool:
        return self.type.lower() in BOOLEAN_TYPES


@dataclass(frozen=True)
class EventDefinition:
    """An event introduced by the plan."""

    name: str
    fires_when: str = ""
    properties: tuple[PropertyDefinition, ...] = ()
    deprecated: bool = False
    archived_since: date | None = None
    line: int | None = None

    def property_map(self) -> dict[str, PropertyDefinition]:
        return {p.name: p for p in self.properties}


@dataclass(frozen=True)
class DeprecatedEvent:
    """An event the plan retires, optionally pointing at its replacement."""

    name: str
    replaced_by: str | None = None
    deprecation_date: date | None = None
    raw_date: str = ""
    line: int | None = None


@dataclass(frozen=True)
class UserPropertyUpdate:
    """A people-property write triggered by an event."""

    name: str
    on_event: str
    value: str = ""
    type: str = "string"
    write_policy: WritePolicy = "always-overwrite"
    description: str = ""
    line: int | None = None


@dataclass(frozen=True)
class FunnelStep:
    index: int
    event: str
    line: int | None = None


@dataclass(frozen=True)
class Funnel:
    """Ordered funnel steps and the comparison window for pre/post analysis."""

    steps: tuple[FunnelStep, ...] = ()
    comparison_window: str = ""
    window: timedelta | None = None
    window_line: int | None = None

    @property
    def events(self) -> tuple[str, ...]:
        return tuple(s.event for s in self.steps)


@dataclass(frozen=True)
class TrackingPlan:
    """A complete tracking plan document."""

    feature: str = ""
    change: str = ""
    business_question: str = ""
    success_metric: str = ""
    baseline: str = ""
    funnel: Funnel = field(default_factory=Funnel)
    new_events: tuple[EventDefinition, ...] = ()
    deprecated_events: tuple[DeprecatedEvent, ...] = ()
    user_property_updates: tuple[UserPropertyUpdate, ...] = ()
    source: str = "<plan>"

    @property
    def new_event_names(self) -> tuple[str, ...]:
        return tuple(e.name for e in self.new_events)

    @property
    def deprecated_event_names(self) -> tuple[str, ...]:
        return tuple(d.name for d in self.deprecated_events)

    def header_values(self) -> dict[str, str]:
        return {
            SECTION_FEATURE: self.feature,
            SECTION_CHANGE: self.change,
            SECTION_BUSINESS_QUESTION: self.business_question,
            SECTION_SUCCESS_METRIC: self.success_metric,
            SECTION_BASELINE: self.baseline,
        }

    def to_dict(self) -> dict[str, Any]:
        """Structured-record form, the same shape plan_from_dict() reads."""
        return {
            "feature": self.feature,
            "change": self.change,
            "business_question": self.business_question,
            "success_metric": self.success_metric,
            "baseline": self.baseline,
            "funnel": {
                "steps": list(self.funnel.events),
                "comparison_window": self.funnel.comparison_window,
            },
            "new_events": [
                {
                    "name": e.name,
                    "fires_when": e.fires_when,
                    "properties": {p.name: {"type": p.type, "example": p.example} for p in e.properties},
                    "deprecated": e.deprecated,
                    "archived_since": e.archived_since.isoformat() if e.archived_since else None,
                }
                for e in self.new_events
            ],
            "deprecated_events": [
                {
                    "name": d.name,
                    "replaced_by": d.replaced_by,
                    "deprecation_date": d.deprecation_date.isoformat() if d.deprecation_date else d.raw_date or None,
                }
                for d in self.deprecated_events
            ],
            "user_property_updates": [
                {
                    "on_event": u.on_event,
                    "name": u.name,
                    "value": u.value,
                    "write_policy": u.write_policy,
                }
                for u in self.user_property_updates
            ],
        }
