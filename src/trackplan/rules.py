"""Lint rules for tracking plans.

Each rule is a generator registered with ``@rule``. It receives a
LintContext and yields Diagnostics. Rules declare the sections they read;
the linter skips a rule when any of those sections failed to parse.
"""

from __future__ import annotations

import difflib
import re
from collections import Counter
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from itertools import combinations
from typing import Any

from trackplan.diagnostics import Diagnostic, Location
from trackplan.schema import (
    EVENT_NAME_PATTERN,
    KNOWN_PROPERTY_TYPES,
    SECTION_DEPRECATED_EVENTS,
    SECTION_FUNNEL,
    SECTION_NEW_EVENTS,
    SECTION_TITLES,
    SECTION_USER_PROPERTIES,
    AmbiguousInput,
    DiagnosticKind,
    PropertyDefinition,
    Severity,
    TrackingPlan,
    TrackingPlanError,
)
from trackplan.types.core import ProjectConfig
from trackplan.validation import (
    boolean_name_suggestion,
    check_property_name,
    decompose_event_name,
    has_boolean_prefix,
    is_action_word,
    merge_candidate,
    past_tense_suggestion,
    pii_name_match,
    pii_value_match,
    reordered_suggestion,
    similarity,
    to_snake_case,
)

DEFAULT_SIMILARITY_THRESHOLD = 0.85
RULE_ID_RE = re.compile(r"^TP\d{3}$")

# ---------------------------------------------------------------------------
# Options and context
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LintOptions:
    """Inputs to a lint run beyond the plan itself."""

    prior_events: frozenset[str] = frozenset()
    deprecated_events: frozenset[str] = frozenset()
    archived_events: frozenset[str] = frozenset()
    disabled_rules: frozenset[str] = frozenset()
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    extra_pii_names: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if not 0 < self.similarity_threshold <= 1:
            msg = f"similarity_threshold must be in (0, 1], got {self.similarity_threshold}"
            raise ValueError(msg)
        unknown = sorted(r for r in self.disabled_rules if not RULE_ID_RE.match(r))
        if unknown:
            msg = f"Invalid rule id(s) {unknown}: rule ids look like TP101"
            raise ValueError(msg)

    @classmethod
    def from_config(cls, config: ProjectConfig, **overrides: Any) -> LintOptions:
        """Build options from a project config, with keyword overrides on top."""
        values: dict[str, Any] = {
            "similarity_threshold": float(config.get("similarity_threshold", DEFAULT_SIMILARITY_THRESHOLD)),
            "disabled_rules": frozenset(r.upper() for r in config.get("disabled_rules", [])),
            "extra_pii_names": frozenset(n.lower() for n in config.get("extra_pii_names", [])),
        }
        values.update(overrides)
        return cls(**values)

    @property
    def known_prior_events(self) -> frozenset[str]:
        return self.prior_events | self.deprecated_events | self.archived_events


@dataclass
class LintContext:
    plan: TrackingPlan
    options: LintOptions
    broken_sections: frozenset[str] = frozenset()
    rule_id: str = ""
    rule_name: str = ""

    @property
    def known_events(self) -> frozenset[str]:
        return frozenset(self.plan.new_event_names) | self.options.known_prior_events

    def section_ok(self, section: str) -> bool:
        return section not in self.broken_sections

    def diag(
        self,
        severity: Severity,
        message: str,
        *,
        section: str | None = None,
        line: int | None = None,
        suggestion: str | None = None,
        kind: DiagnosticKind = "violation",
    ) -> Diagnostic:
        return Diagnostic(
            rule_id=self.rule_id,
            rule=self.rule_name,
            severity=severity,
            kind=kind,
            message=message,
            location=Location(
                source=self.plan.source,
                section=SECTION_TITLES.get(section, section) if section else None,
                line=line,
            ),
            suggestion=suggestion,
        )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

CheckFn = Callable[[LintContext], Iterable[Diagnostic]]


@dataclass(frozen=True)
class Rule:
    rule_id: str
    name: str
    description: str
    sections: tuple[str, ...] = ()
    check: CheckFn | None = field(default=None, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "name": self.name,
            "description": self.description,
            "sections": [SECTION_TITLES.get(s, s) for s in self.sections],
        }


RULES: dict[str, Rule] = {}


def _register(r: Rule) -> None:
    if r.rule_id in RULES:
        msg = f"Duplicate rule id {r.rule_id}"
        raise ValueError(msg)
    RULES[r.rule_id] = r


def rule(rule_id: str, name: str, description: str, *, sections: tuple[str, ...] = ()) -> Callable[[CheckFn], CheckFn]:
    """Register a check function under *rule_id*."""

    def decorator(fn: CheckFn) -> CheckFn:
        _register(Rule(rule_id=rule_id, name=name, description=description, sections=sections, check=fn))
        return fn

    return decorator


# Structural rules are emitted by the parser; they are registered so they can
# be listed and disabled like any other rule.
_register(Rule("TP001", "missing-section", "A required section of the plan is missing."))
_register(Rule("TP002", "malformed-line", "A line cannot be parsed, or a section appears twice."))


def iter_rules() -> list[Rule]:
    return [RULES[k] for k in sorted(RULES)]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _closest(name: str, candidates: Iterable[str]) -> str | None:
    matches = difflib.get_close_matches(name, sorted(candidates), n=1, cutoff=0.6)
    return matches[0] if matches else None


def _base_type(type_text: str) -> str:
    m = re.match(r"[a-z]+", type_text.lower())
    return m.group(0) if m else ""


def _event_pairs(ctx: LintContext) -> Iterator[tuple[str, str, int | None, bool]]:
    """Yield (a, b, line, b_is_prior) for every new/new and new/prior pair once."""
    new_events = ctx.plan.new_events
    seen_new = {e.name for e in new_events}
    seen_pairs: set[tuple[str, str]] = set()
    for ea, eb in combinations(new_events, 2):
        key = (min(ea.name, eb.name), max(ea.name, eb.name))
        if ea.name != eb.name and key not in seen_pairs:
            seen_pairs.add(key)
            yield ea.name, eb.name, eb.line, False
    prior = sorted(ctx.options.known_prior_events - seen_new)
    paired: set[str] = set()
    for event in new_events:
        if event.name in paired:
            continue
        paired.add(event.name)
        for other in prior:
            yield event.name, other, event.line, True


# ---------------------------------------------------------------------------
# Header fields
# ---------------------------------------------------------------------------


@rule("TP003", "empty-field", "Analytics-design fields (feature, change, question, metric, baseline) must be filled in.")
def check_empty_fields(ctx: LintContext) -> Iterator[Diagnostic]:
    for section, value in ctx.plan.header_values().items():
        if not ctx.section_ok(section) or value:
            continue
        title = SECTION_TITLES[section]
        hint = "write 'unknown' if there is no baseline yet" if section == "baseline" else None
        yield ctx.diag("warning", f"'{title}' is empty", section=section, suggestion=hint)


# ---------------------------------------------------------------------------
# Event naming
# ---------------------------------------------------------------------------


@rule(
    "TP101",
    "event-name-format",
    "Event names are lowercase snake_case letters: ^[a-z]+(_[a-z]+)*$.",
    sections=(SECTION_NEW_EVENTS,),
)
def check_event_name_format(ctx: LintContext) -> Iterator[Diagnostic]:
    for event in ctx.plan.new_events:
        if EVENT_NAME_PATTERN.match(event.name):
            continue
        suggestion = to_snake_case(event.name)
        yield ctx.diag(
            "error",
            f"Event name {event.name!r} is not lowercase snake_case",
            section=SECTION_NEW_EVENTS,
            line=event.line,
            suggestion=f"rename to {suggestion!r}" if suggestion and suggestion != event.name else None,
        )


@rule(
    "TP102",
    "event-name-object-action",
    "Event names read object_action with a past-tense action (report_exported, not export_report).",
    sections=(SECTION_NEW_EVENTS,),
)
def check_object_action(ctx: LintContext) -> Iterator[Diagnostic]:
    for event in ctx.plan.new_events:
        if not EVENT_NAME_PATTERN.match(event.name):
            continue  # TP101 already reports it
        try:
            parts = decompose_event_name(event.name)
        except AmbiguousInput as exc:
            reordered = reordered_suggestion(event.name)
            if reordered:
                yield ctx.diag(
                    "error",
                    f"Event name {event.name!r} puts the action first; use object_action order",
                    section=SECTION_NEW_EVENTS,
                    line=event.line,
                    suggestion=f"rename to {reordered!r}",
                )
            else:
                yield ctx.diag(
                    "warning",
                    str(exc),
                    section=SECTION_NEW_EVENTS,
                    line=event.line,
                    suggestion="end the name with a past-tense verb (e.g. _viewed, _created, _completed)",
                    kind="ambiguous",
                )
            continue
        except TrackingPlanError as exc:
            yield ctx.diag("error", str(exc), section=SECTION_NEW_EVENTS, line=event.line)
            continue
        past = past_tense_suggestion(event.name)
        if past:
            yield ctx.diag(
                "warning",
                f"Event name {event.name!r} uses a present-tense action",
                section=SECTION_NEW_EVENTS,
                line=event.line,
                suggestion=f"rename to {past!r}",
            )
        elif all(is_action_word(seg) for seg in parts.object):
            yield ctx.diag(
                "warning",
                f"Event name {event.name!r} has no object noun before its action",
                section=SECTION_NEW_EVENTS,
                line=event.line,
                kind="ambiguous",
            )


@rule(
    "TP103",
    "duplicate-event",
    "Event names are unique across the plan and are not redefined or reused from prior plans.",
    sections=(SECTION_NEW_EVENTS,),
)
def check_duplicate_events(ctx: LintContext) -> Iterator[Diagnostic]:
    seen: set[str] = set()
    for event in ctx.plan.new_events:
        if event.name in seen:
            yield ctx.diag(
                "error",
                f"Event {event.name!r} is defined more than once in this plan",
                section=SECTION_NEW_EVENTS,
                line=event.line,
            )
            continue
        seen.add(event.name)
        if event.name in ctx.options.archived_events:
            yield ctx.diag(
                "error",
                f"Event {event.name!r} was archived by an earlier plan; archived names are never reused",
                section=SECTION_NEW_EVENTS,
                line=event.line,
                suggestion="pick a new event name",
            )
        elif event.name in ctx.options.prior_events or event.name in ctx.options.deprecated_events:
            yield ctx.diag(
                "warning",
                f"Event {event.name!r} already exists in a prior plan",
                section=SECTION_NEW_EVENTS,
                line=event.line,
                suggestion="reference the existing event instead of adding it again",
            )


@rule(
    "TP104",
    "similar-event",
    "Flags new events whose names are near-duplicates of other new or prior events.",
    sections=(SECTION_NEW_EVENTS,),
)
def check_similar_events(ctx: LintContext) -> Iterator[Diagnostic]:
    threshold = ctx.options.similarity_threshold
    for a, b, line, b_is_prior in _event_pairs(ctx):
        if merge_candidate(a, b) is not None:
            continue  # TP105 has the more specific suggestion
        ratio = similarity(a, b)
        same_tense_variant = past_tense_suggestion(a) == b or past_tense_suggestion(b) == a
        if ratio < threshold and not same_tense_variant:
            continue
        new_name, other = (a, b) if b_is_prior else (b, a)
        where = "a prior event" if b_is_prior else "another new event"
        yield ctx.diag(
            "warning",
            f"Event {new_name!r} looks like a near-duplicate of {where} {other!r} (similarity {ratio:.2f})",
            section=SECTION_NEW_EVENTS,
            line=line,
            suggestion="keep one event and describe the difference with a property",
            kind="ambiguous",
        )


@rule(
    "TP105",
    "merge-candidate",
    "Suggests merging events that differ in one segment into one event with a property.",
    sections=(SECTION_NEW_EVENTS,),
)
def check_merge_candidates(ctx: LintContext) -> Iterator[Diagnostic]:
    reported: set[tuple[str, str]] = set()
    for a, b, line, b_is_prior in _event_pairs(ctx):
        merged = merge_candidate(a, b)
        if merged is None:
            continue
        key = (min(a, b), max(a, b))
        if key in reported:
            continue
        reported.add(key)
        merged_name, prop = merged
        origin = " (from a prior plan)" if b_is_prior else ""
        yield ctx.diag(
            "info",
            f"Events {a!r} and {b!r}{origin} differ in one segment; candidate merge into a property",
            section=SECTION_NEW_EVENTS,
            line=line,
            suggestion=f"track a single {merged_name!r} event with a {prop!r} property",
        )


# ---------------------------------------------------------------------------
# Event properties
# ---------------------------------------------------------------------------


def _iter_properties(ctx: LintContext) -> Iterator[tuple[str, PropertyDefinition]]:
    for event in ctx.plan.new_events:
        for prop in event.properties:
            yield event.name, prop


@rule(
    "TP201",
    "property-name-format",
    "Property names are lowercase snake_case and unique within their event.",
    sections=(SECTION_NEW_EVENTS,),
)
def check_property_names(ctx: LintContext) -> Iterator[Diagnostic]:
    for event in ctx.plan.new_events:
        counts = Counter(p.name for p in event.properties)
        reported: set[str] = set()
        for prop in event.properties:
            err = check_property_name(prop.name)
            if err:
                snake = to_snake_case(prop.name)
                yield ctx.diag(
                    "error",
                    f"{event.name}: {err}",
                    section=SECTION_NEW_EVENTS,
                    line=prop.line or event.line,
                    suggestion=f"rename to {snake!r}" if snake and snake != prop.name else None,
                )
            if counts[prop.name] > 1 and prop.name not in reported:
                reported.add(prop.name)
                yield ctx.diag(
                    "error",
                    f"{event.name}: property {prop.name!r} is declared {counts[prop.name]} times",
                    section=SECTION_NEW_EVENTS,
                    line=prop.line or event.line,
                )


@rule(
    "TP202",
    "boolean-prefix",
    "Boolean properties start with is_ or has_; other types do not.",
    sections=(SECTION_NEW_EVENTS,),
)
def check_boolean_prefix(ctx: LintContext) -> Iterator[Diagnostic]:
    for event_name, prop in _iter_properties(ctx):
        if prop.is_boolean and not has_boolean_prefix(prop.name):
            yield ctx.diag(
                "error",
                f"{event_name}: boolean property {prop.name!r} must start with is_ or has_",
                section=SECTION_NEW_EVENTS,
                line=prop.line,
                suggestion=f"rename to {boolean_name_suggestion(prop.name)!r}",
            )
        elif not prop.is_boolean and has_boolean_prefix(prop.name):
            yield ctx.diag(
                "warning",
                f"{event_name}: property {prop.name!r} has a boolean prefix but type {prop.type!r}",
                section=SECTION_NEW_EVENTS,
                line=prop.line,
            )


@rule(
    "TP203",
    "property-type",
    "Property types are recognised (string, number, boolean, datetime, array, object, enum, ...).",
    sections=(SECTION_NEW_EVENTS,),
)
def check_property_types(ctx: LintContext) -> Iterator[Diagnostic]:
    for event_name, prop in _iter_properties(ctx):
        if _base_type(prop.type) in KNOWN_PROPERTY_TYPES:
            continue
        yield ctx.diag(
            "warning",
            f"{event_name}: property {prop.name!r} has unrecognised type {prop.type!r}",
            section=SECTION_NEW_EVENTS,
            line=prop.line,
            suggestion="use one of array, boolean, datetime, enum, number, object, string",
            kind="ambiguous",
        )


# ---------------------------------------------------------------------------
# PII
# ---------------------------------------------------------------------------


@rule(
    "TP301",
    "pii-property-name",
    "Event properties never carry PII such as email, phone number, or full name.",
    sections=(SECTION_NEW_EVENTS,),
)
def check_pii_names(ctx: LintContext) -> Iterator[Diagnostic]:
    for event_name, prop in _iter_properties(ctx):
        label = pii_name_match(prop.name, ctx.options.extra_pii_names)
        if label:
            yield ctx.diag(
                "error",
                f"{event_name}: property {prop.name!r} looks like PII ({label})",
                section=SECTION_NEW_EVENTS,
                line=prop.line,
                suggestion="identify users by distinct ID and keep PII out of event properties",
            )


@rule(
    "TP302",
    "pii-property-value",
    "Example property values never look like an email address, phone number, or person's name.",
    sections=(SECTION_NEW_EVENTS,),
)
def check_pii_values(ctx: LintContext) -> Iterator[Diagnostic]:
    for event_name, prop in _iter_properties(ctx):
        match = pii_value_match(prop.example)
        if match is None:
            continue
        label, confident = match
        yield ctx.diag(
            "error" if confident else "warning",
            f"{event_name}: example value for {prop.name!r} looks like {'' if confident else 'it may be '}PII ({label})",
            section=SECTION_NEW_EVENTS,
            line=prop.line,
            suggestion="use a non-identifying example value",
            kind="violation" if confident else "ambiguous",
        )


# ---------------------------------------------------------------------------
# Funnel
# ---------------------------------------------------------------------------


@rule(
    "TP401",
    "funnel-unresolved-step",
    "Every funnel step names an event from this plan's new events or from a prior plan.",
    sections=(SECTION_FUNNEL, SECTION_NEW_EVENTS),
)
def check_funnel_references(ctx: LintContext) -> Iterator[Diagnostic]:
    known = ctx.known_events
    for step in ctx.plan.funnel.steps:
        if step.event in known:
            continue
        closest = _closest(step.event, known)
        yield ctx.diag(
            "error",
            f"Funnel step {step.index} references unknown event {step.event!r}",
            section=SECTION_FUNNEL,
            line=step.line,
            suggestion=f"did you mean {closest!r}?" if closest else "add it under 'New events to add' or supply prior events",
        )


@rule(
    "TP402",
    "funnel-shape",
    "Funnels have at least two steps numbered 1..N and do not route through retired events.",
    sections=(SECTION_FUNNEL,),
)
def check_funnel_shape(ctx: LintContext) -> Iterator[Diagnostic]:
    steps = ctx.plan.funnel.steps
    if len(steps) < 2:
        yield ctx.diag(
            "warning",
            f"Funnel has {len(steps)} step(s); conversion needs at least two",
            section=SECTION_FUNNEL,
            line=steps[0].line if steps else None,
        )
    for expected, step in enumerate(steps, start=1):
        if step.index != expected:
            yield ctx.diag(
                "warning",
                f"Funnel step numbered {step.index} is in position {expected}",
                section=SECTION_FUNNEL,
                line=step.line,
                suggestion="number steps 1..N in order",
            )
            break
    deprecating = set(ctx.plan.deprecated_event_names) if ctx.section_ok(SECTION_DEPRECATED_EVENTS) else set()
    flagged = {e.name for e in ctx.plan.new_events if e.deprecated or e.archived_since is not None}
    for step in steps:
        if step.event in deprecating:
            yield ctx.diag(
                "warning",
                f"Funnel step {step.index} uses {step.event!r}, which this plan deprecates",
                section=SECTION_FUNNEL,
                line=step.line,
            )
        elif step.event in flagged:
            yield ctx.diag(
                "warning",
                f"Funnel step {step.index} uses {step.event!r}, which this plan marks as retired",
                section=SECTION_FUNNEL,
                line=step.line,
            )
        elif step.event in ctx.options.archived_events:
            yield ctx.diag(
                "warning",
                f"Funnel step {step.index} uses archived event {step.event!r}",
                section=SECTION_FUNNEL,
                line=step.line,
            )
        elif step.event in ctx.options.deprecated_events:
            yield ctx.diag(
                "warning",
                f"Funnel step {step.index} uses deprecated event {step.event!r}",
                section=SECTION_FUNNEL,
                line=step.line,
            )


@rule(
    "TP403",
    "comparison-window",
    "The funnel states a comparison window such as '14 days'.",
    sections=(SECTION_FUNNEL,),
)
def check_comparison_window(ctx: LintContext) -> Iterator[Diagnostic]:
    funnel = ctx.plan.funnel
    if not funnel.comparison_window:
        yield ctx.diag(
            "warning",
            "Funnel has no comparison window",
            section=SECTION_FUNNEL,
            suggestion="add 'Comparison window: 14 days'",
            kind="ambiguous",
        )
    elif funnel.window is None:
        yield ctx.diag(
            "warning",
            f"Cannot read comparison window {funnel.comparison_window!r}",
            section=SECTION_FUNNEL,
            line=funnel.window_line,
            suggestion="use '<number> minutes|hours|days|weeks'",
            kind="ambiguous",
        )


# ---------------------------------------------------------------------------
# User properties
# ---------------------------------------------------------------------------


@rule(
    "TP501",
    "set-once-conflict",
    "A property written set-once is never also written always-overwrite in the same plan.",
    sections=(SECTION_USER_PROPERTIES,),
)
def check_set_once_conflicts(ctx: LintContext) -> Iterator[Diagnostic]:
    first_policy: dict[str, str] = {}
    reported: set[str] = set()
    for update in ctx.plan.user_property_updates:
        previous = first_policy.setdefault(update.name, update.write_policy)
        if previous != update.write_policy and update.name not in reported:
            reported.add(update.name)
            yield ctx.diag(
                "error",
                f"User property {update.name!r} is written both set-once and always-overwrite",
                section=SECTION_USER_PROPERTIES,
                line=update.line,
                suggestion="pick one write policy (set_once for first-touch values, set for latest values)",
            )


@rule(
    "TP502",
    "user-property-unresolved-event",
    "User property updates hang off events from this plan or a prior plan.",
    sections=(SECTION_USER_PROPERTIES, SECTION_NEW_EVENTS),
)
def check_user_property_events(ctx: LintContext) -> Iterator[Diagnostic]:
    known = ctx.known_events
    reported: set[str] = set()
    for update in ctx.plan.user_property_updates:
        if update.on_event in known or update.on_event in reported:
            continue
        reported.add(update.on_event)
        closest = _closest(update.on_event, known)
        yield ctx.diag(
            "error",
            f"User property update triggers on unknown event {update.on_event!r}",
            section=SECTION_USER_PROPERTIES,
            line=update.line,
            suggestion=f"did you mean {closest!r}?" if closest else None,
        )


@rule(
    "TP503",
    "user-property-name",
    "User property names are snake_case, boolean values use is_/has_, and names avoid obvious PII.",
    sections=(SECTION_USER_PROPERTIES,),
)
def check_user_property_names(ctx: LintContext) -> Iterator[Diagnostic]:
    seen: set[str] = set()
    for update in ctx.plan.user_property_updates:
        if update.name in seen:
            continue
        seen.add(update.name)
        err = check_property_name(update.name)
        if err:
            yield ctx.diag("warning", f"User property: {err}", section=SECTION_USER_PROPERTIES, line=update.line)
        if update.type == "boolean" and not has_boolean_prefix(update.name):
            yield ctx.diag(
                "warning",
                f"User property {update.name!r} stores a boolean but lacks an is_/has_ prefix",
                section=SECTION_USER_PROPERTIES,
                line=update.line,
                suggestion=f"rename to {boolean_name_suggestion(update.name)!r}",
            )
        label = pii_name_match(update.name, ctx.options.extra_pii_names)
        if label:
            yield ctx.diag(
                "warning",
                f"User property {update.name!r} looks like PII ({label}); confirm it belongs on the person profile",
                section=SECTION_USER_PROPERTIES,
                line=update.line,
            )


# ---------------------------------------------------------------------------
# Deprecation
# ---------------------------------------------------------------------------


@rule(
    "TP601",
    "deprecation",
    "Deprecated events have a valid date, a resolvable replacement, and are not also added.",
    sections=(SECTION_DEPRECATED_EVENTS, SECTION_NEW_EVENTS),
)
def check_deprecations(ctx: LintContext) -> Iterator[Diagnostic]:
    new_names = set(ctx.plan.new_event_names)
    known = ctx.known_events
    prior = ctx.options.known_prior_events
    for event in ctx.plan.new_events:
        if event.archived_since is not None:
            yield ctx.diag(
                "error",
                f"New event {event.name!r} is marked archived since {event.archived_since.isoformat()}; "
                "archived names are never reused",
                section=SECTION_NEW_EVENTS,
                line=event.line,
                suggestion="pick a new event name",
            )
        elif event.deprecated:
            yield ctx.diag(
                "error",
                f"New event {event.name!r} is marked deprecated by the plan that adds it",
                section=SECTION_NEW_EVENTS,
                line=event.line,
                suggestion="drop the deprecated flag, or list the event under 'Events to deprecate' in a later plan",
            )
    for dep in ctx.plan.deprecated_events:
        if dep.name in new_names:
            yield ctx.diag(
                "error",
                f"Event {dep.name!r} is both added and deprecated by this plan",
                section=SECTION_DEPRECATED_EVENTS,
                line=dep.line,
            )
        elif prior and dep.name not in prior:
            yield ctx.diag(
                "warning",
                f"Deprecated event {dep.name!r} is not in any prior plan",
                section=SECTION_DEPRECATED_EVENTS,
                line=dep.line,
                kind="ambiguous",
            )
        if dep.name in ctx.options.archived_events:
            yield ctx.diag(
                "info",
                f"Event {dep.name!r} is already archived",
                section=SECTION_DEPRECATED_EVENTS,
                line=dep.line,
            )
        if dep.replaced_by is not None:
            if dep.replaced_by == dep.name:
                yield ctx.diag(
                    "error",
                    f"Event {dep.name!r} cannot replace itself",
                    section=SECTION_DEPRECATED_EVENTS,
                    line=dep.line,
                )
            elif dep.replaced_by not in known:
                yield ctx.diag(
                    "error",
                    f"Replacement {dep.replaced_by!r} for {dep.name!r} is not a known event",
                    section=SECTION_DEPRECATED_EVENTS,
                    line=dep.line,
                    suggestion="add the replacement under 'New events to add'",
                )
        if not dep.raw_date:
            yield ctx.diag(
                "warning",
                f"Deprecated event {dep.name!r} has no deprecation date",
                section=SECTION_DEPRECATED_EVENTS,
                line=dep.line,
                suggestion="add 'Deprecation date: YYYY-MM-DD'",
            )
        elif dep.deprecation_date is None:
            yield ctx.diag(
                "error",
                f"Deprecation date {dep.raw_date!r} for {dep.name!r} is not an ISO date",
                section=SECTION_DEPRECATED_EVENTS,
                line=dep.line,
                suggestion="use YYYY-MM-DD",
            )
