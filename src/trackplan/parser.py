"""Tracking-plan parser -- free text (or JSON) into a TrackingPlan.

The text format is line oriented. Unindented ``Key: value`` lines start a
header field or a block section; indented lines belong to the block above
them. Each block has its own line grammar. A malformed block raises
StructuralError internally; the parser records it as a structural
diagnostic, marks the section broken, and carries on with the next section.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path
from typing import Any

from trackplan.diagnostics import Diagnostic, Location
from trackplan.schema import (
    BLOCK_SECTIONS,
    HEADER_FIELDS,
    REQUIRED_SECTIONS,
    SECTION_BASELINE,
    SECTION_BUSINESS_QUESTION,
    SECTION_CHANGE,
    SECTION_DEPRECATED_EVENTS,
    SECTION_FEATURE,
    SECTION_FUNNEL,
    SECTION_NEW_EVENTS,
    SECTION_SUCCESS_METRIC,
    SECTION_TITLES,
    SECTION_USER_PROPERTIES,
    DeprecatedEvent,
    EventDefinition,
    Funnel,
    FunnelStep,
    PropertyDefinition,
    StructuralError,
    TrackingPlan,
    TrackingPlanError,
    UserPropertyUpdate,
    WritePolicy,
)

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^([A-Za-z][A-Za-z ()/-]*?)\s*:\s*(.*)$")
_STEP_RE = re.compile(r"^step\s+(\d+)\s*:\s*(.*)$", re.IGNORECASE)
_WINDOW_RE = re.compile(r"^comparison\s+window\s*:\s*(.*)$", re.IGNORECASE)
_EVENT_NAME_RE = re.compile(r"^event\s+name\s*:\s*(.*)$", re.IGNORECASE)
_FIRES_WHEN_RE = re.compile(r"^fires\s+when\s*:\s*(.*)$", re.IGNORECASE)
_PROPERTIES_RE = re.compile(r"^properties\s*:\s*(.*)$", re.IGNORECASE)
_PROPERTY_LINE_RE = re.compile(r"^[-*]\s*([^:]+?)\s*:\s*([^()]*?)\s*(?:\((.*)\))?\s*$")
_DEPRECATE_RE = re.compile(
    r"^event\s*:\s*(\S+?)\s*(?:\(\s*replaced\s+by\s*:?\s*([^)]*?)\s*\))?\s*$",
    re.IGNORECASE,
)
_DEPRECATION_DATE_RE = re.compile(r"^deprecation\s+date\s*:\s*(.*)$", re.IGNORECASE)
_REPLACED_BY_RE = re.compile(r"^replaced\s+by\s*:\s*(.*)$", re.IGNORECASE)
_ON_EVENT_RE = re.compile(r"^on\s+(\S+)\s*(?:→|->|=>)\s*(.+)$", re.IGNORECASE)
_WRITE_RE = re.compile(r"^(set[\s_-]once|set)\s+(.+)$", re.IGNORECASE)
_DURATION_RE = re.compile(
    r"^(\d+(?:\.\d+)?)\s*(m|mins?|minutes?|h|hrs?|hours?|d|days?|w|wks?|weeks?)\b",
    re.IGNORECASE,
)
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_NULL_WORDS: frozenset[str] = frozenset({"", "null", "none", "nothing", "n/a", "-"})

# Unindented lines that still belong to the block above them.
_BLOCK_LINE_RES: tuple[re.Pattern[str], ...] = (
    _STEP_RE,
    _WINDOW_RE,
    _EVENT_NAME_RE,
    _FIRES_WHEN_RE,
    _PROPERTIES_RE,
    _DEPRECATE_RE,
    _DEPRECATION_DATE_RE,
    _REPLACED_BY_RE,
    _ON_EVENT_RE,
    _WRITE_RE,
)


@dataclass(frozen=True)
class ParsedPlan:
    """A parsed plan plus whatever went wrong structurally while parsing it."""

    plan: TrackingPlan
    structural: tuple[Diagnostic, ...] = ()
    broken_sections: frozenset[str] = frozenset()
    present_sections: frozenset[str] = frozenset()

    @property
    def source(self) -> str:
        return self.plan.source


@dataclass
class _Line:
    number: int
    text: str
    indented: bool


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def clean_name(value: str) -> str:
    """Strip whitespace and markdown quoting from an event or property name."""
    return value.strip().strip("`'\"").strip()


def parse_duration(text: str) -> timedelta | None:
    """Parse ``14 days``, ``2w``, ``36 hours``. Returns None if unrecognised."""
    m = _DURATION_RE.match(text.strip())
    if m is None:
        return None
    amount = float(m.group(1))
    unit = m.group(2).lower()
    if unit.startswith("m"):
        return timedelta(minutes=amount)
    if unit.startswith("h"):
        return timedelta(hours=amount)
    if unit.startswith("d"):
        return timedelta(days=amount)
    return timedelta(weeks=amount)


def parse_date(text: str) -> date | None:
    """Parse an ISO ``YYYY-MM-DD`` date. Returns None if unrecognised."""
    cleaned = text.strip()
    if not _ISO_DATE_RE.match(cleaned):
        return None
    try:
        return date.fromisoformat(cleaned)
    except ValueError:
        return None


def infer_value_type(value: str) -> str:
    """Guess the type a user-property write stores from its value text."""
    v = value.strip().strip("\"'`").lower()
    if v in ("true", "false"):
        return "boolean"
    if v in ("increment", "+1", "-1") or re.fullmatch(r"[+-]?\d+(\.\d+)?", v):
        return "number"
    if v in ("now", "{now}", "{timestamp}", "timestamp") or parse_date(v) is not None:
        return "datetime"
    return "string"


def _null_or_name(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = clean_name(value)
    return None if cleaned.lower() in _NULL_WORDS else cleaned


def _normalize_key(key: str) -> str:
    return " ".join(key.lower().split())


def _is_none_block(lines: list[_Line]) -> bool:
    return len(lines) == 1 and lines[0].text.lower().rstrip(".") in ("none", "n/a", "-")


# ---------------------------------------------------------------------------
# Block parsers
# ---------------------------------------------------------------------------


def _parse_funnel(lines: list[_Line]) -> Funnel:
    steps: list[FunnelStep] = []
    window_text = ""
    window_line: int | None = None
    if _is_none_block(lines):
        return Funnel()
    for ln in lines:
        if m := _STEP_RE.match(ln.text):
            event = clean_name(m.group(2))
            if not event:
                msg = f"Step {m.group(1)} has no event name"
                raise StructuralError(SECTION_FUNNEL, msg, line=ln.number)
            steps.append(FunnelStep(index=int(m.group(1)), event=event, line=ln.number))
        elif m := _WINDOW_RE.match(ln.text):
            window_text = m.group(1).strip()
            window_line = ln.number
        else:
            msg = f"Unrecognised funnel line {ln.text!r} (expected 'Step N: <event>' or 'Comparison window: <duration>')"
            raise StructuralError(SECTION_FUNNEL, msg, line=ln.number)
    return Funnel(
        steps=tuple(steps),
        comparison_window=window_text,
        window=parse_duration(window_text) if window_text else None,
        window_line=window_line,
    )


def _parse_new_events(lines: list[_Line]) -> tuple[EventDefinition, ...]:
    if _is_none_block(lines):
        return ()
    events: list[EventDefinition] = []
    current: dict[str, Any] | None = None
    in_properties = False

    def flush() -> None:
        if current is not None:
            events.append(
                EventDefinition(
                    name=current["name"],
                    fires_when=current["fires_when"],
                    properties=tuple(current["properties"]),
                    line=current["line"],
                )
            )

    for ln in lines:
        if m := _EVENT_NAME_RE.match(ln.text):
            flush()
            name = clean_name(m.group(1))
            if not name:
                raise StructuralError(SECTION_NEW_EVENTS, "Event name is empty", line=ln.number)
            current = {"name": name, "fires_when": "", "properties": [], "line": ln.number}
            in_properties = False
            continue
        if current is None:
            msg = f"Expected 'Event name: <event_name>' before {ln.text!r}"
            raise StructuralError(SECTION_NEW_EVENTS, msg, line=ln.number)
        if m := _FIRES_WHEN_RE.match(ln.text):
            current["fires_when"] = m.group(1).strip()
            in_properties = False
        elif m := _PROPERTIES_RE.match(ln.text):
            rest = m.group(1).strip().lower()
            if rest and rest not in _NULL_WORDS:
                msg = f"Properties must be listed one per line below 'Properties:', got {m.group(1)!r}"
                raise StructuralError(SECTION_NEW_EVENTS, msg, line=ln.number)
            in_properties = True
        elif in_properties and ln.text.startswith(("-", "*")):
            pm = _PROPERTY_LINE_RE.match(ln.text)
            if pm is None or not pm.group(2):
                msg = f"Property line {ln.text!r} must read '- <prop_name>: <type>  (<example>)'"
                raise StructuralError(SECTION_NEW_EVENTS, msg, line=ln.number)
            example = pm.group(3)
            current["properties"].append(
                PropertyDefinition(
                    name=clean_name(pm.group(1)),
                    type=pm.group(2).strip().lower(),
                    example=example.strip() if example is not None else None,
                    line=ln.number,
                )
            )
        elif ln.text.startswith(("-", "*")):
            msg = f"Property line {ln.text!r} in event {current['name']!r} comes before 'Properties:'"
            raise StructuralError(SECTION_NEW_EVENTS, msg, line=ln.number)
        elif current["fires_when"] and not in_properties and ln.indented and not _KEY_RE.match(ln.text):
            current["fires_when"] += " " + ln.text
        else:
            msg = f"Unrecognised line in event {current['name']!r}: {ln.text!r}"
            raise StructuralError(SECTION_NEW_EVENTS, msg, line=ln.number)
    flush()
    return tuple(events)


def _parse_deprecated_events(lines: list[_Line]) -> tuple[DeprecatedEvent, ...]:
    if _is_none_block(lines):
        return ()
    entries: list[dict[str, Any]] = []
    for ln in lines:
        if m := _DEPRECATION_DATE_RE.match(ln.text):
            if not entries:
                raise StructuralError(SECTION_DEPRECATED_EVENTS, "Deprecation date before any 'Event:' line", line=ln.number)
            raw = m.group(1).strip()
            entries[-1]["raw_date"] = raw
            entries[-1]["deprecation_date"] = parse_date(raw)
        elif m := _REPLACED_BY_RE.match(ln.text):
            if not entries:
                raise StructuralError(SECTION_DEPRECATED_EVENTS, "'Replaced by' before any 'Event:' line", line=ln.number)
            entries[-1]["replaced_by"] = _null_or_name(m.group(1))
        elif m := _DEPRECATE_RE.match(ln.text):
            entries.append(
                {
                    "name": clean_name(m.group(1)),
                    "replaced_by": _null_or_name(m.group(2)),
                    "deprecation_date": None,
                    "raw_date": "",
                    "line": ln.number,
                }
            )
        else:
            msg = f"Unrecognised line {ln.text!r} (expected 'Event: <event_name>  (replaced by <event_name>)')"
            raise StructuralError(SECTION_DEPRECATED_EVENTS, msg, line=ln.number)
    return tuple(DeprecatedEvent(**e) for e in entries)


def _write_policy(verb: str) -> WritePolicy:
    return "set-once" if verb.lower().replace(" ", "_").replace("-", "_") == "set_once" else "always-overwrite"


def _parse_assignments(text: str, *, on_event: str, policy: WritePolicy, line: int) -> list[UserPropertyUpdate]:
    updates: list[UserPropertyUpdate] = []
    for chunk in text.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        name, sep, value = chunk.partition(":")
        if not sep or not name.strip():
            msg = f"Assignment {chunk!r} must read '<prop_name>: <value>'"
            raise StructuralError(SECTION_USER_PROPERTIES, msg, line=line)
        value = value.strip()
        updates.append(
            UserPropertyUpdate(
                name=clean_name(name),
                on_event=on_event,
                value=value,
                type=infer_value_type(value),
                write_policy=policy,
                line=line,
            )
        )
    if not updates:
        raise StructuralError(SECTION_USER_PROPERTIES, "No property assignments found", line=line)
    return updates


def _parse_user_properties(lines: list[_Line]) -> tuple[UserPropertyUpdate, ...]:
    if _is_none_block(lines):
        return ()
    updates: list[UserPropertyUpdate] = []
    last_event = ""
    for ln in lines:
        # Follow-up "set_once ..." lines apply to the event named above them.
        clause = ln.text
        if m := _ON_EVENT_RE.match(ln.text):
            last_event = clean_name(m.group(1))
            clause = m.group(2).strip()
        wm = _WRITE_RE.match(clause) if last_event else None
        if wm is None:
            msg = f"Unrecognised line {ln.text!r} (expected 'On <event_name> → set <prop_name>: <value>, ...')"
            raise StructuralError(SECTION_USER_PROPERTIES, msg, line=ln.number)
        updates.extend(
            _parse_assignments(wm.group(2), on_event=last_event, policy=_write_policy(wm.group(1)), line=ln.number)
        )
    return tuple(updates)


_BLOCK_PARSERS: dict[str, Callable[[list[_Line]], Any]] = {
    SECTION_FUNNEL: _parse_funnel,
    SECTION_NEW_EVENTS: _parse_new_events,
    SECTION_DEPRECATED_EVENTS: _parse_deprecated_events,
    SECTION_USER_PROPERTIES: _parse_user_properties,
}


# ---------------------------------------------------------------------------
# Document parser
# ---------------------------------------------------------------------------


def _structural(source: str, err: StructuralError, severity: str = "error") -> Diagnostic:
    name = "missing-section" if err.rule_id == "TP001" else "malformed-line"
    return Diagnostic(
        rule_id=err.rule_id,
        rule=name,
        severity=severity,  # type: ignore[arg-type]
        kind="structural",
        message=str(err),
        location=Location(source=source, section=SECTION_TITLES.get(err.section, err.section), line=err.line),
    )


def _missing_sections(source: str, present: set[str]) -> list[StructuralError]:
    return [
        StructuralError(section, f"Missing required section '{SECTION_TITLES[section]}:'", rule_id="TP001")
        for section in REQUIRED_SECTIONS
        if section not in present
    ]


def parse_plan(text: str, source: str = "<plan>") -> ParsedPlan:
    """Parse a tracking-plan document written in the text template format."""
    text = text.lstrip("\ufeff")
    headers: dict[str, str] = {}
    blocks: dict[str, list[_Line]] = {}
    present: set[str] = set()
    broken: set[str] = set()
    diagnostics: list[Diagnostic] = []
    current_header: str | None = None
    current_block: str | None = None
    discarding = False

    for number, raw in enumerate(text.splitlines(), start=1):
        stripped = raw.strip()
        if not stripped or stripped.startswith("#"):
            continue
        indented = raw[:1].isspace()
        m = None if indented else _KEY_RE.match(stripped)
        key = _normalize_key(m.group(1)) if m else ""
        section = HEADER_FIELDS.get(key) or BLOCK_SECTIONS.get(key)

        if section is not None:
            current_header = current_block = None
            discarding = False
            if section in present:
                broken.add(section)
                err = StructuralError(section, f"Section '{SECTION_TITLES[section]}' appears more than once", line=number)
                diagnostics.append(_structural(source, err))
                discarding = True
                continue
            present.add(section)
            if key in HEADER_FIELDS:
                headers[section] = m.group(2).strip()  # type: ignore[union-attr]
                current_header = section
            else:
                blocks[section] = []
                current_block = section
                inline = m.group(2).strip()  # type: ignore[union-attr]
                if inline:
                    blocks[section].append(_Line(number, inline, True))
            continue

        if discarding and (indented or any(r.match(stripped) for r in _BLOCK_LINE_RES)):
            continue
        discarding = False
        if current_block is not None and (indented or any(r.match(stripped) for r in _BLOCK_LINE_RES)):
            blocks[current_block].append(_Line(number, stripped, indented))
            continue
        if current_header is not None and indented:
            headers[current_header] = f"{headers[current_header]} {stripped}".strip()
            continue

        current_header = current_block = None
        if m is not None:
            msg = f"Unknown field '{m.group(1)}:' ignored"
            diagnostics.append(_structural(source, StructuralError("document", msg, line=number), "warning"))
        else:
            msg = f"Line {stripped!r} does not belong to any section"
            diagnostics.append(_structural(source, StructuralError("document", msg, line=number)))

    for err in _missing_sections(source, present):
        diagnostics.append(_structural(source, err))
        broken.add(err.section)

    parsed: dict[str, Any] = {}
    for section, lines in blocks.items():
        if section in broken:
            continue
        try:
            parsed[section] = _BLOCK_PARSERS[section](lines)
        except StructuralError as exc:
            logger.debug("Structural error in %s section of %s: %s", section, source, exc)
            diagnostics.append(_structural(source, exc))
            broken.add(section)

    plan = TrackingPlan(
        feature=headers.get(SECTION_FEATURE, ""),
        change=headers.get(SECTION_CHANGE, ""),
        business_question=headers.get(SECTION_BUSINESS_QUESTION, ""),
        success_metric=headers.get(SECTION_SUCCESS_METRIC, ""),
        baseline=headers.get(SECTION_BASELINE, ""),
        funnel=parsed.get(SECTION_FUNNEL, Funnel()),
        new_events=parsed.get(SECTION_NEW_EVENTS, ()),
        deprecated_events=parsed.get(SECTION_DEPRECATED_EVENTS, ()),
        user_property_updates=parsed.get(SECTION_USER_PROPERTIES, ()),
        source=source,
    )
    return ParsedPlan(
        plan=plan,
        structural=tuple(diagnostics),
        broken_sections=frozenset(broken),
        present_sections=frozenset(present),
    )


# ---------------------------------------------------------------------------
# Structured records (JSON)
# ---------------------------------------------------------------------------


def _require_list(section: str, value: Any) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        msg = f"'{section}' must be a list, got {type(value).__name__}"
        raise StructuralError(section, msg)
    return value


def _require_dict(section: str, value: Any, index: int) -> dict[str, Any]:
    if not isinstance(value, dict):
        msg = f"'{section}' entry at index {index} must be an object, got {type(value).__name__}"
        raise StructuralError(section, msg)
    return value


def _require_name(section: str, entry: dict[str, Any], key: str, index: int) -> str:
    value = entry.get(key)
    if not isinstance(value, str) or not value.strip():
        msg = f"'{section}' entry at index {index} needs a non-empty string '{key}'"
        raise StructuralError(section, msg)
    return clean_name(value)


def _funnel_from_dict(raw: Any) -> Funnel:
    if isinstance(raw, list):
        raw = {"steps": raw}
    if not isinstance(raw, dict):
        msg = f"'funnel' must be an object or a list of event names, got {type(raw).__name__}"
        raise StructuralError(SECTION_FUNNEL, msg)
    steps = []
    for i, step in enumerate(_require_list(SECTION_FUNNEL, raw.get("steps"))):
        if not isinstance(step, str) or not step.strip():
            msg = f"funnel step at index {i} must be a non-empty event name"
            raise StructuralError(SECTION_FUNNEL, msg)
        steps.append(FunnelStep(index=i + 1, event=clean_name(step)))
    window = str(raw.get("comparison_window") or "")
    return Funnel(steps=tuple(steps), comparison_window=window, window=parse_duration(window) if window else None)


def _properties_from_raw(raw: Any, index: int) -> tuple[PropertyDefinition, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, dict):
        msg = f"'new_events' entry at index {index}: 'properties' must be an object"
        raise StructuralError(SECTION_NEW_EVENTS, msg)
    props = []
    for name, definition in raw.items():
        if isinstance(definition, str):
            props.append(PropertyDefinition(name=name, type=definition.lower()))
        elif isinstance(definition, dict) and isinstance(definition.get("type"), str):
            example = definition.get("example")
            props.append(
                PropertyDefinition(
                    name=name,
                    type=definition["type"].lower(),
                    example=None if example is None else str(example),
                )
            )
        else:
            msg = f"property {name!r} must be a type string or an object with a 'type'"
            raise StructuralError(SECTION_NEW_EVENTS, msg)
    return tuple(props)


def _new_events_from_dict(raw: Any) -> tuple[EventDefinition, ...]:
    events = []
    for i, entry in enumerate(_require_list(SECTION_NEW_EVENTS, raw)):
        entry = _require_dict(SECTION_NEW_EVENTS, entry, i)
        archived = entry.get("archived_since")
        events.append(
            EventDefinition(
                name=_require_name(SECTION_NEW_EVENTS, entry, "name", i),
                fires_when=str(entry.get("fires_when") or ""),
                properties=_properties_from_raw(entry.get("properties"), i),
                deprecated=bool(entry.get("deprecated", False)),
                archived_since=parse_date(archived) if isinstance(archived, str) else None,
            )
        )
    return tuple(events)


def _deprecated_from_dict(raw: Any) -> tuple[DeprecatedEvent, ...]:
    entries = []
    for i, entry in enumerate(_require_list(SECTION_DEPRECATED_EVENTS, raw)):
        entry = _require_dict(SECTION_DEPRECATED_EVENTS, entry, i)
        raw_date = str(entry.get("deprecation_date") or "")
        replaced = entry.get("replaced_by")
        entries.append(
            DeprecatedEvent(
                name=_require_name(SECTION_DEPRECATED_EVENTS, entry, "name", i),
                replaced_by=_null_or_name(replaced) if isinstance(replaced, str) else None,
                deprecation_date=parse_date(raw_date),
                raw_date=raw_date,
            )
        )
    return tuple(entries)


def _user_properties_from_dict(raw: Any) -> tuple[UserPropertyUpdate, ...]:
    updates = []
    for i, entry in enumerate(_require_list(SECTION_USER_PROPERTIES, raw)):
        entry = _require_dict(SECTION_USER_PROPERTIES, entry, i)
        policy = entry.get("write_policy", "always-overwrite")
        if policy not in ("always-overwrite", "set-once"):
            msg = f"'user_property_updates' entry at index {i}: write_policy must be 'always-overwrite' or 'set-once'"
            raise StructuralError(SECTION_USER_PROPERTIES, msg)
        value = str(entry.get("value", ""))
        updates.append(
            UserPropertyUpdate(
                name=_require_name(SECTION_USER_PROPERTIES, entry, "name", i),
                on_event=_require_name(SECTION_USER_PROPERTIES, entry, "on_event", i),
                value=value,
                type=str(entry.get("type") or infer_value_type(value)),
                write_policy=policy,
                description=str(entry.get("description") or ""),
            )
        )
    return tuple(updates)


_RECORD_PARSERS: dict[str, Callable[[Any], Any]] = {
    SECTION_FUNNEL: _funnel_from_dict,
    SECTION_NEW_EVENTS: _new_events_from_dict,
    SECTION_DEPRECATED_EVENTS: _deprecated_from_dict,
    SECTION_USER_PROPERTIES: _user_properties_from_dict,
}


def plan_from_dict(data: dict[str, Any], source: str = "<plan>") -> ParsedPlan:
    """Build a ParsedPlan from a structured record (the to_dict() shape)."""
    if not isinstance(data, dict):
        msg = f"Tracking plan record must be a JSON object, got {type(data).__name__}"
        raise TrackingPlanError(msg)
    present = {s for s in (*REQUIRED_SECTIONS, SECTION_DEPRECATED_EVENTS, SECTION_USER_PROPERTIES) if s in data}
    diagnostics: list[Diagnostic] = []
    broken: set[str] = set()
    for err in _missing_sections(source, present):
        diagnostics.append(_structural(source, err))
        broken.add(err.section)

    parsed: dict[str, Any] = {}
    for section, parse in _RECORD_PARSERS.items():
        if section not in present:
            continue
        try:
            parsed[section] = parse(data[section])
        except StructuralError as exc:
            diagnostics.append(_structural(source, exc))
            broken.add(section)

    def header(section: str) -> str:
        value = data.get(section)
        return "" if value is None else str(value).strip()

    plan = TrackingPlan(
        feature=header(SECTION_FEATURE),
        change=header(SECTION_CHANGE),
        business_question=header(SECTION_BUSINESS_QUESTION),
        success_metric=header(SECTION_SUCCESS_METRIC),
        baseline=header(SECTION_BASELINE),
        funnel=parsed.get(SECTION_FUNNEL, Funnel()),
        new_events=parsed.get(SECTION_NEW_EVENTS, ()),
        deprecated_events=parsed.get(SECTION_DEPRECATED_EVENTS, ()),
        user_property_updates=parsed.get(SECTION_USER_PROPERTIES, ()),
        source=source,
    )
    return ParsedPlan(
        plan=plan,
        structural=tuple(diagnostics),
        broken_sections=frozenset(broken),
        present_sections=frozenset(present),
    )


def parse_plan_file(path: Path) -> ParsedPlan:
    """Read and parse a plan file. ``.json`` files are read as structured records.

    Raises OSError if the file cannot be read and TrackingPlanError if a JSON
    plan is not valid JSON.
    """
    raw = path.read_text(encoding="utf-8")
    source = str(path)
    if path.suffix.lower() == ".json":
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            msg = f"{path}: invalid JSON: {exc}"
            raise TrackingPlanError(msg) from exc
        return plan_from_dict(data, source=source)
    return parse_plan(raw, source=source)
