"""Shared name and value checks used by the lint rules.

Pure functions -- no Click or filesystem dependencies.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from difflib import SequenceMatcher

from trackplan.schema import (
    BOOLEAN_PREFIXES,
    EVENT_NAME_PATTERN,
    PROPERTY_NAME_PATTERN,
    AmbiguousInput,
    TrackingPlanError,
)

_MAX_NAME_LENGTH = 64

# Present-tense product verbs and their past forms. Event names describe
# something that already happened, so the action segment is past tense.
PRESENT_TO_PAST: dict[str, str] = {
    "accept": "accepted",
    "activate": "activated",
    "add": "added",
    "apply": "applied",
    "approve": "approved",
    "archive": "archived",
    "begin": "begun",
    "buy": "bought",
    "cancel": "cancelled",
    "change": "changed",
    "click": "clicked",
    "close": "closed",
    "complete": "completed",
    "connect": "connected",
    "copy": "copied",
    "create": "created",
    "delete": "deleted",
    "disable": "disabled",
    "dismiss": "dismissed",
    "download": "downloaded",
    "edit": "edited",
    "enable": "enabled",
    "expand": "expanded",
    "export": "exported",
    "fail": "failed",
    "finish": "finished",
    "import": "imported",
    "invite": "invited",
    "join": "joined",
    "leave": "left",
    "load": "loaded",
    "open": "opened",
    "pause": "paused",
    "pay": "paid",
    "play": "played",
    "publish": "published",
    "purchase": "purchased",
    "refund": "refunded",
    "reject": "rejected",
    "remove": "removed",
    "renew": "renewed",
    "request": "requested",
    "restore": "restored",
    "save": "saved",
    "schedule": "scheduled",
    "search": "searched",
    "select": "selected",
    "send": "sent",
    "share": "shared",
    "show": "shown",
    "start": "started",
    "submit": "submitted",
    "subscribe": "subscribed",
    "update": "updated",
    "upgrade": "upgraded",
    "upload": "uploaded",
    "verify": "verified",
    "view": "viewed",
}

_IRREGULAR_PAST: frozenset[str] = frozenset(
    {
        "begun",
        "bought",
        "built",
        "chosen",
        "done",
        "drawn",
        "found",
        "given",
        "got",
        "gotten",
        "held",
        "kept",
        "left",
        "lost",
        "made",
        "met",
        "paid",
        "read",
        "reset",
        "run",
        "seen",
        "sent",
        "set",
        "shown",
        "sold",
        "spent",
        "taken",
        "won",
        "written",
    }
)

# Nouns that happen to end in "ed".
_ED_NOUNS: frozenset[str] = frozenset({"bed", "bread", "embed", "feed", "need", "red", "seed", "shed", "speed", "thread"})

# Property name shapes that identify a person. Values are the PII label shown
# in diagnostics.
PII_NAME_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(^|_)e_?mail(_address)?($|_)"), "email address"),
    (re.compile(r"(^|_)(phone|mobile|cell|telephone|tel)(_number)?($|_)"), "phone number"),
    (re.compile(r"(^|_)(full|first|last|given|family|middle|sur)_?name$"), "personal name"),
    (re.compile(r"^(user|customer|contact|person|member|legal)_name$"), "personal name"),
    (re.compile(r"(^|_)(street|home|postal|mailing|billing|shipping)_address$"), "postal address"),
    (re.compile(r"(^|_)ip(_address)?$"), "IP address"),
    (re.compile(r"(^|_)(ssn|social_security(_number)?|passport(_number)?|national_id|tax_id)$"), "government identifier"),
    (re.compile(r"(^|_)(dob|date_of_birth|birth_?date|birthday)$"), "date of birth"),
    (re.compile(r"(^|_)(password|passwd|credit_card(_number)?|card_number|cvv|iban)$"), "credential or payment detail"),
)

EMAIL_VALUE_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}")
PHONE_VALUE_RE = re.compile(
    r"^(\+\d{7,15}|(\+\d{1,3}[\s.-]?)?\(?\d{3}\)?[\s.-]\d{3}[\s.-]\d{4})$",
)
FULL_NAME_VALUE_RE = re.compile(r"^[A-Z][a-z]+(?: [A-Z][a-z]+){1,2}$")

# Segment values that hint at which property a merged event should carry.
_DIMENSION_HINTS: dict[str, frozenset[str]] = {
    "format": frozenset({"pdf", "csv", "xlsx", "xls", "json", "png", "jpg", "svg", "html", "txt", "xml", "zip"}),
    "platform": frozenset({"ios", "android", "web", "desktop", "mobile"}),
    "method": frozenset({"google", "github", "apple", "facebook", "microsoft", "sso", "saml", "password", "magic"}),
    "plan": frozenset({"free", "starter", "basic", "pro", "team", "business", "enterprise"}),
    "billing_period": frozenset({"monthly", "annual", "yearly", "weekly", "quarterly"}),
}


@dataclass(frozen=True)
class EventNameParts:
    """An event name split into its object segments and action segment."""

    object: tuple[str, ...]
    action: str

    @property
    def object_name(self) -> str:
        return "_".join(self.object)


def to_snake_case(name: str) -> str:
    """Best-effort snake_case rendering of *name* (``ReportExported`` -> ``report_exported``)."""
    text = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name.strip())
    text = re.sub(r"[^A-Za-z]+", "_", text)
    return text.strip("_").lower()


def is_past_tense(segment: str) -> bool:
    if segment in _IRREGULAR_PAST or segment in PRESENT_TO_PAST.values():
        return True
    return segment.endswith("ed") and len(segment) > 3 and segment not in _ED_NOUNS


def is_action_word(segment: str) -> bool:
    return segment in PRESENT_TO_PAST or is_past_tense(segment)


def decompose_event_name(name: str) -> EventNameParts:
    """Split an ``object_action`` event name into object and action.

    Raises TrackingPlanError when the name is not snake_case letters or has
    no object segment, and AmbiguousInput when the final segment cannot be
    confirmed as an action.
    """
    if not isinstance(name, str) or not EVENT_NAME_PATTERN.match(name):
        msg = f"event name {name!r} must be lowercase snake_case letters (^[a-z]+(_[a-z]+)*$)"
        raise TrackingPlanError(msg)
    if len(name) > _MAX_NAME_LENGTH:
        msg = f"event name {name!r} must be at most {_MAX_NAME_LENGTH} characters"
        raise TrackingPlanError(msg)
    segments = name.split("_")
    if len(segments) < 2:
        msg = f"event name {name!r} must be object_action (e.g. {name}_viewed)"
        raise TrackingPlanError(msg)
    action = segments[-1]
    if not is_action_word(action):
        msg = f"cannot confirm that {action!r} in {name!r} is an action verb"
        raise AmbiguousInput(name, msg)
    return EventNameParts(object=tuple(segments[:-1]), action=action)


def past_tense_suggestion(name: str) -> str | None:
    """Return the past-tense form of *name* if its action is present tense."""
    head, _, action = name.rpartition("_")
    if head and action in PRESENT_TO_PAST:
        return f"{head}_{PRESENT_TO_PAST[action]}"
    return None


def reordered_suggestion(name: str) -> str | None:
    """Return ``object_action`` for a name written ``action_object``."""
    segments = name.split("_")
    if len(segments) < 2 or not is_action_word(segments[0]) or is_action_word(segments[-1]):
        return None
    action = PRESENT_TO_PAST.get(segments[0], segments[0])
    return "_".join([*segments[1:], action])


def check_property_name(name: str) -> str | None:
    """Return an error message if *name* is not a snake_case property name."""
    if not isinstance(name, str) or not name:
        return "property name must be a non-empty string"
    if name.startswith("$"):
        return None  # vendor-reserved properties such as $current_url
    if len(name) > _MAX_NAME_LENGTH:
        return f"property name {name!r} must be at most {_MAX_NAME_LENGTH} characters"
    if not PROPERTY_NAME_PATTERN.match(name):
        return f"property name {name!r} must be lowercase snake_case"
    return None


def has_boolean_prefix(name: str) -> bool:
    return name.startswith(BOOLEAN_PREFIXES)


def boolean_name_suggestion(name: str) -> str:
    for prefix in ("was_", "did_", "can_", "should_", "enabled_"):
        if name.startswith(prefix):
            return "is_" + name[len(prefix) :]
    return "is_" + name


def pii_name_match(name: str, extra_names: frozenset[str] = frozenset()) -> str | None:
    """Return the PII label a property name matches, or None."""
    lowered = name.lower()
    if lowered in extra_names:
        return "configured PII name"
    for pattern, label in PII_NAME_PATTERNS:
        if pattern.search(lowered):
            return label
    return None


def pii_value_match(value: str | None) -> tuple[str, bool] | None:
    """Return (label, confident) if an example value looks like PII.

    Emails and phone numbers are confident matches; capitalised two or three
    word values are only possibly a person's name.
    """
    if not value:
        return None
    cleaned = value.strip().strip("\"'`")
    if EMAIL_VALUE_RE.search(cleaned):
        return ("email address", True)
    if PHONE_VALUE_RE.match(cleaned):
        return ("phone number", True)
    if FULL_NAME_VALUE_RE.match(cleaned):
        return ("personal name", False)
    return None


def similarity(a: str, b: str) -> float:
    return SequenceMatcher(None, a, b).ratio()


def merge_candidate(a: str, b: str) -> tuple[str, str] | None:
    """Detect two event names that differ only in one non-action segment.

    Returns (merged_event_name, property_name) or None. ``report_pdf_exported``
    and ``report_csv_exported`` merge into ``report_exported`` carrying a
    ``format`` property.
    """
    sa, sb = a.split("_"), b.split("_")
    if a == b or len(sa) != len(sb) or len(sa) < 3 or sa[-1] != sb[-1]:
        return None
    diffs = [i for i, (x, y) in enumerate(zip(sa, sb, strict=True)) if x != y]
    if len(diffs) != 1:
        return None
    pos = diffs[0]
    merged = "_".join(sa[:pos] + sa[pos + 1 :])
    values = {sa[pos], sb[pos]}
    prop = "variant"
    for hint, members in _DIMENSION_HINTS.items():
        if values <= members:
            prop = hint
            break
    return (merged, prop)
