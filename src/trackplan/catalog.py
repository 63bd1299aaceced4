"""Event catalog -- the events earlier tracking plans introduced.

Stored in .trackplan/events.json. Events move active -> deprecated ->
archived and are never removed: an archived name stays in the catalog so a
later plan cannot reuse it.
"""

from __future__ import annotations

import fcntl
import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field, replace
from datetime import date
from pathlib import Path
from typing import Any, Literal

from trackplan.core import CATALOG_FILENAME, write_atomic
from trackplan.parser import parse_plan, parse_plan_file
from trackplan.rules import LintOptions
from trackplan.schema import TrackingPlan, TrackingPlanError
from trackplan.types.core import CatalogEntryDict, ISODate

logger = logging.getLogger(__name__)

CatalogStatus = Literal["active", "deprecated", "archived"]
CATALOG_VERSION = 1
_STATUSES: frozenset[str] = frozenset({"active", "deprecated", "archived"})


class CatalogError(TrackingPlanError):
    """Raised for catalog operations that cannot be applied."""


@dataclass(frozen=True)
class CatalogEntry:
    name: str
    status: CatalogStatus
    introduced_by: str
    introduced_at: str
    deprecated_since: str | None = None
    replaced_by: str | None = None
    archived_since: str | None = None
    properties: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> CatalogEntryDict:
        return CatalogEntryDict(
            name=self.name,
            status=self.status,
            introduced_by=self.introduced_by,
            introduced_at=ISODate(self.introduced_at),
            deprecated_since=ISODate(self.deprecated_since) if self.deprecated_since else None,
            replaced_by=self.replaced_by,
            archived_since=ISODate(self.archived_since) if self.archived_since else None,
            properties=dict(self.properties),
        )


@dataclass(frozen=True)
class RecordResult:
    """What record_plan() changed."""

    added: tuple[str, ...] = ()
    updated: tuple[str, ...] = ()
    deprecated: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, list[str]]:
        return {"added": list(self.added), "updated": list(self.updated), "deprecated": list(self.deprecated)}


def _entry_from_dict(name: str, raw: Any) -> CatalogEntry | None:
    if raw is None:
        return None
    if not isinstance(raw, dict) or raw.get("status") not in _STATUSES:
        logger.debug("Skipping malformed catalog entry: %s", name)
        return None
    props = raw.get("properties") or {}
    if not isinstance(props, dict):
        props = {}
    try:
        return CatalogEntry(
            name=name,
            status=raw["status"],
            introduced_by=str(raw.get("introduced_by", "")),
            introduced_at=str(raw.get("introduced_at", "")),
            deprecated_since=raw.get("deprecated_since"),
            replaced_by=raw.get("replaced_by"),
            archived_since=raw.get("archived_since"),
            properties={str(k): str(v) for k, v in props.items()},
        )
    except (TypeError, ValueError) as exc:
        logger.debug("Skipping malformed catalog entry %s: %s", name, exc)
        return None


class EventCatalog:
    """Read/write the project's event catalog with file locking."""

    def __init__(self, trackplan_dir: Path) -> None:
        self.path = trackplan_dir / CATALOG_FILENAME
        self._lock_path = trackplan_dir / (CATALOG_FILENAME + ".lock")

    # -- Reading ------------------------------------------------------------

    def _load_raw(self) -> dict[str, Any]:
        """Load events.json. Raises CatalogError if it exists but is unreadable."""
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            msg = f"Corrupt catalog file {self.path}: {exc}"
            raise CatalogError(msg) from exc
        if not isinstance(data, dict) or not isinstance(data.get("events", {}), dict):
            msg = f"Catalog file {self.path} does not contain an 'events' object"
            raise CatalogError(msg)
        events: dict[str, Any] = data.get("events", {})
        return events

    def read(self) -> dict[str, CatalogEntry]:
        """Read all entries. Returns an empty catalog if missing/corrupt."""
        try:
            raw = self._load_raw()
        except CatalogError as exc:
            logger.warning("%s; treating catalog as empty", exc)
            return {}
        entries: dict[str, CatalogEntry] = {}
        for name in sorted(raw):
            entry = _entry_from_dict(name, raw[name])
            if entry is not None:
                entries[name] = entry
        return entries

    def get(self, name: str) -> CatalogEntry | None:
        return self.read().get(name)

    def entries(self, status: CatalogStatus | None = None) -> list[CatalogEntry]:
        return [e for e in self.read().values() if status is None or e.status == status]

    def lint_options(self, base: LintOptions | None = None) -> LintOptions:
        """Fold catalog events into lint options (on top of *base*)."""
        base = base or LintOptions()
        by_status: dict[str, set[str]] = {s: set() for s in _STATUSES}
        for entry in self.read().values():
            by_status[entry.status].add(entry.name)
        return replace(
            base,
            prior_events=base.prior_events | by_status["active"],
            deprecated_events=base.deprecated_events | by_status["deprecated"],
            archived_events=base.archived_events | by_status["archived"],
        )

    # -- Writing ------------------------------------------------------------

    @contextmanager
    def _locked(self) -> Iterator[dict[str, Any]]:
        """Hold the catalog lock; yield raw events for mutation, then write them back."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._lock_path, "w") as lock_fd:
            fcntl.flock(lock_fd, fcntl.LOCK_EX)
            events = self._load_raw()
            yield events
            payload = {"version": CATALOG_VERSION, "events": dict(sorted(events.items()))}
            write_atomic(self.path, json.dumps(payload, indent=2) + "\n")

    def initialize(self) -> None:
        """Create an empty catalog if none exists."""
        if self.path.exists():
            return
        with self._locked():
            pass

    def record_plan(self, plan: TrackingPlan, *, today: date | None = None) -> RecordResult:
        """Add a plan's new events and mark the events it deprecates.

        Raises CatalogError if the plan re-adds an archived event.
        """
        today_iso = (today or date.today()).isoformat()
        added: list[str] = []
        updated: list[str] = []
        deprecated: list[str] = []
        with self._locked() as events:
            for event in plan.new_events:
                props = {p.name: p.type for p in event.properties}
                existing = _entry_from_dict(event.name, events.get(event.name))
                if existing is not None and existing.status == "archived":
                    msg = f"Event {event.name!r} is archived and cannot be re-added"
                    raise CatalogError(msg)
                if existing is None:
                    entry = CatalogEntry(
                        name=event.name,
                        status="active",
                        introduced_by=plan.source,
                        introduced_at=today_iso,
                        properties=props,
                    )
                    added.append(event.name)
                else:
                    entry = replace(existing, properties={**existing.properties, **props})
                    updated.append(event.name)
                events[event.name] = _serialize(entry)

            for dep in plan.deprecated_events:
                since = dep.deprecation_date.isoformat() if dep.deprecation_date else today_iso
                existing = _entry_from_dict(dep.name, events.get(dep.name))
                if existing is None:
                    existing = CatalogEntry(
                        name=dep.name,
                        status="active",
                        introduced_by=plan.source,
                        introduced_at=today_iso,
                    )
                if existing.status == "archived":
                    continue
                entry = replace(existing, status="deprecated", deprecated_since=since, replaced_by=dep.replaced_by)
                events[dep.name] = _serialize(entry)
                deprecated.append(dep.name)

        logger.info(
            "Recorded plan %s: %d added, %d updated, %d deprecated",
            plan.source,
            len(added),
            len(updated),
            len(deprecated),
        )
        return RecordResult(added=tuple(added), updated=tuple(updated), deprecated=tuple(deprecated))

    def archive(self, name: str, *, on: date | None = None) -> CatalogEntry:
        """Mark an event archived. Archiving an archived event is a no-op."""
        with self._locked() as events:
            existing = _entry_from_dict(name, events.get(name))
            if existing is None:
                msg = f"Event {name!r} is not in the catalog"
                raise CatalogError(msg)
            if existing.status == "archived":
                return existing
            entry = replace(existing, status="archived", archived_since=(on or date.today()).isoformat())
            events[name] = _serialize(entry)
        logger.info("Archived event %s", name)
        return entry


def _serialize(entry: CatalogEntry) -> dict[str, Any]:
    data = asdict(entry)
    del data["name"]
    return data


def read_prior_events(path: Path) -> LintOptions:
    """Read prior events from a file into LintOptions.

    Accepts a JSON list of names, a catalog file (``{"events": {...}}``), a
    JSON or text tracking plan (its new events count as prior), or a text
    file with one event name per line.

    Raises OSError or UnicodeDecodeError if the file cannot be read, and
    TrackingPlanError if it is JSON of an unsupported shape.
    """
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            msg = f"{path}: invalid JSON: {exc}"
            raise TrackingPlanError(msg) from exc
        if isinstance(data, list) and all(isinstance(n, str) for n in data):
            return LintOptions(prior_events=frozenset(n.strip() for n in data if n.strip()))
        if isinstance(data, dict) and isinstance(data.get("events"), dict):
            by_status: dict[str, set[str]] = {s: set() for s in _STATUSES}
            for name, raw in data["events"].items():
                entry = _entry_from_dict(name, raw)
                if entry is not None:
                    by_status[entry.status].add(entry.name)
            return LintOptions(
                prior_events=frozenset(by_status["active"]),
                deprecated_events=frozenset(by_status["deprecated"]),
                archived_events=frozenset(by_status["archived"]),
            )
        if isinstance(data, dict) and "new_events" in data:
            return LintOptions(prior_events=frozenset(parse_plan_file(path).plan.new_event_names))
        msg = f"{path}: expected a list of event names, a catalog, or a tracking plan"
        raise TrackingPlanError(msg)

    parsed = parse_plan(text, source=str(path))
    if parsed.present_sections:
        return LintOptions(prior_events=frozenset(parsed.plan.new_event_names))
    names = {line.strip().strip("`") for line in text.splitlines()}
    return LintOptions(prior_events=frozenset(n for n in names if n and not n.startswith("#")))


def merge_prior(base: LintOptions, extra: LintOptions) -> LintOptions:
    return replace(
        base,
        prior_events=base.prior_events | extra.prior_events,
        deprecated_events=base.deprecated_events | extra.deprecated_events,
        archived_events=base.archived_events | extra.archived_events,
    )
