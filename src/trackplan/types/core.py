"""Foundational TypedDicts for dataclass to_dict() returns."""

from __future__ import annotations

from typing import NewType, TypedDict

ISODate = NewType("ISODate", str)


class ProjectConfig(TypedDict, total=False):
    """Shape of .trackplan/config.json."""

    version: int
    similarity_threshold: float
    disabled_rules: list[str]
    extra_pii_names: list[str]


class LocationDict(TypedDict):
    source: str
    section: str | None
    line: int | None


class DiagnosticDict(TypedDict):
    rule_id: str
    rule: str
    severity: str
    kind: str
    message: str
    suggestion: str | None
    location: LocationDict


class SeverityCounts(TypedDict):
    error: int
    warning: int
    info: int


class CatalogEntryDict(TypedDict):
    name: str
    status: str
    introduced_by: str
    introduced_at: ISODate
    deprecated_since: ISODate | None
    replaced_by: str | None
    archived_since: ISODate | None
    properties: dict[str, str]
