# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
# NEVER import from schema.py, linter.py, or any rule module (circular imports).
"""Typed return-value contracts for trackplan."""

from __future__ import annotations

from trackplan.types.core import (
    CatalogEntryDict,
    DiagnosticDict,
    ISODate,
    LocationDict,
    ProjectConfig,
    SeverityCounts,
)

__all__ = [
    "CatalogEntryDict",
    "DiagnosticDict",
    "ISODate",
    "LocationDict",
    "ProjectConfig",
    "SeverityCounts",
]
