"""Data models for ompsnap.

This module exports the core data structures used throughout the application.
"""

from ompsnap.models.entity import EntityKind, ManifestEntry, Record, Ref
from ompsnap.models.report import ImportOutcome, ImportResult, RunReport

__all__ = [
    "EntityKind",
    "ImportOutcome",
    "ImportResult",
    "ManifestEntry",
    "Record",
    "Ref",
    "RunReport",
]
