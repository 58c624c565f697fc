"""Public interface for the dashboard backup adapter."""

from __future__ import annotations

from .files import BackupFormatError, read_backup, write_backup
from .schema import (
    AssignmentPayload,
    DataConfigGroupPayload,
    DynamicRecordPayload,
    FacultyPayload,
    UnitPayload,
)
from .translator import serialize_snapshot, translate_snapshot

__all__ = [
    "AssignmentPayload",
    "BackupFormatError",
    "DataConfigGroupPayload",
    "DynamicRecordPayload",
    "FacultyPayload",
    "UnitPayload",
    "read_backup",
    "serialize_snapshot",
    "translate_snapshot",
    "write_backup",
]
