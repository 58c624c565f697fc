"""Domain model for the reconciled dataset."""

from __future__ import annotations

from .enums import EntityFamily, FieldType, ReferenceTarget, UnitType
from .records import (
    Assignment,
    BilingualText,
    DataConfigGroup,
    DynamicRecord,
    Faculty,
    FieldDefinition,
    FieldOption,
    Record,
    Unit,
)
from .snapshot import Snapshot

__all__ = [
    "Assignment",
    "BilingualText",
    "DataConfigGroup",
    "DynamicRecord",
    "EntityFamily",
    "Faculty",
    "FieldDefinition",
    "FieldOption",
    "FieldType",
    "Record",
    "ReferenceTarget",
    "Snapshot",
    "Unit",
    "UnitType",
]
