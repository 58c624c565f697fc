"""Snapshot: one point-in-time copy of every reconciled collection."""

# pyright: reportUnknownVariableType=false

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .enums import EntityFamily
    from .records import Assignment, DataConfigGroup, DynamicRecord, Faculty, Unit


@dataclass(slots=True, kw_only=True)
class Snapshot:
    """In-memory dataset handed to and returned by the reconciliation engine.

    ``absent`` maps families that were missing or malformed when the snapshot
    was loaded to a human-readable reason. The collections of an absent family
    are empty but must not be read as "the source has no records".
    """

    units: list[Unit] = field(default_factory=list)
    faculties: list[Faculty] = field(default_factory=list)
    human_resources: list[Assignment] = field(default_factory=list)
    data_config_groups: list[DataConfigGroup] = field(default_factory=list)
    dynamic_data_store: dict[str, list[DynamicRecord]] = field(default_factory=dict)
    absent: dict[EntityFamily, str] = field(default_factory=dict)

    def group_for(self, group_id: str) -> DataConfigGroup | None:
        for group in self.data_config_groups:
            if group.id == group_id:
                return group
        return None

    def records_for(self, group_id: str) -> list[DynamicRecord]:
        return self.dynamic_data_store.get(group_id, [])
