"""Shared reconciliation contract components.

This module intentionally holds only the status/action enums and the
``DiffItem`` envelope passed between detector, policy, selection tree and
merge executor.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from unisync.domain.model import EntityFamily

if TYPE_CHECKING:
    from unisync.domain.model import DataConfigGroup, Record


class DiffStatus(StrEnum):
    """Classification of one external record against local state."""

    NEW = "new"
    MODIFIED = "modified"
    CONFLICT = "conflict"
    SUSPECT = "suspect"
    IDENTICAL = "identical"


class Action(StrEnum):
    """Operator disposition the merge executor obeys literally."""

    KEEP_LOCAL = "keep_local"
    TAKE_EXTERNAL = "take_external"
    MERGE = "merge"
    SKIP = "skip"


@dataclass(frozen=True, slots=True, kw_only=True)
class DiffItem[T: Record]:
    """One external record paired (or not) with its matched local counterpart.

    ``match_id`` is the id of the matched local record. It differs from ``id``
    for natural-key and fuzzy matches, and is ``None`` for new records.
    ``group`` is only set for dynamic records.
    """

    id: str
    family: EntityFamily
    status: DiffStatus
    action: Action
    local: T | None = None
    external: T | None = None
    match_id: str | None = None
    message: str = ""
    display_label: str = ""
    group: DataConfigGroup | None = None

    def __post_init__(self) -> None:
        if self.local is None and self.external is None:
            raise ValueError("Diff item must carry a local or an external record")

    @property
    def group_id(self) -> str | None:
        return self.group.id if self.group is not None else None

    @property
    def key(self) -> str:
        """Family-qualified identifier, unique across one detection run."""

        if self.family is EntityFamily.DYNAMIC_RECORD and self.group is not None:
            return f"{self.family}:{self.group.id}:{self.id}"
        return f"{self.family}:{self.id}"

    @property
    def is_matched(self) -> bool:
        return self.match_id is not None and self.status is not DiffStatus.NEW
