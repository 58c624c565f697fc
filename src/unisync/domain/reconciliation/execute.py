"""Merge executor: apply an approved plan onto a copy of the local snapshot.

Responsibilities of this stage:
- deep-copy the local snapshot; inputs are never mutated or aliased
- apply diff item actions literally (fine-grained plan)
- apply selected branches of a selection tree (coarse-grained plan)
- report dangling references left behind by partial merges

Matched faculty and assignment records always keep the *local* id so that
references held by other collections stay valid.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from functools import singledispatch
from typing import TYPE_CHECKING

from unisync.domain.model import (
    Assignment,
    DynamicRecord,
    EntityFamily,
    Faculty,
    Unit,
)

from .contracts import Action, DiffItem
from .errors import DanglingReferenceWarning
from .policy import validate_action
from .selection import (
    CollectionPayload,
    DiffItemPayload,
    GroupCollectionPayload,
    Node,
    SelectionTree,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from unisync.domain.model import DataConfigGroup, Record, Snapshot

type Clock = Callable[[], datetime]

log = logging.getLogger(__name__)

_FAMILY_ORDER: dict[EntityFamily, int] = {
    EntityFamily.UNIT: 0,
    EntityFamily.FACULTY: 1,
    EntityFamily.ASSIGNMENT: 2,
    EntityFamily.DYNAMIC_RECORD: 3,
}


@dataclass(slots=True)
class MergeResult:
    """Merged snapshot and a summary of what the executor did."""

    snapshot: Snapshot
    applied: int = 0
    created: int = 0
    merged: int = 0
    skipped: int = 0
    dangling: tuple[DanglingReferenceWarning, ...] = field(default=())


@dataclass(slots=True)
class _MergeContext:
    snapshot: Snapshot
    stamp: str
    result: MergeResult

    def record(self, outcome: _Outcome) -> None:
        if outcome is _Outcome.SKIPPED:
            self.result.skipped += 1
            return
        self.result.applied += 1
        if outcome is _Outcome.CREATED:
            self.result.created += 1
        else:
            self.result.merged += 1


class _Outcome(Enum):
    CREATED = "created"
    REPLACED = "replaced"
    SKIPPED = "skipped"


def order_plan[T: DiffItem[Record]](items: Iterable[T]) -> list[T]:
    """Sort a combined plan into units, faculties, assignments, dynamic records.

    The sort is stable, so order within a family is preserved.
    """

    return sorted(items, key=lambda item: _FAMILY_ORDER[item.family])


def execute(
    local: Snapshot,
    plan: Sequence[DiffItem[Record]] | Sequence[Node] | SelectionTree,
    *,
    clock: Clock | None = None,
) -> MergeResult:
    """Apply ``plan`` to a deep copy of ``local``.

    ``plan`` is either a fine-grained list of diff items or a selection tree
    (or its root nodes).
    """

    if isinstance(plan, SelectionTree):
        return execute_selection(local, plan.roots, clock=clock)
    if plan and all(isinstance(entry, Node) for entry in plan):
        return execute_selection(local, plan, clock=clock)  # type: ignore[arg-type]
    return execute_plan(local, plan, clock=clock)  # type: ignore[arg-type]


def execute_plan(
    local: Snapshot,
    items: Iterable[DiffItem[Record]],
    *,
    clock: Clock | None = None,
) -> MergeResult:
    """Apply every diff item's action literally."""

    context = _new_context(local, clock)
    for item in items:
        context.record(_apply_item(item, context))
    return _finish(context)


def execute_selection(
    local: Snapshot,
    roots: Iterable[Node],
    *,
    clock: Clock | None = None,
) -> MergeResult:
    """Walk the selection tree depth-first and apply selected branches only."""

    context = _new_context(local, clock)
    for root in roots:
        _apply_node(root, context)
    return _finish(context)


def _new_context(local: Snapshot, clock: Clock | None) -> _MergeContext:
    snapshot = copy.deepcopy(local)
    now = clock() if clock is not None else datetime.now(tz=UTC)
    return _MergeContext(
        snapshot=snapshot,
        stamp=format_timestamp(now),
        result=MergeResult(snapshot=snapshot),
    )


def _finish(context: _MergeContext) -> MergeResult:
    result = context.result
    _claim_absent_families(result.snapshot)
    result.dangling = find_dangling_references(result.snapshot)
    for warning in result.dangling:
        log.warning("%s", warning)
    log.info(
        "Merge finished: applied=%s, created=%s, merged=%s, skipped=%s, dangling=%s",
        result.applied,
        result.created,
        result.merged,
        result.skipped,
        len(result.dangling),
    )
    return result


def _claim_absent_families(snapshot: Snapshot) -> None:
    """Families that received records are written out even if they were absent locally."""

    populated = {
        EntityFamily.UNIT: bool(snapshot.units),
        EntityFamily.FACULTY: bool(snapshot.faculties),
        EntityFamily.ASSIGNMENT: bool(snapshot.human_resources),
        EntityFamily.DYNAMIC_RECORD: any(snapshot.dynamic_data_store.values()),
    }
    for family, reason in list(snapshot.absent.items()):
        if populated[family]:
            del snapshot.absent[family]
            log.warning("Local %s was unavailable (%s); merged records replace it", family, reason)


def format_timestamp(value: datetime) -> str:
    """Render ``value`` as a UTC ISO-8601 string with millisecond precision."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _apply_node(node: Node, context: _MergeContext) -> None:
    if not node.selected:
        return
    payload = node.payload
    if isinstance(payload, DiffItemPayload):
        context.record(_apply_item(payload.item, context))
    elif isinstance(payload, GroupCollectionPayload):
        _ensure_group(context.snapshot, payload.group)
        bucket = context.snapshot.dynamic_data_store.setdefault(payload.group.id, [])
        for record in payload.records:
            context.record(_append_absent(bucket, record))
    elif isinstance(payload, CollectionPayload):
        bucket = _collection_for(context.snapshot, payload.family)
        for record in payload.records:
            context.record(_append_absent(bucket, record))
    for child in node.children:
        _apply_node(child, context)


def _collection_for(snapshot: Snapshot, family: EntityFamily) -> list[Record]:
    collections: dict[EntityFamily, list[Record]] = {
        EntityFamily.UNIT: snapshot.units,  # type: ignore[dict-item]
        EntityFamily.FACULTY: snapshot.faculties,  # type: ignore[dict-item]
        EntityFamily.ASSIGNMENT: snapshot.human_resources,  # type: ignore[dict-item]
    }
    if family not in collections:
        raise ValueError(f"No flat collection for family {family}")
    return collections[family]


def _append_absent[T: Record](bucket: list[T], record: T) -> _Outcome:
    if any(existing.id == record.id for existing in bucket):
        return _Outcome.SKIPPED
    bucket.append(copy.deepcopy(record))
    return _Outcome.CREATED


def _ensure_group(snapshot: Snapshot, group: DataConfigGroup) -> None:
    if snapshot.group_for(group.id) is None:
        snapshot.data_config_groups.append(copy.deepcopy(group))
        log.info("Added data group schema %s", group.id)


def _apply_item(item: DiffItem[Record], context: _MergeContext) -> _Outcome:
    action = validate_action(item.status, item.action)
    if action in (Action.KEEP_LOCAL, Action.SKIP) or item.external is None:
        return _Outcome.SKIPPED
    return _apply_record(copy.deepcopy(item.external), item=item, action=action, context=context)


@singledispatch
def _apply_record(
    record: object,
    *,
    item: DiffItem[Record],
    action: Action,
    context: _MergeContext,
) -> _Outcome:
    raise TypeError(f"Unsupported record type: {type(record).__name__}")


@_apply_record.register(Unit)
def _(record: Unit, *, item: DiffItem[Record], action: Action, context: _MergeContext) -> _Outcome:
    units = context.snapshot.units
    if action is Action.MERGE:
        target = _find(units, item.match_id or record.id)
        if target is None:
            log.warning("Merge target unit %s is missing; skipping", item.match_id)
            return _Outcome.SKIPPED
        target.name = record.name
        return _Outcome.REPLACED
    return _upsert(units, record)


@_apply_record.register(DynamicRecord)
def _(
    record: DynamicRecord,
    *,
    item: DiffItem[Record],
    action: Action,
    context: _MergeContext,
) -> _Outcome:
    if action is not Action.TAKE_EXTERNAL or item.group is None:
        return _Outcome.SKIPPED
    _ensure_group(context.snapshot, item.group)
    bucket = context.snapshot.dynamic_data_store.setdefault(item.group.id, [])
    return _upsert(bucket, replace(record, updated_at=context.stamp))


@_apply_record.register(Faculty)
def _(
    record: Faculty,
    *,
    item: DiffItem[Record],
    action: Action,
    context: _MergeContext,
) -> _Outcome:
    return _replace_matched(context.snapshot.faculties, record, item=item)


@_apply_record.register(Assignment)
def _(
    record: Assignment,
    *,
    item: DiffItem[Record],
    action: Action,
    context: _MergeContext,
) -> _Outcome:
    return _replace_matched(context.snapshot.human_resources, record, item=item)


def _replace_matched[T: (Faculty, Assignment)](
    bucket: list[T],
    record: T,
    *,
    item: DiffItem[Record],
) -> _Outcome:
    """Overwrite the matched local record's content, keeping the local id."""

    if not item.is_matched or item.match_id is None:
        return _upsert(bucket, record)
    index = _index_of(bucket, item.match_id)
    if index is None:
        log.warning("Matched %s record %s is missing; skipping", item.family, item.match_id)
        return _Outcome.SKIPPED
    bucket[index] = replace(record, id=item.match_id)
    return _Outcome.REPLACED


def _upsert[T: Record](bucket: list[T], record: T) -> _Outcome:
    index = _index_of(bucket, record.id)
    if index is None:
        bucket.append(record)
        return _Outcome.CREATED
    bucket[index] = record
    return _Outcome.REPLACED


def _index_of[T: Record](bucket: Sequence[T], record_id: str) -> int | None:
    for index, existing in enumerate(bucket):
        if existing.id == record_id:
            return index
    return None


def _find[T: Record](bucket: Sequence[T], record_id: str) -> T | None:
    index = _index_of(bucket, record_id)
    return bucket[index] if index is not None else None


def find_dangling_references(snapshot: Snapshot) -> tuple[DanglingReferenceWarning, ...]:
    """Assignments and unit parents pointing at ids absent from ``snapshot``."""

    unit_ids = {unit.id for unit in snapshot.units}
    faculty_ids = {faculty.id for faculty in snapshot.faculties}
    warnings: list[DanglingReferenceWarning] = [
        DanglingReferenceWarning(
            family=EntityFamily.UNIT,
            record_id=unit.id,
            field="parent_id",
            missing_id=unit.parent_id,
        )
        for unit in snapshot.units
        if unit.parent_id and unit.parent_id not in unit_ids
    ]
    for assignment in snapshot.human_resources:
        if assignment.faculty_id not in faculty_ids:
            warnings.append(
                DanglingReferenceWarning(
                    family=EntityFamily.ASSIGNMENT,
                    record_id=assignment.id,
                    field="faculty_id",
                    missing_id=assignment.faculty_id,
                )
            )
        if assignment.unit_id not in unit_ids:
            warnings.append(
                DanglingReferenceWarning(
                    family=EntityFamily.ASSIGNMENT,
                    record_id=assignment.id,
                    field="unit_id",
                    missing_id=assignment.unit_id,
                )
            )
    return tuple(warnings)


__all__ = [
    "Clock",
    "MergeResult",
    "execute",
    "execute_plan",
    "execute_selection",
    "find_dangling_references",
    "format_timestamp",
    "order_plan",
]
