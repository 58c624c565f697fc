"""Selection tree for bulk approval of incoming data.

The tree is an alternative front end to the same diff items the fine-grained
plan uses. Operators approve or reject whole branches; the merge executor
walks the tree depth-first and skips unselected subtrees.

Selection cascades down only: toggling a node sets every descendant, while a
descendant's toggle never touches its ancestors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from unisync.domain.model import EntityFamily

from .contracts import DiffStatus
from .detect import schema_order
from .errors import UnknownNodeError
from .matchers import DynamicRecordMatcher

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from unisync.domain.model import (
        Assignment,
        DataConfigGroup,
        DynamicRecord,
        Record,
        Snapshot,
    )

    from .contracts import DiffItem
    from .detect import DetectionReport


class NodeKind(StrEnum):
    MODULE = "module"
    GROUP = "group"
    ITEM = "item"


@dataclass(frozen=True, slots=True)
class DiffItemPayload:
    """One classified record, applied with the fine-grained rules."""

    item: DiffItem[Record]


@dataclass(frozen=True, slots=True)
class CollectionPayload:
    """A whole external collection; records absent locally (by id) are appended."""

    family: EntityFamily
    records: tuple[Record, ...]


@dataclass(frozen=True, slots=True)
class GroupCollectionPayload:
    """External records of one data group together with the group's schema."""

    group: DataConfigGroup
    records: tuple[DynamicRecord, ...]


type NodePayload = DiffItemPayload | CollectionPayload | GroupCollectionPayload


@dataclass(slots=True, kw_only=True)
class Node:
    id: str
    label: str
    kind: NodeKind
    children: list[Node] = field(default_factory=list["Node"])
    incoming_count: int = 0
    current_count: int = 0
    is_new: bool = False
    selected: bool = True
    payload: NodePayload | None = None

    def walk(self) -> Iterator[Node]:
        """Yield this node and its descendants depth-first."""

        yield self
        for child in self.children:
            yield from child.walk()

    def set_selected(self, checked: bool) -> None:
        for node in self.walk():
            node.selected = checked


@dataclass(slots=True)
class SelectionTree:
    """Roots of the selection tree plus lookup by node id."""

    roots: list[Node] = field(default_factory=list["Node"])

    def walk(self) -> Iterator[Node]:
        for root in self.roots:
            yield from root.walk()

    def find(self, node_id: str) -> Node:
        for node in self.walk():
            if node.id == node_id:
                return node
        raise UnknownNodeError(node_id)

    def toggle(self, node_id: str, checked: bool) -> Node:
        """Set ``selected`` on ``node_id`` and all of its descendants."""

        node = self.find(node_id)
        node.set_selected(checked)
        return node

    def selected_items(self) -> list[DiffItem[Record]]:
        """Diff items whose whole ancestor chain is selected."""

        items: list[DiffItem[Record]] = []
        for root in self.roots:
            _collect_selected_items(root, items)
        return items


def _collect_selected_items(node: Node, items: list[DiffItem[Record]]) -> None:
    if not node.selected:
        return
    if isinstance(node.payload, DiffItemPayload):
        items.append(node.payload.item)
    for child in node.children:
        _collect_selected_items(child, items)


_STATUS_LABELS: dict[DiffStatus, str] = {
    DiffStatus.NEW: "New",
    DiffStatus.MODIFIED: "Modified",
    DiffStatus.CONFLICT: "Conflicts",
    DiffStatus.SUSPECT: "Needs confirmation",
}


def build_selection_tree(
    local: Snapshot,
    external: Snapshot,
    *,
    report: DetectionReport,
) -> SelectionTree:
    """Group ``report`` and the external collections into selectable modules.

    Families the external snapshot is missing are left out of the tree.
    """

    tree = SelectionTree()
    if EntityFamily.UNIT not in external.absent:
        tree.roots.append(
            _diff_module(
                EntityFamily.UNIT,
                label="Organization units",
                items=report.units,
                incoming=len(external.units),
                current=len(local.units),
            )
        )
    if EntityFamily.FACULTY not in external.absent:
        tree.roots.append(
            _diff_module(
                EntityFamily.FACULTY,
                label="Faculty profiles",
                items=report.faculties,
                incoming=len(external.faculties),
                current=len(local.faculties),
            )
        )
    if EntityFamily.ASSIGNMENT not in external.absent:
        tree.roots.append(_assignment_module(local.human_resources, external.human_resources))
    if EntityFamily.DYNAMIC_RECORD not in external.absent:
        tree.roots.append(_dynamic_module(local, external))
    return tree


def _diff_module(
    family: EntityFamily,
    *,
    label: str,
    items: Sequence[DiffItem[Record]],
    incoming: int,
    current: int,
) -> Node:
    module = Node(
        id=str(family),
        label=label,
        kind=NodeKind.MODULE,
        incoming_count=incoming,
        current_count=current,
        is_new=current == 0 and incoming > 0,
    )
    for status, status_label in _STATUS_LABELS.items():
        bucket = [item for item in items if item.status is status]
        if not bucket:
            continue
        group = Node(
            id=f"{family}/{status}",
            label=status_label,
            kind=NodeKind.GROUP,
            incoming_count=len(bucket),
            is_new=status is DiffStatus.NEW,
        )
        group.children = [
            Node(
                id=item.key,
                label=item.display_label or item.id,
                kind=NodeKind.ITEM,
                incoming_count=1,
                current_count=0 if item.local is None else 1,
                is_new=item.status is DiffStatus.NEW,
                payload=DiffItemPayload(item),
            )
            for item in bucket
        ]
        module.children.append(group)
    return module


def _assignment_module(local: Sequence[Assignment], external: Sequence[Assignment]) -> Node:
    local_ids = {assignment.id for assignment in local}
    return Node(
        id=str(EntityFamily.ASSIGNMENT),
        label="Personnel assignments",
        kind=NodeKind.MODULE,
        incoming_count=len(external),
        current_count=len(local),
        is_new=any(assignment.id not in local_ids for assignment in external),
        payload=CollectionPayload(EntityFamily.ASSIGNMENT, tuple(external)),
    )


def _dynamic_module(local: Snapshot, external: Snapshot) -> Node:
    """Family node holding one module per data group with incoming records."""

    groups = _group_modules(local, external)
    return Node(
        id=str(EntityFamily.DYNAMIC_RECORD),
        label="Dynamic data",
        kind=NodeKind.MODULE,
        children=groups,
        incoming_count=sum(group.incoming_count for group in groups),
        current_count=sum(len(records) for records in local.dynamic_data_store.values()),
        is_new=any(group.is_new for group in groups),
    )


def _group_modules(local: Snapshot, external: Snapshot) -> list[Node]:
    modules: list[Node] = []
    for group in schema_order(local, external):
        incoming = external.records_for(group.id)
        if not incoming:
            continue
        matcher = DynamicRecordMatcher(group)
        modules.append(
            Node(
                id=f"{EntityFamily.DYNAMIC_RECORD}:{group.id}",
                label=group.name or group.id,
                kind=NodeKind.MODULE,
                incoming_count=len(incoming),
                current_count=len(local.records_for(group.id)),
                is_new=local.group_for(group.id) is None,
                payload=GroupCollectionPayload(
                    group=group,
                    records=tuple(matcher.prepare(record) for record in incoming),
                ),
            )
        )
    return modules
