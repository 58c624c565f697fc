"""Reconciliation core for merging an external dataset into local state.

Layered flow:
1) classify external records per family (``detect``)
2) assign default actions and layer operator overrides (``policy``)
3) optionally group diffs into a selection tree for bulk approval (``selection``)
4) apply the approved plan to a copy of local state (``execute``)
"""

from __future__ import annotations

from .contracts import Action, DiffItem, DiffStatus
from .detect import DetectionReport, detect_diffs, detect_snapshot_diffs
from .engine import ReconciliationEngine
from .errors import (
    DanglingReferenceWarning,
    InvalidActionError,
    MalformedExternalDataError,
    ReconciliationError,
    UnknownNodeError,
)
from .execute import (
    MergeResult,
    execute,
    execute_plan,
    execute_selection,
    find_dangling_references,
    order_plan,
)
from .matchers import (
    AssignmentMatcher,
    DynamicRecordMatcher,
    EntityMatcher,
    FacultyMatcher,
    UnitMatcher,
)
from .policy import apply_overrides, default_action, validate_action
from .selection import Node, NodeKind, SelectionTree, build_selection_tree

__all__ = [
    "Action",
    "AssignmentMatcher",
    "DanglingReferenceWarning",
    "DetectionReport",
    "DiffItem",
    "DiffStatus",
    "DynamicRecordMatcher",
    "EntityMatcher",
    "FacultyMatcher",
    "InvalidActionError",
    "MalformedExternalDataError",
    "MergeResult",
    "Node",
    "NodeKind",
    "ReconciliationEngine",
    "ReconciliationError",
    "SelectionTree",
    "UnitMatcher",
    "UnknownNodeError",
    "apply_overrides",
    "build_selection_tree",
    "default_action",
    "detect_diffs",
    "detect_snapshot_diffs",
    "execute",
    "execute_plan",
    "execute_selection",
    "find_dangling_references",
    "order_plan",
    "validate_action",
]
