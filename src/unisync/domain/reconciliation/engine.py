"""Orchestrator for the reconciliation subsystem.

The engine composes detection, planning and execution; it does not read or
write files. Adapters translate backups into snapshots before handing them in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from unisync.config import ReconcileConfig

from .detect import detect_snapshot_diffs
from .execute import execute, order_plan
from .policy import apply_overrides
from .selection import build_selection_tree

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from unisync.domain.model import Record, Snapshot

    from .contracts import Action, DiffItem
    from .detect import DetectionReport
    from .execute import Clock, MergeResult
    from .selection import Node, SelectionTree

log = logging.getLogger(__name__)


@dataclass(slots=True)
class ReconciliationEngine:
    """Detect, plan and commit a merge of an external snapshot into a local one."""

    config: ReconcileConfig = field(default_factory=ReconcileConfig)
    clock: Clock | None = None

    def detect(self, local: Snapshot, external: Snapshot) -> DetectionReport:
        report = detect_snapshot_diffs(local, external, config=self.config)
        log.info(
            "Detection finished: %s diff item(s), %s skipped famil(ies)",
            len(report.items()),
            len(report.issues),
        )
        return report

    def plan(
        self,
        items: Iterable[DiffItem[Record]],
        overrides: Mapping[str, Action | str] | None = None,
    ) -> list[DiffItem[Record]]:
        """Order ``items`` for execution and layer operator overrides on top."""

        planned = order_plan(items)
        if overrides:
            planned = apply_overrides(planned, overrides)
        return planned

    def commit(
        self,
        local: Snapshot,
        plan: Sequence[DiffItem[Record]] | Sequence[Node] | SelectionTree,
    ) -> MergeResult:
        return execute(local, plan, clock=self.clock)

    def selection_tree(
        self,
        local: Snapshot,
        external: Snapshot,
        report: DetectionReport | None = None,
        overrides: Mapping[str, Action | str] | None = None,
    ) -> SelectionTree:
        """Build the bulk-approval tree, running detection if no report is given.

        ``overrides`` set the action each item node applies when it is selected.
        """

        if report is None:
            report = self.detect(local, external)
        if overrides:
            report = report.with_overrides(overrides)
        return build_selection_tree(local, external, report=report)
