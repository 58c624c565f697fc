"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Literal

from unisync.adapters.backup import read_backup, serialize_snapshot, translate_snapshot, write_backup
from unisync.config import get_reconcile_config
from unisync.domain.reconciliation import ReconciliationEngine

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

    from unisync.config import ReconcileConfig
    from unisync.domain.reconciliation import Action, DetectionReport, MergeResult
    from unisync.domain.reconciliation.execute import Clock

type MergeMode = Literal["items", "tree"]

log = getLogger(__name__)


def _engine(config: ReconcileConfig | None, clock: Clock | None = None) -> ReconciliationEngine:
    return ReconciliationEngine(config=config or get_reconcile_config(), clock=clock)


def diff_backups(
    local_path: str | Path,
    external_path: str | Path,
    *,
    config: ReconcileConfig | None = None,
) -> DetectionReport:
    """Classify every record of the external backup against the local one."""

    local = translate_snapshot(read_backup(local_path))
    external = translate_snapshot(read_backup(external_path))
    return _engine(config).detect(local, external)


def merge_backups(
    local_path: str | Path,
    external_path: str | Path,
    output_path: str | Path,
    *,
    overrides: Mapping[str, Action | str] | None = None,
    deselect: Iterable[str] = (),
    mode: MergeMode = "items",
    config: ReconcileConfig | None = None,
    clock: Clock | None = None,
) -> MergeResult:
    """Merge the external backup into the local one and write the result.

    ``items`` mode applies each diff item's (possibly overridden) action.
    ``tree`` mode applies the selection tree with ``deselect`` node ids unchecked;
    ``overrides`` then set the action of each selected item node.
    Top-level keys of the local backup that are not reconciled are kept.
    """

    deselected = list(deselect)
    if mode == "items" and deselected:
        raise ValueError("Node deselection requires tree mode")

    local_payload = read_backup(local_path)
    local = translate_snapshot(local_payload)
    external = translate_snapshot(read_backup(external_path))
    engine = _engine(config, clock)

    report = engine.detect(local, external)
    if mode == "tree":
        tree = engine.selection_tree(local, external, report, overrides)
        for node_id in deselected:
            tree.toggle(node_id, False)
        result = engine.commit(local, tree)
    else:
        result = engine.commit(local, engine.plan(report.items(), overrides))

    write_backup(output_path, serialize_snapshot(result.snapshot, base=local_payload))
    log.info(
        "Merged %s into %s: applied=%s, created=%s, merged=%s, skipped=%s",
        external_path,
        output_path,
        result.applied,
        result.created,
        result.merged,
        result.skipped,
    )
    return result
