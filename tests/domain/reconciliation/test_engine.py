from __future__ import annotations

import copy
import logging

import pytest

from tests.helpers.snapshots import fixed_clock, make_faculty, make_snapshot, make_unit
from unisync.config import ReconcileConfig
from unisync.domain.reconciliation import Action, DiffStatus, ReconciliationEngine


def test_engine_runs_detect_plan_commit() -> None:
    engine = ReconciliationEngine(clock=fixed_clock)
    local = make_snapshot(units=[make_unit("A", "Original")])
    external = make_snapshot(
        faculties=[make_faculty("f1")],
        units=[make_unit("A", "Changed"), make_unit("B", parent_id="A")],
    )

    report = engine.detect(local, external)
    plan = engine.plan(report.items(), {"units:A": Action.TAKE_EXTERNAL})
    result = engine.commit(local, plan)

    assert [item.key for item in plan] == ["units:A", "units:B", "faculties:f1"]
    assert [unit.name for unit in result.snapshot.units] == ["Changed", "Khoa CNTT"]
    assert [faculty.id for faculty in result.snapshot.faculties] == ["f1"]


def test_engine_plan_without_overrides_keeps_defaults() -> None:
    engine = ReconciliationEngine()
    local = make_snapshot(units=[make_unit("A", "Original")])
    external = make_snapshot(units=[make_unit("A", "Changed")])

    plan = engine.plan(engine.detect(local, external).items())

    assert [item.action for item in plan] == [Action.KEEP_LOCAL]


def test_engine_config_controls_fuzzy_matching() -> None:
    local = make_snapshot(faculties=[make_faculty("f1", "Nguyen Van A")])
    external = make_snapshot(faculties=[make_faculty("f2", "nguyen van a")])

    strict = ReconciliationEngine(config=ReconcileConfig(fuzzy_faculty_matching=False))
    lenient = ReconciliationEngine()

    assert strict.detect(local, external).faculties[0].status is DiffStatus.NEW
    assert lenient.detect(local, external).faculties[0].status is DiffStatus.SUSPECT


def test_engine_selection_tree_runs_detection_when_needed() -> None:
    engine = ReconciliationEngine(clock=fixed_clock)
    local = make_snapshot(units=[make_unit("A")])
    external = make_snapshot(units=[make_unit("A"), make_unit("B")])
    local_before = copy.deepcopy(local)

    tree = engine.selection_tree(local, external)
    result = engine.commit(local, tree)

    assert [node.id for node in tree.find("units").walk()] == ["units", "units/new", "units:B"]
    assert [unit.id for unit in result.snapshot.units] == ["A", "B"]
    assert local == local_before


def test_engine_selection_tree_applies_overridden_items(caplog: pytest.LogCaptureFixture) -> None:
    engine = ReconciliationEngine(clock=fixed_clock)
    local = make_snapshot(
        units=[make_unit("A", "Original")],
        faculties=[make_faculty("f1", "Nguyen Van A")],
    )
    external = make_snapshot(
        units=[make_unit("A", "Changed")],
        faculties=[make_faculty("f2", "nguyen van a", workload=0.5)],
    )
    report = engine.detect(local, external)

    with caplog.at_level(logging.WARNING):
        tree = engine.selection_tree(
            local,
            external,
            report,
            {"units:A": Action.TAKE_EXTERNAL, "f2": Action.MERGE, "units:Z": Action.SKIP},
        )
    result = engine.commit(local, tree)

    assert tree.find("units:A").payload.item.action is Action.TAKE_EXTERNAL  # type: ignore[union-attr]
    assert [unit.name for unit in result.snapshot.units] == ["Changed"]
    assert [(f.id, f.workload) for f in result.snapshot.faculties] == [("f1", 0.5)]
    assert [item.action for item in report.items()] == [Action.KEEP_LOCAL, Action.KEEP_LOCAL]
    assert "Ignoring overrides for unknown diff items: units:Z\n" in caplog.text


def test_engine_selection_tree_deselected_override_is_not_applied() -> None:
    engine = ReconciliationEngine(clock=fixed_clock)
    local = make_snapshot(units=[make_unit("A", "Original")])
    external = make_snapshot(units=[make_unit("A", "Changed")])

    tree = engine.selection_tree(local, external, overrides={"units:A": "take_external"})
    tree.toggle("units/modified", False)
    result = engine.commit(local, tree)

    assert [unit.name for unit in result.snapshot.units] == ["Original"]
    assert result.skipped == 0
