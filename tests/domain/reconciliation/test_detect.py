from __future__ import annotations

import copy

from tests.helpers.snapshots import (
    make_assignment,
    make_faculty,
    make_group,
    make_record,
    make_snapshot,
    make_unit,
)
from unisync.config import ReconcileConfig
from unisync.domain.model import EntityFamily
from unisync.domain.reconciliation import (
    Action,
    AssignmentMatcher,
    DiffStatus,
    DynamicRecordMatcher,
    FacultyMatcher,
    UnitMatcher,
    detect_diffs,
    detect_snapshot_diffs,
)


def test_faculty_with_same_email_but_different_id_is_conflict() -> None:
    local = [make_faculty("u1", "A", email="a@x.com")]
    external = [make_faculty("u2", "A", email="a@x.com")]

    diffs = detect_diffs(local, external, FacultyMatcher())

    assert len(diffs) == 1
    assert diffs[0].status is DiffStatus.CONFLICT
    assert diffs[0].match_id == "u1"
    assert diffs[0].id == "u2"
    assert diffs[0].action is Action.MERGE
    assert diffs[0].message == "Same email, different id"


def test_email_match_is_case_and_whitespace_insensitive() -> None:
    local = [make_faculty("f1", email="An@Uni.edu.vn")]
    external = [make_faculty("f9", email=" an@uni.edu.vn ")]

    (diff,) = detect_diffs(local, external, FacultyMatcher())

    assert diff.status is DiffStatus.CONFLICT


def test_name_only_match_is_suspect_not_conflict() -> None:
    local = [make_faculty("f1", "Nguyen Van A")]
    external = [make_faculty("f2", "nguyen van a", email="new@x.com")]

    (diff,) = detect_diffs(local, external, FacultyMatcher())

    assert diff.status is DiffStatus.SUSPECT
    assert diff.match_id == "f1"
    assert diff.action is Action.KEEP_LOCAL


def test_email_match_beats_name_match() -> None:
    local = [
        make_faculty("f1", "Trần Bình"),
        make_faculty("f2", "Someone Else", email="binh@x.com"),
    ]
    external = [make_faculty("f3", "Tran Binh", email="binh@x.com")]

    (diff,) = detect_diffs(local, external, FacultyMatcher())

    assert diff.status is DiffStatus.CONFLICT
    assert diff.match_id == "f2"


def test_fuzzy_matching_can_be_disabled() -> None:
    local = [make_faculty("f1", "Nguyen Van A")]
    external = [make_faculty("f2", "Nguyen Van A")]

    (diff,) = detect_diffs(local, external, FacultyMatcher(fuzzy_names=False))

    assert diff.status is DiffStatus.NEW
    assert diff.match_id is None


def test_identical_faculty_produces_no_item() -> None:
    local = [make_faculty("f1", email="a@x.com")]

    assert detect_diffs(local, copy.deepcopy(local), FacultyMatcher()) == []


def test_first_local_record_wins_duplicate_natural_keys() -> None:
    local = [
        make_faculty("f1", email="dup@x.com"),
        make_faculty("f2", email="dup@x.com"),
    ]

    (diff,) = detect_diffs(local, [make_faculty("f9", email="dup@x.com")], FacultyMatcher())

    assert diff.match_id == "f1"


def test_assignment_same_pair_different_id_is_conflict() -> None:
    local = [make_assignment("a1", faculty_id="f1", unit_id="u1")]
    external = [make_assignment("a2", faculty_id="f1", unit_id="u1", role="Dean")]

    (diff,) = detect_diffs(local, external, AssignmentMatcher())

    assert diff.status is DiffStatus.CONFLICT
    assert diff.match_id == "a1"


def test_assignment_role_change_is_modified() -> None:
    local = [make_assignment("a1", role="Lecturer")]
    external = [make_assignment("a1", role="Dean")]

    (diff,) = detect_diffs(local, external, AssignmentMatcher())

    assert diff.status is DiffStatus.MODIFIED
    assert diff.action is Action.KEEP_LOCAL


def test_unit_scenario_defaults() -> None:
    local = [make_unit("A", "Original")]
    external = [make_unit("A", "Changed"), make_unit("B", "Child", parent_id="A")]

    diffs = detect_diffs(local, external, UnitMatcher())

    assert [(diff.id, diff.status, diff.action) for diff in diffs] == [
        ("A", DiffStatus.MODIFIED, Action.KEEP_LOCAL),
        ("B", DiffStatus.NEW, Action.TAKE_EXTERNAL),
    ]


def test_stale_dynamic_record_is_dropped() -> None:
    matcher = DynamicRecordMatcher(make_group(keys=("value",)))
    local = [make_record("r1", updated_at="2024-06-01", value=5)]
    external = [make_record("r1", updated_at="2024-01-01", value=9)]

    assert detect_diffs(local, external, matcher) == []


def test_newer_dynamic_record_is_modified_and_taken() -> None:
    matcher = DynamicRecordMatcher(make_group(keys=("value",)))
    local = [make_record("r1", updated_at="2024-01-01T00:00:00Z", value=5)]
    external = [make_record("r1", updated_at="2024-06-01T00:00:00Z", value=9)]

    (diff,) = detect_diffs(local, external, matcher)

    assert diff.status is DiffStatus.MODIFIED
    assert diff.action is Action.TAKE_EXTERNAL
    assert diff.message == "Newer update available"


def test_equal_dynamic_timestamps_are_conflict_kept_local() -> None:
    matcher = DynamicRecordMatcher(make_group(keys=("value",)))
    local = [make_record("r1", updated_at="2024-06-01T00:00:00Z", value=5)]
    external = [make_record("r1", updated_at="2024-06-01T00:00:00.000Z", value=9)]

    (diff,) = detect_diffs(local, external, matcher)

    assert diff.status is DiffStatus.CONFLICT
    assert diff.action is Action.KEEP_LOCAL


def test_missing_timestamp_is_older_than_present_one() -> None:
    matcher = DynamicRecordMatcher(make_group(keys=("value",)))

    (newer,) = detect_diffs(
        [make_record("r1", value=5)],
        [make_record("r1", updated_at="2024-01-01", value=9)],
        matcher,
    )
    stale = detect_diffs(
        [make_record("r1", updated_at="2024-01-01", value=5)],
        [make_record("r1", value=9)],
        matcher,
    )

    assert newer.status is DiffStatus.MODIFIED
    assert stale == []


def test_undeclared_keys_do_not_make_a_record_modified() -> None:
    matcher = DynamicRecordMatcher(make_group(keys=("title",)))
    local = [make_record("r1", updated_at="2024-01-01", title="Paper")]
    external = [make_record("r1", updated_at="2024-06-01", title="Paper", junk=1)]

    assert detect_diffs(local, external, matcher) == []


def test_new_dynamic_record_is_schema_guarded() -> None:
    group = make_group(keys=("title",))

    (diff,) = detect_diffs([], [make_record("r1", title="Paper", junk=1)], DynamicRecordMatcher(group))

    assert diff.status is DiffStatus.NEW
    assert diff.external is not None
    assert diff.external.values == {"title": "Paper"}
    assert diff.key == "dynamicDataStore:g1:r1"
    assert diff.group is group


def test_detection_is_idempotent_and_does_not_mutate() -> None:
    group = make_group()
    local = make_snapshot(
        units=[make_unit("A", "Original")],
        faculties=[make_faculty("f1", "Nguyen Van A")],
        groups=[group],
        store={"g1": [make_record("r1", updated_at="2024-01-01", title="Old", count=1)]},
    )
    external = make_snapshot(
        units=[make_unit("A", "Changed"), make_unit("B", parent_id="A")],
        faculties=[make_faculty("f2", "nguyen van a", email="new@x.com")],
        assignments=[make_assignment("a1", faculty_id="f2", unit_id="B")],
        groups=[group],
        store={"g1": [make_record("r1", updated_at="2024-06-01", title="New", count=2)]},
    )
    local_before = copy.deepcopy(local)
    external_before = copy.deepcopy(external)

    first = detect_snapshot_diffs(local, external).items()
    second = detect_snapshot_diffs(local, external).items()

    assert first == second
    assert [item.key for item in first] == [
        "units:A",
        "units:B",
        "faculties:f2",
        "humanResources:a1",
        "dynamicDataStore:g1:r1",
    ]
    assert local == local_before
    assert external == external_before


def test_absent_external_family_is_reported_and_skipped() -> None:
    local = make_snapshot(units=[make_unit("A")])
    external = make_snapshot(faculties=[make_faculty("f1")])
    external.absent[EntityFamily.UNIT] = "missing from backup"

    report = detect_snapshot_diffs(local, external)

    assert report.units == []
    assert [issue.family for issue in report.issues] == [EntityFamily.UNIT]
    assert len(report.faculties) == 1


def test_records_for_unknown_group_are_reported() -> None:
    external = make_snapshot(store={"ghost": [make_record("r1", title="x")]})

    report = detect_snapshot_diffs(make_snapshot(), external)

    assert report.dynamic == {}
    (issue,) = report.issues
    assert issue.group_id == "ghost"
    assert "unknown data group" in str(issue)


def test_external_only_group_is_detected_with_its_schema() -> None:
    group = make_group("g2", "Projects", keys=("title",))
    external = make_snapshot(groups=[group], store={"g2": [make_record("p1", title="X")]})

    report = detect_snapshot_diffs(make_snapshot(), external)

    (diff,) = report.dynamic["g2"]
    assert diff.status is DiffStatus.NEW
    assert diff.group_id == "g2"


def test_config_language_drives_fuzzy_match() -> None:
    local = make_snapshot(faculties=[make_faculty("f1", "Nguyễn An", name_en="An Nguyen")])
    external = make_snapshot(faculties=[make_faculty("f2", "Khác", name_en="an nguyen")])

    report = detect_snapshot_diffs(
        local,
        external,
        config=ReconcileConfig(faculty_name_language="en"),
    )

    (diff,) = report.faculties
    assert diff.status is DiffStatus.SUSPECT


def test_report_counts_and_emptiness() -> None:
    same = make_snapshot(units=[make_unit("A")])

    report = detect_snapshot_diffs(same, copy.deepcopy(same))

    assert report.is_empty
    assert report.counts()[EntityFamily.UNIT] == 0
