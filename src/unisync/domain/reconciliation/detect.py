"""Diff detection: classify external records against local state.

Responsibilities of this stage:
- index local records by identity, natural and fuzzy keys
- classify each external record as NEW/MODIFIED/CONFLICT/SUSPECT
- drop identical records and stale dynamic records
- collect malformed-family issues instead of raising

Detection is read-only: neither snapshot is mutated and the output order
mirrors the external input order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from unisync.config import ReconcileConfig
from unisync.domain.model import EntityFamily

from .contracts import Action, DiffItem, DiffStatus
from .errors import MalformedExternalDataError
from .matchers import AssignmentMatcher, DynamicRecordMatcher, FacultyMatcher, UnitMatcher
from .policy import default_action, override_items, warn_unused_overrides

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
    from datetime import datetime

    from unisync.domain.model import (
        Assignment,
        DataConfigGroup,
        DynamicRecord,
        Faculty,
        Record,
        Snapshot,
        Unit,
    )

    from .matchers import EntityMatcher

log = logging.getLogger(__name__)


def detect_diffs[T: Record](
    local_items: Iterable[T],
    external_items: Iterable[T],
    matcher: EntityMatcher[T],
) -> list[DiffItem[T]]:
    """Classify every external record of one family against ``local_items``.

    Matching precedence: identity key, then natural key (``conflict``), then
    fuzzy key (``suspect``); anything else is ``new``.
    """

    locals_ = list(local_items)
    by_identity = _index(locals_, matcher.identity_key)
    by_natural = _index(locals_, matcher.natural_key)
    by_fuzzy = _index(locals_, matcher.fuzzy_key)

    diffs: list[DiffItem[T]] = []
    for raw in external_items:
        external = matcher.prepare(raw)
        diff = _classify(
            external,
            matcher=matcher,
            by_identity=by_identity,
            by_natural=by_natural,
            by_fuzzy=by_fuzzy,
        )
        if diff is not None:
            diffs.append(diff)
    return diffs


def _index[T](items: Sequence[T], key_for: Callable[[T], str | None]) -> dict[str, T]:
    """Map key to the first record carrying it; records without a key are skipped."""

    index: dict[str, T] = {}
    for item in items:
        key = key_for(item)
        if key is not None:
            index.setdefault(key, item)
    return index


def _classify[T: Record](
    external: T,
    *,
    matcher: EntityMatcher[T],
    by_identity: dict[str, T],
    by_natural: dict[str, T],
    by_fuzzy: dict[str, T],
) -> DiffItem[T] | None:
    identity = matcher.identity_key(external)

    local = by_identity.get(identity)
    if local is not None:
        if matcher.is_equal(local, external):
            return None
        status = DiffStatus.MODIFIED
        if matcher.tracks_recency:
            status = _recency_status(matcher.recency(local), matcher.recency(external))
            if status is None:
                log.debug("Dropping stale %s record %s", matcher.family, identity)
                return None
        return _diff_item(external, local=local, status=status, matcher=matcher)

    natural = matcher.natural_key(external)
    local = by_natural.get(natural) if natural is not None else None
    if local is not None:
        return _diff_item(external, local=local, status=DiffStatus.CONFLICT, matcher=matcher)

    fuzzy = matcher.fuzzy_key(external)
    local = by_fuzzy.get(fuzzy) if fuzzy is not None else None
    if local is not None:
        return _diff_item(external, local=local, status=DiffStatus.SUSPECT, matcher=matcher)

    return _diff_item(external, local=None, status=DiffStatus.NEW, matcher=matcher)


def _recency_status(
    local_time: datetime | None,
    external_time: datetime | None,
) -> DiffStatus | None:
    """Compare timestamps; a missing timestamp is older than any present one.

    Returns ``None`` when the external record is stale.
    """

    if local_time == external_time:
        return DiffStatus.CONFLICT
    if local_time is None:
        return DiffStatus.MODIFIED
    if external_time is None:
        return None
    return DiffStatus.MODIFIED if external_time > local_time else None


def _diff_item[T: Record](
    external: T,
    *,
    local: T | None,
    status: DiffStatus,
    matcher: EntityMatcher[T],
) -> DiffItem[T]:
    return DiffItem(
        id=matcher.identity_key(external),
        family=matcher.family,
        status=status,
        action=default_action(status, matcher.family),
        local=local,
        external=external,
        match_id=matcher.identity_key(local) if local is not None else None,
        message=matcher.message(status),
        display_label=matcher.display_label(external),
        group=matcher.group,
    )


@dataclass(slots=True)
class DetectionReport:
    """Diff items for every family of one comparison run, plus skipped families."""

    units: list[DiffItem[Unit]] = field(default_factory=list["DiffItem[Unit]"])
    faculties: list[DiffItem[Faculty]] = field(default_factory=list["DiffItem[Faculty]"])
    assignments: list[DiffItem[Assignment]] = field(
        default_factory=list["DiffItem[Assignment]"]
    )
    dynamic: dict[str, list[DiffItem[DynamicRecord]]] = field(
        default_factory=dict["str", "list[DiffItem[DynamicRecord]]"]
    )
    issues: list[MalformedExternalDataError] = field(
        default_factory=list["MalformedExternalDataError"]
    )

    def items(self) -> list[DiffItem[Record]]:
        """All diff items in canonical family order (units, faculties, assignments, data)."""

        return list(self._iter_items())

    def _iter_items(self) -> Iterator[DiffItem[Record]]:
        yield from self.units
        yield from self.faculties
        yield from self.assignments
        for group_items in self.dynamic.values():
            yield from group_items

    @property
    def is_empty(self) -> bool:
        return not any(self.counts().values())

    def counts(self) -> dict[EntityFamily, int]:
        return {
            EntityFamily.UNIT: len(self.units),
            EntityFamily.FACULTY: len(self.faculties),
            EntityFamily.ASSIGNMENT: len(self.assignments),
            EntityFamily.DYNAMIC_RECORD: sum(len(items) for items in self.dynamic.values()),
        }

    def with_overrides(self, overrides: Mapping[str, Action | str]) -> DetectionReport:
        """Copy of this report with operator actions layered over every family."""

        unused = set(overrides)
        report = DetectionReport(
            units=override_items(self.units, overrides, unused),
            faculties=override_items(self.faculties, overrides, unused),
            assignments=override_items(self.assignments, overrides, unused),
            dynamic={
                group_id: override_items(items, overrides, unused)
                for group_id, items in self.dynamic.items()
            },
            issues=list(self.issues),
        )
        warn_unused_overrides(unused)
        return report


def detect_snapshot_diffs(
    local: Snapshot,
    external: Snapshot,
    *,
    config: ReconcileConfig | None = None,
) -> DetectionReport:
    """Run detection for every family of ``external`` against ``local``."""

    settings = config or ReconcileConfig()
    report = DetectionReport()

    if _family_available(external, EntityFamily.UNIT, report):
        report.units = detect_diffs(local.units, external.units, UnitMatcher())
    if _family_available(external, EntityFamily.FACULTY, report):
        report.faculties = detect_diffs(
            local.faculties,
            external.faculties,
            FacultyMatcher(
                fuzzy_names=settings.fuzzy_faculty_matching,
                name_language=settings.faculty_name_language,
            ),
        )
    if _family_available(external, EntityFamily.ASSIGNMENT, report):
        report.assignments = detect_diffs(
            local.human_resources,
            external.human_resources,
            AssignmentMatcher(),
        )
    if _family_available(external, EntityFamily.DYNAMIC_RECORD, report):
        report.dynamic = _detect_dynamic_diffs(local, external, report)

    log.debug("Detected diffs: %s", report.counts())
    return report


def _family_available(external: Snapshot, family: EntityFamily, report: DetectionReport) -> bool:
    reason = external.absent.get(family)
    if reason is None:
        return True
    issue = MalformedExternalDataError(family=family, reason=reason)
    log.warning("%s", issue)
    report.issues.append(issue)
    return False


def _detect_dynamic_diffs(
    local: Snapshot,
    external: Snapshot,
    report: DetectionReport,
) -> dict[str, list[DiffItem[DynamicRecord]]]:
    diffs: dict[str, list[DiffItem[DynamicRecord]]] = {}
    for group_id in external.dynamic_data_store:
        if local.group_for(group_id) is None and external.group_for(group_id) is None:
            issue = MalformedExternalDataError(
                family=EntityFamily.DYNAMIC_RECORD,
                reason="records reference an unknown data group",
                group_id=group_id,
            )
            log.warning("%s", issue)
            report.issues.append(issue)

    for group in schema_order(local, external):
        external_records = external.records_for(group.id)
        if not external_records:
            continue
        group_diffs = detect_diffs(
            local.records_for(group.id),
            external_records,
            DynamicRecordMatcher(group),
        )
        if group_diffs:
            diffs[group.id] = group_diffs
    return diffs


def schema_order(local: Snapshot, external: Snapshot) -> list[DataConfigGroup]:
    """Local schemas in local order, then schemas only the external side knows."""

    groups = list(local.data_config_groups)
    known = {group.id for group in groups}
    for group in external.data_config_groups:
        if group.id not in known:
            groups.append(group)
            known.add(group.id)
    return groups
