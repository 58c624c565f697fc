"""Translate backup documents into snapshots and back.

Each family is validated on its own. A family that is missing or fails
validation is recorded in ``Snapshot.absent`` so the reconciliation engine can
skip it instead of treating it as "no records".
"""

from __future__ import annotations

import copy
from dataclasses import asdict
from logging import getLogger
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from unisync.domain.model import (
    Assignment,
    BilingualText,
    DataConfigGroup,
    DynamicRecord,
    EntityFamily,
    Faculty,
    FieldDefinition,
    FieldOption,
    Snapshot,
    Unit,
)

from .schema import (
    ASSIGNMENTS,
    DATA_CONFIG_GROUPS,
    DATA_CONFIG_GROUPS_KEY,
    DYNAMIC_DATA_STORE,
    FACULTIES,
    UNITS,
    AssignmentPayload,
    BackupBaseModel,
    BilingualPayload,
    DataConfigGroupPayload,
    DynamicRecordPayload,
    FacultyPayload,
    UnitPayload,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

log = getLogger(__name__)

_RESERVED_RECORD_KEYS = frozenset({"id", "academicYear", "updatedAt"})


def translate_snapshot(payload: Mapping[str, Any]) -> Snapshot:
    """Build a ``Snapshot`` from a parsed backup document."""

    snapshot = Snapshot()

    units = _validate_family(payload, EntityFamily.UNIT, UNITS, snapshot)
    if units is not None:
        snapshot.units = [_unit(item) for item in units]

    faculties = _validate_family(payload, EntityFamily.FACULTY, FACULTIES, snapshot)
    if faculties is not None:
        snapshot.faculties = [_faculty(item) for item in faculties]

    assignments = _validate_family(payload, EntityFamily.ASSIGNMENT, ASSIGNMENTS, snapshot)
    if assignments is not None:
        snapshot.human_resources = [_assignment(item) for item in assignments]

    groups = _validate_groups(payload, snapshot)
    snapshot.data_config_groups = [_group(item) for item in groups]

    store = None
    if EntityFamily.DYNAMIC_RECORD not in snapshot.absent:
        store = _validate_family(payload, EntityFamily.DYNAMIC_RECORD, DYNAMIC_DATA_STORE, snapshot)
    if store is not None:
        snapshot.dynamic_data_store = {
            group_id: [_dynamic_record(item) for item in records]
            for group_id, records in store.items()
        }

    log.debug(
        "Translated backup: %s units, %s faculties, %s assignments, %s data groups",
        len(snapshot.units),
        len(snapshot.faculties),
        len(snapshot.human_resources),
        len(snapshot.data_config_groups),
    )
    return snapshot


def _validate_family[T](
    payload: Mapping[str, Any],
    family: EntityFamily,
    adapter: TypeAdapter[T],
    snapshot: Snapshot,
) -> T | None:
    raw = payload.get(family.value)
    if raw is None:
        _mark_absent(snapshot, family, "missing from backup")
        return None
    try:
        return adapter.validate_python(raw)
    except ValidationError as exc:
        _mark_absent(snapshot, family, _describe(exc))
        return None


def _validate_groups(payload: Mapping[str, Any], snapshot: Snapshot) -> list[DataConfigGroupPayload]:
    raw = payload.get(DATA_CONFIG_GROUPS_KEY)
    if raw is None:
        return []
    try:
        return DATA_CONFIG_GROUPS.validate_python(raw)
    except ValidationError as exc:
        # Records cannot be interpreted without their schemas.
        _mark_absent(
            snapshot,
            EntityFamily.DYNAMIC_RECORD,
            f"invalid {DATA_CONFIG_GROUPS_KEY}: {_describe(exc)}",
        )
        return []


def _mark_absent(snapshot: Snapshot, family: EntityFamily, reason: str) -> None:
    snapshot.absent.setdefault(family, reason)
    log.warning("Backup family %s unavailable: %s", family, reason)


def _describe(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "<root>"
    return f"{exc.error_count()} validation error(s), first at {location}: {first['msg']}"


def _text(payload: BilingualPayload) -> BilingualText:
    return BilingualText(vi=payload.vi, en=payload.en)


def _unit(payload: UnitPayload) -> Unit:
    return Unit(
        id=payload.id,
        name=payload.name,
        code=payload.code,
        type=payload.type,
        parent_id=payload.parent_id,
        public_drive_id=payload.public_drive_id,
    )


def _faculty(payload: FacultyPayload) -> Faculty:
    return Faculty(
        id=payload.id,
        name=_text(payload.name),
        rank=_text(payload.rank),
        degree=_text(payload.degree),
        academic_title=_text(payload.academic_title),
        position=_text(payload.position),
        experience=_text(payload.experience),
        career_start_year=payload.career_start_year,
        workload=payload.workload,
        email=payload.email,
        tel=payload.tel,
        mobile=payload.mobile,
        office=payload.office,
        office_hours=payload.office_hours,
        education_list=payload.education_list,
        academic_experience_list=payload.academic_experience_list,
        non_academic_experience_list=payload.non_academic_experience_list,
        publications_list=payload.publications_list,
        honors_list=payload.honors_list,
        certifications_list=payload.certifications_list,
        memberships_list=payload.memberships_list,
        service_activities_list=payload.service_activities_list,
        professional_development_list=payload.professional_development_list,
    )


def _assignment(payload: AssignmentPayload) -> Assignment:
    return Assignment(
        id=payload.id,
        faculty_id=payload.faculty_id,
        unit_id=payload.unit_id,
        role=payload.role,
        assigned_date=payload.assigned_date,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )


def _group(payload: DataConfigGroupPayload) -> DataConfigGroup:
    return DataConfigGroup(
        id=payload.id,
        name=payload.name,
        description=payload.description,
        icon=payload.icon,
        fields=[
            FieldDefinition(
                id=definition.id,
                key=definition.key,
                label=definition.label,
                type=definition.type,
                required=definition.required,
                is_filterable=definition.is_filterable,
                is_searchable=definition.is_searchable,
                options=[
                    FieldOption(id=option.id, label=option.label, value=option.value)
                    for option in definition.options
                ],
                reference_target=definition.reference_target,
            )
            for definition in payload.fields
        ],
        charts=payload.charts,
    )


def _dynamic_record(payload: DynamicRecordPayload) -> DynamicRecord:
    return DynamicRecord(
        id=payload.id,
        academic_year=payload.academic_year,
        updated_at=payload.updated_at,
        values=payload.field_values,
    )


def serialize_snapshot(
    snapshot: Snapshot,
    *,
    base: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Write ``snapshot`` back in backup format over a copy of ``base``.

    Top-level keys the snapshot does not model survive unchanged, and so do
    families that were absent when the snapshot was loaded.
    """

    document: dict[str, Any] = copy.deepcopy(dict(base)) if base is not None else {}
    absent = snapshot.absent

    if EntityFamily.UNIT not in absent:
        document[EntityFamily.UNIT.value] = [_dump(UnitPayload, unit) for unit in snapshot.units]
    if EntityFamily.FACULTY not in absent:
        document[EntityFamily.FACULTY.value] = [
            _dump(FacultyPayload, faculty) for faculty in snapshot.faculties
        ]
    if EntityFamily.ASSIGNMENT not in absent:
        document[EntityFamily.ASSIGNMENT.value] = [
            _dump(AssignmentPayload, assignment) for assignment in snapshot.human_resources
        ]
    if EntityFamily.DYNAMIC_RECORD not in absent:
        document[DATA_CONFIG_GROUPS_KEY] = [
            _dump(DataConfigGroupPayload, group) for group in snapshot.data_config_groups
        ]
        document[EntityFamily.DYNAMIC_RECORD.value] = {
            group_id: [_record_document(record) for record in records]
            for group_id, records in snapshot.dynamic_data_store.items()
        }
    return document


def _dump(model: type[BackupBaseModel], record: Any) -> dict[str, Any]:
    validated = model.model_validate(asdict(record))
    return validated.model_dump(mode="json", by_alias=True, exclude_none=True)


def _record_document(record: DynamicRecord) -> dict[str, Any]:
    document: dict[str, Any] = {"id": record.id, "academicYear": record.academic_year}
    if record.updated_at is not None:
        document["updatedAt"] = record.updated_at
    for key, value in record.values.items():
        if key not in _RESERVED_RECORD_KEYS:
            document[key] = copy.deepcopy(value)
    return document
