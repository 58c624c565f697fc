"""Pydantic models describing the dashboard backup document."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from unisync.domain.model import FieldType, ReferenceTarget, UnitType


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class BackupBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class BilingualPayload(BackupBaseModel):
    vi: str = ""
    en: str = ""

    @model_validator(mode="before")
    @classmethod
    def _accept_plain_text(cls, value: object) -> object:
        # Older exports store a single Vietnamese string instead of {vi, en}.
        if value is None:
            return {}
        if isinstance(value, str):
            return {"vi": value}
        return value

    @field_validator("vi", "en", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value


class UnitPayload(BackupBaseModel):
    id: str = Field(alias="unit_id")
    name: str = Field(alias="unit_name")
    code: str = Field(default="", alias="unit_code")
    type: UnitType = Field(default=UnitType.DEPARTMENT, alias="unit_type")
    parent_id: str | None = Field(default=None, alias="unit_parentId")
    public_drive_id: str | None = Field(default=None, alias="publicDriveId")

    _normalize_optional_ids = field_validator("parent_id", "public_drive_id", mode="before")(
        _blank_to_none
    )


class FacultyPayload(BackupBaseModel):
    id: str
    name: BilingualPayload = Field(default_factory=BilingualPayload)
    rank: BilingualPayload = Field(default_factory=BilingualPayload)
    degree: BilingualPayload = Field(default_factory=BilingualPayload)
    academic_title: BilingualPayload = Field(default_factory=BilingualPayload, alias="academicTitle")
    position: BilingualPayload = Field(default_factory=BilingualPayload)
    experience: BilingualPayload = Field(default_factory=BilingualPayload)
    career_start_year: int | None = Field(default=None, alias="careerStartYear")
    workload: float | None = None
    email: str | None = None
    tel: str | None = None
    mobile: str | None = None
    office: str | None = None
    office_hours: str | None = Field(default=None, alias="officeHours")
    education_list: list[dict[str, Any]] = Field(default_factory=list, alias="educationList")
    academic_experience_list: list[dict[str, Any]] = Field(
        default_factory=list, alias="academicExperienceList"
    )
    non_academic_experience_list: list[dict[str, Any]] = Field(
        default_factory=list, alias="nonAcademicExperienceList"
    )
    publications_list: list[dict[str, Any]] = Field(
        default_factory=list, alias="publicationsList"
    )
    honors_list: list[dict[str, Any]] = Field(default_factory=list, alias="honorsList")
    certifications_list: list[dict[str, Any]] = Field(
        default_factory=list, alias="certificationsList"
    )
    memberships_list: list[dict[str, Any]] = Field(default_factory=list, alias="membershipsList")
    service_activities_list: list[dict[str, Any]] = Field(
        default_factory=list, alias="serviceActivitiesList"
    )
    professional_development_list: list[dict[str, Any]] = Field(
        default_factory=list, alias="professionalDevelopmentList"
    )

    _normalize_optional_numbers = field_validator(
        "career_start_year", "workload", mode="before"
    )(_blank_to_none)

    @field_validator(
        "education_list",
        "academic_experience_list",
        "non_academic_experience_list",
        "publications_list",
        "honors_list",
        "certifications_list",
        "memberships_list",
        "service_activities_list",
        "professional_development_list",
        mode="before",
    )
    @classmethod
    def _none_to_empty_list(cls, value: object) -> object:
        return [] if value is None else value


class AssignmentPayload(BackupBaseModel):
    id: str
    faculty_id: str = Field(alias="facultyId")
    unit_id: str = Field(alias="unitId")
    role: str | None = None
    assigned_date: str | None = Field(default=None, alias="assignedDate")
    start_date: str | None = Field(default=None, alias="startDate")
    end_date: str | None = Field(default=None, alias="endDate")


class FieldOptionPayload(BackupBaseModel):
    id: str
    label: str
    value: str


class FieldDefinitionPayload(BackupBaseModel):
    id: str
    key: str
    label: str = ""
    type: FieldType = FieldType.TEXT
    required: bool = False
    is_filterable: bool = Field(default=False, alias="isFilterable")
    is_searchable: bool = Field(default=False, alias="isSearchable")
    options: list[FieldOptionPayload] = Field(default_factory=list)
    reference_target: ReferenceTarget | None = Field(default=None, alias="referenceTarget")


class DataConfigGroupPayload(BackupBaseModel):
    id: str
    name: str = ""
    description: str | None = None
    icon: str | None = None
    fields: list[FieldDefinitionPayload] = Field(default_factory=list)
    charts: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("fields", "charts", mode="before")
    @classmethod
    def _none_to_empty_list(cls, value: object) -> object:
        return [] if value is None else value


class DynamicRecordPayload(BackupBaseModel):
    """Dynamic record; every key besides the bookkeeping ones is a field value."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    academic_year: str = Field(default="", alias="academicYear")
    updated_at: str | None = Field(default=None, alias="updatedAt")

    @model_validator(mode="before")
    @classmethod
    def _stringify_id(cls, value: object) -> object:
        if isinstance(value, Mapping):
            data: dict[str, object] = dict(cast(Mapping[str, object], value))
            if isinstance(data.get("id"), int):
                data["id"] = str(data["id"])
            return data
        return value

    @property
    def field_values(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


UNITS = TypeAdapter(list[UnitPayload])
FACULTIES = TypeAdapter(list[FacultyPayload])
ASSIGNMENTS = TypeAdapter(list[AssignmentPayload])
DATA_CONFIG_GROUPS = TypeAdapter(list[DataConfigGroupPayload])
DYNAMIC_DATA_STORE = TypeAdapter(dict[str, list[DynamicRecordPayload]])

DATA_CONFIG_GROUPS_KEY = "dataConfigGroups"
