"""Entity records for the four reconciled families and the dynamic-data schema.

Records are plain mutable dataclasses compared structurally. Identity lives in
``id`` for every family; secondary identities (email, faculty/unit pairs) are
derived by the reconciliation matchers, not stored here.
"""

# switch off type warnings because of default_factory=list or dict
# pyright: reportUnknownVariableType=false

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .enums import FieldType, ReferenceTarget, UnitType


@dataclass(slots=True, kw_only=True)
class BilingualText:
    vi: str = ""
    en: str = ""

    def in_language(self, language: str) -> str:
        return self.en if language == "en" else self.vi


@dataclass(slots=True, kw_only=True)
class Unit:
    """Organisational node; ``parent_id`` links units into a forest."""

    id: str
    name: str
    code: str = ""
    type: UnitType = UnitType.DEPARTMENT
    parent_id: str | None = None
    public_drive_id: str | None = None


@dataclass(slots=True, kw_only=True)
class FieldOption:
    id: str
    label: str
    value: str


@dataclass(slots=True, kw_only=True)
class FieldDefinition:
    id: str
    key: str
    label: str
    type: FieldType = FieldType.TEXT
    required: bool = False
    is_filterable: bool = False
    is_searchable: bool = False
    options: list[FieldOption] = field(default_factory=list)
    reference_target: ReferenceTarget | None = None


@dataclass(slots=True, kw_only=True)
class DataConfigGroup:
    """Schema owning one bucket of dynamic records."""

    id: str
    name: str
    description: str | None = None
    icon: str | None = None
    fields: list[FieldDefinition] = field(default_factory=list)
    charts: list[dict[str, Any]] = field(default_factory=list)

    @property
    def field_keys(self) -> tuple[str, ...]:
        return tuple(definition.key for definition in self.fields)

    @property
    def display_field_key(self) -> str | None:
        """First text field, falling back to the first declared field."""

        for definition in self.fields:
            if definition.type is FieldType.TEXT:
                return definition.key
        return self.fields[0].key if self.fields else None


@dataclass(slots=True, kw_only=True)
class DynamicRecord:
    id: str
    academic_year: str = ""
    updated_at: str | None = None
    values: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, kw_only=True)
class Faculty:
    """Personnel profile. ``email`` doubles as a natural key during reconciliation."""

    id: str
    name: BilingualText = field(default_factory=BilingualText)
    rank: BilingualText = field(default_factory=BilingualText)
    degree: BilingualText = field(default_factory=BilingualText)
    academic_title: BilingualText = field(default_factory=BilingualText)
    position: BilingualText = field(default_factory=BilingualText)
    experience: BilingualText = field(default_factory=BilingualText)
    career_start_year: int | None = None
    workload: float | None = None
    email: str | None = None
    tel: str | None = None
    mobile: str | None = None
    office: str | None = None
    office_hours: str | None = None
    education_list: list[dict[str, Any]] = field(default_factory=list)
    academic_experience_list: list[dict[str, Any]] = field(default_factory=list)
    non_academic_experience_list: list[dict[str, Any]] = field(default_factory=list)
    publications_list: list[dict[str, Any]] = field(default_factory=list)
    honors_list: list[dict[str, Any]] = field(default_factory=list)
    certifications_list: list[dict[str, Any]] = field(default_factory=list)
    memberships_list: list[dict[str, Any]] = field(default_factory=list)
    service_activities_list: list[dict[str, Any]] = field(default_factory=list)
    professional_development_list: list[dict[str, Any]] = field(default_factory=list)


@dataclass(slots=True, kw_only=True)
class Assignment:
    """Human-resource record linking one faculty member to one unit."""

    id: str
    faculty_id: str
    unit_id: str
    role: str | None = None
    assigned_date: str | None = None
    start_date: str | None = None
    end_date: str | None = None


type Record = Unit | Faculty | Assignment | DynamicRecord
