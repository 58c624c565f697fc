"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityFamily(StrEnum):
    """Reconciled collections; values match the backup document keys."""

    UNIT = "units"
    FACULTY = "faculties"
    ASSIGNMENT = "humanResources"
    DYNAMIC_RECORD = "dynamicDataStore"


class UnitType(StrEnum):
    SCHOOL = "school"
    FACULTY = "faculty"
    DEPARTMENT = "department"


class FieldType(StrEnum):
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER_INT = "number_int"
    NUMBER_FLOAT = "number_float"
    DATE = "date"
    BOOLEAN = "boolean"
    SELECT_SINGLE = "select_single"
    SELECT_MULTIPLE = "select_multiple"
    REFERENCE = "reference"
    REFERENCE_MULTIPLE = "reference_multiple"
    FILE = "file"


class ReferenceTarget(StrEnum):
    UNITS = "units"
    FACULTIES = "faculties"
    ACADEMIC_YEARS = "academicYears"
