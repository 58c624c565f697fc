"""Per-family identity strategies used by the diff detector.

Each matcher answers the same questions for its family:
- primary identity (``identity_key``)
- fallback identity (``natural_key``), a strong secondary match
- weak identity (``fuzzy_key``), only ever producing suspects
- whether two matched records differ (``is_equal``)

Matchers are stateless apart from their configuration and never mutate the
records they inspect.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, ClassVar, Protocol

from unisync.domain.model import (
    Assignment,
    DataConfigGroup,
    DynamicRecord,
    EntityFamily,
    Faculty,
    Unit,
)

from .contracts import DiffStatus
from .normalize import normalized_or_none

if TYPE_CHECKING:
    from collections.abc import Mapping

    from unisync.config import NameLanguage

log = logging.getLogger(__name__)


class EntityMatcher[T](Protocol):
    """Identity and equality strategy for one entity family."""

    @property
    def family(self) -> EntityFamily: ...

    @property
    def tracks_recency(self) -> bool: ...

    def identity_key(self, item: T) -> str: ...

    def natural_key(self, item: T) -> str | None: ...

    def fuzzy_key(self, item: T) -> str | None: ...

    def is_equal(self, local: T, external: T) -> bool: ...

    def recency(self, item: T) -> datetime | None: ...

    def prepare(self, item: T) -> T: ...

    def display_label(self, item: T) -> str: ...

    def message(self, status: DiffStatus) -> str: ...

    @property
    def group(self) -> DataConfigGroup | None: ...


class _MatcherDefaults:
    """Behaviour shared by matchers without fallback identities or timestamps."""

    MESSAGES: ClassVar[Mapping[DiffStatus, str]] = {}

    @property
    def tracks_recency(self) -> bool:
        return False

    @property
    def group(self) -> DataConfigGroup | None:
        return None

    def recency(self, item: object) -> datetime | None:
        return None

    def natural_key(self, item: object) -> str | None:
        return None

    def fuzzy_key(self, item: object) -> str | None:
        return None

    def message(self, status: DiffStatus) -> str:
        return self.MESSAGES.get(status, str(status))


class UnitMatcher(_MatcherDefaults):
    """Units are identified by id alone; only naming and placement are compared."""

    MESSAGES: ClassVar[Mapping[DiffStatus, str]] = {
        DiffStatus.NEW: "New unit",
        DiffStatus.MODIFIED: "Unit details differ",
    }

    @property
    def family(self) -> EntityFamily:
        return EntityFamily.UNIT

    def identity_key(self, item: Unit) -> str:
        return item.id

    def is_equal(self, local: Unit, external: Unit) -> bool:
        return (
            local.name == external.name
            and local.code == external.code
            and local.type == external.type
            and local.parent_id == external.parent_id
        )

    def prepare(self, item: Unit) -> Unit:
        return item

    def display_label(self, item: Unit) -> str:
        return item.name or item.id


@dataclass(slots=True, frozen=True)
class FacultyMatcher(_MatcherDefaults):
    """Faculty match by id, then normalized email, then normalized name."""

    MESSAGES: ClassVar[Mapping[DiffStatus, str]] = {
        DiffStatus.NEW: "New personnel",
        DiffStatus.MODIFIED: "Profile information changed",
        DiffStatus.CONFLICT: "Same email, different id",
        DiffStatus.SUSPECT: "Same name, needs confirmation",
    }

    fuzzy_names: bool = True
    name_language: NameLanguage = "vi"

    @property
    def family(self) -> EntityFamily:
        return EntityFamily.FACULTY

    def identity_key(self, item: Faculty) -> str:
        return item.id

    def natural_key(self, item: Faculty) -> str | None:
        return normalized_or_none(item.email)

    def fuzzy_key(self, item: Faculty) -> str | None:
        if not self.fuzzy_names:
            return None
        return normalized_or_none(item.name.in_language(self.name_language))

    def is_equal(self, local: Faculty, external: Faculty) -> bool:
        return local == external

    def prepare(self, item: Faculty) -> Faculty:
        return item

    def display_label(self, item: Faculty) -> str:
        return item.name.in_language(self.name_language) or item.email or item.id


class AssignmentMatcher(_MatcherDefaults):
    """Assignments fall back to the (faculty, unit) pair; no fuzzy matching.

    Ids that drifted during an upstream migration are not reconciled heuristically.
    """

    MESSAGES: ClassVar[Mapping[DiffStatus, str]] = {
        DiffStatus.NEW: "New assignment",
        DiffStatus.MODIFIED: "Assignment details changed",
        DiffStatus.CONFLICT: "Same person and unit, different id",
    }

    @property
    def family(self) -> EntityFamily:
        return EntityFamily.ASSIGNMENT

    def identity_key(self, item: Assignment) -> str:
        return item.id

    def natural_key(self, item: Assignment) -> str | None:
        if not item.faculty_id or not item.unit_id:
            return None
        return f"{item.faculty_id}+{item.unit_id}"

    def is_equal(self, local: Assignment, external: Assignment) -> bool:
        return (
            local.faculty_id == external.faculty_id
            and local.unit_id == external.unit_id
            and local.role == external.role
            and local.start_date == external.start_date
            and local.end_date == external.end_date
        )

    def prepare(self, item: Assignment) -> Assignment:
        return item

    def display_label(self, item: Assignment) -> str:
        role = f" ({item.role})" if item.role else ""
        return f"{item.faculty_id} @ {item.unit_id}{role}"


@dataclass(slots=True, frozen=True)
class DynamicRecordMatcher(_MatcherDefaults):
    """Records of one data group, compared only on the group's declared fields.

    Legacy or extraneous keys on either side never make a record "modified".
    """

    MESSAGES: ClassVar[Mapping[DiffStatus, str]] = {
        DiffStatus.NEW: "New data",
        DiffStatus.MODIFIED: "Newer update available",
        DiffStatus.CONFLICT: "Data conflict",
    }

    data_group: DataConfigGroup
    _keys: tuple[str, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_keys", self.data_group.field_keys)

    @property
    def family(self) -> EntityFamily:
        return EntityFamily.DYNAMIC_RECORD

    @property
    def tracks_recency(self) -> bool:
        return True

    @property
    def group(self) -> DataConfigGroup | None:
        return self.data_group

    def identity_key(self, item: DynamicRecord) -> str:
        return item.id

    def is_equal(self, local: DynamicRecord, external: DynamicRecord) -> bool:
        return all(local.values.get(key) == external.values.get(key) for key in self._keys)

    def recency(self, item: DynamicRecord) -> datetime | None:
        return parse_timestamp(item.updated_at)

    def prepare(self, item: DynamicRecord) -> DynamicRecord:
        """Drop values whose key is not declared by the group."""

        values = {key: item.values[key] for key in self._keys if key in item.values}
        return replace(item, values=values)

    def display_label(self, item: DynamicRecord) -> str:
        key = self.data_group.display_field_key
        value = item.values.get(key) if key is not None else None
        return str(value) if value not in (None, "") else "Record"


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp; ``None`` when absent or unparseable."""

    if not value:
        return None
    normalized = value.strip()
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        log.debug("Ignoring unparseable timestamp %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
