"""Error taxonomy for the reconciliation engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from unisync.domain.model import EntityFamily

    from .contracts import DiffStatus


class ReconciliationError(Exception):
    """Base class for reconciliation failures."""


class InvalidActionError(ReconciliationError, ValueError):
    """Raised when an action is not permitted for a diff item's status."""

    code = "invalid_action_for_status"

    def __init__(self, *, status: DiffStatus, action: object) -> None:
        self.status = status
        self.action = action
        super().__init__(f"{self.code}: action={action!s} status={status!s}")


class MalformedExternalDataError(ReconciliationError):
    """External data for one family could not be compared.

    Detection collects these as issues instead of raising them so that one
    broken family does not abort reconciliation of the others.
    """

    def __init__(
        self,
        *,
        family: EntityFamily,
        reason: str,
        group_id: str | None = None,
    ) -> None:
        self.family = family
        self.reason = reason
        self.group_id = group_id
        location = f"{family}:{group_id}" if group_id is not None else str(family)
        super().__init__(f"Skipped {location}: {reason}")


class DanglingReferenceWarning(UserWarning):
    """A merged record references an id missing from the merged snapshot."""

    def __init__(
        self,
        *,
        family: EntityFamily,
        record_id: str,
        field: str,
        missing_id: str,
    ) -> None:
        self.family = family
        self.record_id = record_id
        self.field = field
        self.missing_id = missing_id
        super().__init__(
            f"{family} record {record_id} references missing {field}={missing_id}"
        )


class UnknownNodeError(ReconciliationError, KeyError):
    """Raised when a selection-tree operation names a node that does not exist."""

    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(node_id)
