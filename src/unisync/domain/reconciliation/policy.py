"""Default actions and operator override validation.

Responsibilities of this stage:
- pick the conservative default action for every classified diff item
- reject actions that make no sense for a status before they reach the executor
- layer operator decisions over detector output without mutating it
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from unisync.domain.model import EntityFamily

from .contracts import Action, DiffStatus
from .errors import InvalidActionError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .contracts import DiffItem

log = logging.getLogger(__name__)


_DEFAULT_ACTIONS: dict[DiffStatus, Action] = {
    DiffStatus.NEW: Action.TAKE_EXTERNAL,
    DiffStatus.MODIFIED: Action.KEEP_LOCAL,
    DiffStatus.CONFLICT: Action.MERGE,
    DiffStatus.SUSPECT: Action.KEEP_LOCAL,
    DiffStatus.IDENTICAL: Action.SKIP,
}

# Dynamic records carry timestamps: "modified" means the external copy is newer,
# "conflict" means recency could not decide.
_FAMILY_DEFAULT_ACTIONS: dict[tuple[EntityFamily, DiffStatus], Action] = {
    (EntityFamily.DYNAMIC_RECORD, DiffStatus.MODIFIED): Action.TAKE_EXTERNAL,
    (EntityFamily.DYNAMIC_RECORD, DiffStatus.CONFLICT): Action.KEEP_LOCAL,
}

_NEW_ITEM_ACTIONS = frozenset({Action.TAKE_EXTERNAL, Action.SKIP})


def default_action(status: DiffStatus, family: EntityFamily | None = None) -> Action:
    """Return the policy default for ``status`` within ``family``."""

    if family is not None:
        action = _FAMILY_DEFAULT_ACTIONS.get((family, status))
        if action is not None:
            return action
    return _DEFAULT_ACTIONS[status]


def validate_action(status: DiffStatus, action: Action | str) -> Action:
    """Return ``action`` as an ``Action`` if it is allowed for ``status``.

    New items can only be taken or skipped: there is no local record to keep or
    merge into.
    """

    try:
        resolved = Action(action)
    except ValueError as exc:
        raise InvalidActionError(status=status, action=action) from exc
    if status is DiffStatus.NEW and resolved not in _NEW_ITEM_ACTIONS:
        raise InvalidActionError(status=status, action=resolved)
    return resolved


def apply_overrides[T: DiffItem](
    items: Iterable[T],
    overrides: Mapping[str, Action | str],
) -> list[T]:
    """Return copies of ``items`` with operator actions applied.

    Overrides are looked up by ``DiffItem.key`` first and by the bare record id
    second. Every override is validated; keys that match no item are logged and
    ignored.
    """

    unused = set(overrides)
    planned = override_items(items, overrides, unused)
    warn_unused_overrides(unused)
    return planned


def override_items[T: DiffItem](
    items: Iterable[T],
    overrides: Mapping[str, Action | str],
    unused: set[str],
) -> list[T]:
    """Apply ``overrides`` to ``items``, discarding matched keys from ``unused``."""

    planned: list[T] = []
    for item in items:
        lookup = item.key if item.key in overrides else item.id
        if lookup not in overrides:
            planned.append(item)
            continue
        unused.discard(lookup)
        action = validate_action(item.status, overrides[lookup])
        planned.append(replace(item, action=action) if action is not item.action else item)
    return planned


def warn_unused_overrides(unused: set[str]) -> None:
    if unused:
        log.warning("Ignoring overrides for unknown diff items: %s", ", ".join(sorted(unused)))
