"""Read and write backup documents on disk."""

from __future__ import annotations

import json
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Any, cast

if TYPE_CHECKING:
    from collections.abc import Mapping

log = getLogger(__name__)


class BackupFormatError(ValueError):
    """The file is not a JSON object and cannot be a backup document."""


def read_backup(path: str | Path) -> dict[str, Any]:
    source = Path(path)
    with source.open(encoding="utf-8") as handle:
        try:
            payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise BackupFormatError(f"{source}: invalid JSON ({exc.msg})") from exc
    if not isinstance(payload, dict):
        raise BackupFormatError(f"{source}: expected a JSON object at the top level")
    log.debug("Read backup %s", source)
    return cast(dict[str, Any], payload)


def write_backup(path: str | Path, payload: Mapping[str, Any]) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, ensure_ascii=False)
        handle.write("\n")
    log.info("Wrote backup %s", target)
    return target
