"""Shared logging helpers for unisync."""

from __future__ import annotations

import logging

from .env import env_choice

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: the
    level defaults to ``UNISYNC_LOG_LEVEL`` (INFO when unset) and the format is
    terse enough for CLI output. Pass ``force=True`` to reconfigure during tests
    or specialised entry points.
    """

    if level is None:
        level = logging.getLevelNamesMapping()[
            env_choice("UNISYNC_LOG_LEVEL", choices=_LOG_LEVELS, default="INFO")
        ]
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
