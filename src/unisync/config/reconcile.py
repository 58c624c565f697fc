"""Reconciliation defaults."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, cast

from .env import env_choice, env_flag

type NameLanguage = Literal["vi", "en"]

DEFAULT_FACULTY_NAME_LANGUAGE: NameLanguage = "vi"


@dataclass(frozen=True, slots=True)
class ReconcileConfig:
    fuzzy_faculty_matching: bool = True
    faculty_name_language: NameLanguage = DEFAULT_FACULTY_NAME_LANGUAGE


def get_reconcile_config() -> ReconcileConfig:
    language = env_choice(
        "UNISYNC_FACULTY_NAME_LANGUAGE",
        choices=("vi", "en"),
        default=DEFAULT_FACULTY_NAME_LANGUAGE,
    )
    return ReconcileConfig(
        fuzzy_faculty_matching=env_flag("UNISYNC_FUZZY_FACULTY_MATCH", default=True),
        faculty_name_language=cast("NameLanguage", language),
    )
