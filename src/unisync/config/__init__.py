"""Application configuration helpers."""

from __future__ import annotations

from .env import env_choice, env_flag
from .errors import ConfigurationError
from .logging import configure_logging
from .reconcile import NameLanguage, ReconcileConfig, get_reconcile_config

__all__ = [
    "ConfigurationError",
    "NameLanguage",
    "ReconcileConfig",
    "configure_logging",
    "env_choice",
    "env_flag",
    "get_reconcile_config",
]
