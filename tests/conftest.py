from __future__ import annotations

import os

import pytest

_UNISYNC_ENV_PREFIX = "UNISYNC_"


@pytest.fixture(autouse=True)
def isolated_unisync_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test against default configuration unless it sets variables itself."""

    for name in list(os.environ):
        if name.startswith(_UNISYNC_ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
