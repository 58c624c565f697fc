"""Normalization for fuzzy comparison of names and emails.

Only used for secondary (natural/fuzzy) keys. Primary ids are compared
verbatim and never pass through here.
"""

from __future__ import annotations

import unicodedata


def normalize_text(value: str | None) -> str:
    """Trim, lowercase and strip diacritical marks from ``value``.

    >>> normalize_text("  Nguyễn Văn Ánh ")
    'nguyen van anh'
    """

    if not value:
        return ""
    text = unicodedata.normalize("NFD", value.strip().lower())
    return "".join(ch for ch in text if not unicodedata.combining(ch))


def normalized_or_none(value: str | None) -> str | None:
    """Like ``normalize_text`` but ``None`` for blank input, so blanks never match."""

    return normalize_text(value) or None
