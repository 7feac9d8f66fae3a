"""Revision code cleaning.

Revision codes are frequently copy-pasted from documents typed with a
Cyrillic keyboard layout, so "С01" (Cyrillic Es) must count as "C01".
"""

from __future__ import annotations

from typing import Any

import pandas as pd

# Upper-case Cyrillic letters that render identically to Latin ones
_CYRILLIC_HOMOGLYPHS = str.maketrans(
    {
        "\u0410": "A",
        "\u0412": "B",
        "\u0421": "C",
        "\u0415": "E",
        "\u041d": "H",
        "\u0406": "I",
        "\u041a": "K",
        "\u041c": "M",
        "\u041e": "O",
        "\u0420": "P",
        "\u0422": "T",
        "\u0425": "X",
        "\u0423": "Y",
    }
)


def _normalize(value: Any) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value).replace("\u00a0", " ").strip().upper().translate(_CYRILLIC_HOMOGLYPHS)


def clean_revision(value: Any, empty_placeholder: str | None = None) -> str:
    """Normalize a revision code.

    Non-breaking spaces become spaces, surrounding whitespace is stripped,
    the code is upper-cased and Cyrillic homoglyphs map to Latin letters.
    The result is stable under repeated cleaning.

    Args:
        value: Raw revision cell
        empty_placeholder: Value used for blank or "-" revisions (some
            projects record unrevised documents as "0"); None keeps them as-is

    Returns:
        Cleaned revision string ("" for missing values without placeholder)
    """
    text = _normalize(value)

    # Placeholder goes through the same normalization as cell values
    if empty_placeholder is not None and text in ("", "-"):
        return _normalize(empty_placeholder)
    return text


def clean_revision_column(revisions: pd.Series, empty_placeholder: str | None = None) -> pd.Series:
    """Apply clean_revision to a whole column, returning a new Series."""
    return revisions.map(lambda v: clean_revision(v, empty_placeholder))
