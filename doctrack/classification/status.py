"""Project status vocabulary normalization.

Each project names its approval statuses differently ("Accepted",
"A - Proceed", "Status A"), so raw status text is mapped onto the project's
canonical categories before any cross-snapshot comparison.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import pandas as pd

from doctrack.models import (
    OTHER_STATUS,
    STATUS_COLUMN,
    UNMAPPED_STATUS,
    StatusMapping,
    StatusRule,
)

logger = logging.getLogger(__name__)


def as_status_mapping(config: StatusMapping | Mapping[str, Any] | None) -> StatusMapping | None:
    """Validate a plain dict into a StatusMapping (models pass through)."""
    if config is None or isinstance(config, StatusMapping):
        return config
    return StatusMapping.model_validate(config)


def get_status_category(raw_status: Any, status_mapping: StatusMapping | Mapping[str, Any] | None) -> str | None:
    """Return the first category whose status list contains raw_status exactly.

    Args:
        raw_status: Status value from the register
        status_mapping: Project status mapping

    Returns:
        Category name, or None when the status is not listed anywhere
    """
    mapping = as_status_mapping(status_mapping)
    if mapping is None:
        return None

    for category, info in mapping.categories.items():
        if raw_status in info.statuses:
            return category
    return None


def get_status_color(category: str, status_mapping: StatusMapping | Mapping[str, Any] | None) -> str | None:
    mapping = as_status_mapping(status_mapping)
    if mapping is None or category not in mapping.categories:
        return None
    return mapping.categories[category].color


def get_status_display_name(category: str, status_mapping: StatusMapping | Mapping[str, Any] | None) -> str:
    mapping = as_status_mapping(status_mapping)
    if mapping is None or category not in mapping.categories:
        return category
    return mapping.categories[category].display_name or category


def get_status_display_order(status_mapping: StatusMapping | Mapping[str, Any] | None) -> list[str]:
    """Configured display order, falling back to declaration order."""
    mapping = as_status_mapping(status_mapping)
    if mapping is None:
        return []
    if mapping.display_order:
        return list(mapping.display_order)
    return list(mapping.categories)


def get_grouped_status_counts(
    statuses: pd.Series | Iterable[Any],
    status_mapping: StatusMapping | Mapping[str, Any] | None,
) -> dict[str, int]:
    """Tally a status column by canonical category.

    Unmapped values are added to "Other" when the project declares it.
    Otherwise they are dropped from the result, or counted under
    "Unmapped" when the mapping sets ``track_unmapped``. Categories with a
    zero count are omitted.

    Args:
        statuses: Raw status values (a column or any iterable)
        status_mapping: Project status mapping; None returns raw frequencies

    Returns:
        Dict of category name to count
    """
    values = pd.Series(list(statuses), dtype=object) if not isinstance(statuses, pd.Series) else statuses
    raw_counts = values.value_counts()

    mapping = as_status_mapping(status_mapping)
    if mapping is None:
        return {str(k): int(v) for k, v in raw_counts.items()}

    grouped: dict[str, int] = {category: 0 for category in mapping.categories}
    dropped = 0

    for status_value, count in raw_counts.items():
        category = get_status_category(status_value, mapping)
        if category:
            grouped[category] += int(count)
        elif OTHER_STATUS in grouped:
            grouped[OTHER_STATUS] += int(count)
        elif mapping.track_unmapped:
            grouped[UNMAPPED_STATUS] = grouped.get(UNMAPPED_STATUS, 0) + int(count)
        else:
            dropped += int(count)

    if dropped:
        logger.debug(f"{dropped} status values matched no category and were excluded")

    return {k: v for k, v in grouped.items() if v > 0}


def resolve_status(row: Any, rules: Sequence[StatusRule], default: str = OTHER_STATUS) -> str:
    """Evaluate declarative status rules against one row; first match wins."""
    for rule in rules:
        if rule.matches(row):
            return rule.status
    return default


def apply_status_rules(
    rows: pd.DataFrame,
    status_mapping: StatusMapping | Mapping[str, Any] | None,
) -> pd.DataFrame:
    """Rewrite the Status column from the mapping's row rules.

    Projects that spread status over several columns (e.g. a construction
    status plus a separate design status) declare ordered rules instead of
    custom code. Returns a new frame; rows are untouched when no rules exist.
    """
    mapping = as_status_mapping(status_mapping)
    if mapping is None or not mapping.rules or rows.empty:
        return rows

    result = rows.copy()
    result[STATUS_COLUMN] = [
        resolve_status(row, mapping.rules, mapping.rules_default)
        for row in rows.to_dict(orient="records")
    ]
    logger.info(f"Applied {len(mapping.rules)} status rules to {len(result)} rows")
    return result
