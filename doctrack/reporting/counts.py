"""Revision, status and file-type counts per register snapshot.

Counts are computed on the fly from whichever subset of the register a
report needs (e.g. drawings only), and one summary row per snapshot builds
the progression time series.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import pandas as pd

from doctrack.canonical.revision import clean_revision_column
from doctrack.classification.status import as_status_mapping, get_grouped_status_counts
from doctrack.models import FILE_TYPE_COLUMNS, REVISION_COLUMN, STATUS_COLUMN, StatusMapping

logger = logging.getLogger(__name__)

DATE_COLUMN = "Date"
TIME_COLUMN = "Time"

REVISION_PREFIX = "Rev_"
STATUS_PREFIX = "Status_"
FILE_TYPE_PREFIX = "FileType_"

# Preliminary and construction revision series
REVISION_TYPES = ("P", "C")


def _frequencies(values: pd.Series) -> dict[str, int]:
    return {str(k): int(v) for k, v in values.value_counts().items() if pd.notna(k)}


def find_file_type_column(rows: pd.DataFrame) -> str | None:
    """First file-type column present, probing the known project spellings in order."""
    for column in FILE_TYPE_COLUMNS:
        if column in rows.columns:
            return column
    return None


def get_dynamic_counts(
    rows: pd.DataFrame,
    status_mapping: StatusMapping | Mapping[str, Any] | None = None,
) -> dict[str, dict[str, int]]:
    """Calculate revision, status and file-type frequencies for one snapshot.

    Revisions are cleaned before counting. Statuses are grouped through the
    mapping when one is given, otherwise raw values are counted.

    Args:
        rows: Register snapshot (or a filtered subset of it)
        status_mapping: Project status mapping

    Returns:
        Dict with ``revision_counts``, ``status_counts`` and
        ``file_type_counts``, each keyed by plain value
    """
    counts: dict[str, dict[str, int]] = {
        "revision_counts": {},
        "status_counts": {},
        "file_type_counts": {},
    }
    if rows.empty:
        return counts

    if REVISION_COLUMN in rows.columns:
        counts["revision_counts"] = _frequencies(clean_revision_column(rows[REVISION_COLUMN]))

    if STATUS_COLUMN in rows.columns:
        mapping = as_status_mapping(status_mapping)
        if mapping is not None:
            counts["status_counts"] = get_grouped_status_counts(rows[STATUS_COLUMN], mapping)
        else:
            counts["status_counts"] = _frequencies(rows[STATUS_COLUMN])

    file_type_column = find_file_type_column(rows)
    if file_type_column:
        counts["file_type_counts"] = _frequencies(rows[file_type_column])

    return counts


def create_summary_row(
    date: str,
    time: str,
    rows: pd.DataFrame,
    status_mapping: StatusMapping | Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Flatten one snapshot's counts into a single prefixed summary row.

    Example:
        >>> create_summary_row("20-Oct-2025", "09:00", df, mapping)
        {'Date': '20-Oct-2025', 'Time': '09:00', 'Rev_C01': 12, 'Status_Status A': 10, ...}
    """
    counts = get_dynamic_counts(rows, status_mapping)

    row: dict[str, Any] = {DATE_COLUMN: date, TIME_COLUMN: time}
    for prefix, key in (
        (REVISION_PREFIX, "revision_counts"),
        (STATUS_PREFIX, "status_counts"),
        (FILE_TYPE_PREFIX, "file_type_counts"),
    ):
        row.update({f"{prefix}{value}": count for value, count in counts[key].items()})
    return row


def create_summary_dataframe(
    snapshots: Iterable[tuple[str, str, pd.DataFrame]],
    status_mapping: StatusMapping | Mapping[str, Any] | None = None,
) -> pd.DataFrame:
    """Build the progression table, one row per (date, time, rows) snapshot.

    Date and Time lead, followed by revisions in series order. Counts missing
    from a snapshot are filled with 0.
    """
    summary_rows = [create_summary_row(date, time, rows, status_mapping) for date, time, rows in snapshots]
    if not summary_rows:
        return pd.DataFrame()

    summary = pd.DataFrame(summary_rows)
    revision_columns = order_revision_columns(summary.columns)
    columns = [DATE_COLUMN, TIME_COLUMN] + revision_columns + [
        c for c in summary.columns if c not in (DATE_COLUMN, TIME_COLUMN) and c not in revision_columns
    ]
    summary = summary[columns].fillna(0)

    count_columns = columns[2:]
    if count_columns:
        summary[count_columns] = summary[count_columns].astype(int)

    logger.info(f"Built progression summary over {len(summary)} snapshots")
    return summary


def columns_with_prefix(summary: pd.DataFrame, prefix: str) -> list[str]:
    """Summary columns of one kind, e.g. every ``Rev_`` column."""
    return [c for c in summary.columns if str(c).startswith(prefix)]


def _revision_number(column: str, prefix: str) -> float:
    suffix = column[len(prefix) + 1 :]
    return int(suffix) if suffix.isdigit() else float("inf")


def order_revision_columns(columns: Iterable[str]) -> list[str]:
    """Order ``Rev_`` columns: P series by number, then C series by number, then the rest.

    Example:
        >>> order_revision_columns(["Rev_P10", "Rev_C01", "Rev_P02", "Rev_0"])
        ['Rev_P02', 'Rev_P10', 'Rev_C01', 'Rev_0']
    """
    revisions = [c for c in columns if str(c).startswith(REVISION_PREFIX)]
    ordered: list[str] = []
    for series in REVISION_TYPES:
        prefix = f"{REVISION_PREFIX}{series}"
        members = [c for c in revisions if c.startswith(prefix)]
        ordered += sorted(members, key=lambda c, p=prefix: (_revision_number(c, p), c))
    ordered += sorted(c for c in revisions if c not in ordered)
    return ordered


def get_status_counts_by_revision_type(
    rows: pd.DataFrame,
    status_mapping: StatusMapping | Mapping[str, Any] | None = None,
) -> dict[str, dict[str, int]]:
    """Status counts for preliminary (P) and construction (C) revisions separately.

    Statuses are grouped through the mapping; values matching no category
    are counted under "Unmapped" unless the project declares an Other bucket.

    Returns:
        ``{"P": {category: count}, "C": {category: count}}``
    """
    result: dict[str, dict[str, int]] = {series: {} for series in REVISION_TYPES}
    if rows.empty or REVISION_COLUMN not in rows.columns or STATUS_COLUMN not in rows.columns:
        return result

    mapping = as_status_mapping(status_mapping)
    if mapping is not None:
        mapping = mapping.model_copy(update={"track_unmapped": True})

    revisions = clean_revision_column(rows[REVISION_COLUMN])
    for series in REVISION_TYPES:
        subset = rows.loc[revisions.str.startswith(series), STATUS_COLUMN]
        if mapping is not None:
            result[series] = get_grouped_status_counts(subset, mapping)
        else:
            result[series] = _frequencies(subset)
    return result
