"""Document register ingestion for DocTrack.

Parses CSV/XLSX register exports into DataFrames with canonical column
names, ready for classification and counting.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path

import pandas as pd

from doctrack.canonical.revision import clean_revision_column
from doctrack.classification.status import apply_status_rules
from doctrack.models import REVISION_COLUMN, ProjectConfig, RowFilter

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_MB = 50
MAX_ROWS = 50000

_SUPPORTED_SUFFIXES = (".csv", ".xlsx", ".xls")

# "GP Document Listing 201025.xlsx" -> 20 Oct 2025
_FILENAME_DATE = re.compile(r"(\d{6})$")


class RegisterFormatError(ValueError):
    """Register export cannot be read or lacks required columns."""


def _apply_row_filter(df: pd.DataFrame, row_filter: RowFilter) -> pd.DataFrame:
    mask = pd.Series(False, index=df.index)
    for column in row_filter.search_columns:
        if column in df.columns:
            mask |= (
                df[column]
                .astype("string")
                .str.contains(re.escape(row_filter.contains), case=row_filter.case_sensitive, na=False)
                .astype(bool)
            )
    filtered = df[mask].copy()
    logger.info(f"Row filter '{row_filter.contains}' kept {len(filtered)} of {len(df)} rows")
    return filtered


def _apply_column_mappings(df: pd.DataFrame, column_mappings: dict[str, str]) -> pd.DataFrame:
    """Copy source columns onto canonical names (target <- source)."""
    df = df.copy()
    for target, source in column_mappings.items():
        if source in df.columns:
            df[target] = df[source]
        else:
            logger.debug(f"Mapped column '{source}' not present in register")
    return df


def load_register(
    file_path: Path,
    project: ProjectConfig,
    required_columns: set[str] | None = None,
) -> pd.DataFrame:
    """Load a register export (CSV or XLSX) into a canonical DataFrame.

    Steps: read with the project's CSV/Excel settings, apply the row
    filter on raw columns, copy mapped columns onto canonical names,
    evaluate status rules, then clean revisions.

    Args:
        file_path: Path to CSV or XLSX file
        project: Project configuration
        required_columns: Canonical columns that must exist after mapping

    Returns:
        DataFrame with canonical column names

    Raises:
        FileNotFoundError: If file doesn't exist
        RegisterFormatError: If the file is too large, of an unsupported
            type, has too many rows or misses required columns
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Register file not found: {file_path}")

    file_size_mb = file_path.stat().st_size / (1024 * 1024)
    if file_size_mb > MAX_FILE_SIZE_MB:
        raise RegisterFormatError(
            f"File too large ({file_size_mb:.1f}MB). Maximum allowed: {MAX_FILE_SIZE_MB}MB"
        )

    suffix = file_path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(file_path, **project.csv_settings)
    elif suffix in (".xlsx", ".xls"):
        df = pd.read_excel(file_path, **project.excel_settings)
    else:
        raise RegisterFormatError(f"Unsupported file format: {file_path.suffix}. Use CSV or XLSX.")

    if len(df) > MAX_ROWS:
        raise RegisterFormatError(f"Too many rows ({len(df):,}). Maximum allowed: {MAX_ROWS:,}")

    if project.row_filter is not None:
        df = _apply_row_filter(df, project.row_filter)

    if project.column_mappings:
        df = _apply_column_mappings(df, project.column_mappings)

    missing = (required_columns or set()) - set(df.columns)
    if missing:
        raise RegisterFormatError(f"Missing required columns: {sorted(missing)}")

    df = apply_status_rules(df, project.status_mapping)

    if REVISION_COLUMN in df.columns:
        df[REVISION_COLUMN] = clean_revision_column(df[REVISION_COLUMN], project.empty_revision)

    logger.info(f"Loaded {len(df)} register rows from {file_path.name}")
    return df


def snapshot_timestamp(file_path: Path) -> tuple[str, str]:
    """Date and time labels for a register snapshot.

    A trailing ``DDMMYY`` in the file name wins (time defaults to 12:00);
    otherwise the file modification time is used.

    Returns:
        Tuple of (date, time) formatted as ``DD-Mon-YYYY`` and ``HH:MM``
    """
    file_path = Path(file_path)
    match = _FILENAME_DATE.search(file_path.stem)
    if match:
        try:
            stamp = datetime.strptime(match.group(1), "%d%m%y")
            return stamp.strftime("%d-%b-%Y"), "12:00"
        except ValueError:
            logger.warning(f"Could not parse date from filename '{file_path.name}'")

    stamp = datetime.fromtimestamp(file_path.stat().st_mtime)
    return stamp.strftime("%d-%b-%Y"), stamp.strftime("%H:%M")


def discover_registers(input_dir: Path) -> list[Path]:
    """Register exports in a directory, oldest snapshot first.

    Office lock files (``~$...``) are skipped.
    """
    input_dir = Path(input_dir)
    if not input_dir.is_dir():
        raise FileNotFoundError(f"Input directory not found: {input_dir}")

    files = [
        p
        for p in input_dir.iterdir()
        if p.is_file() and p.suffix.lower() in _SUPPORTED_SUFFIXES and not p.name.startswith("~$")
    ]

    return sort_snapshots(files)


def sort_snapshots(paths: list[Path]) -> list[Path]:
    """Order register exports by snapshot timestamp, oldest first."""

    def _sort_key(path: Path) -> datetime:
        date, time = snapshot_timestamp(path)
        return datetime.strptime(f"{date} {time}", "%d-%b-%Y %H:%M")

    return sorted(paths, key=_sort_key)
