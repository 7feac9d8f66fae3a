"""Document classification into tracked categories.

A row is assigned to a category only when (a) its title, reference or path
matches one of the category's patterns and (b) an apartment number can be
extracted from it. Rows failing (b) stay uncategorized on purpose: they are
reported as a data-quality signal instead of being counted.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import pandas as pd

from doctrack.extraction.identifiers import (
    block_from_path,
    extract_apartment_number,
    extract_block,
    extract_phase,
    is_block_folder,
    is_landlord_folder,
)
from doctrack.models import (
    APARTMENT_COLUMN,
    BLOCK_COLUMN,
    CATEGORY_COLUMN,
    EXTRACTED_BLOCK_COLUMN,
    PATH_COLUMN,
    PHASE_COLUMN,
    REFERENCE_COLUMN,
    TITLE_COLUMN,
    CategoryConfig,
    CategoryPrecedence,
    TrackingConfig,
)

logger = logging.getLogger(__name__)

DERIVED_COLUMNS = (CATEGORY_COLUMN, APARTMENT_COLUMN, PHASE_COLUMN, BLOCK_COLUMN)


def as_category_configs(
    configs: Mapping[str, CategoryConfig | Mapping[str, Any]] | None,
) -> dict[str, CategoryConfig]:
    """Validate category definitions, keeping declaration order."""
    if not configs:
        return {}
    result: dict[str, CategoryConfig] = {}
    for name, config in configs.items():
        if isinstance(config, CategoryConfig):
            result[name] = config
        elif isinstance(config, Mapping):
            result[name] = CategoryConfig.model_validate(config)
        else:
            logger.warning(f"Skipping category '{name}': definition is not a mapping")
    return result


def as_tracking_config(config: TrackingConfig | Mapping[str, Any] | None) -> TrackingConfig | None:
    if config is None or isinstance(config, TrackingConfig):
        return config
    return TrackingConfig.model_validate(config)


def _text_column(rows: pd.DataFrame, column: str) -> pd.Series:
    if column not in rows.columns:
        return pd.Series([""] * len(rows), index=rows.index, dtype=object)
    return rows[column].fillna("").astype(str)


def _category_mask(
    titles: pd.Series, refs: pd.Series, paths: pd.Series, config: CategoryConfig
) -> pd.Series:
    mask = pd.Series(False, index=titles.index)
    for column, regex in (
        (titles, config.title_regex),
        (refs, config.reference_regex),
        (paths, config.path_regex),
    ):
        if regex is not None:
            mask |= column.map(lambda text, rx=regex: rx.search(text) is not None).astype(bool)
    return mask


def categorize_documents(
    rows: pd.DataFrame,
    category_configs: Mapping[str, CategoryConfig | Mapping[str, Any]],
    full_config: TrackingConfig | Mapping[str, Any] | None = None,
    precedence: CategoryPrecedence | str | None = None,
) -> pd.DataFrame:
    """Annotate register rows with category, apartment, phase and block.

    Args:
        rows: Register snapshot with canonical column names
        category_configs: Category name -> detection patterns, in precedence order
        full_config: Tracking configuration supplying phase/block detection
        precedence: Overlap rule; defaults to the tracking config's setting,
            else first match in declared category order

    Returns:
        New DataFrame with ``category``, ``apartment_number``, ``phase`` and
        ``block`` columns (None where not determined). Input is not modified.
    """
    categories = as_category_configs(category_configs)
    tracking = as_tracking_config(full_config)

    if precedence is None:
        precedence = tracking.precedence if tracking else CategoryPrecedence.FIRST_MATCH
    precedence = CategoryPrecedence(precedence)

    result = rows.copy()
    for column in DERIVED_COLUMNS:
        result[column] = pd.Series([None] * len(rows), index=rows.index, dtype=object)

    if rows.empty:
        return result

    titles = _text_column(rows, TITLE_COLUMN)
    refs = _text_column(rows, REFERENCE_COLUMN)
    paths = _text_column(rows, PATH_COLUMN)

    if tracking and (tracking.phase_detection or tracking.block_detection):
        phases, blocks = [], []
        for title, ref, path in zip(titles, refs, paths):
            phases.append(extract_phase(title, ref, path, tracking.phase_detection))
            blocks.append(extract_block(title, ref, path, tracking.block_detection))
        result[PHASE_COLUMN] = pd.Series(phases, index=rows.index, dtype=object)
        result[BLOCK_COLUMN] = pd.Series(blocks, index=rows.index, dtype=object)

    assigned: dict[Any, str] = {}
    apartments: dict[Any, int | None] = {}
    overlaps = 0

    for category_name, config in categories.items():
        mask = _category_mask(titles, refs, paths, config)

        for idx in mask[mask].index:
            if idx not in apartments:
                apartments[idx] = extract_apartment_number(
                    titles.at[idx], refs.at[idx], paths.at[idx]
                )
            if apartments[idx] is None:
                continue

            if idx in assigned:
                overlaps += 1
                if precedence is CategoryPrecedence.FIRST_MATCH:
                    continue
            assigned[idx] = category_name

    for idx, category_name in assigned.items():
        result.at[idx, CATEGORY_COLUMN] = category_name
        result.at[idx, APARTMENT_COLUMN] = apartments[idx]

    if overlaps:
        logger.warning(
            f"{overlaps} rows matched more than one category; resolved by {precedence.value}"
        )
    logger.info(f"Categorized {len(assigned)} of {len(rows)} documents")

    return result


def get_uncategorized_certificates_in_blocks(
    all_rows: pd.DataFrame, categorized_rows: pd.DataFrame
) -> pd.DataFrame:
    """Find documents filed in a block folder that the classifier could not resolve.

    These are documents a reader would expect to be classifiable (they sit
    in a ``Block - X`` folder outside the landlord folders) but that have no
    category, usually because of misnamed titles.

    Args:
        all_rows: Every candidate document (e.g. all certificates)
        categorized_rows: Output of categorize_documents over the same index

    Returns:
        Subset of all_rows with an added ``extracted_block`` column
    """
    if PATH_COLUMN not in all_rows.columns or all_rows.empty:
        return pd.DataFrame()

    paths = all_rows[PATH_COLUMN]
    in_blocks = paths.map(is_block_folder) & ~paths.map(is_landlord_folder)
    candidates = all_rows[in_blocks.astype(bool)]
    if candidates.empty:
        return pd.DataFrame()

    if CATEGORY_COLUMN in categorized_rows.columns:
        categorized_index = categorized_rows.index[categorized_rows[CATEGORY_COLUMN].notna()]
    else:
        categorized_index = categorized_rows.index[:0]

    uncategorized = candidates[~candidates.index.isin(categorized_index)].copy()
    if not uncategorized.empty:
        uncategorized[EXTRACTED_BLOCK_COLUMN] = uncategorized[PATH_COLUMN].map(
            lambda path: block_from_path(path) or "Unknown"
        )
    return uncategorized


def count_uncategorized_by_block(uncategorized: pd.DataFrame) -> dict[str, int]:
    """Number of uncategorized documents per block letter, sorted by block."""
    if uncategorized.empty or EXTRACTED_BLOCK_COLUMN not in uncategorized.columns:
        return {}
    counts = uncategorized[EXTRACTED_BLOCK_COLUMN].value_counts()
    return {str(block): int(counts[block]) for block in sorted(counts.index)}
