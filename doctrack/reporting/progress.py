"""Certificate progress aggregation.

Progress is measured in apartments, not documents: an apartment with three
electrical certificates counts once. Denominators come from the apartment
inventory when one is supplied and from each category's ``max_count``
otherwise.

Every function returns plain dicts of str/int/float/list so results can be
serialized to JSON or written straight into spreadsheet cells.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import pandas as pd

from doctrack.classification.classifier import (
    as_category_configs,
    as_tracking_config,
    count_uncategorized_by_block,
    get_uncategorized_certificates_in_blocks,
)
from doctrack.classification.status import as_status_mapping, get_status_category
from doctrack.models import (
    APARTMENT_COLUMN,
    BLOCK_COLUMN,
    CATEGORY_COLUMN,
    PHASE_COLUMN,
    STATUS_COLUMN,
    AccommodationData,
    CategoryConfig,
    StatusMapping,
    TrackingConfig,
)

logger = logging.getLogger(__name__)

CategoryConfigs = Mapping[str, CategoryConfig | Mapping[str, Any]]


def as_inventory(inventory: AccommodationData | Mapping[str, Any] | None) -> AccommodationData | None:
    if inventory is None or isinstance(inventory, AccommodationData):
        return inventory
    return AccommodationData.model_validate(inventory)


def _percentage(done: int, total: int) -> float:
    return round(done / total * 100, 1) if total > 0 else 0.0


def _rows_where(rows: pd.DataFrame, column: str, value: Any) -> pd.DataFrame:
    if column not in rows.columns:
        return rows.iloc[0:0]
    return rows[rows[column] == value]


def _distinct_apartments(rows: pd.DataFrame) -> int:
    if APARTMENT_COLUMN not in rows.columns:
        return 0
    return int(rows[APARTMENT_COLUMN].dropna().nunique())


def _category_counts(rows: pd.DataFrame, category_name: str) -> tuple[int, int]:
    """(documents, distinct apartments) for one category within rows."""
    category_rows = _rows_where(rows, CATEGORY_COLUMN, category_name)
    return len(category_rows), _distinct_apartments(category_rows)


def calculate_category_progress(
    categorized_rows: pd.DataFrame,
    category_configs: CategoryConfigs,
    inventory: AccommodationData | Mapping[str, Any] | None = None,
) -> dict[str, dict[str, Any]]:
    """Calculate progress statistics for each category.

    Categories whose denominator is zero are skipped.

    Args:
        categorized_rows: Output of categorize_documents
        category_configs: Category definitions (declaration order is kept)
        inventory: Apartment inventory; its ``total_apartments`` overrides
            every category's ``max_count``

    Returns:
        Category name -> {category_name, display_name, documents_count,
        apartments_with_docs, max_apartments, progress_percentage,
        remaining_apartments}
    """
    categories = as_category_configs(category_configs)
    inventory = as_inventory(inventory)

    progress: dict[str, dict[str, Any]] = {}
    for category_name, config in categories.items():
        if inventory is not None and inventory.total_apartments is not None:
            max_count = inventory.total_apartments
        else:
            max_count = config.max_count or 0

        if max_count == 0:
            logger.debug(f"Skipping category '{category_name}': no apartments to measure against")
            continue

        documents, apartments = _category_counts(categorized_rows, category_name)
        progress[category_name] = {
            "category_name": category_name,
            "display_name": config.display_name or category_name,
            "documents_count": documents,
            "apartments_with_docs": apartments,
            "max_apartments": int(max_count),
            "progress_percentage": _percentage(apartments, max_count),
            "remaining_apartments": int(max_count - apartments),
        }

    return progress


def get_overall_progress(progress_stats: Mapping[str, Mapping[str, Any]]) -> dict[str, Any]:
    """Sum progress across categories.

    The totals count certificate slots (one per apartment per category),
    so ``total_max_apartments`` is the inventory size times the number of
    categories, not the number of distinct apartments.
    """
    if not progress_stats:
        return {
            "total_documents": 0,
            "total_apartments_with_docs": 0,
            "total_max_apartments": 0,
            "overall_progress_percentage": 0.0,
        }

    total_documents = sum(s["documents_count"] for s in progress_stats.values())
    total_with_docs = sum(s["apartments_with_docs"] for s in progress_stats.values())
    total_max = sum(s["max_apartments"] for s in progress_stats.values())

    return {
        "total_documents": int(total_documents),
        "total_apartments_with_docs": int(total_with_docs),
        "total_max_apartments": int(total_max),
        "overall_progress_percentage": _percentage(total_with_docs, total_max),
    }


def _phase_sources(
    tracking: TrackingConfig | None, inventory: AccommodationData | None
) -> list[tuple[str, str, int, dict[str, int | None]]]:
    """(phase id, display name, apartment count, block id -> count) per phase.

    Inventory phases take precedence; config-declared blocks carry no count.
    """
    declared = tracking.phases if tracking else {}

    if inventory is not None and inventory.phases:
        sources = []
        for phase_id, phase in inventory.phases.items():
            display = declared[phase_id].display_name if phase_id in declared else None
            blocks = {block_id: block.apartment_count for block_id, block in phase.blocks.items()}
            sources.append((phase_id, display or f"Phase {phase_id}", phase.apartment_count, blocks))
        return sources

    return [
        (phase_id, phase.display_name or phase_id, phase.apartment_count, dict.fromkeys(phase.blocks))
        for phase_id, phase in declared.items()
    ]


def calculate_progress_by_phase_block(
    categorized_rows: pd.DataFrame,
    category_configs: CategoryConfigs,
    full_config: TrackingConfig | Mapping[str, Any] | None,
    inventory: AccommodationData | Mapping[str, Any] | None = None,
) -> dict[str, dict[str, Any]]:
    """Calculate progress broken down by phase and, within it, by block.

    Args:
        categorized_rows: Output of categorize_documents (phase/block filled)
        category_configs: Category definitions
        full_config: Tracking configuration declaring phases
        inventory: Apartment inventory; its phases replace declared ones

    Returns:
        Phase id -> {display_name, phase_stats, block_stats}; empty when no
        phases are known
    """
    categories = as_category_configs(category_configs)
    tracking = as_tracking_config(full_config)
    inventory = as_inventory(inventory)

    result: dict[str, dict[str, Any]] = {}
    for phase_id, display_name, phase_count, blocks in _phase_sources(tracking, inventory):
        phase_rows = _rows_where(categorized_rows, PHASE_COLUMN, phase_id)

        phase_stats = {}
        for category_name in categories:
            documents, apartments = _category_counts(phase_rows, category_name)
            phase_stats[category_name] = {
                "documents_count": documents,
                "apartments_with_docs": apartments,
                "max_apartments": int(phase_count),
                "progress_percentage": _percentage(apartments, phase_count),
            }

        block_stats: dict[str, dict[str, Any]] = {}
        for block_id, block_count in blocks.items():
            block_rows = _rows_where(phase_rows, BLOCK_COLUMN, block_id)
            block_stats[block_id] = {}
            for category_name in categories:
                documents, apartments = _category_counts(block_rows, category_name)
                stats: dict[str, Any] = {
                    "documents_count": documents,
                    "apartments_with_docs": apartments,
                }
                if block_count is not None:
                    stats["max_apartments"] = int(block_count)
                    stats["progress_percentage"] = _percentage(apartments, block_count)
                    stats["remaining_apartments"] = int(block_count - apartments)
                block_stats[block_id][category_name] = stats

        result[phase_id] = {
            "display_name": display_name,
            "phase_stats": phase_stats,
            "block_stats": block_stats,
        }

    return result


def _apartment_details(
    categorized_rows: pd.DataFrame,
    categories: Mapping[str, CategoryConfig],
    inventory: AccommodationData | None,
) -> dict[str, dict[str, Any]]:
    known = inventory.all_apartments() if inventory is not None else []

    details: dict[str, dict[str, Any]] = {}
    for category_name in categories:
        category_rows = _rows_where(categorized_rows, CATEGORY_COLUMN, category_name)
        if category_rows.empty or APARTMENT_COLUMN not in category_rows.columns:
            continue

        per_apartment = category_rows.groupby(APARTMENT_COLUMN).size()
        documents_per_apartment = {int(apt): int(n) for apt, n in per_apartment.items()}
        with_docs = sorted(documents_per_apartment)
        covered = set(with_docs)

        details[category_name] = {
            "apartments_with_docs": with_docs,
            "apartments_missing": [apt for apt in known if apt not in covered],
            "documents_per_apartment": documents_per_apartment,
        }
    return details


def get_apartment_certificate_summary(
    categorized_rows: pd.DataFrame,
    category_configs: CategoryConfigs,
    full_config: TrackingConfig | Mapping[str, Any] | None = None,
    inventory: AccommodationData | Mapping[str, Any] | None = None,
    all_rows: pd.DataFrame | None = None,
) -> dict[str, Any]:
    """Assemble the certificate tracking payload consumed by the report.

    Args:
        categorized_rows: Output of categorize_documents
        category_configs: Category definitions
        full_config: Tracking configuration (enables phase/block breakdown)
        inventory: Apartment inventory
        all_rows: Every certificate row; enables the uncategorized section

    Returns:
        Dict with progress_stats, overall_progress, apartment_details,
        phase_block_progress and uncategorized
    """
    categories = as_category_configs(category_configs)
    inventory = as_inventory(inventory)

    progress_stats = calculate_category_progress(categorized_rows, categories, inventory)

    phase_block_progress: dict[str, dict[str, Any]] = {}
    if full_config:
        phase_block_progress = calculate_progress_by_phase_block(
            categorized_rows, categories, full_config, inventory
        )

    uncategorized: dict[str, Any] = {"total": 0, "by_block": {}}
    if all_rows is not None:
        uncategorized_rows = get_uncategorized_certificates_in_blocks(all_rows, categorized_rows)
        uncategorized = {
            "total": len(uncategorized_rows),
            "by_block": count_uncategorized_by_block(uncategorized_rows),
        }

    return {
        "progress_stats": progress_stats,
        "overall_progress": get_overall_progress(progress_stats),
        "apartment_details": _apartment_details(categorized_rows, categories, inventory),
        "phase_block_progress": phase_block_progress,
        "uncategorized": uncategorized,
    }


def get_rejected_documents(
    rows: pd.DataFrame, status_mapping: StatusMapping | Mapping[str, Any] | None
) -> pd.DataFrame:
    """Rows whose status falls in one of the mapping's rejected categories."""
    mapping = as_status_mapping(status_mapping)
    if mapping is None or rows.empty or STATUS_COLUMN not in rows.columns:
        return rows.iloc[0:0].copy()

    rejected = set(mapping.rejected_categories)
    mask = rows[STATUS_COLUMN].map(lambda s: get_status_category(s, mapping) in rejected)
    return rows[mask.astype(bool)].copy()
