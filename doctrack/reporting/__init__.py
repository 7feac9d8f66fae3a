"""Reporting: progress aggregation, snapshot counts and Excel export."""

from doctrack.reporting.counts import (
    create_summary_dataframe,
    create_summary_row,
    get_dynamic_counts,
)
from doctrack.reporting.progress import (
    calculate_category_progress,
    calculate_progress_by_phase_block,
    get_apartment_certificate_summary,
    get_overall_progress,
    get_rejected_documents,
)

__all__ = [
    "calculate_category_progress",
    "get_overall_progress",
    "calculate_progress_by_phase_block",
    "get_apartment_certificate_summary",
    "get_rejected_documents",
    "get_dynamic_counts",
    "create_summary_row",
    "create_summary_dataframe",
]
