"""Document classification: status normalization, categories and document types."""

from doctrack.classification.classifier import (
    categorize_documents,
    count_uncategorized_by_block,
    get_uncategorized_certificates_in_blocks,
)
from doctrack.classification.document_filters import (
    filter_certificates,
    filter_drawings_and_schematics,
    filter_technical_submittals,
    get_document_type_summary,
    get_main_report_data,
)
from doctrack.classification.status import (
    apply_status_rules,
    get_grouped_status_counts,
    get_status_category,
)

__all__ = [
    "categorize_documents",
    "get_uncategorized_certificates_in_blocks",
    "count_uncategorized_by_block",
    "filter_certificates",
    "filter_technical_submittals",
    "filter_drawings_and_schematics",
    "get_main_report_data",
    "get_document_type_summary",
    "get_status_category",
    "get_grouped_status_counts",
    "apply_status_rules",
]
