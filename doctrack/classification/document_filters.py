"""Document-type filters for certificates, technical submittals and drawings.

Registers mix every document type in one export. The summary report only
tracks drawings and schematics, while certificates feed the apartment
tracking sheets, so rows are split by file type and/or reference code.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import pandas as pd

from doctrack.models import DocumentTypeFilter, ProjectConfig, compile_substring_patterns

logger = logging.getLogger(__name__)


def _as_project(config: ProjectConfig | Mapping[str, Any]) -> ProjectConfig:
    if isinstance(config, ProjectConfig):
        return config
    return ProjectConfig.model_validate(config)


def _type_mask(rows: pd.DataFrame, rules: DocumentTypeFilter) -> pd.Series:
    """Rows matching a filter's file types or reference codes."""
    mask = pd.Series(False, index=rows.index)

    if rules.file_types and rules.file_type_column in rows.columns:
        file_types = rows[rules.file_type_column].fillna("").astype(str)
        if rules.exact:
            mask |= file_types.isin(rules.file_types)
        else:
            regex = compile_substring_patterns(rules.file_types)
            if regex is not None:
                mask |= file_types.map(lambda text: regex.search(text) is not None).astype(bool)

    if rules.doc_ref_patterns and rules.doc_ref_column in rows.columns:
        # Codes such as "CT" must not match inside "MBS-ACT-001"
        regex = compile_substring_patterns(rules.doc_ref_patterns, word_bounded=True)
        if regex is not None:
            refs = rows[rules.doc_ref_column].fillna("").astype(str)
            mask |= refs.map(lambda text: regex.search(text) is not None).astype(bool)

    return mask


def filter_certificates(rows: pd.DataFrame, config: ProjectConfig | Mapping[str, Any]) -> pd.DataFrame:
    """Return only certificate rows; empty when certificate tracking is disabled.

    Args:
        rows: Register snapshot
        config: Project configuration

    Returns:
        New DataFrame holding the matching rows
    """
    if rows.empty:
        return rows
    rules = _as_project(config).certificates
    if not rules.enabled:
        return pd.DataFrame()
    return rows[_type_mask(rows, rules)].copy()


def filter_technical_submittals(
    rows: pd.DataFrame, config: ProjectConfig | Mapping[str, Any]
) -> pd.DataFrame:
    """Return only technical submittal rows; empty when not configured."""
    if rows.empty:
        return rows
    rules = _as_project(config).technical_submittals
    if not rules.enabled:
        return pd.DataFrame()
    return rows[_type_mask(rows, rules)].copy()


def filter_drawings_and_schematics(
    rows: pd.DataFrame, config: ProjectConfig | Mapping[str, Any]
) -> pd.DataFrame:
    """Return drawing and schematic rows.

    Projects without drawing rules, and filters that match nothing, keep
    every row so older configurations still produce a summary report.
    """
    if rows.empty:
        return rows
    rules = _as_project(config).drawings
    if not rules.enabled:
        return rows

    mask = _type_mask(rows, rules)
    if not mask.any():
        logger.warning("Drawing filter matched no rows; reporting on all documents")
        return rows
    return rows[mask].copy()


def get_main_report_data(rows: pd.DataFrame, config: ProjectConfig | Mapping[str, Any]) -> pd.DataFrame:
    """Rows for the summary report: everything except certificates and submittals.

    When drawing rules are enabled the remainder is narrowed to drawings.
    """
    if rows.empty:
        return rows

    project = _as_project(config)
    result = rows.copy()

    for excluded in (filter_certificates(rows, project), filter_technical_submittals(rows, project)):
        if not excluded.empty:
            result = result[~result.index.isin(excluded.index)]

    if project.drawings.enabled:
        result = filter_drawings_and_schematics(result, project)

    return result


def get_document_type_summary(rows: pd.DataFrame, config: ProjectConfig | Mapping[str, Any]) -> dict[str, int]:
    """Row counts per document type, for logging and the CLI."""
    project = _as_project(config)
    return {
        "total": len(rows),
        "certificates": len(filter_certificates(rows, project)),
        "technical_submittals": len(filter_technical_submittals(rows, project)),
        "main_report_docs": len(get_main_report_data(rows, project)),
    }
