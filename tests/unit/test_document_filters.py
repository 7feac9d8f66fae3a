"""Unit tests for document-type filters."""

from __future__ import annotations

import pandas as pd
import pytest

from doctrack.classification.document_filters import (
    filter_certificates,
    filter_drawings_and_schematics,
    filter_technical_submittals,
    get_document_type_summary,
    get_main_report_data,
)


@pytest.fixture
def mixed_register() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "Doc Title": ["Plot 1 Electrical Cert", "Boiler datasheet", "GA Plan L1", "Riser schematic", "Minutes"],
            "Doc Ref": ["GP-CE-001", "GP-TS-002", "GP-DR-003", "MBS-ACT-001", "GP-MN-004"],
            "File Type": [
                "CE - Certificate (CE)",
                "TS - Technical submission (TS)",
                "DR - Drawing (DR)",
                "DR - Drawing (DR)",
                "MN - Minutes (MN)",
            ],
        }
    )


class TestCertificateFilter:
    """Test certificate selection by file type and reference."""

    def test_file_type_or_reference(self, mixed_register, project_config):
        result = filter_certificates(mixed_register, project_config)
        assert result["Doc Ref"].tolist() == ["GP-CE-001"]

    def test_reference_codes_are_word_bounded(self):
        """Test a short code does not match inside a longer token."""
        rows = pd.DataFrame({"Doc Ref": ["MBS-ACT-001", "MBS-CT-002"]})
        config = {"title": "P", "certificates": {"enabled": True, "doc_ref_patterns": ["CT"]}}

        assert filter_certificates(rows, config)["Doc Ref"].tolist() == ["MBS-CT-002"]

    def test_disabled_returns_empty(self, mixed_register):
        assert filter_certificates(mixed_register, {"title": "P"}).empty

    def test_substring_file_type_match(self):
        """Test non-exact filters match case-insensitive substrings."""
        rows = pd.DataFrame({"File Type": ["ce - certificate (ce)", "Drawing"]})
        config = {"title": "P", "certificates": {"enabled": True, "file_types": ["Certificate"]}}

        assert len(filter_certificates(rows, config)) == 1

    def test_does_not_mutate_input(self, mixed_register, project_config):
        before = mixed_register.copy()
        filter_certificates(mixed_register, project_config)
        pd.testing.assert_frame_equal(mixed_register, before)


class TestTechnicalSubmittalFilter:
    def test_selects_submittals(self, mixed_register, project_config):
        result = filter_technical_submittals(mixed_register, project_config)
        assert result["Doc Title"].tolist() == ["Boiler datasheet"]

    def test_disabled_returns_empty(self, mixed_register):
        assert filter_technical_submittals(mixed_register, {"title": "P"}).empty


class TestDrawingFilter:
    """Test drawing selection and its fall-back behavior."""

    def test_exact_file_type(self, mixed_register, project_config):
        result = filter_drawings_and_schematics(mixed_register, project_config)
        assert result["Doc Title"].tolist() == ["GA Plan L1", "Riser schematic"]

    def test_exact_match_rejects_partial_text(self):
        rows = pd.DataFrame({"File Type": ["DR - Drawing (DR) superseded", "DR - Drawing (DR)"]})
        config = {"title": "P", "drawings": {"enabled": True, "exact": True, "file_types": ["DR - Drawing (DR)"]}}

        assert filter_drawings_and_schematics(rows, config).index.tolist() == [1]

    def test_disabled_keeps_every_row(self, mixed_register):
        assert len(filter_drawings_and_schematics(mixed_register, {"title": "P"})) == len(mixed_register)

    def test_no_match_keeps_every_row(self, mixed_register):
        """Test a filter matching nothing falls back to all documents."""
        config = {"title": "P", "drawings": {"enabled": True, "file_types": ["XX - Unknown"]}}
        assert len(filter_drawings_and_schematics(mixed_register, config)) == len(mixed_register)


class TestMainReportData:
    def test_excludes_certificates_and_submittals(self, mixed_register, project_config):
        """Test the summary report only keeps drawings."""
        result = get_main_report_data(mixed_register, project_config)
        assert result["Doc Ref"].tolist() == ["GP-DR-003", "MBS-ACT-001"]

    def test_without_drawing_rules(self, mixed_register):
        config = {
            "title": "P",
            "certificates": {"enabled": True, "file_types": ["CE - Certificate (CE)"]},
            "drawings": {"enabled": False},
        }
        result = get_main_report_data(mixed_register, config)
        assert len(result) == 4

    def test_document_type_summary(self, mixed_register, project_config):
        assert get_document_type_summary(mixed_register, project_config) == {
            "total": 5,
            "certificates": 1,
            "technical_submittals": 1,
            "main_report_docs": 2,
        }

    def test_empty_register(self, project_config):
        assert get_main_report_data(pd.DataFrame(), project_config).empty
