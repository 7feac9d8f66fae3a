"""Unit tests for snapshot counts and the progression summary."""

from __future__ import annotations

import pandas as pd

from doctrack.reporting.counts import (
    FILE_TYPE_PREFIX,
    REVISION_PREFIX,
    columns_with_prefix,
    create_summary_dataframe,
    create_summary_row,
    find_file_type_column,
    get_dynamic_counts,
    get_status_counts_by_revision_type,
    order_revision_columns,
)


class TestDynamicCounts:
    """Test per-snapshot frequencies."""

    def test_cyrillic_revisions_merge(self, certificate_rows):
        """Test homoglyph revisions are counted with their Latin twin."""
        counts = get_dynamic_counts(certificate_rows)
        assert counts["revision_counts"] == {"P01": 3, "C01": 2, "C02": 1}

    def test_blank_revisions_counted_as_empty(self):
        counts = get_dynamic_counts(pd.DataFrame({"Rev": ["C01", None]}))
        assert counts["revision_counts"] == {"C01": 1, "": 1}

    def test_status_grouped_through_mapping(self, certificate_rows, status_mapping):
        counts = get_dynamic_counts(certificate_rows, status_mapping)
        assert counts["status_counts"] == {"Status A": 3, "Status B": 1, "Status C": 1}

    def test_raw_statuses_without_mapping(self, certificate_rows):
        counts = get_dynamic_counts(certificate_rows)
        assert counts["status_counts"]["Withdrawn"] == 1
        assert counts["status_counts"]["A - Proceed"] == 3

    def test_empty_rows(self):
        assert get_dynamic_counts(pd.DataFrame()) == {
            "revision_counts": {},
            "status_counts": {},
            "file_type_counts": {},
        }


class TestFileTypeColumn:
    def test_probe_order(self):
        """Test the first known spelling present wins."""
        rows = pd.DataFrame(columns=["Form", "OVL - File Type"])
        assert find_file_type_column(rows) == "OVL - File Type"

    def test_missing(self):
        assert find_file_type_column(pd.DataFrame(columns=["Doc Title"])) is None

    def test_counts_from_fallback_column(self):
        rows = pd.DataFrame({"Form": ["DR", "DR", "SK"]})
        assert get_dynamic_counts(rows)["file_type_counts"] == {"DR": 2, "SK": 1}


class TestSummaryRows:
    """Test flattened summary rows and the progression table."""

    def test_prefixed_keys(self, status_mapping):
        rows = pd.DataFrame({"Rev": ["C01"], "Status": ["A - Proceed"], "File Type": ["DR"]})

        row = create_summary_row("20-Oct-2025", "09:00", rows, status_mapping)

        assert row == {
            "Date": "20-Oct-2025",
            "Time": "09:00",
            "Rev_C01": 1,
            "Status_Status A": 1,
            "FileType_DR": 1,
        }

    def test_missing_counts_filled_with_zero(self):
        snapshots = [
            ("01-Oct-2025", "09:00", pd.DataFrame({"Rev": ["P01", "P01"]})),
            ("08-Oct-2025", "09:00", pd.DataFrame({"Rev": ["P01", "C01"], "File Type": ["DR", "DR"]})),
        ]

        summary = create_summary_dataframe(snapshots)

        assert list(summary.columns[:2]) == ["Date", "Time"]
        assert summary["Rev_C01"].tolist() == [0, 1]
        assert summary["Rev_P01"].tolist() == [2, 1]
        assert summary["FileType_DR"].tolist() == [0, 2]
        assert sorted(columns_with_prefix(summary, REVISION_PREFIX)) == ["Rev_C01", "Rev_P01"]
        assert columns_with_prefix(summary, FILE_TYPE_PREFIX) == ["FileType_DR"]

    def test_no_snapshots(self):
        assert create_summary_dataframe([]).empty


class TestRevisionOrdering:
    """Test P then C series ordering of revision columns."""

    def test_series_sorted_numerically(self):
        columns = ["Date", "Rev_P10", "Rev_C01", "Rev_P02", "Rev_0", "Rev_C10", "Rev_C2", "Status_Status A"]
        assert order_revision_columns(columns) == ["Rev_P02", "Rev_P10", "Rev_C01", "Rev_C2", "Rev_C10", "Rev_0"]

    def test_non_numeric_suffix_sorted_last_in_series(self):
        assert order_revision_columns(["Rev_PX", "Rev_P01"]) == ["Rev_P01", "Rev_PX"]

    def test_summary_dataframe_orders_revisions(self):
        snapshots = [("20-Oct-2025", "12:00", pd.DataFrame({"Rev": ["P10", "C01", "P02"], "File Type": ["DR"] * 3}))]

        summary = create_summary_dataframe(snapshots)

        assert list(summary.columns) == ["Date", "Time", "Rev_P02", "Rev_P10", "Rev_C01", "FileType_DR"]


class TestStatusByRevisionType:
    """Test status counts split into P and C revisions."""

    def test_grouped_with_unmapped(self, certificate_rows, status_mapping):
        """Test unlisted statuses are counted separately per series."""
        counts = get_status_counts_by_revision_type(certificate_rows, status_mapping)

        assert counts == {
            "P": {"Status A": 1, "Status B": 1, "Unmapped": 1},
            "C": {"Status A": 2, "Status C": 1},
        }

    def test_other_bucket_absorbs_unmapped(self):
        rows = pd.DataFrame({"Rev": ["P01", "P02", "C01"], "Status": ["A", "Void", "A"]})
        mapping = {"categories": {"Approved": {"statuses": ["A"]}, "Other": {"statuses": []}}}

        counts = get_status_counts_by_revision_type(rows, mapping)

        assert counts == {"P": {"Approved": 1, "Other": 1}, "C": {"Approved": 1}}

    def test_raw_statuses_without_mapping(self):
        rows = pd.DataFrame({"Rev": ["p01", "С01", "0"], "Status": ["Draft", "Issued", "Issued"]})
        assert get_status_counts_by_revision_type(rows) == {"P": {"Draft": 1}, "C": {"Issued": 1}}

    def test_missing_columns(self):
        assert get_status_counts_by_revision_type(pd.DataFrame({"Rev": ["P01"]})) == {"P": {}, "C": {}}
