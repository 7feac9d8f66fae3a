"""Excel export functionality for DocTrack projects.

Generates tracking workbooks with:
- Overall summary of the latest snapshot (statuses, revisions, file types)
- Progression of counts across snapshots
- Apartment certificate progress, overall and per phase/block
- Uncategorized and rejected documents for follow-up
"""
from __future__ import annotations

import logging
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl import Workbook
from openpyxl.chart import PieChart, Reference
from openpyxl.chart.label import DataLabelList
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from doctrack.classification.status import (
    get_status_color,
    get_status_display_name,
    get_status_display_order,
)
from doctrack.config import ReportConfig
from doctrack.models import ProjectConfig, StatusMapping
from doctrack.reporting.counts import get_dynamic_counts, get_status_counts_by_revision_type

logger = logging.getLogger(__name__)

HEADER_FILL = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
TOTAL_FILL = PatternFill(start_color="D9E1F2", end_color="D9E1F2", fill_type="solid")

FILLED_GLYPH = "█"
EMPTY_GLYPH = "░"

# Sheet cell limit is 32767 characters; longer paths are cut
_MAX_CELL_CHARS = 32000


def progress_bar(percentage: float, width: int = 20) -> str:
    """Text progress bar, e.g. ``█████░░░░░`` for 50% at width 10."""
    percentage = min(max(percentage, 0.0), 100.0)
    filled = int(round(percentage / 100 * width))
    return FILLED_GLYPH * filled + EMPTY_GLYPH * (width - filled)


def _status_fill(color: str | None) -> PatternFill | None:
    if not color:
        return None
    return PatternFill(start_color=color, end_color=color, fill_type="solid")


def _write_headers(ws: Worksheet, row: int, headers: list[str]) -> None:
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=row, column=col, value=header)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT


def _cell_value(value: Any) -> Any:
    if value is None or (pd.api.types.is_scalar(value) and pd.isna(value)):
        return None
    if isinstance(value, str):
        return value[:_MAX_CELL_CHARS]
    if hasattr(value, "item"):
        # numpy scalars
        return value.item()
    return value


def _write_frame(ws: Worksheet, frame: pd.DataFrame, start_row: int = 1) -> int:
    """Write a DataFrame as a header row plus data rows; returns the next free row."""
    _write_headers(ws, start_row, [str(c) for c in frame.columns])
    row = start_row
    for record in frame.itertuples(index=False):
        row += 1
        for col, value in enumerate(record, 1):
            ws.cell(row=row, column=col, value=_cell_value(value))
    return row + 1


def _autosize(ws: Worksheet, minimum: int = 10, maximum: int = 60) -> None:
    widths: dict[int, int] = {}
    for row in ws.iter_rows():
        for cell in row:
            if cell.value is not None:
                widths[cell.column] = max(widths.get(cell.column, 0), len(str(cell.value)))
    for column, width in widths.items():
        ws.column_dimensions[get_column_letter(column)].width = min(max(width + 2, minimum), maximum)


def _create_summary_sheet(
    wb: Workbook,
    project: ProjectConfig,
    latest_rows: pd.DataFrame,
    snapshot_label: str | None,
) -> None:
    """Create overall summary sheet for the latest snapshot."""
    ws = wb.create_sheet("Overall Summary", 0)

    ws["A1"] = f"{project.title} - Document Tracking Report"
    ws["A1"].font = Font(bold=True, size=16)
    ws.merge_cells("A1:D1")

    ws["A2"] = f"Report Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}"
    ws["A2"].font = Font(size=10, italic=True)
    ws["A3"] = f"Latest Data: {snapshot_label or 'N/A'}"
    ws["A3"].font = Font(size=10, italic=True)

    ws["A5"] = "Total Documents:"
    ws["B5"] = len(latest_rows)
    for ref in ("A5", "B5"):
        ws[ref].font = Font(bold=True)
        ws[ref].fill = TOTAL_FILL

    counts = get_dynamic_counts(latest_rows, project.status_mapping)
    mapping = project.status_mapping

    # Statuses in configured display order, then anything else counted
    status_counts = counts["status_counts"]
    ordered = [s for s in get_status_display_order(mapping) if s in status_counts]
    ordered += [s for s in status_counts if s not in ordered]

    row = 7
    _write_headers(ws, row, ["Status", "Count"])
    for status in ordered:
        row += 1
        ws.cell(row=row, column=1, value=get_status_display_name(status, mapping))
        ws.cell(row=row, column=2, value=status_counts[status])
        fill = _status_fill(get_status_color(status, mapping))
        if fill is not None:
            ws.cell(row=row, column=1).fill = fill
    status_end = row

    row += 2
    _write_headers(ws, row, ["Revision", "Count"])
    for revision, count in sorted(counts["revision_counts"].items()):
        row += 1
        ws.cell(row=row, column=1, value=revision or "(blank)")
        ws.cell(row=row, column=2, value=count)

    if counts["file_type_counts"]:
        row += 2
        _write_headers(ws, row, ["File Type", "Count"])
        for file_type, count in sorted(counts["file_type_counts"].items()):
            row += 1
            ws.cell(row=row, column=1, value=file_type)
            ws.cell(row=row, column=2, value=count)

    if ordered:
        chart = PieChart()
        chart.title = "Status Distribution"
        chart.height = 10
        chart.width = 15
        data = Reference(ws, min_col=2, min_row=7, max_row=status_end)
        labels = Reference(ws, min_col=1, min_row=8, max_row=status_end)
        chart.add_data(data, titles_from_data=True)
        chart.set_categories(labels)
        chart.dataLabels = DataLabelList()
        chart.dataLabels.showVal = True
        chart.dataLabels.showPercent = True
        ws.add_chart(chart, "E2")

    ws.column_dimensions["A"].width = 35
    ws.column_dimensions["B"].width = 12


def _create_progression_sheet(
    wb: Workbook,
    summary: pd.DataFrame,
    revision_status: dict[str, dict[str, int]] | None = None,
    mapping: StatusMapping | None = None,
) -> None:
    """Create progression sheet: one row per snapshot, then latest statuses by revision type."""
    ws = wb.create_sheet("Progression")
    if summary.empty:
        ws["A1"] = "No snapshots processed"
        return
    row = _write_frame(ws, summary)
    ws.freeze_panes = "C2"

    if revision_status and any(revision_status.values()):
        row += 1
        ws.cell(row=row, column=1, value="Latest Status by Revision Type").font = Font(bold=True)
        row += 1
        series = list(revision_status)
        _write_headers(ws, row, ["Status"] + [f"{s} Revisions" for s in series])

        statuses = [
            s for s in get_status_display_order(mapping) if any(s in c for c in revision_status.values())
        ]
        for counts in revision_status.values():
            statuses += [s for s in counts if s not in statuses]

        for status in statuses:
            row += 1
            ws.cell(row=row, column=1, value=get_status_display_name(status, mapping))
            for col, s in enumerate(series, 2):
                ws.cell(row=row, column=col, value=revision_status[s].get(status, 0))

        row += 1
        ws.cell(row=row, column=1, value="Total").font = Font(bold=True)
        for col, s in enumerate(series, 2):
            cell = ws.cell(row=row, column=col, value=sum(revision_status[s].values()))
            cell.font = Font(bold=True)
            cell.fill = TOTAL_FILL

    _autosize(ws, maximum=20)


def _create_certificate_progress_sheet(
    wb: Workbook, certificate_summary: dict[str, Any], report: ReportConfig
) -> None:
    """Create apartment certificate progress sheet."""
    ws = wb.create_sheet("Certificate Progress")

    ws["A1"] = "Apartment Certificate Progress"
    ws["A1"].font = Font(bold=True, size=14)

    row = 3
    headers = ["Category", "Documents", "Apartments", "Max", "Progress %", "Remaining", "Progress"]
    _write_headers(ws, row, headers)

    for stats in certificate_summary["progress_stats"].values():
        row += 1
        values = [
            stats["display_name"],
            stats["documents_count"],
            stats["apartments_with_docs"],
            stats["max_apartments"],
            stats["progress_percentage"],
            stats["remaining_apartments"],
            progress_bar(stats["progress_percentage"], report.progress_bar_width),
        ]
        for col, value in enumerate(values, 1):
            ws.cell(row=row, column=col, value=value)

    overall = certificate_summary["overall_progress"]
    row += 1
    totals = [
        "Total (certificate slots)",
        overall["total_documents"],
        overall["total_apartments_with_docs"],
        overall["total_max_apartments"],
        overall["overall_progress_percentage"],
        overall["total_max_apartments"] - overall["total_apartments_with_docs"],
        progress_bar(overall["overall_progress_percentage"], report.progress_bar_width),
    ]
    for col, value in enumerate(totals, 1):
        cell = ws.cell(row=row, column=col, value=value)
        cell.font = Font(bold=True)
        cell.fill = TOTAL_FILL

    uncategorized = certificate_summary.get("uncategorized") or {}
    if uncategorized.get("total"):
        row += 2
        ws.cell(row=row, column=1, value="Uncategorized in block folders:").font = Font(bold=True)
        ws.cell(row=row, column=2, value=uncategorized["total"])
        for block, count in uncategorized["by_block"].items():
            row += 1
            ws.cell(row=row, column=1, value=f"Block {block}")
            ws.cell(row=row, column=2, value=count)

    ws.column_dimensions["A"].width = 30
    for letter in "BCDEF":
        ws.column_dimensions[letter].width = 12
    ws.column_dimensions["G"].width = report.progress_bar_width + 4
    for row_cells in ws.iter_rows(min_row=4, min_col=7, max_col=7):
        for cell in row_cells:
            cell.alignment = Alignment(horizontal="left")


def _create_phase_progress_sheet(
    wb: Workbook,
    certificate_summary: dict[str, Any],
    display_names: dict[str, str],
    report: ReportConfig,
) -> None:
    """Create phase/block breakdown sheet."""
    ws = wb.create_sheet("Phase Progress")

    ws["A1"] = "Progress by Phase and Block"
    ws["A1"].font = Font(bold=True, size=14)

    row = 3
    _write_headers(ws, row, ["Phase", "Block", "Category", "Documents", "Apartments", "Max", "Progress %", "Progress"])

    for phase in certificate_summary["phase_block_progress"].values():
        for category, stats in phase["phase_stats"].items():
            row += 1
            values = [
                phase["display_name"],
                "All",
                display_names.get(category, category),
                stats["documents_count"],
                stats["apartments_with_docs"],
                stats["max_apartments"],
                stats["progress_percentage"],
                progress_bar(stats["progress_percentage"], report.progress_bar_width),
            ]
            for col, value in enumerate(values, 1):
                cell = ws.cell(row=row, column=col, value=value)
                cell.font = Font(bold=True)

        for block, categories in phase["block_stats"].items():
            for category, stats in categories.items():
                row += 1
                percentage = stats.get("progress_percentage")
                values = [
                    phase["display_name"],
                    block,
                    display_names.get(category, category),
                    stats["documents_count"],
                    stats["apartments_with_docs"],
                    stats.get("max_apartments", "-"),
                    percentage if percentage is not None else "-",
                    progress_bar(percentage, report.progress_bar_width) if percentage is not None else "",
                ]
                for col, value in enumerate(values, 1):
                    ws.cell(row=row, column=col, value=value)

    _autosize(ws, maximum=40)


def _create_rows_sheet(wb: Workbook, title: str, rows: pd.DataFrame, empty_message: str) -> None:
    """Create a sheet listing register rows."""
    ws = wb.create_sheet(title)
    if rows.empty:
        ws["A1"] = empty_message
        return
    _write_frame(ws, rows.reset_index(drop=True))
    ws.freeze_panes = "A2"
    _autosize(ws)


def generate_tracking_report(
    project: ProjectConfig,
    latest_rows: pd.DataFrame,
    summary: pd.DataFrame | None = None,
    certificate_summary: dict[str, Any] | None = None,
    uncategorized: pd.DataFrame | None = None,
    rejected: pd.DataFrame | None = None,
    snapshot_label: str | None = None,
    report: ReportConfig | None = None,
) -> BytesIO:
    """Generate the Excel tracking workbook.

    Args:
        project: Project configuration
        latest_rows: Latest snapshot rows used for the overall summary
        summary: Progression table from create_summary_dataframe
        certificate_summary: Payload from get_apartment_certificate_summary
        uncategorized: Rows from get_uncategorized_certificates_in_blocks
        rejected: Rows from get_rejected_documents
        snapshot_label: "date time" label of the latest snapshot
        report: Rendering options

    Returns:
        BytesIO containing Excel workbook
    """
    report = report or ReportConfig()

    wb = Workbook()

    # Remove default sheet
    if "Sheet" in wb.sheetnames:
        wb.remove(wb["Sheet"])

    _create_summary_sheet(wb, project, latest_rows, snapshot_label)

    if summary is not None:
        revision_status = get_status_counts_by_revision_type(latest_rows, project.status_mapping)
        _create_progression_sheet(wb, summary, revision_status, project.status_mapping)

    if certificate_summary is not None:
        _create_certificate_progress_sheet(wb, certificate_summary, report)
        if certificate_summary.get("phase_block_progress"):
            display_names = {
                name: stats["display_name"]
                for name, stats in certificate_summary["progress_stats"].items()
            }
            _create_phase_progress_sheet(wb, certificate_summary, display_names, report)

    if uncategorized is not None and report.include_uncategorized:
        _create_rows_sheet(wb, "Uncategorized", uncategorized, "No uncategorized certificates")

    if rejected is not None and report.include_rejected:
        _create_rows_sheet(wb, "Rejected", rejected, "No rejected documents")

    output = BytesIO()
    wb.save(output)
    output.seek(0)

    logger.info(f"Generated report with sheets: {', '.join(wb.sheetnames)}")
    return output


def save_report(buffer: BytesIO, output_file: Path) -> Path:
    """Write a generated workbook to disk, creating parent directories."""
    output_file = Path(output_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_bytes(buffer.getvalue())
    return output_file
