"""Integration tests for DocTrack end-to-end workflows.

Tests:
1. Register export on disk -> classification -> progress -> workbook
2. CLI commands against a project directory built in tmp_path
"""

from __future__ import annotations

from pathlib import Path

import pytest
from openpyxl import load_workbook
from typer.testing import CliRunner

from doctrack.classification.classifier import categorize_documents
from doctrack.classification.document_filters import filter_certificates, get_main_report_data
from doctrack.cli import app
from doctrack.config import reset_config
from doctrack.ingestion.registers import discover_registers, load_register, snapshot_timestamp
from doctrack.project.loader import load_project
from doctrack.reporting.counts import create_summary_dataframe
from doctrack.reporting.excel_export import generate_tracking_report
from doctrack.reporting.progress import get_apartment_certificate_summary

pytestmark = pytest.mark.integration

PROJECT_YAML = """
title: Riverside Quarter
column_mappings:
  Doc Title: Subject
  Doc Ref: Reference
  Doc Path: Folder
certificates:
  enabled: true
  file_types: [CE - Certificate (CE)]
drawings:
  enabled: true
  exact: true
  file_types: [DR - Drawing (DR)]
status_mapping:
  categories:
    Status A: {color: 25E82C, statuses: [A - Proceed]}
    Status C: {color: ED1111, statuses: [C - Rejected]}
  display_order: [Status A, Status C]
tracking:
  phases:
    "1":
      display_name: Phase 1
      blocks: [A, B]
      apartment_count: 4
  phase_detection:
    patterns: ['Phase (\\d)']
  block_detection:
    patterns: ['\\bBlock\\s*-\\s*([A-G])\\b']
  apartment_certificates:
    electrical:
      patterns: [Electrical Cert]
      max_count: 4
      display_name: Electrical
accommodation_file: accommodation/riverside.yaml
"""

INVENTORY_YAML = """
total_apartments: 4
phases:
  "1":
    apartment_count: 4
    apartments: [1, 2, 3, 4]
    blocks:
      A: {apartment_count: 2, apartments: [1, 2]}
      B: {apartment_count: 2, apartments: [3, 4]}
"""

EARLY_EXPORT = """Subject,Reference,Folder,File Type,Rev,Status
Plot 1 Electrical Cert,RQ-CE-001,\\RQ\\Phase 1\\Block - A\\Certs,CE - Certificate (CE),P01,A - Proceed
Ground floor GA,RQ-DR-001,\\RQ\\Phase 1\\Drawings,DR - Drawing (DR),P01,A - Proceed
"""

LATEST_EXPORT = """Subject,Reference,Folder,File Type,Rev,Status
Plot 1 Electrical Cert,RQ-CE-001,\\RQ\\Phase 1\\Block - A\\Certs,CE - Certificate (CE),C01,A - Proceed
Plot 3 Electrical Cert,RQ-CE-002,\\RQ\\Phase 1\\Block - B\\Certs,CE - Certificate (CE),С01,C - Rejected
Riser test sheet,RQ-CE-003,\\RQ\\Phase 1\\Block - B\\Certs,CE - Certificate (CE),P01,A - Proceed
Ground floor GA,RQ-DR-001,\\RQ\\Phase 1\\Drawings,DR - Drawing (DR),C01,A - Proceed
First floor GA,RQ-DR-002,\\RQ\\Phase 1\\Drawings,DR - Drawing (DR),P01,A - Proceed
"""


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch) -> Path:
    """Project config directory plus two register snapshots."""
    config_dir = tmp_path / "projects"
    (config_dir / "accommodation").mkdir(parents=True)
    (config_dir / "riverside.yaml").write_text(PROJECT_YAML, encoding="utf-8")
    (config_dir / "accommodation" / "riverside.yaml").write_text(INVENTORY_YAML, encoding="utf-8")

    input_dir = tmp_path / "input"
    input_dir.mkdir()
    (input_dir / "RQ Listing 011025.csv").write_text(EARLY_EXPORT, encoding="utf-8")
    (input_dir / "RQ Listing 201025.csv").write_text(LATEST_EXPORT, encoding="utf-8")

    monkeypatch.setenv("DOCTRACK_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("DOCTRACK_INPUT_DIR", str(input_dir))
    monkeypatch.setenv("DOCTRACK_OUTPUT_DIR", str(tmp_path / "output"))
    reset_config()
    yield tmp_path
    reset_config()


class TestPipeline:
    """Test the library pipeline over files on disk."""

    def test_register_to_workbook(self, workspace):
        project = load_project("riverside", workspace / "projects")
        paths = discover_registers(workspace / "input")
        assert [p.name for p in paths] == ["RQ Listing 011025.csv", "RQ Listing 201025.csv"]

        snapshots = []
        for path in paths:
            rows = load_register(path, project)
            date, time = snapshot_timestamp(path)
            snapshots.append((date, time, get_main_report_data(rows, project)))
        latest = load_register(paths[-1], project)

        summary = create_summary_dataframe(snapshots, project.status_mapping)
        assert summary["Rev_C01"].tolist() == [0, 1]
        assert summary["Rev_P01"].tolist() == [1, 1]

        certificates = filter_certificates(latest, project)
        categorized = categorize_documents(certificates, project.tracking.categories, project.tracking)
        certificate_summary = get_apartment_certificate_summary(
            categorized,
            project.tracking.categories,
            project.tracking,
            project.accommodation,
            all_rows=certificates,
        )

        electrical = certificate_summary["progress_stats"]["electrical"]
        assert electrical["apartments_with_docs"] == 2
        assert electrical["progress_percentage"] == 50.0
        assert certificate_summary["uncategorized"] == {"total": 1, "by_block": {"B": 1}}
        assert certificate_summary["apartment_details"]["electrical"]["apartments_missing"] == [2, 4]

        phase = certificate_summary["phase_block_progress"]["1"]
        assert phase["block_stats"]["A"]["electrical"]["progress_percentage"] == 50.0

        workbook = load_workbook(
            generate_tracking_report(
                project, get_main_report_data(latest, project), summary, certificate_summary
            )
        )
        assert workbook["Overall Summary"]["B5"].value == 2


class TestCli:
    """Test the typer commands."""

    def test_validate_config(self, workspace):
        result = CliRunner().invoke(app, ["validate-config"])
        assert result.exit_code == 0
        assert "riverside" in result.output

    def test_validate_config_reports_errors(self, workspace):
        (workspace / "projects" / "broken.yaml").write_text("title: [\n", encoding="utf-8")
        result = CliRunner().invoke(app, ["validate-config"])
        assert result.exit_code == 1
        assert "broken" in result.output

    def test_progress_json(self, workspace):
        latest = workspace / "input" / "RQ Listing 201025.csv"
        result = CliRunner().invoke(app, ["progress", "riverside", str(latest), "--json"])
        assert result.exit_code == 0
        assert '"progress_percentage": 50.0' in result.output

    def test_report_writes_workbook(self, workspace):
        result = CliRunner().invoke(app, ["report", "riverside"])

        assert result.exit_code == 0, result.output
        output = workspace / "output" / "riverside_tracking_report.xlsx"
        assert output.exists()
        assert "Certificate Progress" in load_workbook(output).sheetnames
        assert "report_written" in result.output

    def test_unknown_project(self, workspace):
        result = CliRunner().invoke(app, ["counts", "nowhere"])
        assert result.exit_code == 1
