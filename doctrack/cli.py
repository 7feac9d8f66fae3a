"""DocTrack CLI.

Commands:
- classify: Categorize certificates in one register export
- progress: Show apartment certificate progress for one register export
- counts: Show revision/status/file-type counts across snapshots
- report: Generate the Excel tracking workbook
- validate-config: Check project configuration files
"""

from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from doctrack.classification.classifier import (
    categorize_documents,
    count_uncategorized_by_block,
    get_uncategorized_certificates_in_blocks,
)
from doctrack.classification.document_filters import (
    filter_certificates,
    get_document_type_summary,
    get_main_report_data,
)
from doctrack.config import get_config
from doctrack.core.logging import configure_logging, get_logger
from doctrack.ingestion.registers import (
    RegisterFormatError,
    discover_registers,
    load_register,
    snapshot_timestamp,
    sort_snapshots,
)
from doctrack.models import APARTMENT_COLUMN, CATEGORY_COLUMN, TITLE_COLUMN, ProjectConfig
from doctrack.project.loader import (
    ConfigurationError,
    find_project_file,
    list_projects,
    load_project,
    load_project_config,
)
from doctrack.reporting.counts import create_summary_dataframe
from doctrack.reporting.excel_export import generate_tracking_report, progress_bar, save_report
from doctrack.reporting.progress import get_apartment_certificate_summary, get_rejected_documents

app = typer.Typer(
    name="doctrack",
    help="DocTrack - Construction document register tracking",
    no_args_is_help=True,
)

console = Console()
logger = get_logger(__name__)


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    """Configure logging before any command runs."""
    config = get_config()
    configure_logging(level=log_level or config.log_level, json_logs=config.json_logs)


def _load_project_or_exit(name: str) -> ProjectConfig:
    try:
        return load_project(name)
    except ConfigurationError as e:
        console.print(f"[bold red]✗ Configuration error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1) from e


def _load_register_or_exit(file_path: Path, project: ProjectConfig) -> pd.DataFrame:
    try:
        return load_register(file_path, project)
    except (FileNotFoundError, RegisterFormatError) as e:
        console.print(f"[bold red]✗ Cannot read register:[/bold red] {escape(str(e))}")
        raise typer.Exit(1) from e


def _certificate_rows(rows: pd.DataFrame, project: ProjectConfig) -> pd.DataFrame:
    """Certificates when the project filters them, otherwise every row."""
    if project.certificates.enabled:
        return filter_certificates(rows, project)
    return rows


def _require_tracking(project: ProjectConfig) -> None:
    if project.tracking is None or not project.tracking.categories:
        console.print(f"[yellow]Project '{project.title}' has no certificate tracking configured[/yellow]")
        raise typer.Exit(1)


@app.command()
def classify(
    project_name: str = typer.Argument(..., help="Project configuration name"),
    file_path: Path = typer.Argument(..., help="Register export (CSV/XLSX)"),
    show_uncategorized: bool = typer.Option(
        False, "--show-uncategorized", help="List documents in block folders that were not categorized"
    ),
):
    """Categorize certificates in one register export."""
    project = _load_project_or_exit(project_name)
    _require_tracking(project)
    rows = _load_register_or_exit(file_path, project)

    certificates = _certificate_rows(rows, project)
    categorized = categorize_documents(certificates, project.tracking.categories, project.tracking)

    table = Table(title=f"{project.title} - Categorized Certificates")
    table.add_column("Category", style="cyan")
    table.add_column("Documents", justify="right")
    table.add_column("Apartments", justify="right")

    for name, category in project.tracking.categories.items():
        category_rows = categorized[categorized[CATEGORY_COLUMN] == name]
        table.add_row(
            category.display_name or name,
            str(len(category_rows)),
            str(category_rows[APARTMENT_COLUMN].dropna().nunique()),
        )

    unassigned = int(categorized[CATEGORY_COLUMN].isna().sum())
    table.add_row("[dim]Uncategorized[/dim]", str(unassigned), "-")
    console.print(table)

    uncategorized = get_uncategorized_certificates_in_blocks(certificates, categorized)
    by_block = count_uncategorized_by_block(uncategorized)
    if by_block:
        console.print(f"[yellow]⚠[/yellow] {len(uncategorized)} certificates in block folders were not categorized")
        for block, count in by_block.items():
            console.print(f"  Block {block}: {count}")
        if show_uncategorized:
            for title in uncategorized.get(TITLE_COLUMN, pd.Series(dtype=object)).fillna(""):
                console.print(f"    {title}", style="dim")


@app.command()
def progress(
    project_name: str = typer.Argument(..., help="Project configuration name"),
    file_path: Path = typer.Argument(..., help="Register export (CSV/XLSX)"),
    as_json: bool = typer.Option(False, "--json", help="Print the full summary as JSON"),
):
    """Show apartment certificate progress for one register export."""
    project = _load_project_or_exit(project_name)
    _require_tracking(project)
    rows = _load_register_or_exit(file_path, project)

    certificates = _certificate_rows(rows, project)
    categorized = categorize_documents(certificates, project.tracking.categories, project.tracking)
    summary = get_apartment_certificate_summary(
        categorized,
        project.tracking.categories,
        project.tracking,
        project.accommodation,
        all_rows=certificates,
    )

    if as_json:
        console.print_json(json.dumps(summary))
        return

    width = get_config().report.progress_bar_width
    table = Table(title=f"{project.title} - Certificate Progress")
    table.add_column("Category", style="cyan")
    table.add_column("Apartments", justify="right")
    table.add_column("Max", justify="right")
    table.add_column("Progress", justify="right")
    table.add_column("")

    for stats in summary["progress_stats"].values():
        table.add_row(
            stats["display_name"],
            str(stats["apartments_with_docs"]),
            str(stats["max_apartments"]),
            f"{stats['progress_percentage']:.1f}%",
            progress_bar(stats["progress_percentage"], width),
        )
    console.print(table)

    overall = summary["overall_progress"]
    console.print(
        f"\n[bold]Overall:[/bold] {overall['total_apartments_with_docs']}/"
        f"{overall['total_max_apartments']} certificate slots "
        f"({overall['overall_progress_percentage']:.1f}%)"
    )


@app.command()
def counts(
    project_name: str = typer.Argument(..., help="Project configuration name"),
    files: list[Path] = typer.Argument(None, help="Register exports; defaults to the input directory"),
    input_dir: Path | None = typer.Option(None, "--input-dir", help="Directory of register exports"),
):
    """Show revision/status/file-type counts across snapshots."""
    project = _load_project_or_exit(project_name)
    paths = _resolve_inputs(files, input_dir)

    snapshots = []
    for path in paths:
        rows = _load_register_or_exit(path, project)
        date, time = snapshot_timestamp(path)
        snapshots.append((date, time, get_main_report_data(rows, project)))

    summary = create_summary_dataframe(snapshots, project.status_mapping)
    if summary.empty:
        console.print("[yellow]No snapshots found[/yellow]")
        return

    table = Table(title=f"{project.title} - Snapshot Counts")
    for column in summary.columns:
        table.add_column(str(column), justify="left" if column in ("Date", "Time") else "right")
    for record in summary.itertuples(index=False):
        table.add_row(*(str(v) for v in record))
    console.print(table)


def _resolve_inputs(files: list[Path] | None, input_dir: Path | None) -> list[Path]:
    if files:
        return sort_snapshots(files)
    directory = input_dir or get_config().paths.input_dir
    try:
        return discover_registers(directory)
    except FileNotFoundError as e:
        console.print(f"[bold red]✗[/bold red] {escape(str(e))}")
        raise typer.Exit(1) from e


@app.command()
def report(
    project_name: str = typer.Argument(..., help="Project configuration name"),
    files: list[Path] = typer.Argument(None, help="Register exports; defaults to the input directory"),
    input_dir: Path | None = typer.Option(None, "--input-dir", help="Directory of register exports"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output XLSX path"),
):
    """Generate the Excel tracking workbook."""
    config = get_config()
    project = _load_project_or_exit(project_name)
    paths = _resolve_inputs(files, input_dir)
    if not paths:
        console.print("[yellow]No register exports found[/yellow]")
        raise typer.Exit(1)

    console.print(f"[bold]Generating report:[/bold] {project.title} ({len(paths)} snapshots)")

    snapshots = []
    latest_rows = pd.DataFrame()
    label = None
    for path in paths:
        rows = _load_register_or_exit(path, project)
        date, time = snapshot_timestamp(path)
        snapshots.append((date, time, get_main_report_data(rows, project)))
        latest_rows, label = rows, f"{date} {time}"
        console.print(f"  Processed: {path.name}")

    doc_types = get_document_type_summary(latest_rows, project)
    console.print(
        f"  Latest snapshot: {doc_types['total']} documents, "
        f"{doc_types['certificates']} certificates, {doc_types['main_report_docs']} in summary"
    )

    certificate_summary = None
    uncategorized = None
    if project.tracking is not None and project.tracking.categories:
        certificates = _certificate_rows(latest_rows, project)
        categorized = categorize_documents(certificates, project.tracking.categories, project.tracking)
        certificate_summary = get_apartment_certificate_summary(
            categorized,
            project.tracking.categories,
            project.tracking,
            project.accommodation,
            all_rows=certificates,
        )
        uncategorized = get_uncategorized_certificates_in_blocks(certificates, categorized)

    buffer = generate_tracking_report(
        project,
        get_main_report_data(latest_rows, project),
        summary=create_summary_dataframe(snapshots, project.status_mapping),
        certificate_summary=certificate_summary,
        uncategorized=uncategorized,
        rejected=get_rejected_documents(latest_rows, project.status_mapping),
        snapshot_label=label,
        report=config.report,
    )

    if output is None:
        slug = project_name.replace(" ", "_")
        output = config.paths.output_dir / f"{slug}_tracking_report.xlsx"
    save_report(buffer, output)
    logger.info("report_written", project=project.title, path=str(output), snapshots=len(paths))
    console.print(f"[bold green]✓[/bold green] Report written to {output}")


@app.command(name="validate-config")
def validate_config(
    project_name: str | None = typer.Argument(None, help="Project to validate; all when omitted"),
):
    """Check project configuration files."""
    config_dir = get_config().paths.config_dir
    names = [project_name] if project_name else list_projects(config_dir)
    if not names:
        console.print(f"[yellow]No project configurations in {config_dir}[/yellow]")
        raise typer.Exit(1)

    failures = 0
    for name in names:
        try:
            project = load_project_config(find_project_file(name, config_dir))
        except ConfigurationError as e:
            failures += 1
            console.print(f"[red]✗[/red] {name}: {escape(str(e))}")
            continue
        categories = len(project.tracking.categories) if project.tracking else 0
        console.print(f"[green]✓[/green] {name}: '{project.title}', {categories} certificate categories")

    if failures:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
