"""Command Line Interface for Rx-Triage.

This module provides a CLI using Typer for running the risk-scoring pipeline
over a dispensing export and reviewing the result in the terminal.

Examples:
    rxtriage score data/dispensing.csv
    rxtriage score data/dispensing.csv --seed 42 --output batch.json
    rxtriage score data/dispensing.tsv --show-records --limit 50
    rxtriage info
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from rxtriage.domain.ports import IngestionError
from rxtriage.domain.prescription_record import RiskTier
from rxtriage.infrastructure.logging_config import configure_logging
from rxtriage.infrastructure.risk_report import export_scored_records
from rxtriage.infrastructure.settings import APP_VERSION, settings
from rxtriage.main import PipelineResult, create_risk_engine, process_file

logger = logging.getLogger(__name__)

# Initialize Typer app and Rich console
app = typer.Typer(
    name="rxtriage",
    help="Rx-Triage: risk scoring for prescription dispensing records",
    add_completion=False
)
console = Console()

TIER_STYLES = {
    RiskTier.HIGH: "red",
    RiskTier.MEDIUM: "yellow",
    RiskTier.LOW: "green",
}
TOP_WARNING_ROWS = 6


@app.command()
def score(
    input_file: Path = typer.Argument(..., help="Dispensing export (CSV or TSV)", exists=True, dir_okay=False),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the scored batch to a .json or .csv file; relative paths go under RX_REPORT_DIR"),
    seed: Optional[int] = typer.Option(None, "--seed", "-s", help="Seed for score smoothing (reproducible output)"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Worker threads for scoring"),
    no_smoothing: bool = typer.Option(False, "--no-smoothing", help="Disable the random score perturbation"),
    show_records: bool = typer.Option(False, "--show-records", help="List scored records, highest risk first"),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Rows shown with --show-records"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Score every record in a dispensing export.

    The file is parsed in full, each record gets a risk score, confidence,
    tier and warning flags, and a summary is printed. Malformed cells fall
    back to defaults; only a file without data rows is rejected.
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        console.print("[dim]Verbose logging enabled[/dim]")

    console.print(f"\n[bold blue]{settings.app_name} Risk Scoring[/bold blue]")
    console.print(f"[dim]Input file:[/dim] {input_file}")

    engine = create_risk_engine(
        seed=seed,
        max_workers=workers,
        smoothing=0.0 if no_smoothing else None,
    )

    try:
        with console.status("[bold green]Scoring records..."):
            result = process_file(str(input_file), engine=engine)
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠[/yellow] Scoring interrupted by user")
        raise typer.Exit(code=130)
    except IngestionError as e:
        logger.error(f"Scoring failed for {input_file}: {e}")
        console.print(f"[red]✗[/red] {e}")
        if verbose:
            console.print_exception()
        raise typer.Exit(code=1)

    _print_summary(result)
    if show_records:
        _print_records(result, limit)

    if output:
        save_result = export_scored_records(
            result.records,
            str(settings.resolve_report_path(str(output))),
            summary=result.summary,
            source=result.source,
        )
        if save_result.is_failure():
            console.print(f"[red]✗[/red] Failed to write report: {save_result.error}")
            raise typer.Exit(code=1)
        console.print(f"\n[green]✓[/green] Report saved: {save_result.value['saved_to']}")


@app.command()
def info() -> None:
    """Display configuration."""
    console.print("[bold blue]Configuration[/bold blue]\n")

    info_table = Table(show_header=False, box=None, padding=(0, 2))
    info_table.add_row("Application:", f"{settings.app_name} v{settings.app_version}")
    info_table.add_row("Log Level:", settings.log_level)
    info_table.add_row("JSON Logs:", "Enabled" if settings.json_logs else "Disabled")
    info_table.add_row("Max Input Size:", f"{settings.max_input_bytes / (1024 * 1024):.0f} MB")
    info_table.add_row("Random Seed:", str(settings.random_seed) if settings.random_seed is not None else "unset")
    info_table.add_row("Score Smoothing:", f"±{settings.score_smoothing}")
    info_table.add_row("Workers:", str(settings.max_workers))
    info_table.add_row("Report Directory:", settings.report_dir)

    console.print(info_table)


def _print_summary(result: PipelineResult) -> None:
    summary = result.summary
    console.print("\n[bold]Scoring Summary:[/bold]")

    summary_table = Table(show_header=False, box=None, padding=(0, 2))
    summary_table.add_row("Total records:", f"[bold]{summary.total_records:,}[/bold]")
    summary_table.add_row("High risk:", f"[red]{summary.high_risk:,}[/red]")
    summary_table.add_row("Medium risk:", f"[yellow]{summary.medium_risk:,}[/yellow]")
    summary_table.add_row("Low risk:", f"[green]{summary.low_risk:,}[/green]")
    summary_table.add_row("With warnings:", f"{summary.records_with_warnings:,}")
    summary_table.add_row("Elapsed:", f"{result.elapsed_seconds:.3f}s")
    console.print(summary_table)

    if summary.flagged_warnings:
        warnings_table = Table(title="Top Warning Flags", header_style="bold")
        warnings_table.add_column("Warning", style="cyan")
        warnings_table.add_column("Count", justify="right")
        for label, count in list(summary.flagged_warnings.items())[:TOP_WARNING_ROWS]:
            warnings_table.add_row(label, f"{count:,}")
        console.print(warnings_table)

    if summary.top_drugs:
        drugs_table = Table(title="Top Drugs", header_style="bold")
        drugs_table.add_column("Drug", style="cyan")
        drugs_table.add_column("Records", justify="right")
        drugs_table.add_column("Avg Risk", justify="right")
        for drug in summary.top_drugs:
            drugs_table.add_row(drug.name or "(blank)", f"{drug.count:,}", f"{drug.avg_risk:.2f}")
        console.print(drugs_table)


def _print_records(result: PipelineResult, limit: int) -> None:
    ranked = sorted(result.records, key=lambda record: record.risk_score, reverse=True)

    records_table = Table(title=f"Scored Records (top {min(limit, len(ranked))})", header_style="bold")
    records_table.add_column("Patient")
    records_table.add_column("Drug")
    records_table.add_column("Tier")
    records_table.add_column("Score", justify="right")
    records_table.add_column("Confidence", justify="right")
    records_table.add_column("Warnings")

    for record in ranked[:limit]:
        style = TIER_STYLES[record.risk_tier]
        records_table.add_row(
            record.patient_id,
            record.drug_name,
            f"[{style}]{record.risk_tier.value}[/{style}]",
            f"{record.risk_score:.2f}",
            f"{record.confidence:.2f}",
            ", ".join(record.warnings) or "-",
        )
    console.print(records_table)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"Rx-Triage v{APP_VERSION}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True, help="Show version information"
    ),
) -> None:
    """Rx-Triage: risk scoring for prescription dispensing records."""
    configure_logging(settings)


if __name__ == "__main__":
    app()
