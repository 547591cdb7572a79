"""Command-line interface: scan a Node.js project and write a JSON report."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .constants import DEFAULT_REPORT_DIR
from .core.exceptions import NodeSecureScanError
from .engine import SecurityScanEngine
from .logging_config import configure_logging
from .report import build_report, issues_by_category, write_report
from .scanners.models import DomainResult, SecurityReportInput
from .scoring import DEFAULT_WEIGHTS, ScoreWeights, calculate_security_score, rate_score

app = typer.Typer(
    name="nodesecurescan",
    help="Regex-based security scanner for Node.js / Express projects",
    add_completion=False,
)

console = Console()

RATING_STYLES = {
    "Excellent": "green",
    "Good": "green",
    "Average": "yellow",
    "Poor": "red",
    "Critical": "bold red",
}


def version_callback(value: bool) -> None:
    if value:
        console.print(f"nodesecurescan v{__version__}")
        raise typer.Exit()


def _print_progress(domain: str) -> None:
    console.print(f"  [dim]Scanning {domain}...[/dim]")


def _summary_table(report: SecurityReportInput) -> Table:
    table = Table(title="Findings by category")
    table.add_column("Category", style="cyan")
    table.add_column("Issues", justify="right")

    for category, count in issues_by_category(report).items():
        style = "red" if count else "green"
        table.add_row(category, f"[{style}]{count}[/{style}]")
    table.add_row("rateLimit", str(report.rate_limit.issues.count))
    table.add_row("cors", str(len(report.cors.issues)))
    return table


@app.command()
def scan(
    project_path: Path = typer.Argument(
        ..., exists=True, file_okay=False, dir_okay=True, help="Root directory of the project to scan"
    ),
    output: Path = typer.Option(Path(DEFAULT_REPORT_DIR), "--output", "-o", help="Report directory"),
    weights_file: Path | None = typer.Option(None, "--weights", help="JSON file of score weights"),
    log_level: str = typer.Option("WARNING", "--log-level", help="DEBUG, INFO, WARNING or ERROR"),
    log_file: str | None = typer.Option(None, "--log-file", help="Write JSON-lines logs to this file"),
    print_json: bool = typer.Option(False, "--json", help="Also print the report to stdout"),
    version: bool = typer.Option(None, "--version", "-v", callback=version_callback, is_eager=True),
) -> None:
    """Scan PROJECT_PATH and write a security report."""
    try:
        configure_logging(log_file=log_file, log_level=log_level, enable_console=log_file is None)
        weights = ScoreWeights.from_file(weights_file) if weights_file else DEFAULT_WEIGHTS
        engine = SecurityScanEngine(on_domain_start=_print_progress)

        console.print(f"Scanning [cyan]{project_path}[/cyan]")
        report = engine.run(project_path)
        report_path = write_report(report, output, weights)
    except NodeSecureScanError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    score = calculate_security_score(report, weights)
    rating = rate_score(score)
    style = RATING_STYLES[rating]

    console.print(_summary_table(report))
    for _, result in report:
        if isinstance(result, DomainResult) and result.error:
            console.print(f"[yellow]Warning:[/yellow] {result.error}")
    console.print(f"Security score: [{style}]{score}/100 ({rating})[/{style}]")
    console.print(f"{report.stats.total_issues} potential issues found in {report.stats.execution_time}s")
    console.print(f"[green]✓[/green] Report written to {report_path}")

    if print_json:
        print(json.dumps(build_report(report, weights), indent=2))


def main() -> None:
    app()
