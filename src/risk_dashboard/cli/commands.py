"""CLI commands for the Risk Dashboard."""

import subprocess
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from risk_dashboard.config import get_settings, load_config
from risk_dashboard.logging import get_logger, setup_logging

app = typer.Typer(
    name="risk-dashboard",
    help="Risk Dashboard - score, import and summarize business risks",
)
console = Console()

LEVEL_STYLES = {
    "LOWEST": "green",
    "VERY LOW": "green",
    "LOW": "yellow",
    "MEDIUM LOW": "dark_orange",
    "MEDIUM HIGH": "orange_red1",
    "HIGHEST": "bold red",
}


def init_logging():
    """Initialize logging."""
    setup_logging()


def _styled_level(name: str) -> str:
    style = LEVEL_STYLES.get(name, "white")
    return f"[{style}]{name}[/]"


def _print_violations(violations: list[str]) -> None:
    for message in violations:
        console.print(f"[yellow]⚠ {message}[/]")


@app.callback()
def main(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to config file"
    ),
):
    """Risk Dashboard CLI."""
    if config:
        load_config(config)
    init_logging()


@app.command()
def score(
    probability: int = typer.Argument(..., help="Probability rating (1-9)"),
    impact: int = typer.Argument(..., help="Impact rating (1-9)"),
    effectiveness: float = typer.Option(
        0.0, "--effectiveness", "-e", help="Mitigation effectiveness (0-1)"
    ),
):
    """Score a single risk."""
    from risk_dashboard.scoring import (
        compute_metrics,
        validate_mitigation_effectiveness,
        validate_probability_impact,
    )

    precision = get_settings().ui.residual_precision
    metrics = compute_metrics(probability, impact, effectiveness)

    table = Table(title="Risk Score")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="bold")
    table.add_row("Score", str(metrics.score))
    table.add_row("Risk Level", _styled_level(metrics.risk_level))
    table.add_row("Residual Score", f"{metrics.residual_score:.{precision}f}")
    table.add_row("Residual Risk Level", _styled_level(metrics.residual_risk_level))
    console.print(table)

    violations = validate_probability_impact(probability, impact)
    violations += validate_mitigation_effectiveness(effectiveness)
    if violations:
        _print_violations(violations)
        raise typer.Exit(1)


@app.command()
def validate(
    probability: int = typer.Argument(..., help="Probability rating (1-9)"),
    impact: int = typer.Argument(..., help="Impact rating (1-9)"),
    effectiveness: float = typer.Option(
        0.0, "--effectiveness", "-e", help="Mitigation effectiveness (0-1)"
    ),
):
    """Check ratings against their allowed ranges."""
    from risk_dashboard.scoring import (
        validate_mitigation_effectiveness,
        validate_probability_impact,
    )

    violations = validate_probability_impact(probability, impact)
    violations += validate_mitigation_effectiveness(effectiveness)

    if violations:
        console.print("[bold red]Invalid risk ratings[/]")
        _print_violations(violations)
        raise typer.Exit(1)

    console.print("[green]✓ Ratings are valid[/]")


@app.command()
def tiers():
    """List the severity tiers."""
    from risk_dashboard.scoring import RISK_LEVELS

    table = Table(title="Severity Tiers")
    table.add_column("Minimum Score", style="cyan", justify="right")
    table.add_column("Tier", style="bold")
    table.add_column("Color", style="dim")

    for level in RISK_LEVELS:
        table.add_row(str(level.threshold), _styled_level(level.name), level.color)

    console.print(table)


@app.command("import")
def import_file(
    input_file: Path = typer.Argument(..., help="Risk file (CSV, JSON, JSONL or Excel)"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write scored risks to a CSV file"
    ),
    allow_out_of_range: bool = typer.Option(
        False, "--allow-out-of-range", help="Import rows that fail range validation"
    ),
):
    """Import and score risks from a spreadsheet file."""
    from risk_dashboard.ingestion.importer import import_file as run_import
    from risk_dashboard.storage import RiskRegister, to_dataframe

    logger = get_logger(__name__)

    if not input_file.exists():
        console.print(f"[bold red]File not found: {input_file}[/]")
        raise typer.Exit(1)

    reject = False if allow_out_of_range else None

    try:
        result = run_import(input_file, reject_out_of_range=reject)
    except ValueError as e:
        console.print(f"[bold red]Import failed: {e}[/]")
        raise typer.Exit(1)

    register = RiskRegister(id_prefix=get_settings().register.id_prefix).add_many(result.risks)

    if register.risks:
        _print_risk_table(register.risks)

    console.print(f"[green]✓ Imported {len(result.risks)} of {result.rows_read} rows[/]")
    if result.errors:
        console.print(f"[yellow]⚠ {len(result.errors)} problems:[/]")
        for error in result.errors:
            console.print(f"  [yellow]{error}[/]")

    if output and register.risks:
        output.parent.mkdir(parents=True, exist_ok=True)
        to_dataframe(register.risks, headers=True).to_csv(output, index=False)
        logger.info("risks_exported", path=str(output), count=len(register))
        console.print(f"[green]✓ Wrote {len(register)} risks to {output}[/]")

    if not result.risks:
        raise typer.Exit(1)


@app.command()
def summary(
    input_file: Optional[Path] = typer.Argument(
        None, help="Risk file to summarize; sample risks are used when omitted"
    ),
):
    """Summarize risks by tier and status."""
    from risk_dashboard.ingestion.importer import import_file as run_import
    from risk_dashboard.storage import RiskRegister, load_sample_register

    settings = get_settings()

    if input_file is None:
        register = load_sample_register(id_prefix=settings.register.id_prefix)
        console.print("[dim]Using sample risks[/]")
    else:
        if not input_file.exists():
            console.print(f"[bold red]File not found: {input_file}[/]")
            raise typer.Exit(1)
        try:
            result = run_import(input_file)
        except ValueError as e:
            console.print(f"[bold red]Import failed: {e}[/]")
            raise typer.Exit(1)
        register = RiskRegister(id_prefix=settings.register.id_prefix).add_many(result.risks)
        if result.errors:
            console.print(f"[yellow]⚠ {len(result.errors)} rows skipped[/]")

    risk_summary = register.summary()

    console.print(f"\n[bold]Total risks: {risk_summary.total}[/]")

    level_table = Table(title="By Risk Level")
    level_table.add_column("Tier", style="bold")
    level_table.add_column("Count", style="green", justify="right")
    for name, count in risk_summary.by_level.items():
        level_table.add_row(_styled_level(name), str(count))
    console.print(level_table)

    status_table = Table(title="By Status")
    status_table.add_column("Status", style="cyan")
    status_table.add_column("Count", style="green", justify="right")
    for status, count in risk_summary.by_status.items():
        status_table.add_row(status, str(count))
    console.print(status_table)


@app.command()
def dashboard(
    port: int = typer.Option(8501, "--port", "-p", help="Port for the dashboard"),
):
    """Launch the Streamlit dashboard."""
    app_path = Path(__file__).resolve().parent.parent / "ui" / "app.py"

    console.print(f"[bold blue]Starting dashboard[/] on port {port}")
    completed = subprocess.run(
        [sys.executable, "-m", "streamlit", "run", str(app_path), "--server.port", str(port)],
        check=False,
    )
    if completed.returncode != 0:
        raise typer.Exit(completed.returncode)


def _print_risk_table(risks) -> None:
    precision = get_settings().ui.residual_precision

    table = Table(title="Risks")
    table.add_column("ID", style="cyan")
    table.add_column("Description")
    table.add_column("P", justify="right")
    table.add_column("I", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Level")
    table.add_column("Residual", justify="right")
    table.add_column("Residual Level")
    table.add_column("Status", style="dim")

    for risk in risks:
        table.add_row(
            risk.id,
            risk.description[:50],
            str(risk.probability),
            str(risk.impact),
            str(risk.score),
            _styled_level(risk.risk_level),
            f"{risk.residual_score:.{precision}f}",
            _styled_level(risk.residual_risk_level),
            risk.status.value,
        )

    console.print(table)


if __name__ == "__main__":
    app()
