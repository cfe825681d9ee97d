"""
Housekeeper CLI - Command-line interface.

Run retention, inspect plans and capacity, and review run history from
the terminal.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from housekeeper.config import HousekeeperConfig, load_config
from housekeeper.core.exceptions import (
    ConfigurationError,
    HousekeeperError,
    InvalidArtifactError,
    InvalidVolumeError,
    NotificationError,
    SourceUnavailableError,
)
from housekeeper.logging_config import configure_logging
from housekeeper.notifications import format_percent
from housekeeper.reporting import RunLog, RunReport
from housekeeper.retention import UsageEvaluator
from housekeeper.runner import HousekeepingRunner
from housekeeper.sources import create_source

app = typer.Typer(
    name="housekeeper",
    help="Housekeeper - Generational retention for shadow copies and log files",
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger("housekeeper.cli")

EXIT_CONFIG_ERROR = 1
EXIT_RUN_ERROR = 2

ConfigOption = typer.Option(None, "--config", "-c", help="Configuration file")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Log at debug level")


def _load(config_path: Optional[Path], verbose: bool = False) -> HousekeeperConfig:
    """Load configuration and set up logging, exiting 1 on configuration errors."""
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        for error in e.details.get("errors", []):
            console.print(f"  [dim]{escape(error)}[/dim]")
        raise typer.Exit(EXIT_CONFIG_ERROR)

    configure_logging(config.log, verbose=verbose)
    return config


def _fail(e: HousekeeperError) -> None:
    """Report a fatal run error and exit 2."""
    logger.error(f"Run aborted: {e}")
    console.print(f"[red]Error:[/red] {escape(str(e))}")
    raise typer.Exit(EXIT_RUN_ERROR)


def _percent_cell(fraction: float, exceeded: bool) -> str:
    style = "red" if exceeded else "green"
    return f"[{style}]{format_percent(fraction)}%[/{style}]"


def _report_table(report: RunReport) -> Table:
    table = Table(title=f"Run Report - {report.host}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Time", report.time)
    table.add_row("Volume", report.volume)
    table.add_row("Volume usage", _percent_cell(report.usage.volume, "volume" in report.breached))
    table.add_row("Shadow usage", _percent_cell(report.usage.shadow, "shadow" in report.breached))
    for tier, count in report.generation.items():
        table.add_row(f"Generation {tier}", str(count))
    table.add_row("Deleted", str(report.deleted))
    return table


@app.command()
def run(
    config_path: Optional[Path] = ConfigOption,
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Log deletions without performing them"),
    no_notify: bool = typer.Option(False, "--no-notify", help="Skip mail and webhook delivery"),
    verbose: bool = VerboseOption,
):
    """Run retention: classify, delete, record and notify."""
    config = _load(config_path, verbose)
    dry_run = dry_run or config.dry_run

    console.print(
        Panel.fit(
            f"[bold blue]Housekeeper[/bold blue]\n"
            f"Source: {config.source.kind}\n"
            f"Policy: {config.policy().to_dict()}\n"
            f"Mode: {'dry run' if dry_run else 'delete'}",
        )
    )

    try:
        runner = HousekeepingRunner.from_config(config, notify=not no_notify, dry_run=dry_run)
        try:
            result = runner.execute()
        finally:
            runner.close()
    except NotificationError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_CONFIG_ERROR)
    except (SourceUnavailableError, InvalidArtifactError, InvalidVolumeError) as e:
        _fail(e)

    console.print(_report_table(result.report))

    if result.report.exceeded:
        console.print("[bold red]!!!! EXCEEDING THRESHOLD !!!![/bold red]")

    if result.outcome.failed:
        console.print(f"[yellow]{len(result.outcome.failed)} deletion(s) failed:[/yellow]")
        for error in result.outcome.errors:
            console.print(f"  [dim]{escape(error)}[/dim]")

    for delivery in result.deliveries:
        if delivery.success:
            console.print(f"[green]Report sent via {delivery.channel}[/green]")
        else:
            console.print(f"[yellow]Report not sent via {delivery.channel}:[/yellow] {escape(delivery.error_message or '')}")


@app.command()
def plan(
    config_path: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Show which artifacts each tier keeps and which would be deleted."""
    config = _load(config_path, verbose)

    try:
        runner = HousekeepingRunner.from_config(config, notify=False, dry_run=True)
        classification = runner.plan()
    except (SourceUnavailableError, InvalidArtifactError) as e:
        _fail(e)

    table = Table(title="Retention Plan")
    table.add_column("Tier", style="cyan")
    table.add_column("Quota", justify="right")
    table.add_column("Buckets", justify="right")
    table.add_column("Retained", justify="right")
    table.add_column("Bucket keys", style="dim")

    for tier in config.policy().tiers:
        generation = classification.generations.get(tier.name)
        if generation is None:
            table.add_row(tier.name.value, str(tier.quota), "-", "-", "[dim]disabled[/dim]")
            continue
        table.add_row(
            tier.name.value,
            str(tier.quota),
            str(len(generation)),
            str(len(generation.retained)),
            ", ".join(generation.bucket_keys),
        )
    console.print(table)

    if not classification.deletion:
        console.print("[green]Nothing to delete[/green]")
        return

    deletion = Table(title=f"Deletion Set ({len(classification.deletion)})")
    deletion.add_column("Created", style="cyan")
    deletion.add_column("Artifact")
    for artifact in classification.deletion:
        deletion.add_row(str(artifact.created_at), artifact.name or artifact.id)
    console.print(deletion)


@app.command()
def usage(
    config_path: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Show volume and shadow storage usage against the thresholds."""
    config = _load(config_path, verbose)

    try:
        runner = HousekeepingRunner.from_config(config, notify=False, dry_run=True)
        evaluation = UsageEvaluator(config.threshold).evaluate(runner.measure())
    except (SourceUnavailableError, InvalidVolumeError) as e:
        _fail(e)

    thresholds = {"volume": config.threshold.volume, "shadow": config.threshold.shadow}
    fractions = {"volume": evaluation.volume_fraction, "shadow": evaluation.shadow_fraction}

    table = Table(title=f"Usage - {runner.volume_source.volume_id}")
    table.add_column("Axis", style="cyan")
    table.add_column("Used", justify="right")
    table.add_column("Threshold", justify="right")
    table.add_column("State")

    for axis, fraction in fractions.items():
        limit = thresholds[axis]
        exceeded = axis in evaluation.breached
        table.add_row(
            axis,
            _percent_cell(fraction, exceeded),
            f"{format_percent(limit)}%" if limit is not None else "-",
            "[red]exceeded[/red]" if exceeded else "[green]ok[/green]",
        )
    console.print(table)

    snapshot = evaluation.snapshot
    console.print(f"\nCapacity: {snapshot.capacity_bytes:,} bytes")
    console.print(f"Used: {snapshot.used_bytes:,} bytes")
    console.print(f"Free: {snapshot.free_bytes:,} bytes")


@app.command()
def history(
    config_path: Optional[Path] = ConfigOption,
    limit: int = typer.Option(20, "--limit", "-n", help="Number of runs to show"),
):
    """Show recent runs from the run log."""
    config = _load(config_path)
    reports = RunLog(config.data_file).read(limit=limit)

    if not reports:
        console.print("[yellow]No runs recorded yet[/yellow]")
        return

    table = Table(title=f"Run History ({len(reports)} runs)")
    table.add_column("Time", style="cyan")
    table.add_column("Volume")
    table.add_column("Deleted", justify="right")
    table.add_column("Volume %", justify="right")
    table.add_column("Shadow %", justify="right")
    table.add_column("Status")

    for report in reports:
        if report.exceeded:
            status = "[red]exceeded[/red]"
        elif report.dry_run:
            status = "[dim]dry run[/dim]"
        else:
            status = "[green]ok[/green]"
        table.add_row(
            report.time[:19],
            report.volume,
            str(report.deleted),
            format_percent(report.usage.volume),
            format_percent(report.usage.shadow),
            status,
        )

    console.print(table)


@app.command("config")
def config_cmd(
    config_path: Optional[Path] = ConfigOption,
):
    """Print the resolved configuration."""
    config = _load(config_path)
    typer.echo(config.to_yaml())


@app.command()
def snapshot(
    config_path: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Create a new artifact through the configured source."""
    config = _load(config_path, verbose)

    try:
        source = create_source(config.source)
        artifact_id = source.create()
    except SourceUnavailableError as e:
        _fail(e)

    console.print(f"[green]Created:[/green] {artifact_id}")


@app.command()
def version():
    """Show Housekeeper version."""
    from housekeeper import __version__

    console.print(f"Housekeeper v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
