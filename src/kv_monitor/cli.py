"""Command-line interface for kv-monitor."""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from kv_monitor.config import MonitorConfig, Settings
from kv_monitor.core import MonitorOrchestrator
from kv_monitor.monitoring.scheduler import CycleReport
from kv_monitor.monitoring.suppression import now_millis
from kv_monitor.schemas import Notice
from kv_monitor.utils.logging import setup_logging

console = Console()


def load_config(path: Optional[Path]) -> MonitorConfig:
    """Load the YAML config, falling back to defaults when it is missing."""
    if path is None:
        path = Path(Settings().config_file)
    if not path.exists():
        console.print(f"[yellow]No configuration at {path}, using defaults[/yellow]")
        return MonitorConfig()
    return MonitorConfig.from_yaml(path)


def _setup(config: MonitorConfig, settings: Settings) -> None:
    setup_logging(
        level=settings.log_level or config.logging.level,
        format_type=config.logging.format,
        file_path=config.logging.file_path,
        notify_file_path=config.logging.notify_file_path,
    )


def render_report(report: CycleReport) -> Table:
    table = Table(title=f"Cycle {report.started_at:%Y-%m-%d %H:%M:%S} ({report.duration:.2f}s)")
    table.add_column("Cluster", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Nodes", justify="right")
    table.add_column("Jobs", justify="right")
    table.add_column("Notified", justify="center")
    table.add_column("Telemetry", justify="right")
    table.add_column("Slow logs", justify="right")
    table.add_column("Error", style="red")

    for cluster in report.clusters:
        table.add_row(
            cluster.cluster_name,
            "[green]ok[/green]" if cluster.ok else "[red]failed[/red]",
            str(cluster.sampled_nodes),
            str(cluster.jobs),
            "yes" if cluster.notified else "-",
            str(cluster.telemetry_records),
            str(cluster.slow_logs_saved),
            cluster.error or "",
        )
    return table


config_option = click.option(
    "--config",
    "-c",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to monitor configuration file",
)


@click.group()
def cli():
    """Monitor Redis clusters, alert on rules and keep slow log history."""
    pass


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(path_type=Path),
    default=Path("config/kv-monitor.yaml"),
    help="Path to monitor configuration file",
)
def init(config: Path) -> None:
    """Write a sample monitor configuration."""
    if config.exists():
        if not click.confirm(f"Configuration file {config} already exists. Overwrite?"):
            console.print("[yellow]Initialization cancelled.[/yellow]")
            return

    config.parent.mkdir(parents=True, exist_ok=True)
    MonitorConfig().to_yaml(config)
    console.print(f"[green]✓[/green] Configuration initialized at {config}")


@cli.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
def validate(config_file: Path) -> None:
    """Validate a monitor configuration file."""
    try:
        MonitorConfig.from_yaml(config_file)
    except (ValidationError, yaml.YAMLError) as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise SystemExit(1)
    console.print("[green]✓[/green] Configuration is valid")


@cli.command()
@config_option
def run(config: Optional[Path]) -> None:
    """Run the monitoring loop until interrupted."""
    monitor_config = load_config(config)
    settings = Settings()
    _setup(monitor_config, settings)

    async def _run():
        orchestrator = MonitorOrchestrator(monitor_config, settings)
        await orchestrator.initialize()
        try:
            await orchestrator.run_forever()
        finally:
            await orchestrator.shutdown()

    asyncio.run(_run())


@cli.command()
@config_option
def check(config: Optional[Path]) -> None:
    """Run a single monitoring cycle and print the outcome."""
    monitor_config = load_config(config)
    settings = Settings()
    _setup(monitor_config, settings)

    async def _check() -> CycleReport:
        orchestrator = MonitorOrchestrator(monitor_config, settings)
        await orchestrator.initialize()
        try:
            return await orchestrator.run_once()
        finally:
            await orchestrator.shutdown()

    report = asyncio.run(_check())
    console.print(render_report(report))
    if report.failed:
        raise SystemExit(1)


@cli.command()
@click.argument("cluster_name")
@click.option("--offset", default=0, type=click.IntRange(min=0), help="Records to skip")
@click.option("--limit", default=20, type=click.IntRange(min=1), help="Records to show")
@config_option
def slowlog(cluster_name: str, offset: int, limit: int, config: Optional[Path]) -> None:
    """Show a cluster's persisted slow log history, newest first."""
    monitor_config = load_config(config)

    async def _history():
        orchestrator = MonitorOrchestrator(monitor_config, Settings())
        try:
            return await orchestrator.slow_log_history(cluster_name, offset, limit)
        finally:
            await orchestrator.shutdown()

    pager = asyncio.run(_history())

    table = Table(title=f"Slow logs of {cluster_name} ({pager.total} retained)")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Time", justify="center")
    table.add_column("Duration (µs)", justify="right")
    table.add_column("Node", style="magenta")
    table.add_column("Command")
    for record in pager.items:
        table.add_row(
            str(record.id),
            datetime.fromtimestamp(record.time_stamp).strftime("%Y-%m-%d %H:%M:%S"),
            str(record.execution_time),
            record.host_and_port,
            " ".join(record.args),
        )
    console.print(table)


@cli.command()
@click.argument("cluster_name")
@click.argument("host_and_port")
@click.option(
    "--notice",
    "notice_file",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="YAML or JSON file with the cluster's alerting rules",
)
def register(cluster_name: str, host_and_port: str, notice_file: Optional[Path]) -> None:
    """Register a cluster by one of its nodes, optionally with rules."""
    notice = None
    if notice_file is not None:
        with open(notice_file, "r") as f:
            notice = Notice.model_validate(yaml.safe_load(f) or {})

    async def _register():
        orchestrator = MonitorOrchestrator(MonitorConfig(), Settings())
        try:
            await orchestrator.datastore.register_cluster(cluster_name, host_and_port)
            if notice is not None:
                await orchestrator.datastore.set_notice(cluster_name, notice)
        finally:
            await orchestrator.shutdown()

    asyncio.run(_register())
    console.print(f"[green]✓[/green] Registered {cluster_name} ({host_and_port})")


@cli.command()
@click.argument("cluster_name")
@click.option("--minutes", default=60, type=click.IntRange(min=0), help="Mute duration")
def mute(cluster_name: str, minutes: int) -> None:
    """Suppress a cluster's notifications for a while."""
    until = now_millis() + minutes * 60 * 1000

    async def _mute():
        orchestrator = MonitorOrchestrator(MonitorConfig(), Settings())
        try:
            await orchestrator.datastore.mute(cluster_name, until)
        finally:
            await orchestrator.shutdown()

    asyncio.run(_mute())
    until_text = datetime.fromtimestamp(until / 1000).strftime("%Y-%m-%d %H:%M:%S")
    console.print(f"[green]✓[/green] Notifications of {cluster_name} muted until {until_text}")


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
