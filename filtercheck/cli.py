"""CLI entry point for the extension test pages runner."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from filtercheck.executor.runner import SUITES
from filtercheck.models.config import RunnerConfig
from filtercheck.orchestrator import Orchestrator

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config: str) -> RunnerConfig:
    try:
        return RunnerConfig.load(config)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Run 'filtercheck init' to create a default config.")
        sys.exit(1)


def _run_suites(config: str, suites: tuple[str, ...]) -> None:
    cfg = _load_config(config)
    outcome = Orchestrator(cfg).run(suites)
    run = outcome["run"]

    failures = [r for r in run.case_results if r.result in ("fail", "error")]
    if failures:
        table = Table(title="Failures")
        table.add_column("Result", style="bold")
        table.add_column("Test case")
        table.add_column("Reason")
        for r in failures:
            table.add_row(f"[red]{r.result.upper()}[/red]", r.title, r.failure_reason or "")
        console.print(table)

    table = Table(title="Results Summary")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Run ID", run.run_id)
    table.add_row("Browser", run.browser)
    table.add_row("Duration", f"{run.duration_seconds}s")
    table.add_row("Total Cases", str(run.total_cases))
    table.add_row("Passed", f"[green]{run.passed}[/green]")
    table.add_row("Failed", f"[red]{run.failed}[/red]")
    table.add_row("Skipped", f"[yellow]{run.skipped}[/yellow]")
    table.add_row("Errors", f"[red]{run.errors}[/red]")
    table.add_row("Regressions", str(len(outcome["regressions"])))
    console.print(table)

    for fmt, path in outcome["reports"].items():
        console.print(f"  {fmt.upper()} report: [blue]{path}[/blue]")

    if failures:
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """End-to-end tests of a content blocking extension against its test pages."""
    setup_logging(verbose)


@cli.command()
@click.option("--config", "-c", default="filtercheck.json", help="Config file path")
def run(config: str) -> None:
    """Run every suite: test pages, generic exceptions and the subscribe link."""
    _run_suites(config, SUITES)


@cli.command()
@click.option("--config", "-c", default="filtercheck.json", help="Config file path")
def pages(config: str) -> None:
    """Run the screenshot-compared test pages only."""
    _run_suites(config, ("test_pages",))


@cli.command()
@click.option("--config", "-c", default="filtercheck.json", help="Config file path")
def exceptions(config: str) -> None:
    """Run the generic exception pages only."""
    _run_suites(config, ("generic_exceptions",))


@cli.command()
@click.option("--config", "-c", default="filtercheck.json", help="Config file path")
def subscribe(config: str) -> None:
    """Run the subscribe link test only."""
    _run_suites(config, ("subscribe_link",))


@cli.command()
@click.option("--config", "-c", default="filtercheck.json", help="Config file path")
def exclusions(config: str) -> None:
    """List the pages excluded per browser."""
    cfg = _load_config(config)
    if not cfg.exclusions:
        console.print("[yellow]No exclusions configured[/yellow]")
        return
    table = Table(title="Exclusions")
    table.add_column("Browser", style="bold")
    table.add_column("Page")
    table.add_column("Match")
    table.add_column("Reason")
    for rule in cfg.exclusions:
        table.add_row(rule.browser, rule.page, rule.match, rule.reason)
    console.print(table)


@cli.command()
@click.option("--extension", "-e", prompt="Extension build directory",
              help="Unpacked extension to load")
@click.option("--browser", "-b", default="chromium", help="Browser label, e.g. chromium-oldest")
def init(extension: str, browser: str) -> None:
    """Create a default configuration file."""
    config_path = Path("filtercheck.json")
    if config_path.exists():
        if not click.confirm("filtercheck.json already exists. Overwrite?"):
            return

    cfg = RunnerConfig(extension_path=extension, browser=browser)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nYou can now customize this file and run:")
    console.print("  [blue]filtercheck run[/blue]")


if __name__ == "__main__":
    cli()
