"""Command-line interface for qe-activity-report."""

import logging
from enum import Enum
from pathlib import Path

import pytz
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn

from .config import Config, load_config
from .pipeline import PASS_ORDER, PassResult, run_passes
from .report import build_detail_table, build_markdown_report, build_summary_table
from .tracker_client import TrackerClient, TrackerError
from .trackers.jira import JiraClient, MalformedIssueError

app = typer.Typer(help="Generate QE activity reports from Jira")
console = Console()
logger = logging.getLogger(__name__)


class OutputFormat(str, Enum):
    table = "table"
    markdown = "markdown"


def main():
    """Entry point for the CLI application."""
    app()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def create_client(config: Config) -> TrackerClient:
    """Build the tracker client described by the configuration."""
    return JiraClient(
        server=config.jira.server,
        username=config.jira.username,
        password=config.jira.password,
    )


def _load_or_exit(config_file: Path) -> Config:
    try:
        return load_config(config_file)
    except Exception as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def generate(
    config_file: Path = typer.Option(
        "config.yaml",
        "--config",
        "-c",
        help="Path to configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.table,
        "--format",
        help="Render the reports as console tables or Markdown",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Collect filed, closed, commented and tested tickets and print the reports.

    The four searches run one after another; if any of them fails, no
    report is printed.
    """
    _configure_logging(verbose)
    config = _load_or_exit(config_file)
    window = config.window

    console.print("[bold blue]QE Activity Report[/bold blue]")
    console.print(f"Start Date: {window.start.strftime('%a, %b %d, %Y %H:%M %Z')}")
    console.print(f"End Date: {window.end.strftime('%a, %b %d, %Y %H:%M %Z')}")
    console.print(f"Users: {', '.join(config.users)}")

    client = create_client(config)
    console.print(f"Tracker: {client.get_tracker_name()} ({config.jira.server})\n")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task(f"Retrieving {PASS_ORDER[0]} tickets...", total=None)

        def on_pass(result: PassResult) -> None:
            logger.debug(f"{result.name} search: {result.jql}")
            console.print(f"[green]Processed {result.issue_count} {result.name} tickets[/green]")
            position = PASS_ORDER.index(result.name) + 1
            if position < len(PASS_ORDER):
                progress.update(task, description=f"Retrieving {PASS_ORDER[position]} tickets...")

        try:
            store = run_passes(
                client,
                config.users,
                window,
                tz=pytz.timezone(config.timezone),
                group=config.group,
                story_points_field=config.story_points_field,
                max_results=config.max_results,
                on_pass=on_pass,
            )
        except (TrackerError, MalformedIssueError) as e:
            progress.remove_task(task)
            console.print(f"[red]Error collecting data:[/red] {e}")
            raise typer.Exit(1)

        progress.remove_task(task)

    if output_format == OutputFormat.markdown:
        typer.echo(build_markdown_report(store, title="QE Activity Report"))
    else:
        console.print(build_detail_table(store))
        console.print(build_summary_table(store))


@app.command()
def validate(
    config_file: Path = typer.Option(
        "config.yaml",
        "--config",
        "-c",
        help="Path to configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
):
    """Validate the configuration file without querying Jira."""
    config = _load_or_exit(config_file)

    console.print("[green]✓[/green] Configuration is valid")
    console.print(f"\nJira server: {config.jira.server}")
    console.print(f"Credentials: {'✓' if config.jira.username else '✗'}")
    console.print(f"Users: {len(config.users)}")
    console.print(f"Period: {config.start.date()} to {config.end.date()} ({config.timezone})")
    if config.group:
        console.print(f"Filed search group: {config.group}")


if __name__ == "__main__":
    main()
