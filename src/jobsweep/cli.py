"""
JOBSWEEP command line interface.

Usage:
    jobsweep search orders
    jobsweep search orders --strategy keyword_chunks --max-batches 20
    jobsweep search orders --json
"""

import asyncio
import json
import logging
import sys
from typing import Optional

import click
import structlog
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .client import UsageError
from .core import DEFAULT_MAX_BATCHES, MAX_BATCHES, MIN_BATCHES, Settings, batch_search
from .core.batch_search import BatchSearchResponse
from .core.report import format_config_details
from .strategies import DEFAULT_STRATEGY, STRATEGIES

console = Console()


def configure_logging(verbose: bool = False):
    """Route structlog output to stderr; DEBUG with --verbose, INFO otherwise"""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.INFO
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


@click.group()
@click.version_option(version=__version__, prog_name="jobsweep")
def cli():
    """
    JOBSWEEP - Batch search for job definitions

    Sweeps the job definition listing in batches and filters client-side.
    """
    pass


@cli.command()
@click.argument("search_term")
@click.option(
    "--strategy",
    type=click.Choice(list(STRATEGIES)),
    default=DEFAULT_STRATEGY,
    show_default=True,
    help="Scan strategy",
)
@click.option(
    "--max-batches",
    type=click.IntRange(MIN_BATCHES, MAX_BATCHES),
    default=DEFAULT_MAX_BATCHES,
    show_default=True,
    help="Maximum number of batch requests",
)
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="YAML settings file")
@click.option("--json", "as_json", is_flag=True, help="Print the structured payload as JSON")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def search(
    search_term: str,
    strategy: str,
    max_batches: int,
    config_path: Optional[str],
    as_json: bool,
    verbose: bool,
):
    """
    Search job definitions whose name or description contains SEARCH_TERM.

    Example:
        jobsweep search orders --strategy keyword_chunks
    """
    configure_logging(verbose)

    try:
        settings = Settings.load(config_path)
    except UsageError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        sys.exit(2)

    response = asyncio.run(run_search(settings, search_term, strategy, max_batches, show_progress=not as_json))

    if as_json:
        click.echo(json.dumps(response.payload, indent=2, ensure_ascii=False, default=str))
    else:
        render_response(response)

    if response.is_error:
        sys.exit(1)


async def run_search(
    settings: Settings,
    search_term: str,
    strategy: str,
    max_batches: int,
    show_progress: bool = True,
) -> BatchSearchResponse:
    """Run batch_search with a rich progress spinner"""
    async with settings.create_client() as client:
        if not show_progress:
            return await batch_search(client, search_term, strategy=strategy, max_batches=max_batches)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task(f"[cyan]Searching with {strategy}...", total=None)

            def on_event(event, data):
                if event == "batch_completed":
                    progress.update(
                        task,
                        description=(
                            f"[cyan]Batch {data['batch']}/{data['max_batches']}[/cyan] "
                            f"- {data['total_scanned']} scanned"
                        ),
                    )

            return await batch_search(
                client,
                search_term,
                strategy=strategy,
                max_batches=max_batches,
                observers=[on_event],
            )


def render_response(response: BatchSearchResponse):
    """Print a batch search response as a rich table"""
    if response.is_error or response.result is None:
        console.print(f"[bold red]{response.text}[/bold red]")
        return

    result = response.result
    console.print(f"\n[green]Strategy:[/green] {result.strategy}")
    console.print(f"[green]Progress:[/green] {result.progress}")

    if not result.matches:
        console.print(f'\n[yellow]No job definitions found for "{result.search_term}"[/yellow]')
        console.print("[dim]Try another strategy or a different search term.[/dim]\n")
        return

    table = Table(title=f'Matches for "{result.search_term}" ({len(result.matches)})')
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Transfer", style="green")
    table.add_column("Connectors", style="yellow")
    table.add_column("URL", style="dim")

    for match in result.matches:
        table.add_row(
            str(match.id),
            match.name or "",
            f"{match.input_type} -> {match.output_type}",
            "\n".join(format_config_details(match.config)),
            match.url,
        )

    console.print(table)
    console.print()


@cli.command()
def strategies():
    """List available scan strategies"""
    table = Table(title="Scan Strategies")
    table.add_column("Strategy", style="cyan", no_wrap=True)
    table.add_column("Batch errors", style="yellow")
    table.add_column("Description", style="green")

    for name, strategy_cls in STRATEGIES.items():
        table.add_row(
            name,
            "stop scan" if strategy_cls.fatal_errors else "skip batch",
            strategy_cls.description,
        )

    console.print(table)


@cli.command()
def version():
    """Show version information"""
    console.print(f"\n[bold cyan]JOBSWEEP v{__version__}[/bold cyan]")
    console.print("[cyan]Batch search for job definitions[/cyan]\n")


if __name__ == "__main__":
    cli()
