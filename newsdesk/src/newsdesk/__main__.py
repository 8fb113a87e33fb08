"""
Command-line interface for the news dashboard backend.

Usage:
    python -m newsdesk sources                 # List configured sources
    python -m newsdesk fetch bbc               # Resolve one source
    python -m newsdesk fetch-all --group news  # Resolve a whole tab
    python -m newsdesk serve                   # Start the API server
    python -m newsdesk config                  # Show current configuration
"""

import asyncio
import json

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from .config import get_settings
from .logging_conf import setup_logging, get_logger
from .models import ResolvedSource
from .orchestrator import SourceNotFoundError, build_batch_payload, get_orchestrator
from .server import run_server
from .sources import SourceGroup, get_source_registry

console = Console()
logger = get_logger(__name__)


def _print_resolved(result: ResolvedSource) -> None:
    table = Table(title=f"{result.icon} {result.name}")
    table.add_column("Published", style="yellow")
    table.add_column("Title", style="cyan")
    table.add_column("Image", style="green")

    for article in result.articles:
        published = article.published_at.strftime("%Y-%m-%d %H:%M") if article.published_at else "-"
        table.add_row(published, article.title[:80], "Yes" if article.image else "No")

    console.print(table)
    if result.is_empty:
        console.print("[yellow]No stories available[/yellow]")


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def cli(debug: bool):
    """News dashboard backend CLI."""
    level = "DEBUG" if debug else get_settings().log_level
    setup_logging(level=level, service="cli")


@cli.command()
@click.option("--group", "-g", type=click.Choice([g.value for g in SourceGroup]), help="Only this group")
def sources(group: str):
    """List configured sources."""
    registry = get_source_registry()

    table = Table(title="Sources")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Group", style="yellow")
    table.add_column("Feeds", style="green")

    for source in registry.list_sources(group):
        table.add_row(source.id, source.name, registry.group_of(source.id).value, str(len(source.feeds)))

    console.print(table)

    stats = registry.get_stats()
    console.print(f"\nTotal: {stats['total_sources']} | Feeds: {stats['total_feeds']}")
    console.print(f"By group: {stats['by_group']}")


@cli.command()
@click.argument("source_id")
@click.option("--refresh", is_flag=True, help="Bypass the cache")
@click.option("--json-output", "-j", is_flag=True, help="Output results as JSON")
def fetch(source_id: str, refresh: bool, json_output: bool):
    """
    Resolve a single source and show its articles.

    Examples:
      python -m newsdesk fetch bbc
      python -m newsdesk fetch x-trending --json-output
    """
    try:
        result = asyncio.run(get_orchestrator().resolve_one(source_id, force_refresh=refresh))
    except SourceNotFoundError as e:
        console.print(f"[bold red]{e}[/bold red]")
        raise click.Abort()

    if json_output:
        console.print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False), markup=False)
    else:
        _print_resolved(result)


@cli.command("fetch-all")
@click.option("--group", "-g", type=click.Choice([g.value for g in SourceGroup]), default="news")
@click.option("--refresh", is_flag=True, help="Bypass the cache")
@click.option("--json-output", "-j", is_flag=True, help="Output results as JSON")
def fetch_all(group: str, refresh: bool, json_output: bool):
    """Resolve every source in a group."""
    console.print(Panel(f"[bold green]Resolving {group} sources[/bold green]"))

    results = asyncio.run(get_orchestrator().resolve_group(group, force_refresh=refresh))

    if json_output:
        console.print(json.dumps(build_batch_payload(results), indent=2, ensure_ascii=False), markup=False)
        return

    for result in results:
        _print_resolved(result)

    expected = len(get_source_registry().list_sources(group))
    console.print(f"\nResolved {len(results)}/{expected} sources")


@cli.command()
@click.option("--host", default="0.0.0.0", help="Host to bind to")
@click.option("--port", "-p", type=int, help="Port to bind to")
def serve(host: str, port: int):
    """Start the API server."""
    console.print(Panel("[bold blue]Starting Server[/bold blue]"))

    settings = get_settings()
    port = port or settings.port

    console.print(f"Host: {host}")
    console.print(f"Port: {port}")
    console.print()

    run_server(host=host, port=port)


@cli.command()
def config():
    """Show current configuration."""
    settings = get_settings()

    console.print(Panel("[bold blue]Current Configuration[/bold blue]"))

    console.print("\n[cyan]Cache & Retry:[/cyan]")
    console.print(f"  cache_ttl_seconds:     {settings.cache_ttl_seconds}")
    console.print(f"  max_retries:           {settings.max_retries}")
    console.print(f"  retry_backoff_seconds: {settings.retry_backoff_seconds}")

    console.print("\n[cyan]Timeouts:[/cyan]")
    console.print(f"  feed_timeout:          {settings.feed_timeout}")
    console.print(f"  link_resolve_timeout:  {settings.link_resolve_timeout}")
    console.print(f"  enrich_timeout:        {settings.enrich_timeout}")

    console.print("\n[cyan]Normalization:[/cyan]")
    console.print(f"  stale_after_days:      {settings.stale_after_days}")
    console.print(f"  max_articles:          {settings.max_articles}")
    console.print(f"  summary_max_chars:     {settings.summary_max_chars}")

    console.print("\n[cyan]Enrichment:[/cyan]")
    console.print(f"  enable_screenshot_fallback: {settings.enable_screenshot_fallback}")
    console.print(f"  screenshot_service_url:     {settings.screenshot_service_url}")

    console.print("\n[cyan]Server:[/cyan]")
    console.print(f"  port:                  {settings.port}")
    console.print(f"  max_concurrent_sources: {settings.max_concurrent_sources}")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
