"""
Cache management commands for tjcache.

Provides CLI commands for inspecting and managing the cache tiers.
"""

import asyncio
from typing import Optional

import typer
from rich.table import Table

from tjcache.utils.output import console, print_json

app = typer.Typer(help="Cache management commands")


def _registry():
    from tjcache.services.registry import CacheRegistry

    return CacheRegistry.instance()


@app.command()
def stats(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show entry counts per tier and ephemeral hit rates."""
    registry = _registry()
    all_stats = asyncio.run(registry.stats())

    if json_output:
        print_json(all_stats)
        return

    console.print("\n[bold]📊 Cache Statistics[/bold]\n")

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Tier", style="cyan")
    table.add_column("Entries", justify="right")
    table.add_column("Status")

    for name, tier_stats in all_stats.items():
        available = tier_stats.get("available", True)
        status = "[green]available[/green]" if available else "[red]unavailable[/red]"
        table.add_row(name, str(tier_stats.get("size", 0)), status)

    console.print(table)
    _display_ephemeral_metrics(all_stats["ephemeral"])


def _display_ephemeral_metrics(stats: dict) -> None:
    """Display hit/miss counters of the ephemeral tier."""
    hit_rate = stats.get("hit_rate_percent", 0)
    hit_rate_color = "green" if hit_rate > 70 else "yellow" if hit_rate > 40 else "red"

    console.print("\n[bold]Ephemeral tier:[/bold]")
    console.print(f"  Hits: [green]{stats.get('hits', 0)}[/green]")
    console.print(f"  Misses: [yellow]{stats.get('misses', 0)}[/yellow]")
    console.print(f"  Hit rate: [{hit_rate_color}]{hit_rate:.1f}%[/{hit_rate_color}]")
    console.print(f"  Evictions: [red]{stats.get('evictions', 0)}[/red]")
    console.print(f"  Expirations: {stats.get('expirations', 0)}")


@app.command()
def clear(
    tier: Optional[str] = typer.Argument(
        None, help="Tier to clear: ephemeral, durable, session or transactional (all if not provided)"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Clear cache entries."""
    from tjcache.services.registry import TIER_NAMES

    registry = _registry()

    if tier:
        if tier not in TIER_NAMES:
            console.print(f"[red]Tier '{tier}' not found[/red]")
            console.print("\n[dim]Available tiers:[/dim]")
            for name in TIER_NAMES:
                console.print(f"  • {name}")
            raise typer.Exit(1)

        if not force:
            typer.confirm(f"Clear tier '{tier}'?", abort=True)

        count = asyncio.run(registry.clear(tier))
        console.print(f"[green]✅ Cleared {count} entries from '{tier}'[/green]")
    else:
        if not force:
            typer.confirm("Clear ALL tiers?", abort=True)

        results = asyncio.run(registry.clear_all())
        total = sum(results.values())
        console.print(f"[green]✅ Cleared {total} entries from {len(results)} tiers[/green]")

        for name, count in results.items():
            if count > 0:
                console.print(f"   • {name}: {count} entries")


@app.command()
def cleanup() -> None:
    """Remove expired entries from the TTL tiers."""
    registry = _registry()
    results = asyncio.run(registry.cleanup())

    total = sum(results.values())
    console.print(f"[green]✅ Removed {total} expired entries[/green]")

    for name, count in results.items():
        if count > 0:
            console.print(f"   • {name}: {count} entries")
