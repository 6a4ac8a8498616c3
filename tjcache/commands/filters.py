"""
Commands for the persisted filter records.
"""

import typer
from rich.table import Table

from tjcache.state.filters import DEFAULT_FILTERS, FILTER_FIELDS, active_filter_count
from tjcache.state.strategy_filters import (
    DEFAULT_STRATEGY_FILTERS,
    STRATEGY_FILTER_FIELDS,
    active_strategy_filter_count,
)
from tjcache.utils.output import console, print_json

app = typer.Typer(help="Inspect the persisted trade and strategy filters")

STRATEGIES_OPTION = typer.Option(False, "--strategies", help="Use the strategy list's filters")


def _persistence(strategies: bool):
    from tjcache.services.registry import CacheRegistry
    from tjcache.sync.persistence import FilterPersistence, StrategyFilterPersistence

    durable = CacheRegistry.instance().durable
    if strategies:
        return StrategyFilterPersistence(durable)
    return FilterPersistence(durable)


@app.command()
def show(
    strategies: bool = STRATEGIES_OPTION,
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the filters that the next session will be seeded with."""
    filters = _persistence(strategies).load()

    if json_output:
        print_json({"stored": filters is not None, "filters": filters.to_dict() if filters else None})
        return

    if filters is None:
        console.print("[yellow]No stored filters; sessions start from defaults[/yellow]")
        return

    if strategies:
        names, defaults, active = STRATEGY_FILTER_FIELDS, DEFAULT_STRATEGY_FILTERS, active_strategy_filter_count
    else:
        names, defaults, active = FILTER_FIELDS, DEFAULT_FILTERS, active_filter_count

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    for name in names:
        value = getattr(filters, name)
        if isinstance(value, tuple):
            value = ", ".join(value)
        if value is None or value == "":
            value = "-"
        style = "dim" if getattr(filters, name) == getattr(defaults, name) else "bold"
        table.add_row(name, f"[{style}]{value}[/{style}]")

    console.print(table)
    console.print(f"\nActive filters: {active(filters)}")


@app.command()
def clear(
    strategies: bool = STRATEGIES_OPTION,
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Delete the stored filters."""
    if not force:
        typer.confirm("Delete the stored filters?", abort=True)

    if _persistence(strategies).clear():
        console.print("[green]✅ Stored filters deleted[/green]")
    else:
        console.print("[dim]No stored filters[/dim]")
