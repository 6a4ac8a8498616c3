"""
Commands for working with shareable filter addresses.
"""

from typing import List, Optional

import typer
from rich.table import Table

from tjcache.state.filters import active_fields, merge_with_defaults, validate_partial
from tjcache.sync import address as codec
from tjcache.utils.output import console, print_json

app = typer.Typer(help="Encode and decode filter query strings")


@app.command()
def decode(
    query: str = typer.Argument(..., help="Query string, with or without the leading '?'"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the filters a query string opens with."""
    filters = codec.decode_filters(query)

    if json_output:
        print_json(filters.to_dict())
        return

    fields = active_fields(filters)
    if not fields:
        console.print("[dim]No filters in this address[/dim]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Parameter", style="cyan")
    table.add_column("Field")
    table.add_column("Value")

    for name in fields:
        value = getattr(filters, name)
        if isinstance(value, tuple):
            value = ", ".join(value)
        table.add_row(codec.PARAM_NAMES[name], name, str(value))

    console.print(table)


@app.command()
def encode(
    symbol: Optional[str] = typer.Option(None, "--symbol", help="Ticker symbol"),
    market: Optional[str] = typer.Option(None, "--market", help="stock, crypto, forex or futures"),
    date_from: Optional[str] = typer.Option(None, "--date-from", help="YYYY-MM-DD"),
    date_to: Optional[str] = typer.Option(None, "--date-to", help="YYYY-MM-DD"),
    pnl_filter: Optional[str] = typer.Option(None, "--pnl", help="all, profitable or lossable"),
    strategy_id: Optional[str] = typer.Option(None, "--strategy", help="Strategy id"),
    side: Optional[str] = typer.Option(None, "--side", help="Buy or Sell"),
    emotions: Optional[List[str]] = typer.Option(None, "--emotion", "-e", help="Emotional state (repeatable)"),
    sort_by: Optional[str] = typer.Option(None, "--sort-by", help="Column to sort by"),
    sort_order: Optional[str] = typer.Option(None, "--sort-order", help="asc or desc"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Print a full link instead of a query"),
) -> None:
    """Build the query string for a set of filters."""
    given = {
        "symbol": symbol,
        "market": market,
        "date_from": date_from,
        "date_to": date_to,
        "pnl_filter": pnl_filter,
        "strategy_id": strategy_id,
        "side": side,
        "emotional_states": emotions or None,
        "sort_by": sort_by,
        "sort_order": sort_order,
    }
    try:
        partial = validate_partial({name: value for name, value in given.items() if value is not None})
    except ValueError as e:
        console.print(f"[red]Invalid filter: {e}[/red]")
        raise typer.Exit(1)

    filters = merge_with_defaults(partial)
    if base_url:
        typer.echo(codec.shareable_url(base_url, filters))
    else:
        typer.echo(codec.encode(filters))
