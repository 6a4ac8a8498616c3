#!/usr/bin/env python3
"""
Main CLI entry point for tjcache
"""

import typer

from tjcache import __version__
from tjcache.commands.address import app as address_app
from tjcache.commands.cache import app as cache_app
from tjcache.commands.filters import app as filters_app
from tjcache.config.settings import Settings
from tjcache.exceptions import ConfigurationError
from tjcache.utils.logging import configure_logging

app = typer.Typer(help="Trade journal cache and filter-state tools")
app.add_typer(cache_app, name="cache")
app.add_typer(filters_app, name="filters")
app.add_typer(address_app, name="address")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
):
    """
    tjcache - caching and filter-state tools for the trade journal

    [bold]Examples:[/bold]

    Show what each cache tier holds:
        [cyan]tjcache cache stats[/cyan]

    Turn a shared link into filters:
        [cyan]tjcache address decode "?symbol=AAPL&pnlFilter=profitable"[/cyan]
    """
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    configure_logging("DEBUG" if verbose else settings.log_level)


@app.command()
def version():
    """Show tjcache version"""
    typer.echo(f"tjcache version {__version__}")


def run():
    """Entry point for the CLI"""
    app()


if __name__ == "__main__":
    run()
