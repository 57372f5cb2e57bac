"""
Main CLI entry point for reelcache.
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.panel import Panel

from reelcache import __version__
from reelcache.cli.commands.api import api_app
from reelcache.cli.commands.cache import app as cache_app

console = Console()

app = typer.Typer(
    name="reelcache",
    help="Local media cache and proxy for site videos and images",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Add subcommands
app.add_typer(cache_app, name="cache", help="Media cache commands")
app.add_typer(api_app, name="api", help="API server commands")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(
        Panel(
            f"[bold blue]reelcache[/bold blue] v{__version__}",
            title="Version",
            border_style="blue",
        )
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit"
    ),
) -> None:
    """
    reelcache - Local media cache and proxy.

    Keeps hero videos and gallery media on local disk and serves them
    with low latency, falling back to the remote asset store.
    """
    if version:
        console.print(f"reelcache v{__version__}")
        raise typer.Exit(code=0)

    if ctx.invoked_subcommand is None:
        console.print("[yellow]Use 'reelcache --help' for available commands[/yellow]")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
