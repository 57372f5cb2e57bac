"""CLI commands for API server management."""

from __future__ import annotations

import typer

api_app = typer.Typer(
    name="api",
    help="API server management commands",
    no_args_is_help=True,
)


@api_app.command()
def start(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to run the server on"),
    production: bool = typer.Option(
        False, "--production", help="Run in production mode"
    ),
) -> None:
    """
    Start the reelcache API server.

    Development mode (default): Auto-reload enabled, info logging.
    Production mode: No reload, warning-level server logging. A single
    worker process keeps one shared view of in-flight downloads.

    Examples:
        reelcache api start
        reelcache api start --port 3000
        reelcache api start --production --host 0.0.0.0
    """
    import uvicorn

    if production:
        uvicorn.run(
            "reelcache.api.main:app",
            host=host,
            port=port,
            log_level="warning",
        )
    else:
        uvicorn.run(
            "reelcache.api.main:app",
            host=host,
            port=port,
            reload=True,
            log_level="info",
        )
