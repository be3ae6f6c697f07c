#!/usr/bin/env python3
"""WhiteCollar command line interface"""

import typer
import uvicorn
from rich.console import Console

from .config import settings
from .infrastructure.database import models  # noqa: F401
from .infrastructure.database.database import get_main_engine, init_db

console = Console()

app = typer.Typer(
    name="whitecollar",
    help="Run and administer the WhiteCollar catalog service.",
    no_args_is_help=True,
)


@app.command()
def serve(
    host: str = typer.Option(settings.host, help="Interface to bind"),
    port: int = typer.Option(settings.port, help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the HTTP API with uvicorn."""
    console.print(f"[green]Serving {settings.app_name} on {host}:{port}[/green]")
    uvicorn.run("whitecollar.main:app", host=host, port=port, reload=reload)


@app.command("init-db")
def init_database() -> None:
    """Create the database tables."""
    init_db(get_main_engine())
    console.print(f"[green]Database ready at {settings.database_url}[/green]")


def main() -> None:
    """Entry point for the whitecollar command."""
    app()


if __name__ == "__main__":
    main()
