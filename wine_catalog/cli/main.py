"""Wine Catalog CLI using Typer."""

from pathlib import Path
from typing import Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from wine_catalog import __version__
from wine_catalog.core.config import Settings, load_env_file

console = Console()

app = typer.Typer(
    name="wine-catalog",
    help="Wine Catalog - wines, producers, user favorites and ratings",
    add_completion=False,
)


def _catalog_store(settings: Settings):
    """Build a catalog store on a freshly initialized database."""
    from wine_catalog.db.engine import create_db_engine, create_session_factory, init_db
    from wine_catalog.services.catalog_service import CatalogStore

    engine = create_db_engine(settings.database_url, echo=settings.sql_echo)
    init_db(engine)
    return CatalogStore(create_session_factory(engine))


@app.command()
def run(
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8080, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(
        False, "--reload", "-r", help="Enable auto-reload for development"
    ),
) -> None:
    """Start the Wine Catalog web server."""
    import uvicorn

    typer.echo(f"Starting Wine Catalog on http://{host}:{port}")
    typer.echo("Press Ctrl+C to stop the server")
    typer.echo("")

    uvicorn.run(
        "wine_catalog.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


@app.command()
def init_db() -> None:
    """Initialize the database (create tables)."""
    from wine_catalog.db.engine import create_db_engine, init_db as db_init

    settings = Settings.from_env()
    typer.echo("Initializing database...")
    db_init(create_db_engine(settings.database_url))
    typer.echo("Database initialized successfully!")


@app.command()
def seed(
    producers: Path = typer.Option(
        ..., "--producers", exists=True, dir_okay=False, help="JSON array of producers"
    ),
    wines: Path = typer.Option(
        ..., "--wines", exists=True, dir_okay=False, help="JSON array of wines"
    ),
    reset: bool = typer.Option(
        False, "--reset", help="Delete existing wines and producers first"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Skip the reset confirmation"),
) -> None:
    """
    Load producers and wines from JSON files.

    Examples:
        wine-catalog seed --producers data/producers.json --wines data/wines.json
        wine-catalog seed --producers p.json --wines w.json --reset
    """
    from wine_catalog.core.logging_config import setup_logging
    from wine_catalog.services.seed_service import load_json_records, seed_catalog

    settings = Settings.from_env()
    setup_logging(settings.log_level)

    try:
        producer_records = load_json_records(producers)
        wine_records = load_json_records(wines)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if reset and not force and not typer.confirm("Delete all existing wines and producers?"):
        raise typer.Exit(0)

    with console.status("[bold blue]Seeding...[/bold blue]"):
        result = seed_catalog(
            _catalog_store(settings), producer_records, wine_records, reset=reset
        )

    table = Table(title="Seed Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    if reset:
        table.add_row("Wines deleted", str(result.wines_deleted))
        table.add_row("Producers deleted", str(result.producers_deleted))
    table.add_row("Producers created", str(result.producers_created))
    table.add_row("Wines created", str(result.wines_created))
    table.add_row("Records skipped", str(len(result.skipped)))
    console.print(table)

    for reason in result.skipped:
        rprint(f"  [yellow]•[/yellow] {reason}")


@app.command()
def version() -> None:
    """Show the Wine Catalog version."""
    typer.echo(f"Wine Catalog v{__version__}")


@app.command()
def check_config() -> None:
    """Check the current configuration status."""
    from wine_catalog.db.engine import get_database_url

    env_path: Optional[Path] = load_env_file()
    settings = Settings.from_env()

    typer.echo("Wine Catalog Configuration")
    typer.echo("=" * 40)
    typer.echo(f"  .env file: {env_path if env_path else 'Not found'}")
    typer.echo(f"  Database: {get_database_url(settings.database_url)}")
    typer.echo(f"  Log level: {settings.log_level}")
    typer.echo(f"  Token length: {settings.token_bytes * 2} hex chars")
    typer.echo(f"  Password hash iterations: {settings.password_hash_iterations}")


if __name__ == "__main__":
    app()
