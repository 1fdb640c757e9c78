"""Product catalog CLI commands."""

from pathlib import Path
from typing import get_args

import typer
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from src.pharmacat.catalog import CatalogReference
from src.pharmacat.core.errors import CatalogError
from src.pharmacat.presentation import filter_products
from src.pharmacat.runtime.config.config_data import StoreBackend
from src.pharmacat.runtime.context import get_config
from src.pharmacat.stores import RecordStore, build_record_store

console = Console()

products_app = typer.Typer(
    help="💊 Pharmacy product catalog - web server and maintenance commands",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def open_store(backend: str | None = None) -> RecordStore:
    """Open the configured record store, optionally overriding the backend."""
    if backend is not None and backend not in get_args(StoreBackend):
        console.print(f"[red]❌ Unknown backend '{backend}'[/red]")
        raise typer.Exit(code=1)
    config = get_config()
    storage = config.storage
    if backend is not None:
        storage = storage.model_copy(update={"backend": backend})
    try:
        catalog = CatalogReference.from_csv(Path(config.catalog.reference_file))
        return build_record_store(storage, catalog)
    except CatalogError as e:
        console.print(f"[red]❌ Failed to open record store: {e.message}[/red]")
        raise typer.Exit(code=1) from e


BackendOption = typer.Option(
    None, "--backend", "-b", help="Record store backend (sqlite, embedded, csv, remote)"
)


@products_app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the web application with uvicorn."""
    import uvicorn

    config = get_config()
    bind_host = host or config.app.host
    bind_port = port or config.app.port
    console.print(
        f"[blue]🚀 Serving {config.ui.title} on http://{bind_host}:{bind_port} "
        f"({config.storage.backend} store)[/blue]"
    )
    uvicorn.run(
        "src.pharmacat.api.http.app:app",
        host=bind_host,
        port=bind_port,
        reload=reload,
        access_log=False,
    )


@products_app.command("init-db")
def init_db() -> None:
    """Create the SQLite database file and its products table."""
    store = open_store("sqlite")
    try:
        count = len(store.list())
    except CatalogError as e:
        console.print(f"[red]❌ Failed to initialise database: {e.message}[/red]")
        raise typer.Exit(code=1) from e
    finally:
        store.close()
    console.print(
        f"[green]✅ Database ready at {get_config().storage.db_path} ({count} products)[/green]"
    )


@products_app.command("list")
def list_products(
    search: str = typer.Option("", "--search", "-s", help="Filter by brand, generic name or dosage form"),
    limit: int = typer.Option(50, "--limit", "-l", help="Maximum number of products to show"),
    backend: str | None = BackendOption,
) -> None:
    """List products, newest first."""
    store = open_store(backend)
    try:
        products = filter_products(store.list(), search)
    except CatalogError as e:
        console.print(f"[red]❌ Failed to list products: {e.message}[/red]")
        raise typer.Exit(code=1) from e
    finally:
        store.close()

    if not products:
        console.print("[yellow]No products found[/yellow]")
        return

    table = Table(title="Products")
    table.add_column("Code", style="cyan")
    table.add_column("Brand", style="green")
    table.add_column("Generic Name", style="blue")
    table.add_column("Dosage Form", style="magenta")
    table.add_column("Price", style="yellow", justify="right")
    for product in products[:limit]:
        table.add_row(
            product.code,
            product.brand,
            product.generic_name,
            product.dosage_form,
            product.price_display,
        )

    console.print(table)
    console.print(f"\n[green]Found {len(products)} products[/green]")


@products_app.command("export-csv")
def export_csv(
    output: Path = typer.Argument(Path("products_export.csv"), help="Destination file"),
    backend: str | None = BackendOption,
) -> None:
    """Write every product to a CSV file."""
    store = open_store(backend)
    try:
        output.write_bytes(store.export_csv())
    except CatalogError as e:
        console.print(f"[red]❌ Failed to export products: {e.message}[/red]")
        raise typer.Exit(code=1) from e
    finally:
        store.close()
    console.print(f"[green]✅ Products exported to {output}[/green]")


@products_app.command("import-csv")
def import_csv(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV file to import"),
    backend: str | None = BackendOption,
) -> None:
    """Create one product per valid row of a CSV file."""
    store = open_store(backend)
    try:
        report = store.import_csv(source.read_bytes())
    except CatalogError as e:
        console.print(f"[red]❌ Failed to import products: {e.message}[/red]")
        raise typer.Exit(code=1) from e
    finally:
        store.close()

    console.print(f"[green]✅ Imported {report.created_count} products[/green]")
    for line_number, fields in report.skipped.items():
        problems = "; ".join(fields.values())
        console.print(f"[yellow]⚠️  Skipped line {line_number}: {problems}[/yellow]")


@products_app.command("clear")
def clear(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
    backend: str | None = BackendOption,
) -> None:
    """Delete every product."""
    if not force and not Confirm.ask(
        "Are you sure you want to delete ALL products? This action cannot be undone."
    ):
        console.print("[yellow]Cancelled[/yellow]")
        return

    store = open_store(backend)
    try:
        removed = store.clear()
    except CatalogError as e:
        console.print(f"[red]❌ Failed to clear products: {e.message}[/red]")
        raise typer.Exit(code=1) from e
    finally:
        store.close()
    console.print(f"[green]✅ Cleared {removed} products[/green]")
