"""
CLI Main - Typer-based command-line interface.

Usage:
    geodiscovery init
    geodiscovery load listings.json
    geodiscovery nearby 53.90 27.56 --radius 5 --category Кофейня
    geodiscovery map 53.85 53.95 27.45 27.65
    geodiscovery serve
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from geodiscovery.config import GeoDiscoveryError, QueryValidationError, Settings, get_settings
from geodiscovery.domains.search.models import BoundingBox

app = typer.Typer(
    name="geodiscovery",
    help="GeoDiscovery - Find and rank nearby establishments",
    add_completion=False,
)
console = Console()


@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Configure logging for all commands."""
    level = logging.DEBUG if verbose else get_settings().log_level.upper()
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


@app.command()
def init(
    db_path: Path | None = typer.Option(None, "--db", "-d", help="Database path"),
) -> None:
    """Create the catalog database schema."""
    asyncio.run(_init_async(db_path))


async def _init_async(db_path: Path | None) -> None:
    """Async initialization."""
    from geodiscovery.adapters.sqlite import SQLiteCatalogRepository

    path = db_path or get_settings().db_path
    repo = SQLiteCatalogRepository(path)
    try:
        await repo.initialize()
    finally:
        await repo.close()

    console.print("\n[green]Initialization complete![/green]")
    console.print(f"[dim]Catalog database: {path}[/dim]")


@app.command()
def load(
    source: Path = typer.Argument(..., help="JSON file with an array of listings"),
    db_path: Path | None = typer.Option(None, "--db", "-d", help="Database path"),
) -> None:
    """Load listings into the catalog database."""
    if not source.exists():
        console.print(f"[red]Error:[/red] File not found: {source}")
        raise typer.Exit(1)

    asyncio.run(_load_async(source, db_path))


async def _load_async(source: Path, db_path: Path | None) -> None:
    """Validate listings and upsert the in-region ones."""
    from geodiscovery.adapters.sqlite import SQLiteCatalogRepository
    from geodiscovery.domains.search import SearchableEntity

    settings = get_settings()
    try:
        records = json.loads(source.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        console.print(f"[red]Error:[/red] Invalid JSON in {source}: {e}")
        raise typer.Exit(1) from e
    if not isinstance(records, list):
        console.print("[red]Error:[/red] Expected a JSON array of listings")
        raise typer.Exit(1)

    region = _operating_region(settings)
    accepted: list[SearchableEntity] = []
    rejected: list[tuple[str, str]] = []
    for index, record in enumerate(records):
        label = str(record.get("id", f"#{index}")) if isinstance(record, dict) else f"#{index}"
        try:
            entity = SearchableEntity.model_validate(record)
        except ValidationError as e:
            rejected.append((label, f"{e.error_count()} validation error(s)"))
            continue
        if not region.contains(entity.location):
            rejected.append((label, "outside operating region"))
            continue
        accepted.append(entity)

    repo = SQLiteCatalogRepository(db_path or settings.db_path)
    try:
        await repo.initialize()
        written = await repo.upsert_many(accepted)
    except GeoDiscoveryError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)
    finally:
        await repo.close()

    console.print(f"\n[green]Loaded {written} listings[/green]")
    if rejected:
        table = Table(title=f"Rejected ({len(rejected)})")
        table.add_column("Listing", style="cyan")
        table.add_column("Reason", style="red")
        for label, reason in rejected:
            table.add_row(label, reason)
        console.print(table)


def _operating_region(settings: Settings) -> BoundingBox:
    return BoundingBox(
        min_lat=settings.region_min_lat,
        max_lat=settings.region_max_lat,
        min_lon=settings.region_min_lon,
        max_lon=settings.region_max_lon,
    )


@app.command()
def nearby(
    latitude: str = typer.Argument(..., help="Center latitude"),
    longitude: str = typer.Argument(..., help="Center longitude"),
    radius: str | None = typer.Option(None, "--radius", "-r", help="Radius in km"),
    category: list[str] = typer.Option([], "--category", "-c", help="Category (repeatable)"),
    cuisine: list[str] = typer.Option([], "--cuisine", "-k", help="Cuisine (repeatable)"),
    price: str | None = typer.Option(None, "--price", "-p", help="Price range ($, $$, $$$, $$$$)"),
    min_rating: str | None = typer.Option(None, "--min-rating", help="Minimum rating (1-5)"),
    limit: str | None = typer.Option(None, "--limit", "-n", help="Results per page"),
    offset: str | None = typer.Option(None, "--offset", help="Pagination offset"),
) -> None:
    """Search establishments around a point."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "radius": radius,
        "categories": ",".join(category) or None,
        "cuisines": ",".join(cuisine) or None,
        "priceRange": price,
        "minRating": min_rating,
        "limit": limit,
        "offset": offset,
    }
    asyncio.run(_search_async(params, radius_mode=True))


@app.command("map")
def map_search(
    min_lat: str = typer.Argument(..., help="Southwest latitude"),
    max_lat: str = typer.Argument(..., help="Northeast latitude"),
    min_lon: str = typer.Argument(..., help="Southwest longitude"),
    max_lon: str = typer.Argument(..., help="Northeast longitude"),
    category: list[str] = typer.Option([], "--category", "-c", help="Category (repeatable)"),
    cuisine: list[str] = typer.Option([], "--cuisine", "-k", help="Cuisine (repeatable)"),
    price: str | None = typer.Option(None, "--price", "-p", help="Price range ($, $$, $$$, $$$$)"),
    min_rating: str | None = typer.Option(None, "--min-rating", help="Minimum rating (1-5)"),
    limit: str | None = typer.Option(None, "--limit", "-n", help="Results limit"),
) -> None:
    """Search establishments inside a map viewport."""
    params = {
        "minLat": min_lat,
        "maxLat": max_lat,
        "minLon": min_lon,
        "maxLon": max_lon,
        "categories": ",".join(category) or None,
        "cuisines": ",".join(cuisine) or None,
        "priceRange": price,
        "minRating": min_rating,
        "limit": limit,
    }
    asyncio.run(_search_async(params, radius_mode=False))


async def _search_async(params: dict[str, str | None], radius_mode: bool) -> None:
    """Run a search against the local catalog and render it."""
    from geodiscovery.adapters.sqlite import SQLiteCatalogRepository
    from geodiscovery.domains.search import DiscoveryEngine, QueryNormalizer

    settings = get_settings()
    normalizer = QueryNormalizer(settings)
    repo = SQLiteCatalogRepository(settings.db_path)
    engine = DiscoveryEngine(repo, settings=settings)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Searching...", total=None)
            if radius_mode:
                envelope = await engine.search_radius(normalizer.normalize_radius(params))
            else:
                envelope = await engine.search_bounds(normalizer.normalize_bounds(params))
    except QueryValidationError as e:
        console.print("[red]Invalid search parameters:[/red]")
        for issue in e.issues:
            console.print(f"  [cyan]{issue.field}[/cyan]: {issue.reason} ({issue.value!r})")
        raise typer.Exit(2)
    except GeoDiscoveryError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)
    finally:
        await repo.close()

    data = envelope.data
    if not data.results:
        console.print(Panel("No establishments match this search.", style="yellow"))
        return

    table = Table(title="Search Results")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Categories")
    table.add_column("Price")
    table.add_column("Rating", justify="right")
    if radius_mode:
        table.add_column("Distance", justify="right", style="green")
    table.add_column("Score", justify="right", style="dim")

    for rank, item in enumerate(data.results, data.pagination.offset + 1):
        row = [
            str(rank),
            item.name + (" [magenta]*[/magenta]" if item.is_promoted else ""),
            ", ".join(item.categories),
            item.price_range or "-",
            f"{item.rating_display} ({item.review_count})",
        ]
        if radius_mode:
            row.append(f"{getattr(item, 'distance_km', 0.0):.2f} km")
        row.append(f"{item.score:.3f}")
        table.add_row(*row)

    console.print(table)
    p = data.pagination
    console.print(
        f"[dim]Showing {p.offset + 1}-{p.offset + len(data.results)} of {p.total}"
        + (" (more available)" if p.has_next else "")
        + "[/dim]"
    )


@app.command()
def health() -> None:
    """Check catalog readiness."""
    asyncio.run(_health_async())


async def _health_async() -> None:
    from geodiscovery.adapters.sqlite import SQLiteCatalogRepository
    from geodiscovery.domains.search import DiscoveryEngine

    settings = get_settings()
    repo = SQLiteCatalogRepository(settings.db_path)
    try:
        report = await DiscoveryEngine(repo, settings=settings).check_health()
    finally:
        await repo.close()

    catalog = report["catalog"]
    if report["healthy"]:
        console.print(
            f"[green]Catalog healthy[/green] "
            f"({catalog['visible_entities']} visible listings, {catalog['response_time_ms']} ms)"
        )
    else:
        console.print(f"[red]Catalog unhealthy:[/red] {catalog.get('error', 'no response')}")
        raise typer.Exit(1)


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind (default from settings)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind (default from settings)"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print("\n[green]Starting GeoDiscovery API server[/green]")
    console.print(f"[dim]http://{host}:{port}[/dim]\n")

    uvicorn.run(
        "geodiscovery.interfaces.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from geodiscovery import __version__

    console.print(f"GeoDiscovery v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
