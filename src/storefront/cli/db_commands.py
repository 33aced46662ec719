"""Database setup and seed commands."""

from collections.abc import Callable

import typer
from rich.console import Console
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from src.storefront.core.services import DbManageService, DbSessionService
from src.storefront.core.services.catalog import seed_categories, seed_seasons, seed_sizes

console = Console()

db_app = typer.Typer(help="Manage the database schema")
seed_app = typer.Typer(help="Load starter data (safe to run repeatedly)")


@db_app.command("init")
def init() -> None:
    """Create every table that does not exist yet."""
    try:
        service = DbManageService()
        service.create_all()
    except SQLAlchemyError as e:
        console.print(f"[red]❌ Failed to create tables: {e}[/red]")
        raise typer.Exit(code=1) from e

    console.print(f"[green]✅ Database ready ({len(service.table_names())} tables)[/green]")


def _run_seeds(seeds: list[tuple[str, Callable[[Session], int]]]) -> None:
    try:
        with DbSessionService().session_scope() as session:
            for label, seed in seeds:
                added = seed(session)
                console.print(f"[green]✅ {label}: {added} added[/green]")
    except SQLAlchemyError as e:
        console.print(f"[red]❌ Seeding failed: {e}[/red]")
        raise typer.Exit(code=1) from e


@seed_app.command("seasons")
def seasons() -> None:
    """Seed the season list."""
    _run_seeds([("Seasons", seed_seasons)])


@seed_app.command("sizes")
def sizes() -> None:
    """Seed the ordered size list (XS..XXL)."""
    _run_seeds([("Sizes", seed_sizes)])


@seed_app.command("categories")
def categories() -> None:
    """Seed the category tree."""
    _run_seeds([("Categories", seed_categories)])


@seed_app.command("all")
def seed_all() -> None:
    """Seed seasons, sizes and categories."""
    _run_seeds(
        [
            ("Seasons", seed_seasons),
            ("Sizes", seed_sizes),
            ("Categories", seed_categories),
        ]
    )
