"""Main CLI application module."""

import typer

from .db_commands import db_app, seed_app
from .store_commands import orders_app, stock_app, users_app

# Create the main CLI application
app = typer.Typer(
    help="🛍️  Storefront CLI - database, seed data and store operations",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register command groups
app.add_typer(db_app, name="db")
app.add_typer(seed_app, name="seed")
app.add_typer(users_app, name="users")
app.add_typer(stock_app, name="stock")
app.add_typer(orders_app, name="orders")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
