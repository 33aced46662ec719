"""Store operations: admin promotion, stock and order reports."""

import typer
from rich.console import Console
from rich.table import Table

from src.storefront.core.services import DbSessionService
from src.storefront.entities.catalog.product import ProductRepository
from src.storefront.entities.core.user import UserRepository, UserRole
from src.storefront.entities.sales.order import OrderRepository, OrderStatus
from src.storefront.runtime.context import get_config

console = Console()

users_app = typer.Typer(help="Manage store users")
stock_app = typer.Typer(help="Inspect product stock")
orders_app = typer.Typer(help="Inspect orders")


@users_app.command("promote")
def promote(
    clerk_id: str = typer.Argument(..., help="Clerk user id (user_...)"),
) -> None:
    """Give a user the ADMIN role."""
    with DbSessionService().session_scope() as session:
        repo = UserRepository(session)
        user = repo.get_by_clerk_id(clerk_id)
        if user is None:
            console.print(f"[red]❌ No user with Clerk id '{clerk_id}'[/red]")
            raise typer.Exit(code=1)
        if user.role == UserRole.ADMIN:
            console.print(f"[yellow]{user.email or clerk_id} is already an admin[/yellow]")
            return
        user.role = UserRole.ADMIN
        repo.update(user)

    console.print(f"[green]✅ Promoted {user.email or clerk_id} to ADMIN[/green]")


@stock_app.command("check")
def check_stock(
    threshold: int | None = typer.Option(
        None, "--threshold", "-t", help="Report variants at or below this stock"
    ),
) -> None:
    """List product variants that are running low."""
    limit = threshold if threshold is not None else get_config().catalog.low_stock_threshold
    with DbSessionService().session_scope() as session:
        rows = ProductRepository(session).low_stock_variants(limit)

    if not rows:
        console.print(f"[green]No variants at or below {limit} units[/green]")
        return

    table = Table(title=f"Variants with stock ≤ {limit}")
    table.add_column("Product", style="cyan")
    table.add_column("Size", style="magenta")
    table.add_column("Color", style="magenta")
    table.add_column("Stock", style="yellow", justify="right")
    for product, variant in rows:
        table.add_row(
            product.name,
            variant.size or "-",
            variant.color or "-",
            f"[red]{variant.stock}[/red]" if variant.stock == 0 else str(variant.stock),
        )
    console.print(table)


@orders_app.command("list")
def list_orders(
    status: str | None = typer.Option(None, "--status", "-s", help="Filter by status"),
    limit: int = typer.Option(50, "--limit", "-l", help="Maximum number of orders"),
) -> None:
    """Show the most recent orders."""
    if status:
        try:
            status = OrderStatus(status.upper()).value
        except ValueError:
            choices = ", ".join(s.value for s in OrderStatus)
            console.print(f"[red]❌ Unknown status '{status}' (use one of {choices})[/red]")
            raise typer.Exit(code=1) from None

    with DbSessionService().session_scope() as session:
        orders = OrderRepository(session).list_all(status=status, limit=limit)

    if not orders:
        console.print("[yellow]No orders found[/yellow]")
        return

    table = Table(title="Orders")
    table.add_column("ID", style="cyan")
    table.add_column("Created", style="white")
    table.add_column("Customer", style="green")
    table.add_column("Status", style="yellow")
    table.add_column("Payment", style="blue")
    table.add_column("Total", justify="right")
    for order in orders:
        customer = " ".join(
            part for part in (order.customer_first_name, order.customer_last_name) if part
        )
        table.add_row(
            order.id,
            order.created_at.strftime("%Y-%m-%d %H:%M"),
            customer or order.customer_email or "-",
            str(order.status),
            order.payment_method or "-",
            f"€{order.total:.2f}",
        )
    console.print(table)
    console.print(f"\n[green]Found {len(orders)} orders[/green]")
