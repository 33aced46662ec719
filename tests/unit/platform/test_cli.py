"""Unit tests for the storefront command line."""

from collections.abc import Iterator
from contextlib import contextmanager

import pytest
from sqlmodel import Session
from typer.testing import CliRunner

from src.storefront.cli import app, db_commands, store_commands
from src.storefront.entities.core.user import UserRepository, UserRole
from src.storefront.entities.sales.order import (
    Order,
    OrderItem,
    OrderRepository,
    OrderStatus,
)

runner = CliRunner()


class _SharedSessionService:
    """Hands the commands the test session instead of opening a new one."""

    def __init__(self, session: Session):
        self._session = session

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        yield self._session
        self._session.flush()


@pytest.fixture
def cli_session(monkeypatch: pytest.MonkeyPatch, session: Session) -> Session:
    for module in (db_commands, store_commands):
        monkeypatch.setattr(module, "DbSessionService", lambda: _SharedSessionService(session))
    return session


def invoke(*args: str):
    return runner.invoke(app, list(args), env={"COLUMNS": "200"})


class TestUsersCommands:
    """Test `users promote`."""

    def test_promote(self, cli_session: Session, customer):
        """The user is given the ADMIN role."""
        result = invoke("users", "promote", customer.clerk_id)

        assert result.exit_code == 0
        assert "Promoted ana@example.com to ADMIN" in result.output
        assert UserRepository(cli_session).get_by_clerk_id(customer.clerk_id).role == UserRole.ADMIN

    def test_promote_existing_admin(self, cli_session: Session, admin):
        """Promoting an admin again changes nothing."""
        result = invoke("users", "promote", admin.clerk_id)

        assert result.exit_code == 0
        assert "already an admin" in result.output

    def test_promote_unknown_user(self, cli_session: Session):
        """Unknown Clerk ids exit with an error."""
        result = invoke("users", "promote", "user_nobody")

        assert result.exit_code == 1
        assert "No user with Clerk id 'user_nobody'" in result.output


class TestStockCommands:
    """Test `stock check`."""

    def test_lists_low_variants(self, cli_session: Session, variant_product):
        """Variants at or below the threshold are reported."""
        result = invoke("stock", "check", "--threshold", "0")

        assert result.exit_code == 0
        assert "Variants with stock ≤ 0" in result.output
        assert "Vestido Midi" in result.output

    def test_uses_configured_threshold(self, cli_session: Session, product):
        """Without --threshold the catalog setting applies."""
        result = invoke("stock", "check")

        assert result.exit_code == 0
        assert "No variants at or below 3 units" in result.output


class TestOrdersCommands:
    """Test `orders list`."""

    @pytest.fixture
    def orders(self, cli_session: Session, customer, product) -> list[Order]:
        repo = OrderRepository(cli_session)
        return [
            repo.create(
                Order(
                    user_id=customer.id,
                    status=status,
                    subtotal=40,
                    total=45,
                    customer_first_name="Ana",
                    customer_last_name="Silva",
                    payment_method="stripe",
                ),
                [OrderItem(order_id="", product_id=product.id, quantity=1, price=40)],
            )
            for status in (OrderStatus.PENDING, OrderStatus.PAID)
        ]

    def test_lists_all_orders(self, orders: list[Order]):
        """Every order is listed with its total."""
        result = invoke("orders", "list")

        assert result.exit_code == 0
        assert "Found 2 orders" in result.output
        assert "€45.00" in result.output

    def test_filters_by_status(self, orders: list[Order]):
        """--status is case-insensitive and narrows the list."""
        result = invoke("orders", "list", "--status", "paid")

        assert result.exit_code == 0
        assert "Found 1 orders" in result.output

    def test_unknown_status(self, cli_session: Session):
        """Unknown statuses exit with the valid choices."""
        result = invoke("orders", "list", "--status", "lost")

        assert result.exit_code == 1
        assert "Unknown status 'lost'" in result.output

    def test_no_orders(self, cli_session: Session):
        """An empty store says so."""
        result = invoke("orders", "list")

        assert result.exit_code == 0
        assert "No orders found" in result.output


class TestSeedCommands:
    """Test `seed all`."""

    def test_seed_all_twice(self, cli_session: Session):
        """The second run adds nothing."""
        first = invoke("seed", "all")
        second = invoke("seed", "all")

        assert first.exit_code == 0
        assert "Sizes: 6 added" in first.output
        assert "Seasons: 0 added" in second.output
        assert "Categories: 0 added" in second.output
