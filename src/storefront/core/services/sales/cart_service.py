from dataclasses import dataclass, field

from loguru import logger
from sqlmodel import Session

from src.storefront.core.errors import NotFoundError, ValidationFailed
from src.storefront.entities.catalog.product import Product, ProductImage, ProductRepository
from src.storefront.entities.core.user import User
from src.storefront.entities.sales.cart import CartItem, CartRepository


@dataclass
class CartLine:
    item: CartItem
    product: Product
    image: ProductImage | None

    @property
    def line_total(self) -> float:
        return round(self.product.effective_price * self.item.quantity, 2)


@dataclass
class CartView:
    lines: list[CartLine] = field(default_factory=list)

    @property
    def total_items(self) -> int:
        return sum(line.item.quantity for line in self.lines)

    @property
    def total_price(self) -> float:
        return round(sum(line.line_total for line in self.lines), 2)


@dataclass
class CartInput:
    product_id: str
    quantity: int = 1
    size: str | None = None
    color: str | None = None


class CartService:
    """Server-side copy of a signed-in shopper's cart."""

    def __init__(self, session: Session) -> None:
        self._cart = CartRepository(session)
        self._products = ProductRepository(session)

    def view(self, user: User) -> CartView:
        items = self._cart.list_for_user(user.id)
        product_ids = {item.product_id for item in items}
        products = self._products.get_many(product_ids)
        images = self._products.first_images(product_ids)
        return CartView(
            lines=[
                CartLine(
                    item=item,
                    product=products[item.product_id],
                    image=images.get(item.product_id),
                )
                for item in items
                if item.product_id in products
            ]
        )

    def _sellable(self, product_id: str) -> Product | None:
        product = self._products.get(product_id)
        if product is None or not product.is_active or product.is_deleted:
            return None
        return product

    def add(self, user: User, line: CartInput) -> CartView:
        if line.quantity <= 0:
            raise ValidationFailed("Quantity must be greater than zero")
        if self._sellable(line.product_id) is None:
            raise NotFoundError("Product not found")
        self._cart.add(
            CartItem(
                user_id=user.id,
                product_id=line.product_id,
                size=line.size,
                color=line.color,
                quantity=line.quantity,
            )
        )
        return self.view(user)

    def set_quantity(self, user: User, line: CartInput) -> CartView:
        if self._cart.find(user.id, line.product_id, line.size, line.color) is None:
            raise NotFoundError("Cart item not found")
        self._cart.set_quantity(user.id, line.product_id, line.size, line.color, line.quantity)
        return self.view(user)

    def remove(self, user: User, line: CartInput) -> CartView:
        if not self._cart.remove(user.id, line.product_id, line.size, line.color):
            raise NotFoundError("Cart item not found")
        return self.view(user)

    def clear(self, user: User) -> None:
        removed = self._cart.clear(user.id)
        logger.debug("Cleared {} cart lines for user {}", removed, user.id)

    def sync(self, user: User, lines: list[CartInput]) -> CartView:
        """Merge a browser cart by summing quantities per (product, size, color)."""
        skipped = 0
        for line in lines:
            if line.quantity <= 0 or self._sellable(line.product_id) is None:
                skipped += 1
                continue
            self._cart.add(
                CartItem(
                    user_id=user.id,
                    product_id=line.product_id,
                    size=line.size,
                    color=line.color,
                    quantity=line.quantity,
                )
            )
        if skipped:
            logger.info("Cart sync for user {} skipped {} lines", user.id, skipped)
        return self.view(user)
