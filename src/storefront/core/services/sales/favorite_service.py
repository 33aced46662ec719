from dataclasses import dataclass

from loguru import logger
from sqlmodel import Session

from src.storefront.core.errors import ConflictError, NotFoundError
from src.storefront.core.services.catalog.product_service import ProductCard, ProductService
from src.storefront.entities.catalog.product import ProductRepository
from src.storefront.entities.core.user import User
from src.storefront.entities.sales.favorite import Favorite, FavoriteRepository


@dataclass
class FavoriteView:
    favorite: Favorite
    card: ProductCard


class FavoriteService:
    def __init__(self, session: Session) -> None:
        self._favorites = FavoriteRepository(session)
        self._products = ProductRepository(session)
        self._catalog = ProductService(session)

    def list_for(self, user: User) -> list[FavoriteView]:
        favorites = self._favorites.list_for_user(user.id)
        products = self._products.get_many(f.product_id for f in favorites)
        cards = {
            card.product.id: card
            for card in self._catalog.build_cards(list(products.values()), with_images=True)
        }
        return [
            FavoriteView(favorite=f, card=cards[f.product_id])
            for f in favorites
            if f.product_id in cards
        ]

    def add(self, user: User, product_id: str | None) -> Favorite:
        if not product_id or self._products.get(product_id) is None:
            raise NotFoundError("Product not found")
        if self._favorites.get(user.id, product_id):
            raise ConflictError("Product already in favorites")
        return self._favorites.create(Favorite(user_id=user.id, product_id=product_id))

    def remove(self, user: User, product_id: str) -> None:
        if not self._favorites.delete(user.id, product_id):
            raise NotFoundError("Favorite not found")

    def sync(self, user: User, product_ids: list[str]) -> list[FavoriteView]:
        """Merge favorites kept in the browser into the stored list.

        Unknown products and ones already stored are skipped.
        """
        known = self._products.get_many(product_ids)
        added = 0
        for product_id in dict.fromkeys(product_ids):
            if product_id not in known or self._favorites.get(user.id, product_id):
                continue
            self._favorites.create(Favorite(user_id=user.id, product_id=product_id))
            added += 1
        if added:
            logger.info("Synced {} favorites for user {}", added, user.id)
        return self.list_for(user)
