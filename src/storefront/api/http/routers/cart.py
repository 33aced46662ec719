"""Server-side copy of the cart for signed-in shoppers."""

from typing import Any

from fastapi import APIRouter, Depends
from sqlmodel import Session

from src.storefront.api.http.deps import get_cart_service, get_current_user, get_db_session
from src.storefront.api.http.schemas.sales import CartItemIn, CartOut, CartSyncIn
from src.storefront.core.services.sales import CartService
from src.storefront.entities.core.user import User

router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def get_cart(
    user: User = Depends(get_current_user),
    cart: CartService = Depends(get_cart_service),
) -> CartOut:
    return CartOut.build(cart.view(user))


@router.post("/items", response_model=CartOut)
def add_item(
    body: CartItemIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    cart: CartService = Depends(get_cart_service),
) -> CartOut:
    view = cart.add(user, body.to_input())
    db.commit()
    return CartOut.build(view)


@router.patch("/items", response_model=CartOut)
def set_item_quantity(
    body: CartItemIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    cart: CartService = Depends(get_cart_service),
) -> CartOut:
    """Set a line's quantity; zero or less removes it."""
    view = cart.set_quantity(user, body.to_input())
    db.commit()
    return CartOut.build(view)


@router.delete("/items", response_model=CartOut)
def remove_item(
    body: CartItemIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    cart: CartService = Depends(get_cart_service),
) -> CartOut:
    view = cart.remove(user, body.to_input())
    db.commit()
    return CartOut.build(view)


@router.delete("")
def clear_cart(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    cart: CartService = Depends(get_cart_service),
) -> dict[str, Any]:
    cart.clear(user)
    db.commit()
    return {"success": True}


@router.post("/sync", response_model=CartOut)
def sync_cart(
    body: CartSyncIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    cart: CartService = Depends(get_cart_service),
) -> CartOut:
    view = cart.sync(user, [item.to_input() for item in body.items])
    db.commit()
    return CartOut.build(view)
