"""Signed-in shoppers' favorites."""

from typing import Any

from fastapi import APIRouter, Depends
from sqlmodel import Session

from src.storefront.api.http.deps import get_current_user, get_db_session, get_favorite_service
from src.storefront.api.http.schemas.sales import FavoriteIn, FavoriteOut, FavoriteSyncIn
from src.storefront.core.services.sales import FavoriteService
from src.storefront.entities.core.user import User

router = APIRouter(prefix="/api/favorites", tags=["favorites"])


@router.get("", response_model=list[FavoriteOut])
def list_favorites(
    user: User = Depends(get_current_user),
    favorites: FavoriteService = Depends(get_favorite_service),
) -> list[FavoriteOut]:
    return [FavoriteOut.build(view) for view in favorites.list_for(user)]


@router.post("", status_code=201)
def add_favorite(
    body: FavoriteIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    favorites: FavoriteService = Depends(get_favorite_service),
) -> dict[str, Any]:
    favorite = favorites.add(user, body.target_id)
    db.commit()
    return {"success": True, "id": favorite.id, "productId": favorite.product_id}


@router.post("/sync", response_model=list[FavoriteOut])
def sync_favorites(
    body: FavoriteSyncIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    favorites: FavoriteService = Depends(get_favorite_service),
) -> list[FavoriteOut]:
    views = favorites.sync(user, body.product_ids)
    db.commit()
    return [FavoriteOut.build(view) for view in views]


@router.delete("/{product_id}")
def remove_favorite(
    product_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    favorites: FavoriteService = Depends(get_favorite_service),
) -> dict[str, Any]:
    favorites.remove(user, product_id)
    db.commit()
    return {"success": True}
