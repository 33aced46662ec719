"""Season and size lists used by the product form."""

from typing import Any

from fastapi import APIRouter, Depends
from sqlmodel import Session

from src.storefront.api.http.deps import get_attribute_service, get_db_session, require_admin
from src.storefront.api.http.schemas.catalog import NamedOut, NameIn, SizeOut
from src.storefront.core.services.catalog import AttributeService
from src.storefront.entities.core.user import User

router = APIRouter(prefix="/api", tags=["attributes"])


@router.get("/seasons")
def list_seasons(attributes: AttributeService = Depends(get_attribute_service)) -> dict[str, Any]:
    return {
        "success": True,
        "data": [NamedOut.model_validate(season) for season in attributes.list_seasons()],
    }


@router.post("/seasons", status_code=201)
def add_season(
    body: NameIn,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    attributes: AttributeService = Depends(get_attribute_service),
) -> dict[str, Any]:
    season = attributes.add_season(body.name)
    db.commit()
    return {"success": True, "data": NamedOut.model_validate(season)}


@router.delete("/seasons")
def delete_season(
    name: str | None = None,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    attributes: AttributeService = Depends(get_attribute_service),
) -> dict[str, Any]:
    attributes.delete_season(name)
    db.commit()
    return {"success": True}


@router.get("/sizes")
def list_sizes(attributes: AttributeService = Depends(get_attribute_service)) -> dict[str, Any]:
    return {
        "success": True,
        "data": [SizeOut.model_validate(size) for size in attributes.list_sizes()],
    }


@router.post("/sizes", status_code=201)
def add_size(
    body: NameIn,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    attributes: AttributeService = Depends(get_attribute_service),
) -> dict[str, Any]:
    size = attributes.add_size(body.name)
    db.commit()
    return {"success": True, "data": SizeOut.model_validate(size)}


@router.delete("/sizes")
def delete_size(
    name: str | None = None,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    attributes: AttributeService = Depends(get_attribute_service),
) -> dict[str, Any]:
    attributes.delete_size(name)
    db.commit()
    return {"success": True}
