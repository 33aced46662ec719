"""Storefront product listings and admin product management."""

from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from src.storefront.api.http.deps import get_db_session, get_product_service, require_admin
from src.storefront.api.http.schemas.catalog import (
    DeletedProductOut,
    ProductCardOut,
    ProductCreateIn,
    ProductDetailOut,
    ProductOut,
    ProductUpdateIn,
)
from src.storefront.api.http.schemas.common import Pagination
from src.storefront.core.services.catalog import Page, ProductService
from src.storefront.entities.catalog.product import ProductQuery
from src.storefront.entities.core.user import User
from src.storefront.runtime.context import get_config

router = APIRouter(prefix="/api", tags=["products"])

ADMIN_LIST_LIMIT = 50


def _page_size(limit: int | None, default: int) -> int:
    max_size = get_config().catalog.max_page_size
    return min(limit or default, max_size)


def _pagination(page: Page) -> Pagination:
    return Pagination(page=page.page, limit=page.limit, total=page.total, pages=page.pages)


@router.get("/products")
def list_products(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    category: str | None = None,
    search: str | None = None,
    min_price: float | None = Query(default=None, alias="minPrice"),
    max_price: float | None = Query(default=None, alias="maxPrice"),
    featured: bool = False,
    products: ProductService = Depends(get_product_service),
) -> dict[str, Any]:
    result = products.list_page(
        ProductQuery(
            text=search or None,
            category_slug=category or None,
            min_price=min_price,
            max_price=max_price,
            featured=True if featured else None,
        ),
        page=page,
        limit=_page_size(limit, get_config().catalog.page_size),
    )
    return {
        "success": True,
        "data": {
            "products": [ProductCardOut.build(card) for card in result.items],
            "pagination": _pagination(result),
        },
    }


@router.post("/products", status_code=201)
def create_product(
    body: ProductCreateIn,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    products: ProductService = Depends(get_product_service),
) -> dict[str, Any]:
    product = products.create(
        body.fields(),
        images=[image.to_input() for image in body.images],
        variants=[variant.to_input() for variant in body.variants],
    )
    db.commit()
    return {"success": True, "data": ProductDetailOut.build(products.get_detail(product.id))}


@router.get("/products/filters")
def product_filters(
    products: ProductService = Depends(get_product_service),
) -> dict[str, Any]:
    return products.filters()


@router.get("/products/search")
def search_products(
    search: str | None = None,
    category: str | None = None,
    min_price: float | None = Query(default=None, alias="minPrice"),
    max_price: float | None = Query(default=None, alias="maxPrice"),
    brand: str | None = None,
    material: str | None = None,
    season: str | None = None,
    gender: str | None = None,
    in_stock: bool = Query(default=False, alias="inStock"),
    on_sale: bool = Query(default=False, alias="onSale"),
    sort_by: Literal["price-asc", "price-desc", "name", "popular", "newest"] = Query(
        default="newest", alias="sortBy"
    ),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    products: ProductService = Depends(get_product_service),
) -> dict[str, Any]:
    result = products.list_page(
        ProductQuery(
            text=search or None,
            search_related=True,
            category_slug=category or None,
            min_price=min_price,
            max_price=max_price,
            brand=brand or None,
            material=material or None,
            season=season or None,
            gender=gender or None,
            in_stock=in_stock,
            on_sale=on_sale,
            sort=sort_by,
        ),
        page=page,
        limit=_page_size(limit, get_config().catalog.search_page_size),
    )
    return {
        "products": [ProductCardOut.build(card) for card in result.items],
        "pagination": _pagination(result),
    }


@router.get("/products/{product_id}", response_model=ProductDetailOut)
def get_product(
    product_id: str,
    products: ProductService = Depends(get_product_service),
) -> ProductDetailOut:
    return ProductDetailOut.build(products.get_detail(product_id))


@router.put("/products/{product_id}")
def update_product(
    product_id: str,
    body: ProductUpdateIn,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    products: ProductService = Depends(get_product_service),
) -> dict[str, Any]:
    products.update(
        product_id,
        body.changes(),
        images=None if body.images is None else [i.to_input() for i in body.images],
        variants=None if body.variants is None else [v.to_input() for v in body.variants],
    )
    db.commit()
    return {"success": True, "data": ProductDetailOut.build(products.get_detail(product_id))}


@router.delete("/products/{product_id}", response_model=DeletedProductOut)
def delete_product(
    product_id: str,
    force: bool = False,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    products: ProductService = Depends(get_product_service),
) -> DeletedProductOut:
    """Hard delete, or soft delete when delivered orders still reference the product."""
    outcome = products.delete(product_id, force=force)
    db.commit()
    return DeletedProductOut.build(outcome.product, outcome.soft)


@router.get("/colors")
def list_colors(products: ProductService = Depends(get_product_service)) -> dict[str, Any]:
    return {"data": products.colors()}


@router.get("/admin/products")
def admin_products(
    _: User = Depends(require_admin),
    products: ProductService = Depends(get_product_service),
) -> dict[str, Any]:
    cards = products.admin_list(limit=ADMIN_LIST_LIMIT)
    return {"products": [ProductCardOut.build(card) for card in cards]}


@router.get("/admin/products/deleted")
def deleted_products(
    _: User = Depends(require_admin),
    products: ProductService = Depends(get_product_service),
) -> dict[str, Any]:
    cards = products.admin_list(deleted=True)
    return {"products": [ProductCardOut.build(card) for card in cards]}


@router.post("/admin/products/{product_id}/restore")
def restore_product(
    product_id: str,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    products: ProductService = Depends(get_product_service),
) -> dict[str, Any]:
    product = products.restore(product_id)
    db.commit()
    return {"success": True, "product": ProductOut.model_validate(product)}
