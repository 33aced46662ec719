"""Category tree endpoints and category product listings."""

from typing import Any

from fastapi import APIRouter, Depends
from sqlmodel import Session

from src.storefront.api.http.deps import get_category_service, get_db_session, require_admin
from src.storefront.api.http.schemas.catalog import (
    CategoryIn,
    CategoryNodeOut,
    CategoryOut,
    CategoryUpdateIn,
    CategoryWithCount,
    ProductCardOut,
    ReorderIn,
)
from src.storefront.core.services.catalog import CategoryService
from src.storefront.entities.core.user import User

router = APIRouter(prefix="/api", tags=["categories"])


@router.get("/categories")
def list_categories(
    categories: CategoryService = Depends(get_category_service),
) -> dict[str, Any]:
    return {
        "success": True,
        "data": [
            CategoryWithCount.build(category, count)
            for category, count in categories.list_with_counts()
        ],
    }


@router.post("/categories", status_code=201)
def create_category(
    body: CategoryIn,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    categories: CategoryService = Depends(get_category_service),
) -> dict[str, Any]:
    category = categories.create(
        name=body.name or "",
        description=body.description,
        image=body.image,
        is_active=body.is_active,
        parent_id=body.parent_id,
    )
    db.commit()
    return {"success": True, "data": CategoryOut.model_validate(category)}


@router.get("/categories/for-products")
def categories_for_products(
    categories: CategoryService = Depends(get_category_service),
) -> dict[str, Any]:
    """Active categories with their place in the tree, for the product form and filters."""
    nodes = [CategoryNodeOut.build(node) for node in categories.tree_nodes()]
    return {
        "data": nodes,
        "all": nodes,
        "byLevel": {
            f"level{level}": [node for node in nodes if node.level == level]
            for level in (1, 2, 3)
        },
    }


@router.get("/categories/header")
def header_categories(
    categories: CategoryService = Depends(get_category_service),
) -> list[dict]:
    return categories.header_tree()


@router.put("/categories/reorder")
def reorder_categories(
    body: ReorderIn,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    categories: CategoryService = Depends(get_category_service),
) -> dict[str, Any]:
    categories.reorder([(item.id, item.order) for item in body.category_orders])
    db.commit()
    return {"success": True}


@router.get("/categories/{category_id}")
def get_category(
    category_id: str,
    categories: CategoryService = Depends(get_category_service),
) -> dict[str, Any]:
    detail = categories.get_detail(category_id)
    return {
        "success": True,
        "data": {
            **CategoryOut.model_validate(detail.category).model_dump(by_alias=True),
            "children": [CategoryOut.model_validate(child) for child in detail.children],
            "products": [ProductCardOut.build(card) for card in detail.products],
            "productCount": detail.product_count,
        },
    }


@router.put("/categories/{category_id}")
def update_category(
    category_id: str,
    body: CategoryUpdateIn,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    categories: CategoryService = Depends(get_category_service),
) -> dict[str, Any]:
    category = categories.update(
        category_id,
        name=body.name or "",
        description=body.description,
        image=body.image,
        is_active=body.is_active,
        parent_id=body.parent_id,
        subcategories=body.subcategories,
    )
    db.commit()
    return {"success": True, "data": CategoryOut.model_validate(category)}


@router.delete("/categories/{category_id}")
def delete_category(
    category_id: str,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    categories: CategoryService = Depends(get_category_service),
) -> dict[str, Any]:
    categories.delete(category_id)
    db.commit()
    return {"success": True, "message": "Category deleted"}


@router.get("/category-products/{slug}")
def category_products(
    slug: str,
    categories: CategoryService = Depends(get_category_service),
) -> dict[str, Any]:
    name, cards = categories.products_for_slug(slug)
    return {
        "success": True,
        "products": [ProductCardOut.build(card) for card in cards],
        "categoryName": name,
    }
