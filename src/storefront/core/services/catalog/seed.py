"""Idempotent starter data: seasons, sizes and the category tree."""

from dataclasses import dataclass, field

from loguru import logger
from sqlmodel import Session

from src.storefront.entities.catalog.attribute import (
    Season,
    SeasonRepository,
    Size,
    SizeRepository,
)
from src.storefront.entities.catalog.category import Category, CategoryRepository

from .slug import slugify

SEASONS = ["Primavera", "Verão", "Outono", "Inverno", "Atemporal"]
SIZES = ["XS", "S", "M", "L", "XL", "XXL"]


@dataclass(frozen=True)
class CategorySeed:
    name: str
    description: str | None = None
    children: list["CategorySeed"] = field(default_factory=list)


def _leaves(*names: str) -> list[CategorySeed]:
    return [CategorySeed(name) for name in names]


CATEGORY_TREE = [
    CategorySeed(
        "Roupas",
        "Explore a nossa coleção completa de roupas para todos os momentos.",
        [
            CategorySeed(
                "Partes de Cima",
                "Blusas, camisas, tops e regatas para completar o seu look.",
                _leaves("Blusa", "Camisa", "Top", "Camiseta", "Regata"),
            ),
            CategorySeed(
                "Partes de Baixo",
                "Shorts, saias e calças para todos os estilos.",
                _leaves("Short", "Saia", "Calça", "Bermuda"),
            ),
        ],
    ),
    CategorySeed(
        "Vestidos",
        "O vestido perfeito para qualquer ocasião.",
        _leaves(
            "Vestido Casual",
            "Vestido Social",
            "Vestido de Festa",
            "Vestido Longo",
            "Vestido Curto",
        ),
    ),
    CategorySeed(
        "Conjuntos",
        "Conjuntos elegantes e coordenados.",
        _leaves("Conjunto Casual", "Conjunto Social", "Conjunto de Praia", "Conjunto Esportivo"),
    ),
    CategorySeed(
        "Moda Praia",
        "Biquínis, maiôs e saídas de praia.",
        _leaves("Biquíni", "Maiô", "Saída de Praia", "Canga"),
    ),
]


def seed_seasons(session: Session) -> int:
    """Create missing seasons; returns how many were added."""
    repo = SeasonRepository(session)
    added = 0
    for name in SEASONS:
        if repo.get_by_name(name) is None:
            repo.create(Season(name=name))
            added += 1
    logger.info("Seeded {} seasons", added)
    return added


def seed_sizes(session: Session) -> int:
    repo = SizeRepository(session)
    added = 0
    for position, name in enumerate(SIZES, start=1):
        if repo.get_by_name(name) is None:
            repo.create(Size(name=name, order=position))
            added += 1
    logger.info("Seeded {} sizes", added)
    return added


def seed_categories(session: Session, tree: list[CategorySeed] = CATEGORY_TREE) -> int:
    """Upsert the category tree by slug; existing rows keep their order and flags."""
    repo = CategoryRepository(session)
    added = 0

    def upsert(node: CategorySeed, parent_id: str | None) -> None:
        nonlocal added
        slug = slugify(node.name)
        category = repo.get_by_slug(slug)
        if category is None:
            category = repo.create(
                Category(
                    name=node.name,
                    slug=slug,
                    description=node.description,
                    parent_id=parent_id,
                    order=repo.max_order() + 1,
                )
            )
            added += 1
        elif category.parent_id != parent_id or category.name != node.name:
            category.name = node.name
            category.parent_id = parent_id
            category = repo.update(category)
        for child in node.children:
            upsert(child, category.id)

    for root in tree:
        upsert(root, None)
    logger.info("Seeded {} categories", added)
    return added
