"""Read-only catalog and characteristic schema queries."""

from collections.abc import Collection
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from src.db.models import (
    Category,
    CategoryFilterCharacteristic,
    CharacteristicType,
    Product,
    ProductCharacteristic,
)
from src.filters.errors import CategoryNotFoundError


@dataclass(frozen=True)
class ProductRow:
    id: int
    price: Decimal
    brand: str


@dataclass(frozen=True)
class CharacteristicTypeRow:
    id: int
    name: str
    slug: str
    position: int


@dataclass(frozen=True)
class ResolvedCategory:
    id: int
    slug: str
    name: str
    has_subcategories: bool


@dataclass(frozen=True)
class ListedProductRow:
    id: int
    slug: str
    name: str
    description: str | None
    price: Decimal
    brand: str


class CatalogStore:
    """Queries over products, characteristic assignments and category schema.

    Every method is a plain read; the session is owned by the caller.
    """

    def __init__(self, session: Session):
        self.session = session

    # Category resolution

    def get_category(self, category_id: int) -> Category | None:
        return self.session.get(Category, category_id)

    def has_subcategories(self, category_id: int) -> bool:
        stmt = select(exists().where(Category.parent_id == category_id))
        return bool(self.session.scalar(stmt))

    def resolve_category(
        self, slug: str, subcategory_slug: str | None = None
    ) -> ResolvedCategory:
        """Resolve a top-level category slug (and optional child slug).

        Raises:
            CategoryNotFoundError: If either slug does not resolve.
        """
        category = self.session.scalar(
            select(Category).where(Category.slug == slug, Category.parent_id.is_(None))
        )
        if category is None:
            raise CategoryNotFoundError(slug)

        if subcategory_slug:
            category = self.session.scalar(
                select(Category).where(
                    Category.slug == subcategory_slug,
                    Category.parent_id == category.id,
                )
            )
            if category is None:
                raise CategoryNotFoundError(subcategory_slug, parent=slug)

        return ResolvedCategory(
            id=category.id,
            slug=category.slug,
            name=category.name,
            has_subcategories=self.has_subcategories(category.id),
        )

    # Products

    def products_in_category(self, category_id: int) -> list[ProductRow]:
        return self.filter_products(category_id)

    def filter_products(
        self,
        category_id: int,
        price_min: Decimal | None = None,
        price_max: Decimal | None = None,
        brands: Collection[str] | None = None,
    ) -> list[ProductRow]:
        """Products of a category narrowed by price bounds and brand list."""
        stmt = select(Product.id, Product.price, Product.brand).where(
            Product.category_id == category_id
        )
        if price_min is not None and price_max is not None:
            stmt = stmt.where(Product.price.between(price_min, price_max))
        elif price_min is not None:
            stmt = stmt.where(Product.price >= price_min)
        elif price_max is not None:
            stmt = stmt.where(Product.price <= price_max)
        if brands:
            stmt = stmt.where(Product.brand.in_(list(brands)))
        stmt = stmt.order_by(Product.id)

        return [
            ProductRow(id=row.id, price=Decimal(row.price), brand=row.brand or "")
            for row in self.session.execute(stmt)
        ]

    def products_by_price(
        self,
        product_ids: Collection[int],
        descending: bool = False,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[ListedProductRow]:
        """One slice of ``product_ids`` ordered by price, ties by id."""
        if not product_ids:
            return []
        order = Product.price.desc() if descending else Product.price.asc()
        stmt = (
            select(
                Product.id,
                Product.slug,
                Product.name,
                Product.description,
                Product.price,
                Product.brand,
            )
            .where(Product.id.in_(list(product_ids)))
            .order_by(order, Product.id)
            .offset(offset)
            .limit(limit)
        )
        return [
            ListedProductRow(
                id=row.id,
                slug=row.slug,
                name=row.name,
                description=row.description,
                price=Decimal(row.price),
                brand=row.brand or "",
            )
            for row in self.session.execute(stmt)
        ]

    def characteristic_values(
        self, product_ids: Collection[int]
    ) -> list[tuple[int, str, str, str]]:
        """``(product_id, type_name, type_slug, raw_value)`` for the products."""
        if not product_ids:
            return []
        stmt = (
            select(
                ProductCharacteristic.product_id,
                CharacteristicType.name,
                CharacteristicType.slug,
                ProductCharacteristic.value,
            )
            .join(
                CharacteristicType,
                ProductCharacteristic.characteristic_type_id == CharacteristicType.id,
            )
            .where(ProductCharacteristic.product_id.in_(list(product_ids)))
            .order_by(ProductCharacteristic.product_id, ProductCharacteristic.id)
        )
        return [
            (row.product_id, row.name, row.slug, row.value)
            for row in self.session.execute(stmt)
        ]

    # Characteristic assignments

    def assignments(
        self,
        characteristic_type_id: int,
        product_ids: Collection[int] | None = None,
    ) -> list[tuple[int, str]]:
        """``(product_id, raw_value)`` pairs for a characteristic type.

        ``product_ids=None`` means no restriction; an empty collection
        matches nothing.
        """
        if product_ids is not None and not product_ids:
            return []
        stmt = select(
            ProductCharacteristic.product_id, ProductCharacteristic.value
        ).where(ProductCharacteristic.characteristic_type_id == characteristic_type_id)
        if product_ids is not None:
            stmt = stmt.where(ProductCharacteristic.product_id.in_(list(product_ids)))
        return [(row.product_id, row.value) for row in self.session.execute(stmt)]

    def all_values_ever_assigned(
        self,
        characteristic_type_id: int,
        product_ids: Collection[int] | None = None,
    ) -> list[str]:
        """Distinct raw values recorded for a type, sorted ascending.

        With ``product_ids`` the values are limited to those products, which
        is how a category-scoped vocabulary is built.
        """
        if product_ids is not None and not product_ids:
            return []
        stmt = (
            select(ProductCharacteristic.value)
            .where(
                ProductCharacteristic.characteristic_type_id == characteristic_type_id
            )
            .distinct()
            .order_by(ProductCharacteristic.value)
        )
        if product_ids is not None:
            stmt = stmt.where(ProductCharacteristic.product_id.in_(list(product_ids)))
        return list(self.session.scalars(stmt))

    def product_ids_with_values(
        self,
        characteristic_type_id: int,
        values: Collection[str],
        product_ids: Collection[int],
    ) -> set[int]:
        """Products whose raw stored value exactly equals one of ``values``."""
        if not values or not product_ids:
            return set()
        stmt = select(ProductCharacteristic.product_id).where(
            ProductCharacteristic.characteristic_type_id == characteristic_type_id,
            ProductCharacteristic.value.in_(list(values)),
            ProductCharacteristic.product_id.in_(list(product_ids)),
        )
        return set(self.session.scalars(stmt))

    # Characteristic schema

    def filterable_types_for_category(
        self, category_id: int
    ) -> list[CharacteristicTypeRow]:
        stmt = (
            select(
                CharacteristicType.id,
                CharacteristicType.name,
                CharacteristicType.slug,
                CategoryFilterCharacteristic.position,
            )
            .join(
                CategoryFilterCharacteristic,
                CategoryFilterCharacteristic.characteristic_type_id
                == CharacteristicType.id,
            )
            .where(CategoryFilterCharacteristic.category_id == category_id)
            .order_by(CategoryFilterCharacteristic.position, CharacteristicType.id)
        )
        return [
            CharacteristicTypeRow(
                id=row.id, name=row.name, slug=row.slug, position=row.position
            )
            for row in self.session.execute(stmt)
        ]

    def characteristic_type_id(self, slug: str) -> int | None:
        return self.session.scalar(
            select(CharacteristicType.id).where(CharacteristicType.slug == slug)
        )
