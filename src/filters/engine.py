"""Faceted filter computation for category pages.

``FacetEngine.get_filters`` returns facets. Without a selection it returns the
category's baseline facets, served from the cache when possible. With a
selection it recomputes facets over the narrowed product set and never touches
the cache. ``FacetEngine.product_page`` lists the same narrowed product set.
"""

import logging
import math
from collections import Counter, defaultdict
from collections.abc import Iterable

from pydantic import ValidationError
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from src.api.schemas import (
    CharacteristicFacet,
    FacetResult,
    FilterOption,
    FilterSelection,
    PriceRange,
    ProductCharacteristicValue,
    ProductPage,
    ProductSummary,
)
from src.cache.client import FilterCache, filters_cache_key
from src.config import settings
from src.filters.aggregator import aggregate_values, build_vocabulary, split_composite
from src.filters.constants import MATCH_MODES, SORT_ORDERS, VOCABULARY_SCOPES
from src.filters.errors import CategoryNotFoundError
from src.filters.store import CatalogStore, ProductRow

logger = logging.getLogger(__name__)

# Failures that degrade a computation to the empty result instead of raising
DATA_ACCESS_ERRORS = (SQLAlchemyError, RedisError)


def price_range(products: Iterable[ProductRow]) -> PriceRange:
    prices = [p.price for p in products]
    if not prices:
        return PriceRange()
    return PriceRange(min=math.floor(min(prices)), max=math.ceil(max(prices)))


def brand_options(products: Iterable[ProductRow]) -> list[FilterOption]:
    """Count products per non-empty brand, most common first."""
    counts = Counter(p.brand for p in products if p.brand)
    options = [
        FilterOption(value=brand, label=brand, count=count)
        for brand, count in counts.items()
    ]
    return sorted(options, key=lambda option: -option.count)


class FacetEngine:
    """Computes baseline and narrowed facet results for a category."""

    def __init__(
        self,
        store: CatalogStore,
        cache: FilterCache,
        ttl: int = settings.filter_cache_ttl,
        vocabulary_scope: str = settings.filter_vocabulary_scope,
        match_mode: str = settings.filter_match_mode,
    ):
        if vocabulary_scope not in VOCABULARY_SCOPES:
            raise ValueError(f"Unknown vocabulary scope '{vocabulary_scope}'")
        if match_mode not in MATCH_MODES:
            raise ValueError(f"Unknown match mode '{match_mode}'")
        self.store = store
        self.cache = cache
        self.ttl = ttl
        self.vocabulary_scope = vocabulary_scope
        self.match_mode = match_mode

    def get_filters(
        self, category_id: int, selection: FilterSelection | None = None
    ) -> FacetResult:
        """Return the facets of a category, narrowed by ``selection`` if given.

        Raises:
            CategoryNotFoundError: If the category does not exist.
        """
        try:
            category = self.store.get_category(category_id)
        except DATA_ACCESS_ERRORS:
            logger.exception(
                "Category lookup failed", extra={"category_id": category_id}
            )
            return FacetResult.empty()
        if category is None:
            raise CategoryNotFoundError(category_id)

        if selection is None or selection.is_empty:
            return self.baseline(category_id)
        return self.narrowed(category_id, selection)

    def baseline(self, category_id: int) -> FacetResult:
        """Unfiltered facets of a category, cached for ``ttl`` seconds."""
        key = filters_cache_key(category_id)
        try:
            cached = self.cache.get(key)
            if cached is not None:
                try:
                    result = FacetResult.model_validate_json(cached)
                except ValidationError:
                    logger.warning(
                        "Discarding malformed cache entry", extra={"key": key}
                    )
                else:
                    logger.debug("Filter cache hit", extra={"key": key})
                    return result

            logger.debug("Filter cache miss", extra={"key": key})
            products = self.store.products_in_category(category_id)
            if not products:
                return FacetResult.empty()

            product_ids = {p.id for p in products}
            result = self._assemble(category_id, products, product_ids, product_ids)
            self.cache.set_with_ttl(key, result.model_dump_json().encode(), self.ttl)
        except DATA_ACCESS_ERRORS:
            logger.exception(
                "Baseline filter computation failed",
                extra={"category_id": category_id},
            )
            return FacetResult.empty()
        return result

    def narrowed(self, category_id: int, selection: FilterSelection) -> FacetResult:
        """Facets over the products matching ``selection``. Never cached."""
        try:
            products = self.matching_products(category_id, selection)
            if not products:
                return FacetResult.empty()

            candidate_ids = {p.id for p in products}
            category_ids = None
            if self.vocabulary_scope == "category":
                category_ids = {
                    p.id for p in self.store.products_in_category(category_id)
                }
            return self._assemble(category_id, products, candidate_ids, category_ids)
        except DATA_ACCESS_ERRORS:
            logger.exception(
                "Narrowed filter computation failed",
                extra={"category_id": category_id},
            )
            return FacetResult.empty()

    def matching_products(
        self, category_id: int, selection: FilterSelection | None = None
    ) -> list[ProductRow]:
        """Products of a category satisfying every dimension of ``selection``.

        Price and brand narrow the query; each characteristic then intersects
        the candidates in selection order. Results keep product id order.
        """
        if selection is None:
            return self.store.products_in_category(category_id)

        products = self.store.filter_products(
            category_id,
            price_min=selection.price_min,
            price_max=selection.price_max,
            brands=[b for b in selection.brands or [] if b] or None,
        )
        candidate_ids = {p.id for p in products}

        for slug, values in (selection.characteristics or {}).items():
            wanted = [v for v in dict.fromkeys(values) if v]
            if not wanted:
                continue
            if not candidate_ids:
                break
            candidate_ids &= self._matching_products(slug, wanted, candidate_ids)

        return [p for p in products if p.id in candidate_ids]

    def product_page(
        self,
        category_id: int,
        selection: FilterSelection | None = None,
        page: int = 1,
        size: int = settings.products_page_size,
        sort_order: str = "asc",
    ) -> ProductPage:
        """One price-sorted page of the products matching ``selection``.

        Pages past the end are clamped to the last page. Listings are never
        cached.

        Raises:
            CategoryNotFoundError: If the category does not exist.
        """
        if sort_order not in SORT_ORDERS:
            raise ValueError(f"Unknown sort order '{sort_order}'")
        if size < 1:
            raise ValueError("Page size must be positive")

        try:
            category = self.store.get_category(category_id)
        except DATA_ACCESS_ERRORS:
            logger.exception(
                "Category lookup failed", extra={"category_id": category_id}
            )
            return ProductPage.empty(size)
        if category is None:
            raise CategoryNotFoundError(category_id)

        try:
            product_ids = [p.id for p in self.matching_products(category_id, selection)]
            total_pages = max(1, math.ceil(len(product_ids) / size))
            page = min(max(1, page), total_pages)
            rows = self.store.products_by_price(
                product_ids,
                descending=sort_order == "desc",
                offset=(page - 1) * size,
                limit=size,
            )
            characteristics = defaultdict(list)
            for product_id, name, slug, value in self.store.characteristic_values(
                [row.id for row in rows]
            ):
                characteristics[product_id].append(
                    ProductCharacteristicValue(name=name, slug=slug, value=value)
                )
        except DATA_ACCESS_ERRORS:
            logger.exception(
                "Product listing failed", extra={"category_id": category_id}
            )
            return ProductPage.empty(size)

        return ProductPage(
            total_items=len(product_ids),
            total_pages=total_pages,
            page=page,
            size=size,
            products=[
                ProductSummary(
                    id=row.id,
                    slug=row.slug,
                    name=row.name,
                    description=row.description,
                    price=row.price,
                    brand=row.brand,
                    characteristics=characteristics[row.id],
                )
                for row in rows
            ],
        )

    def _matching_products(
        self, slug: str, values: list[str], candidate_ids: set[int]
    ) -> set[int]:
        type_id = self.store.characteristic_type_id(slug)
        if type_id is None:
            logger.debug("Unknown characteristic in selection", extra={"slug": slug})
            return set()

        if self.match_mode == "exact":
            return self.store.product_ids_with_values(type_id, values, candidate_ids)

        wanted = set(values)
        return {
            product_id
            for product_id, raw in self.store.assignments(type_id, candidate_ids)
            if wanted.intersection(split_composite(raw))
        }

    def _assemble(
        self,
        category_id: int,
        products: list[ProductRow],
        candidate_ids: set[int],
        category_ids: set[int] | None,
    ) -> FacetResult:
        """Build the result for ``products``.

        ``category_ids`` scopes the vocabulary to the category; in global
        scope every value ever assigned for a type is part of its axis.
        """
        vocabulary_ids = category_ids if self.vocabulary_scope == "category" else None

        characteristics = []
        for char_type in self.store.filterable_types_for_category(category_id):
            vocabulary = build_vocabulary(
                self.store.all_values_ever_assigned(char_type.id, vocabulary_ids)
            )
            if not vocabulary:
                continue
            options = aggregate_values(
                vocabulary, self.store.assignments(char_type.id, candidate_ids)
            )
            characteristics.append(
                CharacteristicFacet(
                    id=char_type.id,
                    name=char_type.name,
                    slug=char_type.slug,
                    options=options,
                )
            )

        return FacetResult(
            price_range=price_range(products),
            brands=brand_options(products),
            characteristics=characteristics,
        )
