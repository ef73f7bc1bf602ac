"""Category filter and product listing endpoints."""

import logging
import re
from collections.abc import Iterable
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.concurrency import run_in_threadpool
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.api.schemas import FacetResult, FilterSelection, ProductPage
from src.cache.client import FilterCache, filter_cache, invalidate_category_filters
from src.config import settings
from src.db.database import get_session
from src.filters.engine import DATA_ACCESS_ERRORS, FacetEngine
from src.filters.errors import CategoryNotFoundError
from src.filters.store import CatalogStore, ResolvedCategory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["filters"])

# Characteristic selections arrive as repeated char[<slug>]=<value> params
CHARACTERISTIC_PARAM = re.compile(r"^char\[(?P<slug>[^\]]+)\]$")


def parse_characteristic_params(
    items: Iterable[tuple[str, str]],
) -> dict[str, list[str]]:
    """Collect ``char[<slug>]`` query parameters into slug -> values.

    Empty values are ignored and duplicates collapsed, keeping first-seen order.
    """
    characteristics: dict[str, list[str]] = {}
    for key, value in items:
        match = CHARACTERISTIC_PARAM.match(key)
        if not match or not value:
            continue
        values = characteristics.setdefault(match.group("slug"), [])
        if value not in values:
            values.append(value)
    return characteristics


def build_filter_selection(
    price_min: Decimal | None,
    price_max: Decimal | None,
    brands: list[str] | None,
    characteristics: dict[str, list[str]] | None,
) -> FilterSelection | None:
    """Build a selection from request parameters, or None if nothing is set."""
    brands = list(dict.fromkeys(b for b in brands or [] if b)) or None
    characteristics = {
        slug: values for slug, values in (characteristics or {}).items() if values
    } or None

    selection = FilterSelection(
        price_min=price_min,
        price_max=price_max,
        brands=brands,
        characteristics=characteristics,
    )
    if selection.is_empty:
        return None
    return selection


def get_filter_cache() -> FilterCache:
    return filter_cache


def get_catalog_store(session: Session = Depends(get_session)) -> CatalogStore:
    return CatalogStore(session)


def _resolve(
    store: CatalogStore, category_slug: str, subcategory_slug: str | None
) -> ResolvedCategory | None:
    """Resolve the slugs, or None when the catalog cannot be read.

    Raises:
        CategoryNotFoundError: If either slug does not resolve.
    """
    try:
        category = store.resolve_category(category_slug, subcategory_slug)
    except DATA_ACCESS_ERRORS:
        logger.exception(
            "Category resolution failed",
            extra={"category": category_slug, "subcategory": subcategory_slug},
        )
        return None
    if category.has_subcategories:
        logger.debug(
            "Request for a parent category", extra={"category": category.slug}
        )
    return category


async def _category_filters(
    store: CatalogStore,
    cache: FilterCache,
    request: Request,
    category_slug: str,
    subcategory_slug: str | None,
    price_min: Decimal | None,
    price_max: Decimal | None,
    brand: list[str] | None,
) -> FacetResult:
    selection = build_filter_selection(
        price_min,
        price_max,
        brand,
        parse_characteristic_params(request.query_params.multi_items()),
    )

    def compute() -> FacetResult:
        category = _resolve(store, category_slug, subcategory_slug)
        if category is None:
            return FacetResult.empty()
        return FacetEngine(store, cache).get_filters(category.id, selection)

    try:
        return await run_in_threadpool(compute)
    except CategoryNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Category not found") from exc


async def _category_products(
    store: CatalogStore,
    cache: FilterCache,
    request: Request,
    category_slug: str,
    subcategory_slug: str | None,
    price_min: Decimal | None,
    price_max: Decimal | None,
    brand: list[str] | None,
    page: int,
    size: int,
    sort: str,
) -> ProductPage:
    selection = build_filter_selection(
        price_min,
        price_max,
        brand,
        parse_characteristic_params(request.query_params.multi_items()),
    )

    def compute() -> ProductPage:
        category = _resolve(store, category_slug, subcategory_slug)
        if category is None:
            return ProductPage.empty(size)
        return FacetEngine(store, cache).product_page(
            category.id, selection, page=page, size=size, sort_order=sort
        )

    try:
        return await run_in_threadpool(compute)
    except CategoryNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Category not found") from exc


@router.get(
    "/categories/{category_slug}/filters",
    response_model=FacetResult,
    summary="Get filter options for a category",
)
async def get_category_filters(
    request: Request,
    category_slug: str,
    price_min: Decimal | None = Query(
        None, alias="priceMin", ge=0, description="Minimum price (inclusive)"
    ),
    price_max: Decimal | None = Query(
        None, alias="priceMax", ge=0, description="Maximum price (inclusive)"
    ),
    brand: list[str] | None = Query(
        None, description="Selected brand(s). Can specify multiple."
    ),
    store: CatalogStore = Depends(get_catalog_store),
    cache: FilterCache = Depends(get_filter_cache),
) -> FacetResult:
    """
    Get the filter axes of a category with live option counts.

    - **No parameters**: baseline facets, served from cache
    - **priceMin / priceMax / brand / char[slug]**: facets recomputed over the
      matching products; values of one characteristic are OR-ed, dimensions
      are AND-ed

    Example: `?priceMin=15000&brand=AMD&char[socket]=AM5`
    """
    return await _category_filters(
        store, cache, request, category_slug, None, price_min, price_max, brand
    )


@router.get(
    "/categories/{category_slug}/{subcategory_slug}/filters",
    response_model=FacetResult,
    summary="Get filter options for a subcategory",
)
async def get_subcategory_filters(
    request: Request,
    category_slug: str,
    subcategory_slug: str,
    price_min: Decimal | None = Query(
        None, alias="priceMin", ge=0, description="Minimum price (inclusive)"
    ),
    price_max: Decimal | None = Query(
        None, alias="priceMax", ge=0, description="Maximum price (inclusive)"
    ),
    brand: list[str] | None = Query(
        None, description="Selected brand(s). Can specify multiple."
    ),
    store: CatalogStore = Depends(get_catalog_store),
    cache: FilterCache = Depends(get_filter_cache),
) -> FacetResult:
    """Same as the category endpoint, for a subcategory of ``category_slug``."""
    return await _category_filters(
        store,
        cache,
        request,
        category_slug,
        subcategory_slug,
        price_min,
        price_max,
        brand,
    )


@router.get(
    "/categories/{category_slug}/products",
    response_model=ProductPage,
    summary="List products of a category",
)
async def get_category_products(
    request: Request,
    category_slug: str,
    price_min: Decimal | None = Query(
        None, alias="priceMin", ge=0, description="Minimum price (inclusive)"
    ),
    price_max: Decimal | None = Query(
        None, alias="priceMax", ge=0, description="Maximum price (inclusive)"
    ),
    brand: list[str] | None = Query(
        None, description="Selected brand(s). Can specify multiple."
    ),
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    size: int = Query(
        settings.products_page_size,
        ge=1,
        le=100,
        description="Number of products per page (max 100)",
    ),
    sort: Literal["asc", "desc"] = Query("asc", description="Price sort order"),
    store: CatalogStore = Depends(get_catalog_store),
    cache: FilterCache = Depends(get_filter_cache),
) -> ProductPage:
    """
    List the products of a category matching the same filter parameters as
    the filters endpoint, sorted by price.

    Example: `?char[socket]=AM5&sort=desc&page=2`
    """
    return await _category_products(
        store,
        cache,
        request,
        category_slug,
        None,
        price_min,
        price_max,
        brand,
        page,
        size,
        sort,
    )


@router.get(
    "/categories/{category_slug}/{subcategory_slug}/products",
    response_model=ProductPage,
    summary="List products of a subcategory",
)
async def get_subcategory_products(
    request: Request,
    category_slug: str,
    subcategory_slug: str,
    price_min: Decimal | None = Query(
        None, alias="priceMin", ge=0, description="Minimum price (inclusive)"
    ),
    price_max: Decimal | None = Query(
        None, alias="priceMax", ge=0, description="Maximum price (inclusive)"
    ),
    brand: list[str] | None = Query(
        None, description="Selected brand(s). Can specify multiple."
    ),
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    size: int = Query(
        settings.products_page_size,
        ge=1,
        le=100,
        description="Number of products per page (max 100)",
    ),
    sort: Literal["asc", "desc"] = Query("asc", description="Price sort order"),
    store: CatalogStore = Depends(get_catalog_store),
    cache: FilterCache = Depends(get_filter_cache),
) -> ProductPage:
    """Same as the category listing, for a subcategory of ``category_slug``."""
    return await _category_products(
        store,
        cache,
        request,
        category_slug,
        subcategory_slug,
        price_min,
        price_max,
        brand,
        page,
        size,
        sort,
    )


@router.delete(
    "/categories/{category_slug}/filters/cache",
    status_code=204,
    summary="Drop cached filters of a category",
)
async def invalidate_filters(
    category_slug: str,
    subcategory: str | None = Query(None, description="Optional subcategory slug"),
    store: CatalogStore = Depends(get_catalog_store),
    cache: FilterCache = Depends(get_filter_cache),
) -> Response:
    """Remove the cached baseline so the next request recomputes it."""

    def drop() -> None:
        category = store.resolve_category(category_slug, subcategory)
        invalidate_category_filters(cache, category.id)

    try:
        await run_in_threadpool(drop)
    except CategoryNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Category not found") from exc
    except RedisError as exc:
        logger.exception("Cache invalidation failed")
        raise HTTPException(status_code=503, detail="Cache unavailable") from exc
    except SQLAlchemyError as exc:
        logger.exception("Category resolution failed")
        raise HTTPException(status_code=503, detail="Catalog unavailable") from exc
    return Response(status_code=204)
