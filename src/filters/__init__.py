"""Faceted filtering for category pages."""

from src.filters.engine import FacetEngine
from src.filters.errors import CategoryNotFoundError, FilterError
from src.filters.store import CatalogStore

__all__ = ["CatalogStore", "CategoryNotFoundError", "FacetEngine", "FilterError"]
