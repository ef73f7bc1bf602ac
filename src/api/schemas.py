"""Pydantic schemas for API requests and responses."""

from decimal import Decimal

from pydantic import BaseModel, Field


class FilterOption(BaseModel):
    """A single selectable facet value with its live count."""

    value: str = Field(
        ...,
        description="Facet value as used in filter requests",
        json_schema_extra={"example": "DDR5"},
    )
    label: str = Field(
        ...,
        description="Human-readable label (currently identical to value)",
        json_schema_extra={"example": "DDR5"},
    )
    count: int = Field(
        ...,
        ge=0,
        description="Number of matching products carrying this value",
        json_schema_extra={"example": 12},
    )


class PriceRange(BaseModel):
    """Observed price bounds over the matching product set."""

    min: int = Field(0, description="Floor of the lowest price")
    max: int = Field(0, description="Ceiling of the highest price")


class CharacteristicFacet(BaseModel):
    """One characteristic axis with its option list."""

    id: int = Field(..., description="Characteristic type ID")
    name: str = Field(
        ...,
        description="Display name",
        json_schema_extra={"example": "Memory type"},
    )
    slug: str = Field(
        ...,
        description="Stable key used in filter requests",
        json_schema_extra={"example": "memory-type"},
    )
    options: list[FilterOption] = Field(
        default=[], description="Values sorted by count descending"
    )


class FacetResult(BaseModel):
    """Filter axes available for a category, with live counts."""

    price_range: PriceRange = Field(
        default_factory=PriceRange, description="Price bounds of matching products"
    )
    brands: list[FilterOption] = Field(
        default=[], description="Brands with product counts"
    )
    characteristics: list[CharacteristicFacet] = Field(
        default=[], description="Characteristic axes ordered by position"
    )

    @classmethod
    def empty(cls) -> "FacetResult":
        """Canonical "no matching products" result."""
        return cls()

    @property
    def is_empty(self) -> bool:
        return (
            self.price_range.min == 0
            and self.price_range.max == 0
            and not self.brands
            and not self.characteristics
        )


class FilterSelection(BaseModel):
    """Partially-applied filter selection supplied by the caller.

    Every dimension is optional. Brands are OR-ed together, values within a
    single characteristic are OR-ed together, and dimensions are AND-ed.
    """

    price_min: Decimal | None = Field(
        None, ge=0, description="Minimum price (inclusive)"
    )
    price_max: Decimal | None = Field(
        None, ge=0, description="Maximum price (inclusive)"
    )
    brands: list[str] | None = Field(None, description="Selected brand names")
    characteristics: dict[str, list[str]] | None = Field(
        None,
        description="Characteristic slug to selected token values",
        json_schema_extra={"example": {"memory-type": ["DDR5"]}},
    )

    @property
    def is_empty(self) -> bool:
        """True when no dimension narrows the catalog."""
        if self.price_min is not None or self.price_max is not None:
            return False
        if self.brands:
            return False
        return not any(values for values in (self.characteristics or {}).values())


class ProductCharacteristicValue(BaseModel):
    """A characteristic as stored on a product."""

    name: str = Field(..., description="Characteristic display name")
    slug: str = Field(..., description="Characteristic slug")
    value: str = Field(
        ...,
        description="Raw stored value, possibly composite",
        json_schema_extra={"example": "DDR4, DDR5"},
    )


class ProductSummary(BaseModel):
    """Product in a category listing."""

    id: int = Field(..., description="Product ID")
    slug: str = Field(
        ...,
        description="Unique product slug",
        json_schema_extra={"example": "ryzen-5-7600"},
    )
    name: str = Field(
        ...,
        description="Product name",
        json_schema_extra={"example": "AMD Ryzen 5 7600"},
    )
    description: str | None = Field(None, description="Product description")
    price: Decimal = Field(
        ..., description="Product price", json_schema_extra={"example": 20999.9}
    )
    brand: str = Field("", description="Brand name, empty when unknown")
    characteristics: list[ProductCharacteristicValue] = Field(
        default=[], description="Characteristic values of the product"
    )


class ProductPage(BaseModel):
    """One page of a filtered, price-sorted category listing."""

    total_items: int = Field(
        ...,
        description="Total number of matching products",
        json_schema_extra={"example": 57},
    )
    total_pages: int = Field(
        ..., description="Number of pages, at least 1", json_schema_extra={"example": 2}
    )
    page: int = Field(
        ..., description="Current page number", json_schema_extra={"example": 1}
    )
    size: int = Field(
        ..., description="Number of results per page", json_schema_extra={"example": 30}
    )
    products: list[ProductSummary] = Field(
        default=[], description="Products on this page"
    )

    @classmethod
    def empty(cls, size: int) -> "ProductPage":
        return cls(total_items=0, total_pages=1, page=1, size=size)
