"""Unit tests for API schemas."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.api.schemas import (
    CharacteristicFacet,
    FacetResult,
    FilterOption,
    FilterSelection,
    PriceRange,
)


@pytest.mark.unit
class TestFacetResult:
    """Tests for FacetResult schema."""

    def test_empty_result(self):
        """Test the canonical empty result."""
        result = FacetResult.empty()
        assert result.model_dump() == {
            "price_range": {"min": 0, "max": 0},
            "brands": [],
            "characteristics": [],
        }
        assert result.is_empty

    def test_non_empty_result(self):
        result = FacetResult(
            price_range=PriceRange(min=100, max=200),
            brands=[FilterOption(value="AMD", label="AMD", count=3)],
            characteristics=[
                CharacteristicFacet(
                    id=1,
                    name="Socket",
                    slug="socket",
                    options=[FilterOption(value="AM5", label="AM5", count=0)],
                )
            ],
        )
        assert not result.is_empty

    def test_json_round_trip(self):
        """Test serialization used for the cache."""
        result = FacetResult(
            price_range=PriceRange(min=1, max=2),
            brands=[FilterOption(value="A", label="A", count=1)],
        )
        assert FacetResult.model_validate_json(result.model_dump_json()) == result

    def test_negative_count_rejected(self):
        with pytest.raises(ValidationError):
            FilterOption(value="A", label="A", count=-1)


@pytest.mark.unit
class TestFilterSelection:
    """Tests for FilterSelection schema."""

    def test_default_is_empty(self):
        assert FilterSelection().is_empty

    def test_empty_lists_are_empty(self):
        selection = FilterSelection(brands=[], characteristics={"socket": []})
        assert selection.is_empty

    def test_price_bound_alone_narrows(self):
        assert not FilterSelection(price_max=Decimal("0")).is_empty

    def test_brand_narrows(self):
        assert not FilterSelection(brands=["AMD"]).is_empty

    def test_characteristic_narrows(self):
        assert not FilterSelection(characteristics={"socket": ["AM5"]}).is_empty

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            FilterSelection(price_min=Decimal("-1"))
