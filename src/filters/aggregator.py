"""Composite-aware value counting for characteristic axes."""

from collections import defaultdict
from collections.abc import Iterable

from src.api.schemas import FilterOption
from src.filters.constants import COMPOSITE_SEPARATOR


def split_composite(raw: str | None) -> list[str]:
    """Split a raw characteristic value into its tokens.

    A composite value such as ``"DDR4, DDR5"`` means the product satisfies
    every listed token. Tokens are trimmed and empty tokens are dropped, so
    ``"A,,B "`` yields ``["A", "B"]``.
    """
    if not raw:
        return []
    tokens = (token.strip() for token in COMPOSITE_SEPARATOR.split(raw))
    return [token for token in tokens if token]


def build_vocabulary(raw_values: Iterable[str]) -> list[str]:
    """Return the distinct tokens of ``raw_values`` in first-seen order."""
    vocabulary: dict[str, None] = {}
    for raw in raw_values:
        for token in split_composite(raw):
            vocabulary.setdefault(token, None)
    return list(vocabulary)


def count_tokens(assignments: Iterable[tuple[int, str]]) -> dict[str, set[int]]:
    """Map each token to the set of product IDs carrying it."""
    products_by_token: dict[str, set[int]] = defaultdict(set)
    for product_id, raw in assignments:
        for token in split_composite(raw):
            products_by_token[token].add(product_id)
    return products_by_token


def aggregate_values(
    vocabulary: list[str], assignments: Iterable[tuple[int, str]]
) -> list[FilterOption]:
    """Count distinct products per vocabulary token.

    Args:
        vocabulary: Every token that can legally occur on the axis. Each one
            yields an option, with count 0 if no assignment carries it.
        assignments: ``(product_id, raw_value)`` pairs already restricted to
            the candidate product set.

    Returns:
        Options sorted by count descending; ties keep vocabulary order.
        Tokens absent from the vocabulary are ignored.
    """
    products_by_token = count_tokens(assignments)
    options = [
        FilterOption(
            value=token,
            label=token,
            count=len(products_by_token.get(token, ())),
        )
        for token in vocabulary
    ]
    return sorted(options, key=lambda option: -option.count)
