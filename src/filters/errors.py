"""Exceptions raised by the facet engine."""


class FilterError(Exception):
    """Base class for facet engine errors."""


class CategoryNotFoundError(FilterError):
    """The category identifier does not resolve to a known category."""

    def __init__(self, category: int | str, parent: str | None = None):
        self.category = category
        self.parent = parent
        where = f" under '{parent}'" if parent else ""
        super().__init__(f"Category '{category}'{where} not found")
