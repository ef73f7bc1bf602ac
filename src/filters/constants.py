"""Shared constants for facet computation."""

import re

# Composite characteristic values: "DDR4, DDR5" or "DDR4,DDR5"
COMPOSITE_SEPARATOR = re.compile(r",\s*")

VOCABULARY_SCOPES = ("category", "global")
MATCH_MODES = ("token", "exact")

# Product listing price order
SORT_ORDERS = ("asc", "desc")
