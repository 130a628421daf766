"""Query and aggregation package."""

from myexpenses.queries.aggregations import (
    analyze,
    coerce_filters,
    list_expenses,
    matches,
    total_amount,
    totals_by_category,
)

__all__ = [
    "analyze",
    "coerce_filters",
    "list_expenses",
    "matches",
    "total_amount",
    "totals_by_category",
]
