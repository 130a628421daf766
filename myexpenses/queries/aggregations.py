"""
Query and Aggregation over Expense Snapshots

DESIGN DECISION: Queries are pure functions over a list of expenses.
The engine hands them a snapshot of its collection; nothing here can
mutate engine state, and everything here can be tested without storage.

Ordering contract: newest event date first. Python's sort is stable
(also with reverse=True), so records sharing a date keep their
collection order. The sort key is computed once per record.
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any, Optional, Union

from myexpenses.models.expense import (
    Expense,
    ExpenseAnalysis,
    ExpenseCategory,
    ExpenseFilters,
)


FilterInput = Union[ExpenseFilters, Mapping[str, Any], None]


def coerce_filters(filters: FilterInput = None, **kwargs: Any) -> ExpenseFilters:
    """
    Accept filters as a model, a mapping, or keyword arguments.

    Keys may use snake_case or camelCase (`start_date` or `startDate`).
    """
    if isinstance(filters, ExpenseFilters):
        if not kwargs:
            return filters
        data = filters.model_dump(exclude_unset=True)
    else:
        data = dict(filters or {})
    data.update(kwargs)
    return ExpenseFilters.model_validate(data)


def matches(expense: Expense, filters: ExpenseFilters) -> bool:
    """Check one expense against category and inclusive date bounds."""
    if filters.category is not None and expense.category != filters.category:
        return False
    if filters.start_date is not None and expense.date < filters.start_date:
        return False
    if filters.end_date is not None and expense.date > filters.end_date:
        return False
    return True


def list_expenses(
    expenses: Iterable[Expense],
    filters: Optional[ExpenseFilters] = None,
) -> list[Expense]:
    """Filter and sort by event date, newest first."""
    filters = filters or ExpenseFilters()
    selected = [expense for expense in expenses if matches(expense, filters)]
    selected.sort(key=lambda expense: expense.date, reverse=True)
    return selected


def total_amount(
    expenses: Iterable[Expense],
    filters: Optional[ExpenseFilters] = None,
) -> Decimal:
    """Sum of amounts over the filtered expenses."""
    return sum(
        (expense.amount for expense in list_expenses(expenses, filters)),
        Decimal("0"),
    )


def totals_by_category(
    expenses: Iterable[Expense],
    filters: Optional[ExpenseFilters] = None,
) -> dict[ExpenseCategory, Decimal]:
    """Summed amount per category over the filtered expenses."""
    totals: dict[ExpenseCategory, Decimal] = {}
    for expense in list_expenses(expenses, filters):
        totals[expense.category] = totals.get(expense.category, Decimal("0")) + expense.amount
    return totals


def analyze(
    expenses: Iterable[Expense],
    filters: Optional[ExpenseFilters] = None,
) -> ExpenseAnalysis:
    """
    List, total and group in one pass over the filtered expenses.

    Must stay observationally identical to calling list_expenses,
    total_amount and totals_by_category separately.
    """
    selected = list_expenses(expenses, filters)

    total = Decimal("0")
    by_category: dict[ExpenseCategory, Decimal] = {}
    for expense in selected:
        total += expense.amount
        by_category[expense.category] = by_category.get(expense.category, Decimal("0")) + expense.amount

    return ExpenseAnalysis(total=total, by_category=by_category, expenses=selected)
