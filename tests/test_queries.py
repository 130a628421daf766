"""Tests for listing, totalling and grouping expenses."""

import itertools
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from myexpenses.models.expense import Expense, ExpenseCategory, ExpenseFilters
from myexpenses.queries import (
    analyze,
    coerce_filters,
    list_expenses,
    total_amount,
    totals_by_category,
)


def make_expense(expense_id, amount, category, day):
    return Expense(
        id=expense_id,
        amount=amount,
        category=category,
        date=datetime(2024, 1, day, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def expenses():
    return [
        make_expense("a", "25.50", "Food & Dining", 5),
        make_expense("b", "50.00", "Transportation", 10),
        make_expense("c", "15.75", "Food & Dining", 20),
        make_expense("d", "120.00", "Shopping", 10),
        make_expense("e", "9.99", "Entertainment", 1),
    ]


FILTER_CASES = [
    ExpenseFilters(),
    ExpenseFilters(category="Food & Dining"),
    ExpenseFilters(start_date="2024-01-05"),
    ExpenseFilters(end_date="2024-01-10T12:00:00Z"),
    ExpenseFilters(category="Shopping", start_date="2024-01-01", end_date="2024-01-31"),
    ExpenseFilters(category="Travel"),
    ExpenseFilters(start_date="2024-02-01"),
]


class TestListExpenses:
    """Tests for filtered, sorted listing."""

    def test_sorted_newest_first(self, expenses):
        """Test that results are non-increasing by event date."""
        result = list_expenses(expenses)
        for newer, older in zip(result, result[1:]):
            assert newer.date >= older.date

    def test_ties_keep_collection_order(self, expenses):
        """Test that records sharing a date keep their input order."""
        ids = [e.id for e in list_expenses(expenses)]
        assert ids == ["c", "b", "d", "a", "e"]

    def test_category_filter(self, expenses):
        """Test exact category matching."""
        result = list_expenses(expenses, ExpenseFilters(category=ExpenseCategory.FOOD_AND_DINING))
        assert [e.id for e in result] == ["c", "a"]

    def test_date_bounds_are_inclusive(self, expenses):
        """Test that records exactly on a bound are included."""
        bound = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)
        result = list_expenses(expenses, ExpenseFilters(start_date=bound, end_date=bound))
        assert [e.id for e in result] == ["b", "d"]

    def test_returns_a_copy(self, expenses):
        """Test that the result is a new list."""
        result = list_expenses(expenses)
        result.clear()
        assert len(expenses) == 5


class TestAggregations:
    """Tests for totals and per-category sums."""

    def test_total(self, expenses):
        """Test the unfiltered total."""
        assert total_amount(expenses) == Decimal("221.24")

    def test_total_of_nothing_is_zero(self):
        """Test that an empty selection totals to zero."""
        assert total_amount([]) == Decimal("0")

    def test_by_category(self, expenses):
        """Test per-category sums."""
        totals = totals_by_category(expenses)
        assert totals["Food & Dining"] == Decimal("41.25")
        assert totals[ExpenseCategory.SHOPPING] == Decimal("120.00")
        assert ExpenseCategory.TRAVEL not in totals

    @pytest.mark.parametrize("filters", FILTER_CASES)
    def test_analysis_matches_separate_queries(self, expenses, filters):
        """Test that the one-pass analysis equals the three separate queries."""
        analysis = analyze(expenses, filters)
        assert analysis.total == total_amount(expenses, filters)
        assert analysis.by_category == totals_by_category(expenses, filters)
        assert analysis.expenses == list_expenses(expenses, filters)

    def test_analysis_on_every_input_order(self, expenses):
        """Test the analysis contract holds regardless of collection order."""
        for ordering in itertools.islice(itertools.permutations(expenses), 24):
            analysis = analyze(ordering)
            assert analysis.expenses == list_expenses(ordering)
            assert analysis.total == sum((e.amount for e in ordering), Decimal("0"))


class TestCoerceFilters:
    """Tests for filter input handling."""

    def test_from_mapping_with_camel_case(self):
        """Test that mappings with camelCase keys are accepted."""
        filters = coerce_filters({"category": "Travel", "startDate": "2024-01-01"})
        assert filters.category == ExpenseCategory.TRAVEL
        assert filters.start_date == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_from_keywords(self):
        """Test that keyword arguments are accepted."""
        filters = coerce_filters(category="Other")
        assert filters.category == ExpenseCategory.OTHER

    def test_model_with_keyword_override(self):
        """Test that keywords refine an existing filter model."""
        filters = coerce_filters(ExpenseFilters(category="Other"), end_date="2024-01-31")
        assert filters.category == ExpenseCategory.OTHER
        assert filters.end_date == datetime(2024, 1, 31, tzinfo=timezone.utc)

    def test_none_means_no_filter(self):
        """Test that no filters select everything."""
        assert coerce_filters(None) == ExpenseFilters()

    def test_rejects_unknown_filter(self):
        """Test that typos in filter names are reported."""
        with pytest.raises(ValueError):
            coerce_filters({"categroy": "Other"})
