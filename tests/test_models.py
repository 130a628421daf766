"""
Tests for MyExpenses models

Test strategy:
1. Unit tests for individual components (models, queries, merge)
2. Engine tests against in-memory storage and remote fakes
3. No real API calls in tests (use fakes)
"""

import re
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from myexpenses.models.expense import (
    Currency,
    Expense,
    ExpenseCategory,
    ExpenseFilters,
    ExpensePatch,
    PendingSyncEntry,
    SyncOperation,
    SyncStatus,
    generate_expense_id,
    serialize_expenses,
)
from myexpenses.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestExpenseModel:
    """Tests for the Expense model."""

    def test_expense_creation(self):
        """Test Expense model creation with defaults."""
        expense = Expense(
            amount=Decimal("25.50"),
            category=ExpenseCategory.FOOD_AND_DINING,
            description="Lunch at restaurant",
        )
        assert expense.amount == Decimal("25.50")
        assert expense.category == ExpenseCategory.FOOD_AND_DINING
        assert expense.currency == Currency.USD
        assert expense.sync_status == SyncStatus.PENDING
        assert expense.updated_at >= expense.created_at

    def test_generated_id_format(self):
        """Test that generated IDs follow exp_<millis>_<suffix>."""
        assert re.match(r"^exp_\d+_[a-z0-9]{9}$", generate_expense_id())

    def test_missing_id_is_generated(self):
        """Test that a null or blank id gets a generated one."""
        for raw_id in (None, "", "   "):
            expense = Expense(id=raw_id, amount="10", category="Other")
            assert expense.id.startswith("exp_")

    def test_generated_ids_are_unique(self):
        """Test that many generated IDs do not collide."""
        ids = {generate_expense_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_rejects_non_positive_amount(self):
        """Test that zero and negative amounts are rejected."""
        for amount in ("0", "-5.00"):
            with pytest.raises(ValueError):
                Expense(amount=amount, category=ExpenseCategory.OTHER)

    def test_rejects_unknown_category(self):
        """Test that categories outside the enumeration are rejected."""
        with pytest.raises(ValidationError):
            Expense(amount="5", category="Gambling")

    def test_rejects_unknown_currency(self):
        """Test that currencies outside the enumeration are rejected."""
        with pytest.raises(ValidationError):
            Expense(amount="5", category="Other", currency="XYZ")

    def test_float_amount_keeps_its_written_value(self):
        """Test that float amounts are converted without binary noise."""
        expense = Expense(amount=25.1, category="Other")
        assert expense.amount == Decimal("25.1")

    def test_amount_keeps_extra_decimal_places(self):
        """Test that amounts with more than two places are stored as given."""
        assert Expense(amount="12.345", category="Other").amount == Decimal("12.345")
        assert Expense(amount=12.345, category="Other").amount == Decimal("12.345")
        assert ExpensePatch(amount="0.125").changes() == {"amount": Decimal("0.125")}

    def test_date_only_string_means_utc_midnight(self):
        """Test that a date-only event date becomes midnight UTC."""
        expense = Expense(amount="5", category="Other", date="2024-01-15")
        assert expense.date == datetime(2024, 1, 15, tzinfo=timezone.utc)

    def test_date_object_is_accepted(self):
        """Test that a plain date becomes midnight UTC."""
        expense = Expense(amount="5", category="Other", date=date(2024, 3, 1))
        assert expense.date == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_zulu_and_naive_timestamps_are_utc(self):
        """Test that 'Z' suffixes and naive datetimes are read as UTC."""
        zulu = Expense(amount="5", category="Other", date="2024-01-15T10:30:00.000Z")
        naive = Expense(amount="5", category="Other", date=datetime(2024, 1, 15, 10, 30))
        assert zulu.date == naive.date
        assert naive.date.tzinfo is not None

    def test_updated_at_cannot_precede_created_at(self):
        """Test the bookkeeping timestamp invariant."""
        created = datetime(2024, 1, 2, tzinfo=timezone.utc)
        with pytest.raises(ValueError, match="updatedAt cannot be before createdAt"):
            Expense(
                amount="5",
                category="Other",
                created_at=created,
                updated_at=created - timedelta(seconds=1),
            )

    def test_expense_is_frozen(self):
        """Test that expenses cannot be modified in place."""
        expense = Expense(amount="5", category="Other")
        with pytest.raises(ValidationError):
            expense.amount = Decimal("6")

    def test_json_layout_uses_camel_case(self):
        """Test conversion to the persisted JSON layout."""
        expense = Expense(amount=Decimal("25.50"), category="Food & Dining")
        data = expense.to_json_dict()
        assert data["amount"] == "25.50"
        assert data["category"] == "Food & Dining"
        assert data["syncStatus"] == "pending"
        assert "createdAt" in data and "updatedAt" in data

    def test_json_round_trip(self):
        """Test that the persisted layout validates back to an equal expense."""
        expense = Expense(
            amount="15.75",
            category="Food & Dining",
            description="Coffee",
            date="2024-02-01T08:00:00Z",
            currency="EUR",
        )
        restored = Expense.model_validate(expense.to_json_dict())
        assert restored.model_dump() == expense.model_dump()

    def test_serialize_expenses_writes_one_array(self):
        """Test that a collection serializes as a single JSON array."""
        blob = serialize_expenses([
            Expense(amount="1", category="Other"),
            Expense(amount="2", category="Other"),
        ])
        assert blob.startswith("[") and blob.endswith("]")


class TestExpensePatch:
    """Tests for update patches."""

    def test_changes_only_include_supplied_fields(self):
        """Test that unset fields are not part of the change set."""
        patch = ExpensePatch(amount="30.00", description=None)
        assert patch.changes() == {"amount": Decimal("30.00"), "description": None}

    def test_rejects_identity_and_timestamps(self):
        """Test that id and bookkeeping timestamps cannot be patched."""
        for field in ("id", "created_at", "updatedAt"):
            with pytest.raises(ValidationError):
                ExpensePatch.model_validate({field: "x"})

    def test_accepts_camel_case_keys(self):
        """Test that camelCase keys from JSON clients are accepted."""
        patch = ExpensePatch.model_validate({"syncStatus": "synced"})
        assert patch.changes() == {"sync_status": SyncStatus.SYNCED}


class TestFiltersAndSyncModels:
    """Tests for filter and pending sync models."""

    def test_filters_accept_camel_case_bounds(self):
        """Test that startDate/endDate are accepted and normalized."""
        filters = ExpenseFilters.model_validate({"startDate": "2024-01-01", "endDate": "2024-01-31"})
        assert filters.start_date == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert filters.end_date == datetime(2024, 1, 31, tzinfo=timezone.utc)

    def test_pending_entry_requires_payload_for_add(self):
        """Test that add/update entries must carry the expense."""
        with pytest.raises(ValueError, match="need an expense payload"):
            PendingSyncEntry(operation=SyncOperation.ADD, expense_id="exp_1")

    def test_pending_entry_delete_needs_only_id(self):
        """Test that delete entries only need the ID."""
        entry = PendingSyncEntry(operation=SyncOperation.DELETE, expense_id="exp_1")
        assert entry.attempts == 0
        assert entry.expense is None


class TestEnums:
    """Tests for category and currency enums."""

    def test_all_categories_exist(self):
        """Test that expected categories exist."""
        expected = [
            "Food & Dining", "Transportation", "Shopping", "Entertainment",
            "Bills & Utilities", "Healthcare", "Travel", "Education",
            "Personal", "Other",
        ]
        assert [c.value for c in ExpenseCategory] == expected

    def test_currency_details(self):
        """Test currency symbols and names."""
        assert Currency.INR.symbol == "₹"
        assert Currency.GBP.display_name == "British Pound"
        assert len(list(Currency)) == 6


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            description="Test expense added",
        )
        assert event.event_type == AuditEventType.EXPENSE_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEventBuilder.expense_added("exp_1", "25.50", "Food & Dining")
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "expense_added"
        assert log_dict["expense_id"] == "exp_1"
        assert log_dict["details"]["amount"] == "25.50"

    def test_audit_event_builder_load_failed(self):
        """Test that degraded loads are recorded as warnings."""
        event = AuditEventBuilder.load_failed("myexpenses_data", "bad json")
        assert event.event_type == AuditEventType.LOAD_FAILED
        assert event.severity == AuditSeverity.WARNING
        assert event.error_message == "bad json"

    def test_audit_event_builder_retry_severity(self):
        """Test that a retry pass with failures is a warning."""
        assert AuditEventBuilder.retry_completed(1, 0, 0).severity == AuditSeverity.INFO
        assert AuditEventBuilder.retry_completed(1, 2, 2).severity == AuditSeverity.WARNING


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
