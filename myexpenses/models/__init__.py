"""
Data Models Package

This package contains all Pydantic models used by the MyExpenses engine.
All data flowing through the engine must conform to these schemas.
"""

from myexpenses.models.expense import (
    Currency,
    Expense,
    ExpenseAnalysis,
    ExpenseCategory,
    ExpenseFilters,
    ExpensePatch,
    PendingSyncEntry,
    RetryResult,
    SyncOperation,
    SyncState,
    SyncStatus,
    ensure_utc,
    generate_expense_id,
    serialize_expenses,
    utc_now,
)
from myexpenses.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "Currency",
    "Expense",
    "ExpenseAnalysis",
    "ExpenseCategory",
    "ExpenseFilters",
    "ExpensePatch",
    "PendingSyncEntry",
    "RetryResult",
    "SyncOperation",
    "SyncState",
    "SyncStatus",
    "ensure_utc",
    "generate_expense_id",
    "serialize_expenses",
    "utc_now",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
