"""
Core Data Models for MyExpenses

These models define the strict schemas for every expense flowing through
the engine. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Serialize to the same JSON layout on disk and on the wire

DESIGN DECISION: Expense records are frozen. A mutation never edits a record
in place; it builds a new, re-validated record. Snapshots handed to callers
can therefore never leak changes back into the engine's collection.
"""

import json
import secrets
import string
import time
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


_ID_ALPHABET = string.ascii_lowercase + string.digits


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def generate_expense_id() -> str:
    """
    Generate a client-side expense ID.

    Format: exp_<epoch milliseconds>_<9 random base36 chars>
    """
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"exp_{int(time.time() * 1000)}_{suffix}"


def ensure_utc(value: Any) -> Any:
    """
    Normalize a timestamp input to an aware UTC datetime.

    Accepts datetime, date, and ISO-8601 strings (date-only strings and a
    trailing 'Z' included). Naive values are interpreted as UTC so every
    timestamp in the system shares one total order. Anything else is
    passed through for pydantic to judge.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        return value

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _coerce_amount(value: Any) -> Any:
    # Go through str() so 25.1 becomes Decimal("25.1"), not its binary expansion
    if isinstance(value, float):
        return Decimal(str(value))
    return value


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    DESIGN DECISION: A closed set of categories rather than free text keeps
    the per-category aggregation reliable across devices.
    """
    FOOD_AND_DINING = "Food & Dining"
    TRANSPORTATION = "Transportation"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    BILLS_AND_UTILITIES = "Bills & Utilities"
    HEALTHCARE = "Healthcare"
    TRAVEL = "Travel"
    EDUCATION = "Education"
    PERSONAL = "Personal"
    OTHER = "Other"


class Currency(str, Enum):
    """ISO currency codes an expense may be recorded in."""
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    JPY = "JPY"
    CNY = "CNY"
    INR = "INR"

    @property
    def symbol(self) -> str:
        return _CURRENCY_DETAILS[self][0]

    @property
    def display_name(self) -> str:
        return _CURRENCY_DETAILS[self][1]


_CURRENCY_DETAILS = {
    Currency.USD: ("$", "US Dollar"),
    Currency.EUR: ("€", "Euro"),
    Currency.GBP: ("£", "British Pound"),
    Currency.JPY: ("¥", "Japanese Yen"),
    Currency.CNY: ("¥", "Chinese Yuan"),
    Currency.INR: ("₹", "Indian Rupee"),
}


class SyncStatus(str, Enum):
    """
    Per-record sync marker.

    NOTE: Informational only. Neither the merge nor the sync path reads or
    writes it; it is carried so a UI can surface it.
    """
    PENDING = "pending"
    SYNCED = "synced"
    CONFLICT = "conflict"


class SyncOperation(str, Enum):
    """Kind of remote operation a pending sync entry replays."""
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"


class SyncState(str, Enum):
    """
    Lifecycle of one background sync operation.

    QUEUED -> IN_FLIGHT -> SYNCED | FAILED
    FAILED -> QUEUED happens only on a manual retry pass.
    """
    QUEUED = "queued"
    IN_FLIGHT = "in_flight"
    SYNCED = "synced"
    FAILED = "failed"


# =============================================================================
# CORE EXPENSE MODEL
# =============================================================================

class Expense(BaseModel):
    """
    One expense entry.

    `date` is when the money was spent. `created_at`/`updated_at` are
    bookkeeping timestamps used by last-write-wins merging.
    """
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    # Identity
    id: str = Field(
        default_factory=generate_expense_id,
        min_length=1,
        max_length=100,
        description="Client-generated unique expense ID"
    )

    # Economic data
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount spent (must be positive)"
    )
    category: ExpenseCategory = Field(
        ...,
        description="Expense category"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Free-text note"
    )
    date: datetime = Field(
        default_factory=utc_now,
        description="When the expense happened"
    )
    currency: Currency = Field(
        default=Currency.USD,
        description="Currency the amount is recorded in"
    )

    # Bookkeeping
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the record was created"
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        description="Last mutation timestamp"
    )
    sync_status: SyncStatus = Field(
        default=SyncStatus.PENDING,
        description="Informational sync marker"
    )

    @field_validator('id', mode='before')
    @classmethod
    def generate_missing_id(cls, v: Any) -> Any:
        """Treat an explicit null or blank ID as absent."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return generate_expense_id()
        return v

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount(cls, v: Any) -> Any:
        return _coerce_amount(v)

    @field_validator('date', 'created_at', 'updated_at', mode='before')
    @classmethod
    def normalize_timestamps(cls, v: Any) -> Any:
        return ensure_utc(v)

    @model_validator(mode='after')
    def validate_timestamps(self) -> 'Expense':
        if self.updated_at < self.created_at:
            raise ValueError("updatedAt cannot be before createdAt")
        return self

    def to_json_dict(self) -> dict:
        """Convert to the camelCase JSON layout used for persistence."""
        return self.model_dump(mode="json", by_alias=True)


class ExpensePatch(BaseModel):
    """
    Fields a caller may change through an update.

    Identity and bookkeeping timestamps are absent; passing
    them (or any unknown field) is a validation error.
    """
    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    amount: Optional[Decimal] = Field(default=None, gt=0)
    category: Optional[ExpenseCategory] = None
    description: Optional[str] = Field(default=None, max_length=500)
    date: Optional[datetime] = None
    currency: Optional[Currency] = None
    sync_status: Optional[SyncStatus] = None

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount(cls, v: Any) -> Any:
        return _coerce_amount(v)

    @field_validator('date', mode='before')
    @classmethod
    def normalize_date(cls, v: Any) -> Any:
        return ensure_utc(v)

    def changes(self) -> dict[str, Any]:
        """Only the fields the caller actually supplied."""
        return self.model_dump(exclude_unset=True)


# =============================================================================
# QUERY MODELS
# =============================================================================

class ExpenseFilters(BaseModel):
    """
    Filters for listing and aggregating expenses.

    Date bounds are inclusive and compare against the event `date`.
    A date-only bound means midnight UTC of that day.
    """
    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    category: Optional[ExpenseCategory] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator('start_date', 'end_date', mode='before')
    @classmethod
    def normalize_bounds(cls, v: Any) -> Any:
        return ensure_utc(v)


class ExpenseAnalysis(BaseModel):
    """Combined result of listing, totalling and grouping in one pass."""

    total: Decimal = Field(
        default=Decimal("0"),
        description="Sum of all matching amounts"
    )
    by_category: dict[ExpenseCategory, Decimal] = Field(
        default_factory=dict,
        description="Summed amount per category"
    )
    expenses: list[Expense] = Field(
        default_factory=list,
        description="Matching expenses, newest event first"
    )


# =============================================================================
# SYNC MODELS
# =============================================================================

class PendingSyncEntry(BaseModel):
    """A remote operation that failed and waits for a manual retry."""

    operation: SyncOperation
    expense_id: str = Field(
        ...,
        min_length=1,
        description="ID of the expense the operation targets"
    )
    expense: Optional[Expense] = Field(
        default=None,
        description="Record to push (add/update only)"
    )
    enqueued_at: datetime = Field(
        default_factory=utc_now
    )
    attempts: int = Field(
        default=0,
        ge=0,
        description="How many retry passes replayed this entry"
    )

    @model_validator(mode='after')
    def validate_payload(self) -> 'PendingSyncEntry':
        if self.operation != SyncOperation.DELETE and self.expense is None:
            raise ValueError(f"{self.operation.value} entries need an expense payload")
        return self


class RetryResult(BaseModel):
    """Outcome of one manual retry pass over the pending sync queue."""

    success: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    remaining: int = Field(default=0, ge=0)


def serialize_expenses(expenses: Iterable[Expense]) -> str:
    """Serialize a whole collection as one JSON array."""
    return json.dumps([expense.to_json_dict() for expense in expenses])
