"""
Audit Models for MyExpenses

Every mutation and every sync attempt is recorded as an audit event.
This provides:
1. Traceability of what reached local storage and what reached the remote
2. A visible trail for conditions that are handled but not raised
   (degraded startup loads, background sync failures)
3. Debugging information when local and remote drift apart

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from myexpenses.models.expense import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Mutations
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    EXPENSE_NOT_FOUND = "expense_not_found"

    # Local persistence
    COLLECTION_LOADED = "collection_loaded"
    LOAD_FAILED = "load_failed"
    RECORD_SKIPPED = "record_skipped"
    SAVE_FAILED = "save_failed"

    # Background sync
    SYNC_SUCCEEDED = "sync_succeeded"
    SYNC_FAILED = "sync_failed"
    SYNC_QUEUE_FULL = "sync_queue_full"
    SYNC_WORKER_ERROR = "sync_worker_error"
    RETRY_COMPLETED = "retry_completed"

    # Full sync
    FULL_SYNC_COMPLETED = "full_sync_completed"
    FULL_SYNC_FAILED = "full_sync_failed"
    REMOTE_UNAVAILABLE = "remote_unavailable"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which expense is this about?
    expense_id: Optional[str] = Field(
        default=None,
        description="ID of the expense this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "expense_id": self.expense_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_added(expense_id, amount, category)
        event = AuditEventBuilder.sync_failed("add", expense_id, error)
    """

    @staticmethod
    def expense_added(
        expense_id: str,
        amount: str,
        category: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            expense_id=expense_id,
            description=f"Expense added: {category} - {amount}",
            details={
                "amount": amount,
                "category": category,
            },
        )

    @staticmethod
    def expense_updated(
        expense_id: str,
        fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            expense_id=expense_id,
            description=f"Expense updated: {', '.join(fields) or 'no fields'}",
            details={
                "fields": fields,
            },
        )

    @staticmethod
    def expense_deleted(
        expense_id: str,
        removed: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            expense_id=expense_id,
            description=f"Expense deleted ({removed} record(s) removed)",
            details={
                "removed": removed,
            },
        )

    @staticmethod
    def expense_not_found(
        expense_id: str,
        operation: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_NOT_FOUND,
            severity=AuditSeverity.DEBUG,
            expense_id=expense_id,
            description=f"No expense to {operation}",
            details={
                "operation": operation,
            },
        )

    @staticmethod
    def collection_loaded(
        storage_key: str,
        count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COLLECTION_LOADED,
            description=f"Loaded {count} expense(s) from local storage",
            details={
                "storage_key": storage_key,
                "count": count,
            },
        )

    @staticmethod
    def load_failed(
        storage_key: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            description="Local collection unreadable, starting empty",
            error_message=error_message,
            details={
                "storage_key": storage_key,
            },
        )

    @staticmethod
    def record_skipped(
        index: int,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_SKIPPED,
            severity=AuditSeverity.WARNING,
            description=f"Skipped malformed stored record at position {index}",
            error_message=error_message,
            details={
                "index": index,
            },
        )

    @staticmethod
    def save_failed(
        operation: str,
        error_message: str,
        expense_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            expense_id=expense_id,
            description=f"Local save failed during {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
        )

    @staticmethod
    def sync_succeeded(
        operation: str,
        expense_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_SUCCEEDED,
            severity=AuditSeverity.DEBUG,
            expense_id=expense_id,
            description=f"Remote {operation} acknowledged",
            details={
                "operation": operation,
            },
        )

    @staticmethod
    def sync_failed(
        operation: str,
        expense_id: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_FAILED,
            severity=AuditSeverity.WARNING,
            expense_id=expense_id,
            description=f"Remote {operation} failed, queued for retry",
            error_message=error_message,
            details={
                "operation": operation,
            },
        )

    @staticmethod
    def sync_queue_full(
        operation: str,
        expense_id: str,
        capacity: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_QUEUE_FULL,
            severity=AuditSeverity.WARNING,
            expense_id=expense_id,
            description=f"Sync queue full, {operation} deferred to retry queue",
            details={
                "operation": operation,
                "capacity": capacity,
            },
        )

    @staticmethod
    def sync_worker_error(
        operation: str,
        expense_id: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_WORKER_ERROR,
            severity=AuditSeverity.ERROR,
            expense_id=expense_id,
            description=f"Sync worker error while handling {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
        )

    @staticmethod
    def retry_completed(
        success: int,
        failed: int,
        remaining: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RETRY_COMPLETED,
            severity=AuditSeverity.WARNING if failed else AuditSeverity.INFO,
            description=f"Retry pass: {success} succeeded, {failed} failed",
            details={
                "success": success,
                "failed": failed,
                "remaining": remaining,
            },
        )

    @staticmethod
    def full_sync_completed(
        local_count: int,
        remote_count: int,
        merged_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FULL_SYNC_COMPLETED,
            description=f"Full sync merged {merged_count} expense(s)",
            details={
                "local_count": local_count,
                "remote_count": remote_count,
                "merged_count": merged_count,
            },
        )

    @staticmethod
    def full_sync_failed(
        stage: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FULL_SYNC_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Full sync failed during {stage}",
            error_message=error_message,
            details={
                "stage": stage,
            },
        )

    @staticmethod
    def remote_unavailable(
        error_message: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMOTE_UNAVAILABLE,
            severity=AuditSeverity.WARNING,
            description="Remote store not reachable at startup",
            error_message=error_message,
        )
