"""
Expense Manager

The mutation, query and sync engine that UI layers call.

Flow of a mutation:
1. Build the new collection from the current one (under the mutation lock)
2. Persist the whole collection to local storage and wait for it
3. Adopt the new collection in memory
4. Hand the remote push to the sync coordinator without waiting

If step 2 fails, StorageError propagates and the in-memory collection is
untouched. Step 4 can never fail the mutation.

Flow of a full sync:
1. Fetch the remote snapshot (no lock held)
2. Merge it with the current local snapshot, last write wins
3. Persist and adopt the merged snapshot (under the lock)
4. Push the merged snapshot upstream (no lock held)

KNOWN RISK: steps 3 and 4 are not atomic. If the push fails, local storage
has already moved to the merged state while the remote has not. The next
successful sync_all converges them again; there is no rollback.

CONCURRENCY: one instance owns its collection. Mutations and the adopt
step of a full sync are serialized by one asyncio.Lock. Two instances
pointed at the same storage key are not coordinated and will overwrite
each other's writes.
"""

import asyncio
import json
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import ValidationError

from myexpenses.audit import AuditLogger
from myexpenses.config import DEFAULT_STORAGE_KEY
from myexpenses.models.audit import AuditEventBuilder
from myexpenses.models.expense import (
    Expense,
    ExpenseAnalysis,
    ExpenseCategory,
    ExpensePatch,
    PendingSyncEntry,
    RetryResult,
    SyncOperation,
    serialize_expenses,
    utc_now,
)
from myexpenses.queries import (
    analyze,
    coerce_filters,
    list_expenses,
    total_amount,
    totals_by_category,
)
from myexpenses.queries.aggregations import FilterInput
from myexpenses.services.storage import LocalStorageInterface, StorageError
from myexpenses.services.sync import RemoteSyncInterface
from myexpenses.sync import SyncCoordinator, merge_expenses


class DuplicateExpenseError(ValueError):
    """An expense with this ID is already in the collection."""

    def __init__(self, expense_id: str):
        self.expense_id = expense_id
        super().__init__(f"Expense already exists: {expense_id}")


class SyncNotConfiguredError(RuntimeError):
    """A remote operation was requested but no remote store is configured."""
    pass


class ExpenseManager:
    """
    Local-first expense collection with optional background sync.

    Call initialize() once before use.
    """

    def __init__(
        self,
        storage: LocalStorageInterface,
        remote: Optional[RemoteSyncInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
        max_queued_syncs: int = 100,
        sync_workers: int = 1,
    ):
        self._storage = storage
        self._storage_key = storage_key
        self._audit_logger = audit_logger or AuditLogger()
        self._expenses: list[Expense] = []
        self._lock = asyncio.Lock()
        self._remote_available = False

        self._coordinator: Optional[SyncCoordinator] = None
        if remote is not None:
            self._coordinator = SyncCoordinator(
                remote,
                audit_logger=self._audit_logger,
                max_queued=max_queued_syncs,
                workers=sync_workers,
            )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def storage_key(self) -> str:
        return self._storage_key

    @property
    def sync_enabled(self) -> bool:
        return self._coordinator is not None

    @property
    def remote_available(self) -> bool:
        """Whether the remote answered at initialize(). Informational only."""
        return self._remote_available

    @property
    def coordinator(self) -> Optional[SyncCoordinator]:
        return self._coordinator

    async def initialize(self) -> None:
        """
        Load the local collection and prepare the remote store.

        Never raises for an unreadable store or an unreachable remote:
        the first yields an empty collection, the second leaves sync
        operations to fail into the pending queue. Both are audited.
        """
        async with self._lock:
            self._expenses = await self._load_expenses()

        if self._coordinator is not None:
            try:
                self._remote_available = bool(await self._coordinator.remote.initialize())
                error = None
            except Exception as e:
                self._remote_available = False
                error = str(e)
            if not self._remote_available:
                await self._audit_logger.log(AuditEventBuilder.remote_unavailable(error))

    async def close(self) -> None:
        """Flush queued background syncs and stop the sync workers."""
        if self._coordinator is not None:
            await self._coordinator.close()

    async def _load_expenses(self) -> list[Expense]:
        try:
            blob = await self._storage.load(self._storage_key)
        except Exception as e:
            # Storage backends must not raise on load; tolerate ones that do
            blob = None
            await self._audit_logger.log(
                AuditEventBuilder.load_failed(self._storage_key, str(e))
            )

        if not blob:
            return []

        try:
            raw_records = json.loads(blob)
            if not isinstance(raw_records, list):
                raise ValueError(f"expected a JSON array, got {type(raw_records).__name__}")
        except ValueError as e:
            await self._audit_logger.log(
                AuditEventBuilder.load_failed(self._storage_key, str(e))
            )
            return []

        expenses: list[Expense] = []
        seen: set[str] = set()
        for index, raw in enumerate(raw_records):
            try:
                expense = Expense.model_validate(raw)
            except ValidationError as e:
                await self._audit_logger.log(AuditEventBuilder.record_skipped(index, str(e)))
                continue
            if expense.id in seen:
                await self._audit_logger.log(
                    AuditEventBuilder.record_skipped(index, f"duplicate id {expense.id}")
                )
                continue
            seen.add(expense.id)
            expenses.append(expense)

        await self._audit_logger.log(
            AuditEventBuilder.collection_loaded(self._storage_key, len(expenses))
        )
        return expenses

    async def _persist(
        self,
        expenses: list[Expense],
        operation: str,
        expense_id: Optional[str] = None,
    ) -> None:
        try:
            await self._storage.save(self._storage_key, serialize_expenses(expenses))
        except StorageError as e:
            await self._audit_logger.log(AuditEventBuilder.save_failed(operation, str(e), expense_id))
            raise
        except Exception as e:
            await self._audit_logger.log(AuditEventBuilder.save_failed(operation, str(e), expense_id))
            raise StorageError(f"Failed to save expenses: {e}", key=self._storage_key) from e

    async def _dispatch(
        self,
        operation: SyncOperation,
        expense_id: str,
        expense: Optional[Expense] = None,
    ) -> None:
        if self._coordinator is not None:
            await self._coordinator.dispatch(operation, expense_id, expense)

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    async def add_expense(self, expense: Union[Expense, Mapping[str, Any]]) -> Expense:
        """
        Add an expense and persist the collection.

        Args:
            expense: An Expense, or a mapping validated into one.
                     A missing ID is generated.

        Returns:
            The stored expense

        Raises:
            ValidationError: If the mapping is not a valid expense
            DuplicateExpenseError: If the ID is already present
            StorageError: If the local save fails
        """
        if not isinstance(expense, Expense):
            expense = Expense.model_validate(expense)

        async with self._lock:
            if any(existing.id == expense.id for existing in self._expenses):
                raise DuplicateExpenseError(expense.id)

            updated = self._expenses + [expense]
            await self._persist(updated, "add", expense.id)
            self._expenses = updated

            await self._dispatch(SyncOperation.ADD, expense.id, expense)

        await self._audit_logger.log(
            AuditEventBuilder.expense_added(expense.id, str(expense.amount), expense.category.value)
        )
        return expense

    async def update_expense(
        self,
        expense_id: str,
        patch: Union[ExpensePatch, Mapping[str, Any]],
    ) -> Optional[Expense]:
        """
        Apply a partial update to an expense.

        Returns:
            The updated expense, or None if no expense has this ID

        Raises:
            ValidationError: If the patch or the patched expense is invalid
            StorageError: If the local save fails
        """
        if not isinstance(patch, ExpensePatch):
            patch = ExpensePatch.model_validate(patch)
        changes = patch.changes()

        async with self._lock:
            index = next(
                (i for i, existing in enumerate(self._expenses) if existing.id == expense_id),
                None,
            )
            if index is None:
                await self._audit_logger.log(AuditEventBuilder.expense_not_found(expense_id, "update"))
                return None

            current = self._expenses[index]
            # Never move updated_at backwards, even if the clock did
            stamped = max(utc_now(), current.updated_at)
            replacement = Expense.model_validate(
                {**current.model_dump(), **changes, "updated_at": stamped}
            )

            updated = list(self._expenses)
            updated[index] = replacement
            await self._persist(updated, "update", expense_id)
            self._expenses = updated

            await self._dispatch(SyncOperation.UPDATE, expense_id, replacement)

        await self._audit_logger.log(AuditEventBuilder.expense_updated(expense_id, sorted(changes)))
        return replacement

    async def delete_expense(self, expense_id: str) -> bool:
        """
        Remove every expense with this ID and persist the collection.

        The collection is saved and the remote delete is dispatched even
        when nothing matched, so a delete also clears remote leftovers.

        Returns:
            True if at least one expense was removed

        Raises:
            StorageError: If the local save fails
        """
        async with self._lock:
            remaining = [e for e in self._expenses if e.id != expense_id]
            removed = len(self._expenses) - len(remaining)

            await self._persist(remaining, "delete", expense_id)
            self._expenses = remaining

            await self._dispatch(SyncOperation.DELETE, expense_id)

        if removed:
            await self._audit_logger.log(AuditEventBuilder.expense_deleted(expense_id, removed))
        else:
            await self._audit_logger.log(AuditEventBuilder.expense_not_found(expense_id, "delete"))
        return removed > 0

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        return next((e for e in self._expenses if e.id == expense_id), None)

    def get_expenses(self, filters: FilterInput = None, **kwargs: Any) -> list[Expense]:
        """Matching expenses, newest event first. Returns a copy."""
        return list_expenses(self._expenses, coerce_filters(filters, **kwargs))

    def get_total_expenses(self, filters: FilterInput = None, **kwargs: Any) -> Decimal:
        return total_amount(self._expenses, coerce_filters(filters, **kwargs))

    def get_expenses_by_category(
        self,
        filters: FilterInput = None,
        **kwargs: Any,
    ) -> dict[ExpenseCategory, Decimal]:
        return totals_by_category(self._expenses, coerce_filters(filters, **kwargs))

    def get_expenses_analysis(self, filters: FilterInput = None, **kwargs: Any) -> ExpenseAnalysis:
        """Total, per-category totals and the matching expenses in one pass."""
        return analyze(self._expenses, coerce_filters(filters, **kwargs))

    def __len__(self) -> int:
        return len(self._expenses)

    # =========================================================================
    # SYNC
    # =========================================================================

    def _require_coordinator(self) -> SyncCoordinator:
        if self._coordinator is None:
            raise SyncNotConfiguredError("Sync adapter not configured")
        return self._coordinator

    async def sync_all(self) -> bool:
        """
        Two-way full sync with the remote store.

        Returns:
            True if fetch, merge, local save and push all succeeded.
            Any failure returns False; which step failed is only
            visible in the audit log.

        Raises:
            SyncNotConfiguredError: If no remote store is configured
        """
        coordinator = self._require_coordinator()
        remote = coordinator.remote
        stage = "fetch"

        try:
            remote_expenses = await remote.fetch_all_expenses()

            stage = "merge"
            async with self._lock:
                local_count = len(self._expenses)
                merged = merge_expenses(self._expenses, remote_expenses)

                stage = "persist"
                await self._persist(merged, "sync_all")
                self._expenses = merged

            stage = "push"
            await remote.sync_all_expenses(merged)
        except Exception as e:
            await self._audit_logger.log(AuditEventBuilder.full_sync_failed(stage, str(e)))
            return False

        await self._audit_logger.log(
            AuditEventBuilder.full_sync_completed(local_count, len(remote_expenses), len(merged))
        )
        return True

    async def retry_pending_syncs(self) -> RetryResult:
        """
        Replay failed background syncs once, oldest first.

        Without a remote store there is nothing to replay.
        """
        if self._coordinator is None:
            return RetryResult(success=0, failed=0, remaining=0)
        return await self._coordinator.retry_pending()

    def get_pending_sync_count(self) -> int:
        if self._coordinator is None:
            return 0
        return len(self._coordinator.pending)

    def get_pending_syncs(self) -> list[PendingSyncEntry]:
        if self._coordinator is None:
            return []
        return self._coordinator.pending.entries()

    async def wait_for_background_syncs(self) -> None:
        """Block until every dispatched sync has either succeeded or been queued for retry."""
        if self._coordinator is not None:
            await self._coordinator.drain()
