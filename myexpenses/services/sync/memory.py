"""In-memory remote store, for development and tests."""

from typing import Iterable, Optional

import structlog

from myexpenses.models.expense import Expense
from myexpenses.services.sync.interface import RemoteSyncInterface, TransientSyncError


logger = structlog.get_logger(__name__)


class InMemorySyncAdapter(RemoteSyncInterface):
    """
    Remote store kept in a list.

    Flip `reachable` to False to simulate an outage: every operation then
    raises TransientSyncError.
    """

    def __init__(self, expenses: Optional[Iterable[Expense]] = None, reachable: bool = True):
        self._expenses: list[Expense] = list(expenses or [])
        self.reachable = reachable
        self.calls: list[tuple[str, str]] = []

    def _check(self, operation: str, target: str = "") -> None:
        self.calls.append((operation, target))
        if not self.reachable:
            raise TransientSyncError(f"Remote unreachable during {operation}", operation=operation)

    @property
    def expenses(self) -> list[Expense]:
        return list(self._expenses)

    async def initialize(self) -> bool:
        logger.debug("memory_sync_initialized", reachable=self.reachable)
        return self.reachable

    async def sync_expense(self, expense: Expense) -> Expense:
        self._check("sync_expense", expense.id)
        for index, existing in enumerate(self._expenses):
            if existing.id == expense.id:
                self._expenses[index] = expense
                break
        else:
            self._expenses.append(expense)
        return expense

    async def delete_expense(self, expense_id: str) -> None:
        self._check("delete_expense", expense_id)
        self._expenses = [e for e in self._expenses if e.id != expense_id]

    async def fetch_all_expenses(self) -> list[Expense]:
        self._check("fetch_all_expenses")
        return list(self._expenses)

    async def sync_all_expenses(self, expenses: list[Expense]) -> list[Expense]:
        self._check("sync_all_expenses")
        self._expenses = list(expenses)
        return list(self._expenses)
