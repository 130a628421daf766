"""
Abstract Remote Sync Interface

DESIGN DECISION: The remote store is reached only through this contract.
The engine does not know whether it is a spreadsheet, a REST service or an
in-memory fake. Transport concerns (auth, retries inside one call,
timeouts) belong to the implementation.

Every failure is reported as TransientSyncError. The engine never surfaces
it to callers of a mutation; it parks the operation in the pending sync
queue instead.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from myexpenses.models.expense import Expense


class RemoteSyncInterface(ABC):
    """
    Abstract interface for the remote expense store.

    Any remote implementation must implement these methods.
    """

    @abstractmethod
    async def initialize(self) -> bool:
        """
        Prepare the connection.

        Returns:
            True if the remote store is reachable
        """
        pass

    @abstractmethod
    async def sync_expense(self, expense: Expense) -> Any:
        """
        Create or replace one expense remotely.

        Raises:
            TransientSyncError: If the push fails
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: str) -> Any:
        """
        Delete one expense remotely. Deleting a missing ID is not an error.

        Raises:
            TransientSyncError: If the delete fails
        """
        pass

    @abstractmethod
    async def fetch_all_expenses(self) -> list[Expense]:
        """
        Fetch the full remote snapshot.

        Raises:
            TransientSyncError: If the fetch fails
        """
        pass

    @abstractmethod
    async def sync_all_expenses(self, expenses: list[Expense]) -> Any:
        """
        Replace the remote snapshot with the given expenses.

        Raises:
            TransientSyncError: If the push fails
        """
        pass


class TransientSyncError(Exception):
    """A remote operation failed; it may succeed if retried later."""

    def __init__(self, message: str, operation: Optional[str] = None):
        self.operation = operation
        super().__init__(message)
