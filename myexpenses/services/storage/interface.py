"""
Abstract Local Storage Interface

DESIGN DECISION: The engine never talks to a concrete storage backend.
It sees four operations over opaque string keys and values, which lets us:
1. Run the same engine on a JSON file, a browser store, or memory
2. Use in-memory storage for testing
3. Keep the persistence format entirely inside the engine

FAILURE POLICY (intentionally asymmetric):
- load() never raises. An unreadable or missing value is reported as
  None so a damaged store degrades to an empty collection instead of
  blocking startup.
- save(), delete() and clear() raise StorageError. A mutation whose
  write failed must not look successful.
"""

from abc import ABC, abstractmethod
from typing import Optional


class LocalStorageInterface(ABC):
    """
    Abstract interface for local key/value persistence.

    Any platform storage (file, embedded DB, mobile key store)
    must implement these methods.
    """

    @abstractmethod
    async def save(self, key: str, value: str) -> None:
        """
        Store a value under a key, replacing any previous value.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def load(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Returns:
            The stored value, or None if absent or unreadable.
            Implementations must not raise.
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """
        Remove a key. Removing a missing key is not an error.

        Raises:
            StorageError: If the removal fails
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """
        Remove every key owned by this storage.

        Raises:
            StorageError: If clearing fails
        """
        pass


class StorageError(Exception):
    """Base exception for local storage operations."""

    def __init__(self, message: str, key: Optional[str] = None):
        self.key = key
        super().__init__(message)
