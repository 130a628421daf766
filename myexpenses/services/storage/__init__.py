"""
Local Storage Services Package

Provides the abstract local persistence interface and its implementations.
The engine only depends on the interface; backends are chosen at startup.
"""

from myexpenses.services.storage.interface import (
    LocalStorageInterface,
    StorageError,
)
from myexpenses.services.storage.json_file import JsonFileStorage
from myexpenses.services.storage.memory import InMemoryStorage

__all__ = [
    # Interface
    "LocalStorageInterface",
    # Exceptions
    "StorageError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
]
