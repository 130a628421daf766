"""In-memory local storage, for tests and throwaway sessions."""

from typing import Optional

from myexpenses.services.storage.interface import LocalStorageInterface


class InMemoryStorage(LocalStorageInterface):
    """Dict-backed storage. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def save(self, key: str, value: str) -> None:
        self._data[key] = value

    async def load(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def clear(self) -> None:
        self._data.clear()

    def keys(self) -> list[str]:
        return list(self._data)
