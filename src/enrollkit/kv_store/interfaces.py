"""Key-value store interface.

Stores hold plain structured data (lists, dicts, scalars) under string keys and
must be swappable behind this contract.
"""

from abc import ABC, abstractmethod
from typing import Any


class KeyValueStore(ABC):
    """Asynchronous string-keyed store of JSON-serializable values."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the value stored under key, or None if absent.

        Raises:
            CorruptValueError: If the stored text is not valid JSON.
        """
        ...

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Serialize and store value under key, replacing any previous value."""
        ...

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove key. Removing an absent key is a no-op."""
        ...

    async def close(self) -> None:  # noqa: B027
        """Release any held resources."""
