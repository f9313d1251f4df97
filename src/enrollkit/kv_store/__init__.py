"""Key-value store - persistence transport for the enrollment records."""

from enrollkit.kv_store.exceptions import CorruptValueError, KeyValueStoreError
from enrollkit.kv_store.interfaces import KeyValueStore
from enrollkit.kv_store.memory import InMemoryKeyValueStore
from enrollkit.kv_store.store import SQLiteKeyValueStore

__all__ = [
    "CorruptValueError",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "KeyValueStoreError",
    "SQLiteKeyValueStore",
]
