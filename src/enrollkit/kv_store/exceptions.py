"""Custom exceptions for the key-value store."""


class KeyValueStoreError(Exception):
    """Base exception for key-value store errors."""


class CorruptValueError(KeyValueStoreError):
    """Stored value under a key is not valid JSON."""
