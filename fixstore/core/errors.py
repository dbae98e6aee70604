"""
Error taxonomy for the fix store.
All errors are raised synchronously to the immediate caller; nothing is retried.
"""


class FixStoreError(Exception):
    """Base class for fix store errors."""


class DuplicateKeyError(FixStoreError):
    """Raised when inserting a record whose id is already stored."""

    def __init__(self, record_id: str, table: str = "error_fixes"):
        self.record_id = record_id
        self.table = table
        super().__init__(f"Record '{record_id}' already exists in {table}")


class NotFoundError(FixStoreError, KeyError):
    """Raised when a record id is not present in the store."""

    def __init__(self, record_id: str, table: str = "error_fixes"):
        self.record_id = record_id
        self.table = table
        super().__init__(f"Record '{record_id}' not found in {table}")

    def __str__(self) -> str:
        return self.args[0]


class DimensionMismatchError(FixStoreError, ValueError):
    """Raised when a vector's length differs from the store's fixed dimension."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Embedding dimension {actual} does not match expected dimension {expected}")


class ValidationError(FixStoreError, ValueError):
    """Raised for malformed inputs, before any storage is touched."""


class StoreClosedError(FixStoreError):
    """Raised when an operation is attempted on a closed store."""
