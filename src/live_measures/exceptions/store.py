"""Data store exceptions: connection, locking and statement failures."""

from .base import LiveMeasuresError


class DataStoreError(LiveMeasuresError):
    """Raised when a data store operation fails.

    Covers transient conditions (locked database, closed connection) as well
    as statement failures. The refresh that hit it is rolled back; callers
    decide whether to retry.
    """

    def __init__(self, operation: str, reason: str):
        super().__init__(
            f"Data store operation failed: {operation}",
            details={"operation": operation, "reason": reason},
        )
        self.operation = operation
        self.reason = reason
