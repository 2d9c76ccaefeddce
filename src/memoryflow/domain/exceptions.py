"""Custom exceptions for memoryflow."""


class MemoryFlowError(Exception):
    """Base exception for all memoryflow errors."""
    pass


class InvalidRatingError(MemoryFlowError, ValueError):
    """Rating is not one of Again, Hard, Good, Easy."""
    pass


class ItemNotFoundError(MemoryFlowError, KeyError):
    """No learning item with the requested id."""

    def __str__(self) -> str:
        return f"Item not found: {self.args[0]}" if self.args else "Item not found"


class LogEntryNotFoundError(MemoryFlowError, KeyError):
    """No review log entry with the requested id."""

    def __str__(self) -> str:
        return f"Log entry not found: {self.args[0]}" if self.args else "Log entry not found"


class TreeInvariantError(MemoryFlowError, ValueError):
    """Operation would break the single-root tree."""
    pass


class SnapshotError(MemoryFlowError):
    """Stored snapshot could not be read or written."""
    pass
