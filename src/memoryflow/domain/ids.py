"""Identifier generation for items and review log entries."""

from ulid import ULID


def generate_item_id() -> str:
    """Generate a stable item ID using ULID."""
    return str(ULID())


def generate_log_id() -> str:
    """Generate a log entry ID. ULIDs sort by creation time."""
    return str(ULID())
