"""
Typed errors for the review-scheduling engine.

Validation problems are raised before the store is touched, so callers can
tell "bad input" apart from "persistence failed" and retry only the latter.
"""


class ReviewEngineError(Exception):
    """Base class for all engine errors."""


class ValidationError(ReviewEngineError):
    """Malformed confidence, difficulty, result, time or query arguments."""

    def __init__(self, message: str, field: str = None) -> None:
        self.field = field
        super().__init__(message)


class NotFoundError(ReviewEngineError):
    """No review item exists with the given id."""

    def __init__(self, item_id: int) -> None:
        self.item_id = item_id
        super().__init__(f"Review item {item_id} not found")


class StoreError(ReviewEngineError):
    """The underlying store failed. Safe to retry; nothing was committed."""


class ConcurrentUpdateError(StoreError):
    """Another writer advanced the item between read and commit."""

    def __init__(self, item_id: int) -> None:
        self.item_id = item_id
        super().__init__(f"Review item {item_id} was modified concurrently")
