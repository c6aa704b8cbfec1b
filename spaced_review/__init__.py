"""Spaced-repetition review scheduling for a personal study tracker."""

from spaced_review.engine import ReviewEngine, get_engine
from spaced_review.errors import (
    ConcurrentUpdateError,
    NotFoundError,
    ReviewEngineError,
    StoreError,
    ValidationError,
)
from spaced_review.schemas import ReviewResult, Severity

__all__ = [
    "ReviewEngine",
    "get_engine",
    "ReviewEngineError",
    "ValidationError",
    "NotFoundError",
    "StoreError",
    "ConcurrentUpdateError",
    "ReviewResult",
    "Severity",
]
