from spaced_review.models.review_item import ReviewItem
from spaced_review.models.review_record import ReviewRecord

__all__ = [
    "ReviewItem",
    "ReviewRecord",
]
