from spaced_review.crud.review_item import (
    create_review_item,
    get_review_item,
    get_review_items,
    get_due_items,
    get_items_scheduled_between,
    update_review_item
)
from spaced_review.crud.review_record import (
    add_review_record,
    get_review_records
)

__all__ = [
    "create_review_item",
    "get_review_item",
    "get_review_items",
    "get_due_items",
    "get_items_scheduled_between",
    "update_review_item",
    "add_review_record",
    "get_review_records",
]
