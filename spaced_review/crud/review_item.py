from sqlalchemy.orm import Session
from spaced_review.models import ReviewItem
from datetime import datetime
from typing import List, Optional

def create_review_item(db: Session, **fields) -> ReviewItem:
    """Add a new tracked item to the session (caller commits)"""
    item = ReviewItem(**fields)
    db.add(item)
    return item

def get_review_item(db: Session, item_id: int) -> Optional[ReviewItem]:
    """Get item by ID"""
    return db.query(ReviewItem).filter(ReviewItem.id == item_id).first()

def get_review_items(
    db: Session,
    user_id: str,
    subject_id: Optional[str] = None,
    statuses: Optional[List[str]] = None
) -> List[ReviewItem]:
    """Get all items for a user, optionally narrowed by subject and status"""
    query = db.query(ReviewItem).filter(ReviewItem.user_id == user_id)
    if subject_id is not None:
        query = query.filter(ReviewItem.subject_id == subject_id)
    if statuses is not None:
        query = query.filter(ReviewItem.status.in_(statuses))
    return query.order_by(ReviewItem.next_review_at.asc(), ReviewItem.id.asc()).all()

def get_due_items(
    db: Session,
    user_id: str,
    due_before: datetime,
    subject_id: Optional[str] = None
) -> List[ReviewItem]:
    """Get active items whose next review is at or before the cutoff, most overdue first"""
    query = db.query(ReviewItem).filter(
        ReviewItem.user_id == user_id,
        ReviewItem.status == "active",
        ReviewItem.next_review_at <= due_before
    )
    if subject_id is not None:
        query = query.filter(ReviewItem.subject_id == subject_id)
    return query.order_by(
        ReviewItem.next_review_at.asc(),
        ReviewItem.difficulty_level.desc(),
        ReviewItem.id.asc()
    ).all()

def get_items_scheduled_between(
    db: Session,
    user_id: str,
    start: datetime,
    end: datetime
) -> List[ReviewItem]:
    """Get active items with start <= next review < end"""
    return db.query(ReviewItem).filter(
        ReviewItem.user_id == user_id,
        ReviewItem.status == "active",
        ReviewItem.next_review_at >= start,
        ReviewItem.next_review_at < end
    ).order_by(ReviewItem.next_review_at.asc(), ReviewItem.difficulty_level.desc()).all()

def update_review_item(db: Session, item: ReviewItem, item_data: dict) -> ReviewItem:
    """Apply field updates to a loaded item (caller commits)"""
    for key, value in item_data.items():
        setattr(item, key, value)
    return item
