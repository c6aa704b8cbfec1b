from sqlalchemy.orm import Session
from spaced_review.models import ReviewRecord
from typing import List, Optional

def add_review_record(db: Session, **fields) -> ReviewRecord:
    """Append a review record to the session (caller commits)"""
    record = ReviewRecord(**fields)
    db.add(record)
    return record

def get_review_records(db: Session, item_id: int, limit: Optional[int] = None) -> List[ReviewRecord]:
    """Get review history for an item, oldest first; limit keeps the latest records"""
    query = db.query(ReviewRecord).filter(ReviewRecord.item_id == item_id)
    if limit is None:
        return query.order_by(ReviewRecord.reviewed_at.asc(), ReviewRecord.id.asc()).all()
    latest = query.order_by(
        ReviewRecord.reviewed_at.desc(),
        ReviewRecord.id.desc()
    ).limit(limit).all()
    return list(reversed(latest))
