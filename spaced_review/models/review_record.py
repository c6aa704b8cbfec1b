from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from spaced_review.database import Base

class ReviewRecord(Base):
    """Append-only record of one review outcome"""
    __tablename__ = "review_records"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("review_items.id"), nullable=False, index=True)

    confidence = Column(Integer, nullable=False)  # 1-5, rated before the answer
    time_spent_seconds = Column(Integer, nullable=False)
    result = Column(String, nullable=False)  # correct, partial, incorrect
    reviewed_at = Column(DateTime, nullable=False)

    # Snapshot of the fold step this review caused
    interval_before = Column(Integer, nullable=False)
    interval_after = Column(Integer, nullable=False)
    ease_before = Column(Float, nullable=False)
    ease_after = Column(Float, nullable=False)

    item = relationship("ReviewItem", back_populates="records")
