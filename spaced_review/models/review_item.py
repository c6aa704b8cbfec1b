from sqlalchemy import Column, Integer, String, Float, DateTime, Index
from sqlalchemy.orm import relationship
from spaced_review.clock import utcnow
from spaced_review.database import Base


class ReviewItem(Base):
    """SM-2 spaced repetition tracking per topic"""
    __tablename__ = "review_items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    subject_id = Column(String, nullable=False)
    topic_name = Column(String, nullable=False)
    chapter_reference = Column(String)

    difficulty_level = Column(Integer, nullable=False)  # 1-5, author estimate
    initial_confidence = Column(Integer, nullable=False)  # 1-5, at creation

    # SM-2 algorithm fields
    ease_factor = Column(Float, nullable=False, default=2.5)
    interval_days = Column(Integer, nullable=False, default=1)
    repetition_count = Column(Integer, nullable=False, default=0)  # successful streak
    review_count = Column(Integer, nullable=False, default=0)  # every review
    last_review_confidence = Column(Integer)

    status = Column(String, nullable=False, default="active")  # active, paused, archived

    created_at = Column(DateTime, nullable=False, default=utcnow)
    last_reviewed_at = Column(DateTime)
    next_review_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    version = Column(Integer, nullable=False)

    records = relationship(
        "ReviewRecord",
        back_populates="item",
        order_by="ReviewRecord.reviewed_at",
    )

    __table_args__ = (
        Index("ix_review_items_user_status_next", "user_id", "status", "next_review_at"),
    )
    # Stale writers fail with StaleDataError instead of overwriting
    __mapper_args__ = {"version_id_col": version}
