from datetime import date, datetime
from typing import Dict, List, Optional

from spaced_review.config import Settings, settings as default_settings
from spaced_review.queries import ReviewQueries
from spaced_review.reminders import ReminderGenerator
from spaced_review.risk import RiskClassifier
from spaced_review.scheduler import IntervalScheduler
from spaced_review.schemas import (
    Reminder,
    ReviewHistory,
    ReviewItemSchema,
    ReviewOutcome,
)
from spaced_review.store import ItemStore, SqlAlchemyItemStore


def get_engine(settings: Settings = None, store: ItemStore = None) -> "ReviewEngine":
    """Factory function wiring the engine to a store, the configured database by default"""
    if store is None:
        from spaced_review.database import SessionLocal
        store = SqlAlchemyItemStore(SessionLocal)
    return ReviewEngine(store, settings)


class ReviewEngine:
    """
    Service-level entry point to review scheduling.

    Host applications call these methods from whatever transport they use;
    every argument and return value is a plain validated record.
    """

    def __init__(self, store: ItemStore, settings: Settings = None):
        self.settings = settings or default_settings
        self.store = store
        self.scheduler = IntervalScheduler(store, self.settings)
        self.queries = ReviewQueries(store)
        self.risk = RiskClassifier(store)
        self.reminder_generator = ReminderGenerator(self.queries, self.risk, self.settings)

    # Writes

    def create(
        self,
        user_id: str,
        subject_id: str,
        topic_name: str,
        confidence: int,
        difficulty_level: Optional[int] = None,
        chapter_reference: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> ReviewItemSchema:
        return self.scheduler.create_item(
            user_id, subject_id, topic_name, confidence,
            difficulty_level, chapter_reference, now=now
        )

    def review(
        self,
        item_id: int,
        confidence: int,
        time_spent_seconds: int,
        result: str,
        reviewed_at: Optional[datetime] = None
    ) -> ReviewOutcome:
        return self.scheduler.record_review(
            item_id, confidence, time_spent_seconds, result, reviewed_at=reviewed_at
        )

    def pause(self, item_id: int) -> ReviewItemSchema:
        return self.scheduler.pause_item(item_id)

    def resume(self, item_id: int) -> ReviewItemSchema:
        return self.scheduler.resume_item(item_id)

    def archive(self, item_id: int) -> ReviewItemSchema:
        return self.scheduler.archive_item(item_id)

    # Reads

    def get(self, item_id: int) -> ReviewItemSchema:
        return self.scheduler.get_item(item_id)

    def items(self, user_id: str, subject_id: Optional[str] = None, include_inactive: bool = False) -> List[ReviewItemSchema]:
        return self.scheduler.list_items(user_id, subject_id, include_inactive)

    def history(self, item_id: int) -> ReviewHistory:
        return self.scheduler.get_review_history(item_id)

    def due_items(
        self,
        user_id: str,
        subject_id: Optional[str] = None,
        now: Optional[datetime] = None,
        limit: Optional[int] = None
    ) -> List[ReviewItemSchema]:
        return self.queries.get_items_due_for_review(user_id, subject_id, now=now, limit=limit)

    def schedule(
        self,
        user_id: str,
        days: Optional[int] = None,
        now: Optional[datetime] = None,
        include_overdue: bool = False
    ) -> Dict[date, List[ReviewItemSchema]]:
        if days is None:
            days = self.settings.default_schedule_days
        return self.queries.get_review_schedule(user_id, days, now=now, include_overdue=include_overdue)

    def at_risk(
        self,
        user_id: str,
        threshold: Optional[float] = None,
        now: Optional[datetime] = None
    ) -> List[ReviewItemSchema]:
        if threshold is None:
            threshold = self.settings.risk_threshold
        return self.risk.get_topics_at_risk(user_id, threshold, now=now)

    def reminders(self, user_id: str, now: Optional[datetime] = None) -> List[Reminder]:
        return self.reminder_generator.generate_review_reminders(user_id, now=now)
