from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional

import structlog

from spaced_review.clock import as_utc
from spaced_review.errors import ValidationError
from spaced_review.schemas import ReviewItemSchema
from spaced_review.sm2 import SM2Algorithm
from spaced_review.store import ItemStore

logger = structlog.get_logger(__name__)


def with_retention(item: ReviewItemSchema, now: datetime) -> ReviewItemSchema:
    """Copy of the item carrying its present retention estimate"""
    since = item.last_reviewed_at or item.created_at
    score = SM2Algorithm.retention_score(SM2Algorithm.elapsed_days(since, now), item.interval_days)
    return item.model_copy(update={"retention_estimate": score})


class ReviewQueries:
    """Read side: what is due now and what falls due over the coming days"""

    def __init__(self, store: ItemStore):
        self.store = store

    def get_items_due_for_review(
        self,
        user_id: str,
        subject_id: Optional[str] = None,
        now: Optional[datetime] = None,
        limit: Optional[int] = None
    ) -> List[ReviewItemSchema]:
        """
        Active items whose next review time has passed.

        Most overdue first; among items due at the same moment the harder
        ones come first.
        """
        if limit is not None and limit < 1:
            raise ValidationError("limit must be at least 1", field="limit")
        now = as_utc(now)
        items = self.store.list_due(user_id, now, subject_id)
        # The store orders already; re-sort so any ItemStore implementation agrees
        items.sort(key=lambda i: (i.next_review_at, -i.difficulty_level, i.id))
        if limit is not None:
            items = items[:limit]
        return [with_retention(item, now) for item in items]

    def get_items_due_within(
        self,
        user_id: str,
        hours: int,
        now: Optional[datetime] = None
    ) -> List[ReviewItemSchema]:
        """Active items due now or within the next ``hours`` hours"""
        if hours < 0:
            raise ValidationError("hours must not be negative", field="hours")
        now = as_utc(now)
        items = self.store.list_due(user_id, now + timedelta(hours=hours))
        items.sort(key=lambda i: (i.next_review_at, -i.difficulty_level, i.id))
        return [with_retention(item, now) for item in items]

    def get_review_schedule(
        self,
        user_id: str,
        days: int = 7,
        now: Optional[datetime] = None,
        include_overdue: bool = False
    ) -> Dict[date, List[ReviewItemSchema]]:
        """
        Calendar of upcoming reviews for ``days`` days starting today.

        Every day in the range gets a key, in order, even when nothing is
        scheduled on it. Items already overdue before today are left out
        unless ``include_overdue`` folds them into today's entry.
        """
        if days < 1:
            raise ValidationError("days must be at least 1", field="days")
        now = as_utc(now)
        today = now.date()
        start = datetime.combine(today, time.min)
        end = start + timedelta(days=days)

        schedule: Dict[date, List[ReviewItemSchema]] = {
            today + timedelta(days=offset): [] for offset in range(days)
        }

        lower = datetime.min if include_overdue else start
        for item in self.store.list_scheduled(user_id, lower, end):
            day = max(item.next_review_at.date(), today)
            schedule[day].append(with_retention(item, now))

        for items in schedule.values():
            items.sort(key=lambda i: (i.next_review_at, -i.difficulty_level, i.id))

        logger.debug(
            "schedule_built",
            user_id=user_id,
            days=days,
            scheduled=sum(len(items) for items in schedule.values()),
        )
        return schedule
