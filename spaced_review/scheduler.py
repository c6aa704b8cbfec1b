import threading
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Dict, Iterator, List, Optional

import structlog

from spaced_review.config import Settings, settings as default_settings
from spaced_review.errors import NotFoundError, ValidationError
from spaced_review.clock import as_utc, utcnow
from spaced_review.schemas import (
    ItemCreate,
    ItemStatus,
    ReviewCreate,
    ReviewHistory,
    ReviewItemSchema,
    ReviewOutcome,
    parse,
)
from spaced_review.sm2 import INITIAL_EASE, SM2Algorithm
from spaced_review.store import ItemStore

logger = structlog.get_logger(__name__)


class ItemLocks:
    """Per-item mutexes; entries live only while some caller holds or waits on them"""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[int, list] = {}

    @contextmanager
    def hold(self, item_id: int) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(item_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[item_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class IntervalScheduler:
    """Creates tracked items and folds review outcomes into their SM-2 state"""

    def __init__(self, store: ItemStore, settings: Settings = None):
        self.store = store
        self.settings = settings or default_settings
        self.locks = ItemLocks()

    def create_item(
        self,
        user_id: str,
        subject_id: str,
        topic_name: str,
        confidence: int,
        difficulty_level: Optional[int] = None,
        chapter_reference: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> ReviewItemSchema:
        """
        Start tracking a topic.

        The first review is scheduled after an interval that shrinks with
        difficulty and with low confidence.

        Raises:
            ValidationError: confidence or difficulty outside 1-5, blank names
        """
        if difficulty_level is None:
            difficulty_level = self.settings.default_difficulty
        request = parse(
            ItemCreate,
            user_id=user_id,
            subject_id=subject_id,
            topic_name=topic_name,
            confidence=confidence,
            difficulty_level=difficulty_level,
            chapter_reference=chapter_reference,
        )
        created_at = as_utc(now)
        interval = SM2Algorithm.initial_interval(request.difficulty_level, request.confidence)

        item = self.store.insert_item({
            **request.model_dump(exclude={"confidence"}),
            "initial_confidence": request.confidence,
            "ease_factor": INITIAL_EASE,
            "interval_days": interval,
            "repetition_count": 0,
            "review_count": 0,
            "status": ItemStatus.ACTIVE.value,
            "created_at": created_at,
            "updated_at": created_at,
            "next_review_at": created_at + timedelta(days=interval),
        })
        logger.info(
            "item_created",
            item_id=item.id,
            user_id=item.user_id,
            subject_id=item.subject_id,
            interval_days=interval,
        )
        return item

    def record_review(
        self,
        item_id: int,
        confidence: int,
        time_spent_seconds: int,
        result: str,
        reviewed_at: Optional[datetime] = None
    ) -> ReviewOutcome:
        """
        Record a review outcome and advance the item's schedule.

        The record and the item update commit together. Reviews of the same
        item are serialized; reviews of different items do not block each
        other.

        Raises:
            ValidationError: bad confidence, time or result; inactive item
            NotFoundError: unknown item id
            StoreError: persistence failed, nothing was written
        """
        request = parse(
            ReviewCreate,
            item_id=item_id,
            confidence=confidence,
            time_spent_seconds=time_spent_seconds,
            result=result,
        )
        reviewed_at = as_utc(reviewed_at)

        with self.locks.hold(request.item_id):
            item = self.store.get_item(request.item_id)
            if item is None:
                raise NotFoundError(request.item_id)
            if item.status != ItemStatus.ACTIVE:
                raise ValidationError(
                    f"Review item {item.id} is {item.status.value}", field="item_id"
                )
            if item.last_reviewed_at is not None and reviewed_at < item.last_reviewed_at:
                raise ValidationError(
                    "reviewed_at precedes the item's last review", field="reviewed_at"
                )
            if reviewed_at < item.created_at:
                raise ValidationError(
                    "reviewed_at precedes the item's creation", field="reviewed_at"
                )

            step = SM2Algorithm.calculate_next_review(
                item.ease_factor,
                item.interval_days,
                item.repetition_count,
                request.confidence,
                request.result,
                reviewed_at,
                partial_dampening=self.settings.partial_dampening,
                max_interval=self.settings.max_interval_days,
            )
            updated, record = self.store.commit_review(
                item.id,
                item.version,
                {
                    "ease_factor": step.ease_factor,
                    "interval_days": step.interval_days,
                    "repetition_count": step.repetition_count,
                    "review_count": item.review_count + 1,
                    "last_review_confidence": request.confidence,
                    "last_reviewed_at": reviewed_at,
                    "next_review_at": step.next_review_at,
                    "updated_at": reviewed_at,
                },
                {
                    "confidence": request.confidence,
                    "time_spent_seconds": request.time_spent_seconds,
                    "result": request.result.value,
                    "reviewed_at": reviewed_at,
                    "interval_before": item.interval_days,
                    "interval_after": step.interval_days,
                    "ease_before": item.ease_factor,
                    "ease_after": step.ease_factor,
                },
            )

        logger.info(
            "review_recorded",
            item_id=updated.id,
            result=request.result.value,
            interval_days=updated.interval_days,
            ease_factor=round(updated.ease_factor, 3),
        )
        return ReviewOutcome(item=updated, record=record)

    def get_item(self, item_id: int) -> ReviewItemSchema:
        item = self.store.get_item(item_id)
        if item is None:
            raise NotFoundError(item_id)
        return item

    def list_items(
        self,
        user_id: str,
        subject_id: Optional[str] = None,
        include_inactive: bool = False
    ) -> List[ReviewItemSchema]:
        statuses = None if include_inactive else [ItemStatus.ACTIVE.value]
        return self.store.list_items(user_id, subject_id, statuses)

    def get_review_history(self, item_id: int) -> ReviewHistory:
        """Item summary plus its review records, oldest first"""
        item = self.get_item(item_id)
        records = self.store.list_records(item_id)
        return ReviewHistory(item=item, records=records, mastered=SM2Algorithm.is_mastered(records))

    # Status changes. Items are never deleted so their history stays available.

    def pause_item(self, item_id: int) -> ReviewItemSchema:
        return self._set_status(item_id, ItemStatus.PAUSED, allowed_from={ItemStatus.ACTIVE})

    def resume_item(self, item_id: int) -> ReviewItemSchema:
        return self._set_status(item_id, ItemStatus.ACTIVE, allowed_from={ItemStatus.PAUSED})

    def archive_item(self, item_id: int) -> ReviewItemSchema:
        return self._set_status(
            item_id, ItemStatus.ARCHIVED, allowed_from={ItemStatus.ACTIVE, ItemStatus.PAUSED}
        )

    def _set_status(self, item_id: int, status: ItemStatus, allowed_from: set) -> ReviewItemSchema:
        with self.locks.hold(item_id):
            item = self.get_item(item_id)
            if item.status == status:
                return item
            if item.status not in allowed_from:
                raise ValidationError(
                    f"Cannot move review item {item_id} from {item.status.value} to {status.value}",
                    field="status",
                )
            updated = self.store.update_item(
                item_id,
                {"status": status.value, "updated_at": utcnow()},
                expected_version=item.version,
            )
        logger.info("item_status_changed", item_id=item_id, status=status.value)
        return updated
