from datetime import datetime
from typing import Iterable, List, Optional

import structlog

from spaced_review.clock import as_utc
from spaced_review.errors import ValidationError
from spaced_review.queries import with_retention
from spaced_review.schemas import ItemStatus, ReviewItemSchema
from spaced_review.store import ItemStore

logger = structlog.get_logger(__name__)


class RiskClassifier:
    """
    Estimates present retention of every active item from the forgetting
    curve, regardless of whether its scheduled review has arrived yet.
    """

    def __init__(self, store: ItemStore):
        self.store = store

    def assess(self, items: Iterable[ReviewItemSchema], now: Optional[datetime] = None) -> List[ReviewItemSchema]:
        """Attach retention estimates, weakest first"""
        now = as_utc(now)
        scored = [with_retention(item, now) for item in items]
        scored.sort(key=lambda i: (i.retention_estimate, i.next_review_at, i.id))
        return scored

    def retention_score(self, item: ReviewItemSchema, now: Optional[datetime] = None) -> float:
        return with_retention(item, as_utc(now)).retention_estimate

    def get_topics_at_risk(
        self,
        user_id: str,
        threshold: float = 60,
        now: Optional[datetime] = None
    ) -> List[ReviewItemSchema]:
        """
        Active items whose estimated retention is below ``threshold`` percent.

        threshold=0 never matches; threshold=100 matches every item with
        any time elapsed since it was last reinforced.
        """
        if not 0 <= threshold <= 100:
            raise ValidationError("threshold must be between 0 and 100", field="threshold")
        items = self.store.list_items(user_id, statuses=[ItemStatus.ACTIVE.value])
        at_risk = [i for i in self.assess(items, now) if i.retention_estimate < threshold]
        logger.debug("risk_classified", user_id=user_id, tracked=len(items), at_risk=len(at_risk))
        return at_risk
