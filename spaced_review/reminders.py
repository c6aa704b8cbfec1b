from datetime import datetime
from typing import Dict, List, Optional

import structlog

from spaced_review.clock import as_utc
from spaced_review.config import Settings, settings as default_settings
from spaced_review.queries import ReviewQueries
from spaced_review.risk import RiskClassifier
from spaced_review.schemas import Reminder, ReviewItemSchema, Severity
from spaced_review.sm2 import SM2Algorithm

logger = structlog.get_logger(__name__)


def classify_severity(item: ReviewItemSchema, now: datetime, due_soon_hours: int) -> Optional[Severity]:
    """Scheduling severity from the due time alone; None when not due soon"""
    due = item.next_review_at
    if SM2Algorithm.is_due_for_review(due, now):
        return Severity.OVERDUE
    if due.date() == now.date():
        return Severity.DUE_TODAY
    if (due - now).total_seconds() <= due_soon_hours * 3600:
        return Severity.DUE_SOON
    return None


def describe(item: ReviewItemSchema, severity: Severity, now: datetime) -> str:
    if severity == Severity.OVERDUE:
        days = SM2Algorithm.get_days_overdue(item.next_review_at, now.date())
        if days == 0:
            return f"Overdue since {item.next_review_at:%H:%M} today"
        return f"Overdue by {days} day{'s' if days != 1 else ''}"
    if severity == Severity.DUE_TODAY:
        return "Due for review today"
    if severity == Severity.DUE_SOON:
        return f"Due {item.next_review_at:%Y-%m-%d %H:%M}"
    return f"Retention down to {item.retention_estimate:.0f}%, review before it is forgotten"


class ReminderGenerator:
    """Merges due, soon-due and at-risk items into one capped reminder feed"""

    def __init__(self, queries: ReviewQueries, risk: RiskClassifier, settings: Settings = None):
        self.queries = queries
        self.risk = risk
        self.settings = settings or default_settings

    def generate_review_reminders(self, user_id: str, now: Optional[datetime] = None) -> List[Reminder]:
        """
        Build the reminder feed for a user.

        Each item appears once under its most severe label. When the feed is
        longer than the configured limit the most severe entries are kept.
        """
        now = as_utc(now)
        candidates: Dict[int, ReviewItemSchema] = {}
        for item in self.queries.get_items_due_within(user_id, self.settings.due_soon_hours, now=now):
            candidates[item.id] = item

        at_risk_ids = set()
        for item in self.risk.get_topics_at_risk(user_id, self.settings.risk_threshold, now=now):
            candidates.setdefault(item.id, item)
            at_risk_ids.add(item.id)

        reminders = []
        for item in candidates.values():
            severity = classify_severity(item, now, self.settings.due_soon_hours)
            if severity is None:
                if item.id not in at_risk_ids:
                    continue
                severity = Severity.AT_RISK
            reminders.append(Reminder(
                item=item,
                severity=severity,
                retention_estimate=item.retention_estimate,
                message=describe(item, severity, now),
            ))

        reminders.sort(key=lambda r: (
            r.severity.rank,
            r.item.next_review_at,
            r.retention_estimate,
            r.item.id,
        ))
        feed = reminders[:self.settings.reminder_limit]
        logger.info(
            "reminders_generated",
            user_id=user_id,
            candidates=len(reminders),
            returned=len(feed),
        )
        return feed
