"""Tests for the merged reminder feed."""

from datetime import datetime, timedelta

import pytest

from spaced_review.config import Settings
from spaced_review.engine import ReviewEngine
from spaced_review.reminders import classify_severity
from spaced_review.schemas import Severity


@pytest.fixture
def feed_items(make_item, now):
    # now is 2026-03-02 09:00; d4/c2 gives a one-day interval, d1/c5 six days
    return {
        "overdue": make_item(confidence=2, difficulty_level=4, created_at=now - timedelta(days=10)),
        "due_this_morning": make_item(confidence=2, difficulty_level=4, created_at=datetime(2026, 3, 1, 8, 0)),
        "due_tonight": make_item(confidence=2, difficulty_level=4, created_at=datetime(2026, 3, 1, 20, 0)),
        "due_tomorrow": make_item(confidence=2, difficulty_level=4),
        "fading": make_item(confidence=5, difficulty_level=1, created_at=now - timedelta(days=3, hours=12)),
        "fine": make_item(confidence=5, difficulty_level=1),
    }


class TestGenerateReviewReminders:
    def test_severity_tags_and_order(self, engine, feed_items, now):
        feed = engine.reminders("u1", now=now)

        assert [(r.item.id, r.severity) for r in feed] == [
            (feed_items["overdue"].id, Severity.OVERDUE),
            (feed_items["due_this_morning"].id, Severity.OVERDUE),
            (feed_items["due_tonight"].id, Severity.DUE_TODAY),
            (feed_items["due_tomorrow"].id, Severity.DUE_SOON),
            (feed_items["fading"].id, Severity.AT_RISK),
        ]

    def test_each_item_appears_once_with_most_severe_label(self, engine, feed_items, now):
        feed = engine.reminders("u1", now=now)
        ids = [r.item.id for r in feed]
        assert len(ids) == len(set(ids))

        # Overdue item is also far below the risk threshold
        overdue = next(r for r in feed if r.item.id == feed_items["overdue"].id)
        assert overdue.retention_estimate < 1
        assert overdue.severity == Severity.OVERDUE

    def test_items_not_due_and_not_at_risk_are_left_out(self, engine, feed_items, now):
        ids = {r.item.id for r in engine.reminders("u1", now=now)}
        assert feed_items["fine"].id not in ids

    def test_messages(self, engine, feed_items, now):
        by_id = {r.item.id: r for r in engine.reminders("u1", now=now)}
        assert by_id[feed_items["overdue"].id].message == "Overdue by 9 days"
        assert by_id[feed_items["due_this_morning"].id].message == "Overdue since 08:00 today"
        assert by_id[feed_items["due_tonight"].id].message == "Due for review today"
        assert by_id[feed_items["due_tomorrow"].id].message == "Due 2026-03-03 09:00"
        assert "56%" in by_id[feed_items["fading"].id].message

    def test_cap_keeps_most_severe(self, store, feed_items, now):
        capped = ReviewEngine(store, Settings(reminder_limit=3))
        feed = capped.reminders("u1", now=now)
        assert [r.item.id for r in feed] == [
            feed_items["overdue"].id, feed_items["due_this_morning"].id, feed_items["due_tonight"].id
        ]
        assert [r.severity for r in feed] == [Severity.OVERDUE, Severity.OVERDUE, Severity.DUE_TODAY]

    def test_cap_prefers_overdue_over_many_at_risk(self, make_item, store, now):
        for n in range(5):
            make_item(confidence=5, difficulty_level=1, created_at=now - timedelta(days=3, hours=12 + n))
        overdue = make_item(confidence=2, difficulty_level=4, created_at=now - timedelta(days=3))

        feed = ReviewEngine(store, Settings(reminder_limit=2)).reminders("u1", now=now)
        assert feed[0].item.id == overdue.id
        assert [r.severity for r in feed] == [Severity.OVERDUE, Severity.AT_RISK]

    def test_default_cap_is_twenty(self, make_item, engine, now):
        for n in range(25):
            make_item(created_at=now - timedelta(days=5, minutes=n))
        assert len(engine.reminders("u1", now=now)) == 20

    def test_no_items_no_reminders(self, engine, now):
        assert engine.reminders("u1", now=now) == []


class TestClassifySeverity:
    def test_passed_earlier_today_is_overdue(self, make_item, engine, now):
        # six-day interval that ran out at 07:00, two hours before now
        item = make_item(confidence=5, difficulty_level=1, created_at=now - timedelta(days=6, hours=2))
        assert item.next_review_at.date() == now.date()
        assert item.next_review_at < now

        (reminder,) = engine.reminders("u1", now=now)
        assert reminder.severity == Severity.OVERDUE
        assert reminder.message == "Overdue since 07:00 today"

    def test_due_exactly_now_is_overdue(self, make_item, now):
        item = make_item(confidence=2, difficulty_level=4, created_at=now - timedelta(days=1))
        assert classify_severity(item, now, 48) == Severity.OVERDUE

    def test_pending_later_today_is_due_today(self, make_item, now):
        item = make_item(confidence=2, difficulty_level=4, created_at=now - timedelta(hours=20))
        assert classify_severity(item, now, 48) == Severity.DUE_TODAY

    def test_beyond_window_has_no_severity(self, make_item, now):
        item = make_item(confidence=5, difficulty_level=1)
        assert classify_severity(item, now, 48) is None
