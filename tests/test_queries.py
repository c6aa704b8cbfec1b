"""Tests for due-item and schedule queries."""

from datetime import date, timedelta

import pytest

from spaced_review.errors import ValidationError


class TestDueItems:
    def test_most_overdue_first_then_hardest(self, make_item, engine, now):
        week_ago = now - timedelta(days=7)
        # d4/c2 and d5/c2 both start with a one-day interval
        easier = make_item(confidence=2, difficulty_level=4, created_at=week_ago)
        harder = make_item(confidence=2, difficulty_level=5, created_at=week_ago)
        oldest = make_item(confidence=2, difficulty_level=1, created_at=now - timedelta(days=20))
        make_item(confidence=5, difficulty_level=1)  # due in six days

        due = engine.due_items("u1", now=now)
        assert [i.id for i in due] == [oldest.id, harder.id, easier.id]

    def test_never_returns_future_items(self, make_item, engine, now):
        make_item(created_at=now - timedelta(days=1))
        make_item(confidence=1, difficulty_level=5, created_at=now - timedelta(hours=23))
        make_item(confidence=1, difficulty_level=5, created_at=now - timedelta(hours=24))

        due = engine.due_items("u1", now=now)
        assert due
        assert all(i.next_review_at <= now for i in due)
        assert len(due) == 1

    def test_subject_filter(self, make_item, engine, now):
        past = now - timedelta(days=10)
        make_item(subject_id="math", created_at=past)
        physics = make_item(subject_id="physics", created_at=past)

        due = engine.due_items("u1", subject_id="physics", now=now)
        assert [i.id for i in due] == [physics.id]

    def test_other_users_and_inactive_items_excluded(self, make_item, engine, now):
        past = now - timedelta(days=10)
        mine = make_item(created_at=past)
        make_item(created_at=past, user_id="u2")
        paused = make_item(created_at=past)
        archived = make_item(created_at=past)
        engine.pause(paused.id)
        engine.archive(archived.id)

        assert [i.id for i in engine.due_items("u1", now=now)] == [mine.id]

    def test_due_items_carry_retention(self, make_item, engine, now):
        make_item(confidence=3, difficulty_level=3, created_at=now - timedelta(days=2))
        (item,) = engine.due_items("u1", now=now)
        assert item.retention_estimate == pytest.approx(36.79, abs=0.01)

    def test_limit(self, make_item, engine, now):
        for days in (3, 4, 5):
            make_item(created_at=now - timedelta(days=days))
        assert len(engine.due_items("u1", now=now, limit=2)) == 2
        with pytest.raises(ValidationError):
            engine.due_items("u1", now=now, limit=0)

    def test_reviewing_removes_item_from_due(self, make_item, engine, now):
        item = make_item(created_at=now - timedelta(days=5))
        assert engine.due_items("u1", now=now)
        engine.review(item.id, 4, 60, "correct", reviewed_at=now)
        assert engine.due_items("u1", now=now) == []


class TestReviewSchedule:
    def test_returns_every_day_in_order_including_empty_days(self, make_item, engine, now):
        tomorrow_item = make_item(confidence=2, difficulty_level=4)  # +1 day
        day_two_item = make_item(confidence=3, difficulty_level=3)  # +2 days
        last_day_item = make_item(confidence=5, difficulty_level=1)  # +6 days
        make_item(confidence=5, difficulty_level=1, created_at=now + timedelta(days=1))  # +7, outside

        schedule = engine.schedule("u1", 7, now=now)

        expected_days = [date(2026, 3, 2) + timedelta(days=n) for n in range(7)]
        assert list(schedule.keys()) == expected_days
        assert schedule[date(2026, 3, 2)] == []
        assert [i.id for i in schedule[date(2026, 3, 3)]] == [tomorrow_item.id]
        assert [i.id for i in schedule[date(2026, 3, 4)]] == [day_two_item.id]
        assert [i.id for i in schedule[date(2026, 3, 8)]] == [last_day_item.id]
        assert sum(len(v) for v in schedule.values()) == 3

    def test_empty_user_still_gets_full_grid(self, engine, now):
        schedule = engine.schedule("nobody", 3, now=now)
        assert list(schedule.values()) == [[], [], []]

    def test_single_day(self, engine, now):
        assert list(engine.schedule("u1", 1, now=now)) == [now.date()]

    def test_overdue_excluded_unless_requested(self, make_item, engine, now):
        overdue = make_item(created_at=now - timedelta(days=10))
        today = now.date()

        assert engine.schedule("u1", 3, now=now)[today] == []
        folded = engine.schedule("u1", 3, now=now, include_overdue=True)
        assert [i.id for i in folded[today]] == [overdue.id]

    def test_items_later_today_land_on_today(self, make_item, engine, now):
        item = make_item(confidence=2, difficulty_level=4, created_at=now - timedelta(hours=20))
        schedule = engine.schedule("u1", 2, now=now)
        assert [i.id for i in schedule[now.date()]] == [item.id]

    def test_default_days_from_settings(self, engine, now):
        assert len(engine.schedule("u1", now=now)) == engine.settings.default_schedule_days

    @pytest.mark.parametrize("days", [0, -3])
    def test_rejects_non_positive_days(self, engine, now, days):
        with pytest.raises(ValidationError):
            engine.schedule("u1", days, now=now)
