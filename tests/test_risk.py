"""Tests for forgetting-curve risk classification."""

import math
from datetime import timedelta

import pytest

from spaced_review.errors import ValidationError


@pytest.fixture
def tracked(make_item, now):
    """Three items at different points on their forgetting curves"""
    return {
        # interval 2, two days elapsed: 100/e
        "weak": make_item(confidence=3, difficulty_level=3, created_at=now - timedelta(days=2)),
        # interval 6, one day elapsed: ~84.6
        "fading": make_item(confidence=5, difficulty_level=1, created_at=now - timedelta(days=1)),
        # just created: nothing elapsed
        "fresh": make_item(confidence=4, difficulty_level=2),
    }


class TestTopicsAtRisk:
    def test_threshold_filters_and_scores(self, engine, tracked, now):
        at_risk = engine.at_risk("u1", 60, now=now)
        assert [i.id for i in at_risk] == [tracked["weak"].id]
        assert at_risk[0].retention_estimate == pytest.approx(100 / math.e)

    def test_sorted_weakest_first(self, engine, tracked, now):
        at_risk = engine.at_risk("u1", 90, now=now)
        assert [i.id for i in at_risk] == [tracked["weak"].id, tracked["fading"].id]
        scores = [i.retention_estimate for i in at_risk]
        assert scores == sorted(scores)
        assert scores[1] == pytest.approx(100 * math.exp(-1 / 6))

    def test_threshold_zero_returns_nothing(self, engine, tracked, now):
        assert engine.at_risk("u1", 0, now=now) == []

    def test_threshold_hundred_returns_everything_with_elapsed_time(self, engine, tracked, now):
        ids = {i.id for i in engine.at_risk("u1", 100, now=now)}
        assert ids == {tracked["weak"].id, tracked["fading"].id}

        # A second later even the fresh item has started to decay
        later = {i.id for i in engine.at_risk("u1", 100, now=now + timedelta(seconds=1))}
        assert later == {item.id for item in tracked.values()}

    def test_at_risk_before_due_date(self, make_item, engine, now):
        item = make_item(confidence=5, difficulty_level=1, created_at=now - timedelta(days=4))
        assert item.next_review_at > now
        assert engine.due_items("u1", now=now) == []
        assert [i.id for i in engine.at_risk("u1", 60, now=now)] == [item.id]

    def test_recent_review_restores_retention(self, make_item, engine, now):
        item = make_item(confidence=5, difficulty_level=1, created_at=now - timedelta(days=30))
        assert [i.id for i in engine.at_risk("u1", 60, now=now)] == [item.id]

        engine.review(item.id, 5, 60, "correct", reviewed_at=now - timedelta(hours=1))
        assert engine.at_risk("u1", 60, now=now) == []

    def test_inactive_items_ignored(self, engine, tracked, now):
        engine.pause(tracked["weak"].id)
        engine.archive(tracked["fading"].id)
        assert engine.at_risk("u1", 100, now=now) == []

    def test_default_threshold_from_settings(self, engine, tracked, now):
        assert [i.id for i in engine.at_risk("u1", now=now)] == [tracked["weak"].id]

    @pytest.mark.parametrize("threshold", [-1, 100.5, 250])
    def test_threshold_out_of_range(self, engine, now, threshold):
        with pytest.raises(ValidationError):
            engine.at_risk("u1", threshold, now=now)


class TestRetentionScore:
    def test_score_for_single_item(self, engine, tracked, now):
        assert engine.risk.retention_score(tracked["fresh"], now) == 100.0
        assert engine.risk.retention_score(tracked["weak"], now) == pytest.approx(100 / math.e)

    def test_assess_orders_all_items(self, engine, tracked, now):
        assessed = engine.risk.assess(tracked.values(), now)
        assert [i.id for i in assessed] == [tracked[k].id for k in ("weak", "fading", "fresh")]
