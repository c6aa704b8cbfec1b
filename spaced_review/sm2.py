import math
from datetime import date, datetime, timedelta
from typing import Iterable, NamedTuple

from spaced_review.schemas import ReviewResult

MIN_EASE = 1.3
INITIAL_EASE = 2.5
PARTIAL_DAMPENING = 0.75
MAX_INTERVAL = 365

# Days until the first review for a topic of the given difficulty at full confidence
BASE_INTERVALS = {1: 6, 2: 5, 3: 4, 4: 3, 5: 2}

MASTERY_STREAK = 5
MASTERY_CONFIDENCE = 4

SECONDS_PER_DAY = 86400.0


class ReviewStep(NamedTuple):
    """New SM-2 state after one review"""
    ease_factor: float
    interval_days: int
    repetition_count: int
    next_review_at: datetime


class SM2Algorithm:
    """
    SM-2 spaced repetition algorithm for calculating review intervals.
    Based on SuperMemo 2 algorithm by Piotr Wozniak, with confidence (1-5)
    standing in for response quality and a three-way review result.
    """

    @staticmethod
    def confidence_factor(confidence: int) -> float:
        """Divisor applied to the base interval: 1.0 at confidence 5, 3.0 at 1"""
        return 1 + (5 - confidence) * 0.5

    @staticmethod
    def initial_interval(difficulty_level: int, confidence: int) -> int:
        """
        Days until the first review of a newly tracked topic.

        Harder topics and lower confidence never give a longer interval.

        Args:
            difficulty_level: Author-estimated hardness, 1-5
            confidence: Learner confidence at creation, 1-5
        """
        base = BASE_INTERVALS[difficulty_level]
        return max(1, round(base / SM2Algorithm.confidence_factor(confidence)))

    @staticmethod
    def ease_delta(confidence: int) -> float:
        return 0.1 - (5 - confidence) * (0.08 + (5 - confidence) * 0.02)

    @staticmethod
    def calculate_next_review(
        ease_factor: float,
        interval: int,
        repetitions: int,
        confidence: int,
        result: ReviewResult,
        reviewed_at: datetime,
        partial_dampening: float = PARTIAL_DAMPENING,
        max_interval: int = MAX_INTERVAL
    ) -> ReviewStep:
        """
        Calculate next review time and update SM-2 parameters.

        Args:
            ease_factor: Current EF, never below 1.3
            interval: Current interval in days
            repetitions: Number of consecutive successful reviews
            confidence: Self-rated recall strength (1-5)
            result: correct, partial or incorrect
            reviewed_at: When the review happened
            partial_dampening: Growth multiplier for partial success
            max_interval: Longest interval growth may reach, in days

        Returns:
            ReviewStep(ease_factor, interval_days, repetition_count, next_review_at)
        """
        new_ef = max(MIN_EASE, ease_factor + SM2Algorithm.ease_delta(confidence))

        if result == ReviewResult.INCORRECT:
            new_repetitions = 0
            new_interval = 1
        else:
            new_repetitions = repetitions + 1
            growth = new_ef
            if result == ReviewResult.PARTIAL:
                growth *= partial_dampening
            # Successful reviews never shrink the interval; growth stops at max_interval
            new_interval = max(interval, min(max_interval, round(interval * growth)))

        next_review_at = reviewed_at + timedelta(days=new_interval)
        return ReviewStep(new_ef, new_interval, new_repetitions, next_review_at)

    @staticmethod
    def retention_score(elapsed_days: float, interval_days: int) -> float:
        """Forgetting curve: 100 * e^(-t/S), clamped to [0, 100]"""
        if elapsed_days <= 0:
            return 100.0
        score = 100.0 * math.exp(-elapsed_days / max(1, interval_days))
        return max(0.0, min(100.0, score))

    @staticmethod
    def elapsed_days(since: datetime, now: datetime) -> float:
        return (now - since).total_seconds() / SECONDS_PER_DAY

    @staticmethod
    def is_due_for_review(next_review_at: datetime, now: datetime) -> bool:
        """Check if a topic is due for review"""
        return next_review_at <= now

    @staticmethod
    def get_days_overdue(next_review_at: datetime, today: date) -> int:
        """Calculate how many calendar days overdue a review is"""
        if today <= next_review_at.date():
            return 0
        return (today - next_review_at.date()).days

    @staticmethod
    def is_mastered(records: Iterable) -> bool:
        """Last five reviews were all correct with confidence of at least 4"""
        recent = list(records)[-MASTERY_STREAK:]
        return len(recent) >= MASTERY_STREAK and all(
            ReviewResult(r.result) == ReviewResult.CORRECT and r.confidence >= MASTERY_CONFIDENCE
            for r in recent
        )
