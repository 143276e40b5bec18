"""
Interval scheduling for spaced repetition.

This is a pure computation module with no I/O. The interval model is a small
fixed ladder (1 -> 3 -> 7 days, plateauing at 7), not an ease-factor algorithm.
"""

from collections.abc import Sequence
from datetime import datetime, time, timedelta, timezone

from flashreview.domain.constants import (
    INITIAL_INTERVAL,
    PLATEAU_INTERVAL,
    SECOND_INTERVAL,
)
from flashreview.domain.review.models import (
    MasteryLevel,
    ReviewHistoryRecord,
    ScheduledInterval,
    utcnow,
)


def start_of_day(moment: datetime) -> datetime:
    """Midnight UTC of the calendar day ``moment`` falls on."""
    moment = moment.astimezone(timezone.utc)
    return datetime.combine(moment.date(), time.min, tzinfo=timezone.utc)


def add_days(moment: datetime, days: int) -> datetime:
    """
    Calendar-day arithmetic normalized to day boundaries.

    The result is midnight UTC ``days`` days after the day of ``moment``, so a
    card reviewed late in the evening and one reviewed early in the morning
    become due at the same instant.
    """
    return start_of_day(moment) + timedelta(days=days)


class SpacedRepetitionService:
    """
    Computes the next interval and due date from a card's review history.

    Stateless and side-effect free.
    """

    def calculate_next_interval(
        self,
        history: Sequence[ReviewHistoryRecord],
        latest_is_correct: bool,
        now: datetime | None = None,
    ) -> ScheduledInterval:
        """
        Apply the interval ladder.

        Args:
            history: Prior records for one (user, card), newest first.
            latest_is_correct: Outcome of the attempt being scheduled.
            now: Reference time; defaults to the current UTC time.

        Returns:
            ScheduledInterval with the interval in days and the next due date.
        """
        now = now or utcnow()
        days = self.next_interval_days(history, latest_is_correct)
        return ScheduledInterval(interval_days=days, next_review_date=add_days(now, days))

    def next_interval_days(
        self, history: Sequence[ReviewHistoryRecord], latest_is_correct: bool
    ) -> int:
        if not history or not latest_is_correct:
            return INITIAL_INTERVAL

        previous = history[0].interval_days
        if previous < 1:
            raise ValueError(f"Malformed review history: interval_days={previous}")

        if previous < SECOND_INTERVAL:
            return SECOND_INTERVAL
        return PLATEAU_INTERVAL

    def is_due_for_review(
        self,
        last_review_date: datetime,
        interval_days: int,
        now: datetime | None = None,
    ) -> bool:
        now = now or utcnow()
        return now >= add_days(last_review_date, interval_days)

    def days_until_next_review(
        self,
        last_review_date: datetime,
        interval_days: int,
        now: datetime | None = None,
    ) -> int:
        """Whole days until the card is due (negative if overdue)."""
        now = now or utcnow()
        due = add_days(last_review_date, interval_days)
        return (due.date() - now.astimezone(timezone.utc).date()).days

    def mastery_level(self, last_review: ReviewHistoryRecord | None) -> MasteryLevel:
        if last_review is None:
            return MasteryLevel.NEW
        if last_review.is_correct and last_review.interval_days >= PLATEAU_INTERVAL:
            return MasteryLevel.MASTERED
        return MasteryLevel.LEARNING
