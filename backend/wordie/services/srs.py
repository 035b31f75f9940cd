"""Anki-style review state machine.

Cards start in a learning regime that walks through fixed INITIAL_INTERVALS.
Once a card has passed every learning step it graduates and its interval grows
by its ease on each successful review.
See https://faqs.ankiweb.net/what-spaced-repetition-algorithm.html
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from wordie.errors import InvariantViolation, ValidationError

INITIAL_INTERVALS: tuple[timedelta, ...] = (
    timedelta(minutes=1),
    timedelta(minutes=10),
    timedelta(hours=24),
)

DEFAULT_EASE = 2.5
MINIMUM_EASE = 1.3
EASY_BONUS = 1.3
HARD_INTERVAL = 1.2

AGAIN_EASE_PENALTY = 0.2
HARD_EASE_PENALTY = 0.15
EASY_EASE_BONUS = 0.15


class Difficulty(str, Enum):
    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @classmethod
    def parse(cls, value: "str | Difficulty") -> "Difficulty":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(f"Unknown difficulty {value!r}") from None


@dataclass(frozen=True)
class CardState:
    """Review state of one schedulable unit."""
    review_count: int = 0
    ease: float = DEFAULT_EASE
    interval: Optional[timedelta] = None
    due: Optional[datetime] = None

    @property
    def is_new(self) -> bool:
        return self.due is None

    @property
    def in_learning(self) -> bool:
        return self.review_count < len(INITIAL_INTERVALS)


def check_invariants(card: CardState) -> CardState:
    """Reject states where the two notions of "new" would disagree.

    A card without a due date must never have been reviewed, and a graduated
    card must carry both an interval and a due date.
    """
    if card.due is None and (card.review_count != 0 or card.interval is not None):
        raise InvariantViolation(
            f"Card has no due date but review_count={card.review_count}, interval={card.interval}"
        )
    if not card.in_learning and (card.due is None or card.interval is None):
        raise InvariantViolation(
            f"Graduated card (review_count={card.review_count}) is missing its interval or due date"
        )
    return card


def scale_interval(interval: timedelta, multiplier: float) -> timedelta:
    # Whole seconds only; fractional seconds are truncated.
    seconds = int(interval.total_seconds())
    return timedelta(seconds=int(seconds * multiplier))


def next_midnight(now: datetime) -> datetime:
    return (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)


def advance(card: CardState, difficulty: Difficulty, now: datetime) -> CardState:
    """Return the card's state after being reviewed at ``now``."""
    steps = len(INITIAL_INTERVALS)

    if card.review_count < steps:
        # Learning/relearning: Again restarts, Hard repeats the step, Good moves
        # on one step, Easy graduates immediately. Ease is left alone.
        if difficulty is Difficulty.AGAIN:
            review_count = 0
        elif difficulty is Difficulty.HARD:
            review_count = card.review_count
        elif difficulty is Difficulty.GOOD:
            review_count = card.review_count + 1
        else:
            review_count = steps

        interval = INITIAL_INTERVALS[min(max(review_count, 0), steps - 1)]
        return replace(card, review_count=review_count, interval=interval, due=now + interval)

    if card.interval is None:
        raise InvariantViolation(f"Graduated card (review_count={card.review_count}) has no interval")

    if difficulty is Difficulty.AGAIN:
        interval = INITIAL_INTERVALS[0]
        ease = card.ease - AGAIN_EASE_PENALTY
        review_count = 0
    elif difficulty is Difficulty.HARD:
        interval = scale_interval(card.interval, HARD_INTERVAL)
        ease = card.ease - HARD_EASE_PENALTY
        review_count = card.review_count + 1
    elif difficulty is Difficulty.GOOD:
        interval = scale_interval(card.interval, card.ease)
        ease = card.ease
        review_count = card.review_count + 1
    else:
        interval = scale_interval(card.interval, card.ease * EASY_BONUS)
        ease = card.ease + EASY_EASE_BONUS
        review_count = card.review_count + 1

    return CardState(
        review_count=review_count,
        ease=max(MINIMUM_EASE, ease),
        interval=interval,
        due=now + interval,
    )
