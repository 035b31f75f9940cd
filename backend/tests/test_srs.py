import random
from datetime import datetime, timedelta

import pytest

from wordie.errors import InvariantViolation, ValidationError
from wordie.services.srs import (
    DEFAULT_EASE,
    INITIAL_INTERVALS,
    MINIMUM_EASE,
    CardState,
    Difficulty,
    advance,
    check_invariants,
    next_midnight,
    scale_interval,
)

NOW = datetime(2024, 3, 1, 9, 0, 0)
DAY = timedelta(days=1)


def _graduated(review_count=5, ease=DEFAULT_EASE, interval=DAY):
    return CardState(review_count=review_count, ease=ease, interval=interval, due=NOW)


class TestLearningRegime:
    def test_new_card_good_moves_one_step(self):
        card = advance(CardState(), Difficulty.GOOD, NOW)
        assert card.review_count == 1
        assert card.interval == INITIAL_INTERVALS[1]
        assert card.due == NOW + timedelta(minutes=10)
        assert card.ease == DEFAULT_EASE

    def test_again_restarts(self):
        card = CardState(review_count=2, interval=INITIAL_INTERVALS[2], due=NOW)
        card = advance(card, Difficulty.AGAIN, NOW)
        assert card.review_count == 0
        assert card.interval == timedelta(minutes=1)
        assert card.due == NOW + timedelta(minutes=1)

    def test_hard_repeats_step(self):
        card = CardState(review_count=1, interval=INITIAL_INTERVALS[1], due=NOW)
        card = advance(card, Difficulty.HARD, NOW)
        assert card.review_count == 1
        assert card.interval == INITIAL_INTERVALS[1]

    def test_hard_on_new_card_schedules_first_step(self):
        card = advance(CardState(), Difficulty.HARD, NOW)
        assert card.review_count == 0
        assert card.due == NOW + INITIAL_INTERVALS[0]
        assert not card.is_new

    def test_easy_graduates_immediately(self):
        card = advance(CardState(), Difficulty.EASY, NOW)
        assert card.review_count == len(INITIAL_INTERVALS)
        assert card.interval == INITIAL_INTERVALS[-1]
        assert not card.in_learning

    def test_three_goods_graduate(self):
        card = CardState()
        for _ in range(3):
            card = advance(card, Difficulty.GOOD, NOW)
        assert card.review_count == 3
        assert card.interval == timedelta(hours=24)
        assert not card.in_learning

    def test_learning_leaves_ease_alone(self):
        card = CardState(ease=1.9)
        for difficulty in (Difficulty.AGAIN, Difficulty.HARD, Difficulty.GOOD):
            card = advance(card, difficulty, NOW)
        assert card.ease == 1.9


class TestGraduatedRegime:
    def test_hard_scales_and_truncates(self):
        card = advance(_graduated(), Difficulty.HARD, NOW)
        assert card.interval == timedelta(seconds=103680)
        assert card.ease == pytest.approx(2.35)
        assert card.review_count == 6
        assert card.due == NOW + timedelta(seconds=103680)

    def test_good_multiplies_by_ease(self):
        card = advance(_graduated(), Difficulty.GOOD, NOW)
        assert card.interval == timedelta(seconds=216000)
        assert card.ease == DEFAULT_EASE

    def test_easy_applies_bonus(self):
        card = advance(_graduated(), Difficulty.EASY, NOW)
        assert card.interval == timedelta(seconds=280800)
        assert card.ease == pytest.approx(2.65)

    def test_again_relearns(self):
        card = advance(_graduated(), Difficulty.AGAIN, NOW)
        assert card.review_count == 0
        assert card.interval == INITIAL_INTERVALS[0]
        assert card.ease == pytest.approx(2.3)
        assert card.in_learning

    def test_fractional_seconds_truncated(self):
        card = _graduated(interval=timedelta(seconds=7))
        card = advance(card, Difficulty.HARD, NOW)
        assert card.interval == timedelta(seconds=8)  # 8.4

    def test_ease_floor(self):
        card = advance(_graduated(ease=1.4), Difficulty.AGAIN, NOW)
        assert card.ease == MINIMUM_EASE

    def test_missing_interval_rejected(self):
        with pytest.raises(InvariantViolation):
            advance(CardState(review_count=4, due=NOW), Difficulty.GOOD, NOW)


def test_ease_never_below_minimum():
    rng = random.Random(7)
    card = CardState()
    now = NOW
    for step in range(300):
        # Mostly failing answers; Again every sixth step keeps intervals bounded.
        if step % 6 == 5:
            difficulty = Difficulty.AGAIN
        else:
            difficulty = rng.choice([Difficulty.AGAIN, Difficulty.HARD, Difficulty.HARD, Difficulty.GOOD])
        was_learning = card.in_learning
        card = advance(card, difficulty, now)
        assert card.ease >= MINIMUM_EASE
        assert card.review_count <= len(INITIAL_INTERVALS) or not was_learning
        now = card.due


def test_scale_interval_drops_subsecond_part():
    assert scale_interval(timedelta(seconds=10, milliseconds=900), 1.0) == timedelta(seconds=10)


def test_next_midnight():
    assert next_midnight(NOW) == datetime(2024, 3, 2)
    assert next_midnight(datetime(2024, 12, 31, 23, 59)) == datetime(2025, 1, 1)


class TestInvariants:
    def test_new_card_ok(self):
        assert check_invariants(CardState()) == CardState()

    def test_reviewed_without_due(self):
        with pytest.raises(InvariantViolation):
            check_invariants(CardState(review_count=1))

    def test_interval_without_due(self):
        with pytest.raises(InvariantViolation):
            check_invariants(CardState(interval=DAY))

    def test_graduated_without_interval(self):
        with pytest.raises(InvariantViolation):
            check_invariants(CardState(review_count=3, due=NOW))


def test_difficulty_parse():
    assert Difficulty.parse("Good") is Difficulty.GOOD
    assert Difficulty.parse(Difficulty.EASY) is Difficulty.EASY
    with pytest.raises(ValidationError):
        Difficulty.parse("meh")
