"""Public scheduling operations for one learner session.

The facade owns nothing global: the clock, the daily counters and the review
currently awaiting an answer live in a SessionState handle, so several
learners (or a simulation next to a live app) can run side by side.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from wordie.config import settings
from wordie.errors import ValidationError
from wordie.services.algorithms import SrsAlgorithm, build_algorithm
from wordie.services.lexicon_repo import LexiconRepository
from wordie.services.sentence_aggregator import Review, ReviewOutcome, Suggestion
from wordie.services.srs import Difficulty
from wordie.services.tokenizer import Tokenizer, tokenize

logger = logging.getLogger(__name__)


def to_local_naive(value: datetime) -> datetime:
    """Cards store naive local time; convert aware datetimes on the way in."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


@dataclass
class DailyCounters:
    learned: int = 0
    reviewed: int = 0

    def record(self, outcome: ReviewOutcome) -> None:
        self.learned += outcome.learned
        self.reviewed += outcome.reviewed

    def reset(self) -> None:
        self.learned = 0
        self.reviewed = 0


@dataclass
class SessionState:
    now: datetime = field(default_factory=datetime.now)
    counters: DailyCounters = field(default_factory=DailyCounters)
    pending: Optional[Review] = None


class ReviewScheduler:
    def __init__(
        self,
        algorithm: SrsAlgorithm,
        state: Optional[SessionState] = None,
        daily_new_limit: Optional[int] = None,
        max_learning_cards: Optional[int] = None,
    ):
        self.algorithm = algorithm
        self.repo: LexiconRepository = algorithm.repo
        self.state = state if state is not None else SessionState()
        self.daily_new_limit = settings.new_cards_per_day if daily_new_limit is None else daily_new_limit
        self.max_learning_cards = settings.max_learning_cards if max_learning_cards is None else max_learning_cards

    @property
    def now(self) -> datetime:
        return self.state.now

    @property
    def pending(self) -> Optional[Review]:
        return self.state.pending

    def add_material(self, raw_sentences: Sequence[str]) -> list[int]:
        """Ingest sentences; either all of them are stored or none are."""
        for text in raw_sentences:
            if text is None or not text.strip():
                raise ValidationError("Cannot add an empty sentence")

        logger.info("Adding %d sentences", len(raw_sentences))
        sentence_ids = []
        with self.repo.storage_errors("add material"):
            try:
                for text in raw_sentences:
                    sentence_ids.append(self.algorithm.ingest(text.strip()))
            except ValidationError:
                self.repo.db.rollback()
                raise
            self.repo.db.commit()
        return sentence_ids

    def get_next_review(self) -> Optional[Review]:
        with self.repo.storage_errors("select next review"):
            review = self.algorithm.select_next(
                self.now,
                self.state.counters.learned,
                self.daily_new_limit,
                self.max_learning_cards,
            )
        self.state.pending = review
        if review is None:
            logger.info("No more reviews for today")
        return review

    def submit_review(self, difficulty: "Difficulty | str") -> ReviewOutcome:
        review = self.state.pending
        if review is None:
            raise ValidationError("No review is awaiting an answer")
        difficulty = Difficulty.parse(difficulty)

        with self.repo.storage_errors("submit review"):
            outcome = self.algorithm.apply_review(review.sentence_id, difficulty, self.now)
        self.state.counters.record(outcome)
        self.state.pending = None
        return outcome

    def cards_learned_today(self) -> int:
        return self.state.counters.learned

    def cards_reviewed_today(self) -> int:
        return self.state.counters.reviewed

    def suggest_by_unknown_count(self, limit: int, max_results: Optional[int] = None) -> list[Suggestion]:
        if limit < 0:
            raise ValidationError("limit must be non-negative")
        if max_results is not None and max_results < 1:
            raise ValidationError("max_results must be at least 1")
        with self.repo.storage_errors("suggest sentences"):
            return self.algorithm.suggest_by_unknown_count(limit, max_results)

    def stats(self) -> dict:
        model = self.algorithm.card_model
        with self.repo.storage_errors("count cards"):
            total = self.repo.count_cards(model)
            new = self.repo.count_cards(model, new=True)
            graduated = self.repo.count_graduated(model)
            sentences = self.repo.count_sentences()
        return {
            "algorithm": self.algorithm.name,
            "sentences": sentences,
            "cards": total,
            "new": new,
            "learning": total - new - graduated,
            "graduated": graduated,
            "learned_today": self.state.counters.learned,
            "reviewed_today": self.state.counters.reviewed,
        }

    def reset_daily_counters(self) -> None:
        logger.info("Resetting daily card limits")
        self.state.counters.reset()

    def advance_clock(self, to: datetime) -> None:
        # Not required to be monotonic; replayed scenarios may step backwards.
        to = to_local_naive(to)
        logger.info("Setting current time to %s", to.isoformat())
        self.state.now = to


def create_scheduler(
    db: Session,
    state: Optional[SessionState] = None,
    algorithm: Optional[str] = None,
    tokenizer: Tokenizer = tokenize,
    daily_new_limit: Optional[int] = None,
    max_learning_cards: Optional[int] = None,
) -> ReviewScheduler:
    repo = LexiconRepository(db)
    return ReviewScheduler(
        build_algorithm(algorithm or settings.algorithm, repo, tokenizer),
        state=state,
        daily_new_limit=daily_new_limit,
        max_learning_cards=max_learning_cards,
    )
