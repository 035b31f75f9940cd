"""Pick the next word to present.

New words win over due ones. A new word is taken from the sentence that is
closest to fully known (fewest unlearned words), so the learner meets i+1
material first. A due pick is a fully known sentence covering as many due
words as possible, so one presentation clears the most reviews.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, case, desc, func
from sqlalchemy.orm import Session

from wordie.models import Card, SentenceWord
from wordie.services.lexicon_repo import LexiconRepository
from wordie.services.srs import next_midnight

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionCandidate:
    word_id: int
    is_new: bool
    sentence_id: Optional[int] = None


def unknown_counts_subquery(db: Session):
    """sentence_id -> number of linked words whose card has no due date."""
    return (
        db.query(
            SentenceWord.sentence_id.label("sentence_id"),
            func.count().label("unknown"),
        )
        .join(Card, Card.word_id == SentenceWord.word_id)
        .filter(Card.due.is_(None))
        .group_by(SentenceWord.sentence_id)
        .subquery()
    )


def new_word_gate(
    repo: LexiconRepository,
    now: datetime,
    learned_today: int,
    daily_new_limit: int,
    max_learning_cards: int,
) -> bool:
    """True when a new word may be introduced right now."""
    learning = repo.count_learning(Card, next_midnight(now))
    if learning >= max_learning_cards:
        logger.info("at learning card limit, learning: %d, limit: %d", learning, max_learning_cards)
        return False
    if learned_today >= daily_new_limit:
        logger.info("at new word limit, cards learnt: %d, limit: %d", learned_today, daily_new_limit)
        return False
    return True


def select_new(db: Session) -> Optional[SelectionCandidate]:
    unknown = unknown_counts_subquery(db)
    row = (
        db.query(SentenceWord.word_id, SentenceWord.sentence_id)
        .join(Card, Card.word_id == SentenceWord.word_id)
        .join(unknown, unknown.c.sentence_id == SentenceWord.sentence_id)
        .filter(Card.due.is_(None))
        .order_by(unknown.c.unknown, Card.added_order, SentenceWord.sentence_id)
        .first()
    )
    if row is None:
        return None
    return SelectionCandidate(word_id=row.word_id, sentence_id=row.sentence_id, is_new=True)


def select_due(db: Session, now: datetime) -> Optional[SelectionCandidate]:
    midnight = next_midnight(now)
    is_due = and_(Card.due.isnot(None), Card.due < midnight)

    due_count = func.sum(case((is_due, 1), else_=0))
    unknown = func.sum(case((Card.due.is_(None), 1), else_=0))
    earliest_due = func.min(case((is_due, Card.due)))
    first_added = func.min(case((is_due, Card.added_order)))

    row = (
        db.query(SentenceWord.sentence_id, due_count.label("due_count"))
        .join(Card, Card.word_id == SentenceWord.word_id)
        .group_by(SentenceWord.sentence_id)
        .having(and_(unknown == 0, due_count > 0))
        .order_by(desc(due_count), earliest_due, first_added, SentenceWord.sentence_id)
        .first()
    )
    if row is None:
        return None

    # Representative word: the most overdue one in the chosen sentence.
    word_id = (
        db.query(Card.word_id)
        .join(SentenceWord, SentenceWord.word_id == Card.word_id)
        .filter(SentenceWord.sentence_id == row.sentence_id, is_due)
        .order_by(Card.due, Card.added_order)
        .limit(1)
        .scalar()
    )
    return SelectionCandidate(word_id=word_id, sentence_id=row.sentence_id, is_new=False)


def select_next(
    repo: LexiconRepository,
    now: datetime,
    learned_today: int,
    daily_new_limit: int,
    max_learning_cards: int,
) -> Optional[SelectionCandidate]:
    """Apply the new/due policy and return the next word, or None for today."""
    if new_word_gate(repo, now, learned_today, daily_new_limit, max_learning_cards):
        candidate = select_new(repo.db)
        if candidate is not None:
            logger.info("next new word: %s", candidate.word_id)
            return candidate

    candidate = select_due(repo.db, now)
    if candidate is not None:
        logger.info("next due word: %s", candidate.word_id)
    return candidate
