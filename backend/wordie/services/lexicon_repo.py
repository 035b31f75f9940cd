"""Lexicon repository and card store over a SQLAlchemy session.

Words are unique by their normalized text. The sentence<->word relation lives
in ``sentence_words`` and is read in both directions here rather than through
ORM object graphs, so callers only ever hold identifiers.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence, Type, Union

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wordie.errors import InvariantViolation, StorageError
from wordie.models import Card, ReviewLog, Sentence, SentenceCard, SentenceWord, Word
from wordie.services.srs import DEFAULT_EASE, INITIAL_INTERVALS, CardState, Difficulty, check_invariants

logger = logging.getLogger(__name__)

CardModel = Union[Card, SentenceCard]


def to_state(card: CardModel) -> CardState:
    interval = timedelta(seconds=card.interval_seconds) if card.interval_seconds is not None else None
    return check_invariants(CardState(
        review_count=card.review_count,
        ease=card.ease,
        interval=interval,
        due=card.due,
    ))


def apply_state(card: CardModel, state: CardState) -> None:
    card.review_count = state.review_count
    card.ease = state.ease
    card.interval_seconds = int(state.interval.total_seconds()) if state.interval is not None else None
    card.due = state.due


class LexiconRepository:
    """Words, sentences, their links, and the cards that schedule them."""

    def __init__(self, db: Session):
        self.db = db

    # ---- Lexicon ----

    def word_ids_by_text(self, texts: Iterable[str]) -> dict[str, int]:
        texts = list(set(texts))
        if not texts:
            return {}
        rows = self.db.query(Word.text, Word.id).filter(Word.text.in_(texts)).all()
        return {text: word_id for text, word_id in rows}

    def add_words(self, texts: Sequence[str], with_cards: bool = True) -> dict[str, int]:
        """Return ids for every text, creating missing words (with fresh cards unless told not to)."""
        existing = self.word_ids_by_text(texts)
        next_order = self._next_added_order(Card)
        for text in texts:
            if text in existing:
                continue
            word = Word(text=text)
            self.db.add(word)
            self.db.flush()
            existing[text] = word.id
            if not with_cards:
                continue
            self.db.add(Card(
                word_id=word.id,
                review_count=0,
                ease=DEFAULT_EASE,
                interval_seconds=None,
                due=None,
                added_order=next_order,
            ))
            next_order += 1
        return existing

    def add_sentence(self, text: str, word_ids: Sequence[int] = ()) -> int:
        """Insert a sentence and one link per distinct word, in the given order."""
        sentence = Sentence(text=text)
        self.db.add(sentence)
        self.db.flush()
        seen: set[int] = set()
        for position, word_id in enumerate(word_ids):
            if word_id in seen:
                continue
            seen.add(word_id)
            self.db.add(SentenceWord(sentence_id=sentence.id, word_id=word_id, position=position))
        self.db.flush()
        return sentence.id

    def add_sentence_card(self, sentence_id: int) -> None:
        self.db.add(SentenceCard(
            sentence_id=sentence_id,
            review_count=0,
            ease=DEFAULT_EASE,
            interval_seconds=None,
            due=None,
            added_order=self._next_added_order(SentenceCard),
        ))
        self.db.flush()

    def get_sentence(self, sentence_id: int) -> Optional[Sentence]:
        return self.db.get(Sentence, sentence_id)

    def get_word(self, word_id: int) -> Optional[Word]:
        return self.db.get(Word, word_id)

    def word_ids_for_sentence(self, sentence_id: int) -> list[int]:
        rows = (
            self.db.query(SentenceWord.word_id)
            .filter(SentenceWord.sentence_id == sentence_id)
            .order_by(SentenceWord.position)
            .all()
        )
        return [word_id for (word_id,) in rows]

    def sentence_ids_for_word(self, word_id: int) -> list[int]:
        rows = (
            self.db.query(SentenceWord.sentence_id)
            .filter(SentenceWord.word_id == word_id)
            .order_by(SentenceWord.sentence_id)
            .all()
        )
        return [sentence_id for (sentence_id,) in rows]

    # ---- Card store ----

    def get_card(self, word_id: int) -> Optional[Card]:
        return self.db.get(Card, word_id)

    def get_sentence_card(self, sentence_id: int) -> Optional[SentenceCard]:
        return self.db.get(SentenceCard, sentence_id)

    def cards_for_sentence(self, sentence_id: int) -> list[Card]:
        """Cards of every word linked to the sentence, in word order.

        Raises InvariantViolation if a linked word has no card.
        """
        rows = (
            self.db.query(SentenceWord.word_id, Card)
            .outerjoin(Card, Card.word_id == SentenceWord.word_id)
            .filter(SentenceWord.sentence_id == sentence_id)
            .order_by(SentenceWord.position)
            .all()
        )
        missing = [word_id for word_id, card in rows if card is None]
        if missing:
            raise InvariantViolation(f"Sentence {sentence_id} links words without cards: {missing}")
        return [card for _, card in rows]

    def due_cards(self, model: Type[CardModel], before: datetime, limit: Optional[int] = None) -> list[CardModel]:
        """Cards with a due date before ``before``, ordered by due then added_order."""
        query = (
            self.db.query(model)
            .filter(model.due.isnot(None), model.due < before)
            .order_by(model.due, model.added_order)
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    def first_new_card(self, model: Type[CardModel]) -> Optional[CardModel]:
        return (
            self.db.query(model)
            .filter(model.due.is_(None))
            .order_by(model.added_order)
            .first()
        )

    def count_learning(self, model: Type[CardModel], before: datetime) -> int:
        """Cards still on a learning step and due before ``before``."""
        return (
            self.db.query(func.count())
            .select_from(model)
            .filter(
                model.review_count < len(INITIAL_INTERVALS),
                model.due.isnot(None),
                model.due < before,
            )
            .scalar() or 0
        )

    def count_cards(self, model: Type[CardModel], new: Optional[bool] = None) -> int:
        query = self.db.query(func.count()).select_from(model)
        if new is True:
            query = query.filter(model.due.is_(None))
        elif new is False:
            query = query.filter(model.due.isnot(None))
        return query.scalar() or 0

    def count_graduated(self, model: Type[CardModel]) -> int:
        return (
            self.db.query(func.count())
            .select_from(model)
            .filter(model.review_count >= len(INITIAL_INTERVALS))
            .scalar() or 0
        )

    def count_sentences(self) -> int:
        return self.db.query(func.count(Sentence.id)).scalar() or 0

    def save_reviews(
        self,
        updates: Sequence[tuple[CardModel, CardState]],
        difficulty: Difficulty,
        reviewed_at: datetime,
    ) -> None:
        """Write every card update plus its log row, all or nothing."""
        with self.storage_errors(f"save {len(updates)} card update(s)"):
            for card, state in updates:
                was_new = card.due is None
                apply_state(card, state)
                self.db.add(ReviewLog(
                    word_id=getattr(card, "word_id", None),
                    sentence_id=getattr(card, "sentence_id", None),
                    difficulty=difficulty.value,
                    reviewed_at=reviewed_at,
                    was_new=was_new,
                    review_count=state.review_count,
                    ease=state.ease,
                    interval_seconds=card.interval_seconds,
                    due=state.due,
                ))
            self.db.commit()

    @contextmanager
    def storage_errors(self, action: str):
        """Roll back and re-raise database failures as StorageError."""
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Failed to {action}") from exc

    def _next_added_order(self, model: Type[CardModel]) -> int:
        current = self.db.query(func.max(model.added_order)).scalar()
        return 0 if current is None else current + 1
