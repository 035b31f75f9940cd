"""Sentence-level view over word cards.

Sentences are what the learner sees; words are what gets scheduled. This
module maps in both directions: a selected word becomes a displayable
sentence with its difficulty metadata, and a reviewed sentence fans out into
a state-machine step for every word it contains. Counts are always computed
from the current card rows, never cached.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional, Union

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from wordie.errors import InvariantViolation, ValidationError
from wordie.models import Card, Sentence, SentenceWord, Word
from wordie.services.lexicon_repo import LexiconRepository, to_state
from wordie.services.srs import Difficulty, advance, next_midnight
from wordie.services.tokenizer import Tokenizer, tokenize, word_lemmas
from wordie.services.unit_selector import SelectionCandidate, unknown_counts_subquery

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewReview:
    sentence_id: int
    text: str
    unknown_word_count: int
    kind: Literal["new"] = "new"


@dataclass(frozen=True)
class DueReview:
    sentence_id: int
    text: str
    words_due_count: int
    kind: Literal["due"] = "due"


Review = Union[NewReview, DueReview]


@dataclass(frozen=True)
class ReviewOutcome:
    learned: int
    reviewed: int


@dataclass(frozen=True)
class Suggestion:
    sentence_id: int
    text: str
    unknown_words: list[str]


def ingest(repo: LexiconRepository, text: str, tokenizer: Tokenizer = tokenize) -> int:
    """Store a sentence, creating any words (and their cards) not seen before.

    Re-ingesting the same text creates a second sentence.
    """
    if not text or not text.strip():
        raise ValidationError("Sentence text is empty")
    lemmas = word_lemmas(text, tokenizer)
    if not lemmas:
        raise ValidationError(f"Sentence contains no words: {text!r}")

    word_ids = repo.add_words(lemmas)
    return repo.add_sentence(text, [word_ids[lemma] for lemma in lemmas])


def unknown_word_count(db: Session, sentence_id: int) -> int:
    return (
        db.query(func.count())
        .select_from(SentenceWord)
        .join(Card, Card.word_id == SentenceWord.word_id)
        .filter(SentenceWord.sentence_id == sentence_id, Card.due.is_(None))
        .scalar() or 0
    )


def words_due_count(db: Session, sentence_id: int, now: datetime) -> int:
    return (
        db.query(func.count())
        .select_from(SentenceWord)
        .join(Card, Card.word_id == SentenceWord.word_id)
        .filter(
            SentenceWord.sentence_id == sentence_id,
            Card.due.isnot(None),
            Card.due < next_midnight(now),
        )
        .scalar() or 0
    )


def resolve_sentence(repo: LexiconRepository, word_id: int) -> Optional[int]:
    """Sentence to show for a word: fewest unknown words, then lowest id."""
    sentence_ids = repo.sentence_ids_for_word(word_id)
    if not sentence_ids:
        return None
    return min(sentence_ids, key=lambda sid: (unknown_word_count(repo.db, sid), sid))


def to_review(repo: LexiconRepository, candidate: SelectionCandidate, now: datetime) -> Review:
    sentence_id = candidate.sentence_id
    if sentence_id is None:
        sentence_id = resolve_sentence(repo, candidate.word_id)
        if sentence_id is None:
            raise InvariantViolation(f"Word {candidate.word_id} belongs to no sentence")

    sentence = repo.get_sentence(sentence_id)
    if sentence is None:
        raise InvariantViolation(f"Sentence {sentence_id} does not exist")

    if candidate.is_new:
        return NewReview(
            sentence_id=sentence.id,
            text=sentence.text,
            unknown_word_count=unknown_word_count(repo.db, sentence.id),
        )
    return DueReview(
        sentence_id=sentence.id,
        text=sentence.text,
        words_due_count=words_due_count(repo.db, sentence.id, now),
    )


def apply_review(
    repo: LexiconRepository,
    sentence_id: int,
    difficulty: Difficulty,
    now: datetime,
) -> ReviewOutcome:
    """Advance every word card of the sentence in one atomic write."""
    cards = repo.cards_for_sentence(sentence_id)
    if not cards:
        raise InvariantViolation(f"Sentence {sentence_id} has no words to review")

    # Compute every new state before touching storage.
    updates = [(card, advance(to_state(card), difficulty, now)) for card in cards]
    learned = sum(1 for card in cards if card.due is None)

    repo.save_reviews(updates, difficulty, now)
    if learned:
        logger.info("Learnt %d new card(s)", learned)
    return ReviewOutcome(learned=learned, reviewed=len(updates))


def suggest_by_unknown_count(
    repo: LexiconRepository,
    limit: int,
    max_results: Optional[int] = None,
) -> list[Suggestion]:
    """Sentences with at most ``limit`` unknown words, easiest first."""
    db = repo.db
    unknown = unknown_counts_subquery(db)
    count = func.coalesce(unknown.c.unknown, 0)
    query = (
        db.query(Sentence.id, Sentence.text, count.label("unknown"))
        .outerjoin(unknown, unknown.c.sentence_id == Sentence.id)
        .filter(count <= limit)
        .order_by(count, Sentence.id)
    )
    if max_results is not None:
        query = query.limit(max_results)
    rows = query.all()
    if not rows:
        return []

    sentence_ids = [row.id for row in rows]
    unknown_words: dict[int, list[str]] = {sid: [] for sid in sentence_ids}
    word_rows = (
        db.query(SentenceWord.sentence_id, Word.text)
        .join(Word, Word.id == SentenceWord.word_id)
        .join(Card, and_(Card.word_id == SentenceWord.word_id, Card.due.is_(None)))
        .filter(SentenceWord.sentence_id.in_(sentence_ids))
        .order_by(SentenceWord.sentence_id, SentenceWord.position)
        .all()
    )
    for sid, text in word_rows:
        unknown_words[sid].append(text)

    return [Suggestion(sentence_id=row.id, text=row.text, unknown_words=unknown_words[row.id]) for row in rows]
