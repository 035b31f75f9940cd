"""Scheduling variants.

WordieAlgorithm schedules words and presents them through sentences.
AnkiAlgorithm schedules each sentence as a single card, the way a plain Anki
deck of sentence cards would; it is kept for benchmarking against the word
level variant. Use one variant per database.
"""

import logging
from datetime import datetime
from typing import Optional, Protocol

from sqlalchemy import case, func

from wordie.errors import InvariantViolation, ValidationError
from wordie.models import Card, Sentence, SentenceCard, SentenceWord
from wordie.services import sentence_aggregator, unit_selector
from wordie.services.lexicon_repo import LexiconRepository, to_state
from wordie.services.sentence_aggregator import DueReview, NewReview, Review, ReviewOutcome, Suggestion
from wordie.services.srs import Difficulty, advance, next_midnight
from wordie.services.tokenizer import Tokenizer, tokenize, word_lemmas

logger = logging.getLogger(__name__)


class SrsAlgorithm(Protocol):
    """What the scheduling facade needs from a variant."""

    name: str
    repo: LexiconRepository
    card_model: type

    def ingest(self, text: str) -> int:
        """Store one sentence and seed whatever cards it needs."""
        ...

    def select_next(
        self,
        now: datetime,
        learned_today: int,
        daily_new_limit: int,
        max_learning_cards: int,
    ) -> Optional[Review]:
        """Next review to present, or None when nothing is left today."""
        ...

    def apply_review(self, sentence_id: int, difficulty: Difficulty, now: datetime) -> ReviewOutcome:
        """Record the learner's answer for a presented sentence."""
        ...

    def suggest_by_unknown_count(self, limit: int, max_results: Optional[int] = None) -> list[Suggestion]:
        ...


class WordieAlgorithm:
    """Word cards, sentence presentations."""

    name = "wordie"
    card_model = Card

    def __init__(self, repo: LexiconRepository, tokenizer: Tokenizer = tokenize):
        self.repo = repo
        self.tokenizer = tokenizer

    def ingest(self, text: str) -> int:
        return sentence_aggregator.ingest(self.repo, text, self.tokenizer)

    def select_next(self, now, learned_today, daily_new_limit, max_learning_cards):
        candidate = unit_selector.select_next(
            self.repo, now, learned_today, daily_new_limit, max_learning_cards
        )
        if candidate is None:
            return None
        return sentence_aggregator.to_review(self.repo, candidate, now)

    def apply_review(self, sentence_id, difficulty, now):
        return sentence_aggregator.apply_review(self.repo, sentence_id, difficulty, now)

    def suggest_by_unknown_count(self, limit, max_results=None):
        return sentence_aggregator.suggest_by_unknown_count(self.repo, limit, max_results)


class AnkiAlgorithm:
    """One card per sentence, new cards in insertion order."""

    name = "anki"
    card_model = SentenceCard

    def __init__(self, repo: LexiconRepository, tokenizer: Tokenizer = tokenize):
        self.repo = repo
        self.tokenizer = tokenizer

    def ingest(self, text: str) -> int:
        if not text or not text.strip():
            raise ValidationError("Sentence text is empty")
        lemmas = word_lemmas(text, self.tokenizer)
        word_ids = self.repo.add_words(lemmas, with_cards=False)
        sentence_id = self.repo.add_sentence(text, [word_ids[lemma] for lemma in lemmas])
        self.repo.add_sentence_card(sentence_id)
        return sentence_id

    def _word_count(self, sentence_id: int) -> int:
        return len(self.repo.word_ids_for_sentence(sentence_id))

    def select_next(self, now, learned_today, daily_new_limit, max_learning_cards):
        midnight = next_midnight(now)

        card = None
        is_new = False
        if self.repo.count_learning(SentenceCard, midnight) >= max_learning_cards:
            logger.info("at learning card limit: %d", max_learning_cards)
        elif learned_today >= daily_new_limit:
            logger.info("at new card limit, cards learnt: %d, limit: %d", learned_today, daily_new_limit)
        else:
            card = self.repo.first_new_card(SentenceCard)
            is_new = card is not None

        if card is None:
            due = self.repo.due_cards(SentenceCard, midnight, limit=1)
            card = due[0] if due else None
        if card is None:
            return None

        sentence = self.repo.get_sentence(card.sentence_id)
        if sentence is None:
            raise InvariantViolation(f"Card references missing sentence {card.sentence_id}")
        words = self._word_count(sentence.id)
        if is_new:
            return NewReview(sentence_id=sentence.id, text=sentence.text, unknown_word_count=words)
        return DueReview(sentence_id=sentence.id, text=sentence.text, words_due_count=words)

    def apply_review(self, sentence_id, difficulty, now):
        card = self.repo.get_sentence_card(sentence_id)
        if card is None:
            raise InvariantViolation(f"Sentence {sentence_id} has no card")
        was_new = card.due is None
        state = advance(to_state(card), difficulty, now)
        self.repo.save_reviews([(card, state)], difficulty, now)
        return ReviewOutcome(learned=1 if was_new else 0, reviewed=1)

    def suggest_by_unknown_count(self, limit, max_results=None):
        # A sentence that has never been reviewed counts all of its words as unknown.
        db = self.repo.db
        word_counts = (
            db.query(SentenceWord.sentence_id.label("sentence_id"), func.count().label("words"))
            .group_by(SentenceWord.sentence_id)
            .subquery()
        )
        count = func.coalesce(word_counts.c.words, 0)
        unknown = case((SentenceCard.due.is_(None), count), else_=0)
        query = (
            db.query(Sentence.id, Sentence.text, unknown.label("unknown"))
            .join(SentenceCard, SentenceCard.sentence_id == Sentence.id)
            .outerjoin(word_counts, word_counts.c.sentence_id == Sentence.id)
            .filter(unknown <= limit)
            .order_by(unknown, Sentence.id)
        )
        if max_results is not None:
            query = query.limit(max_results)

        suggestions = []
        for row in query.all():
            words: list[str] = []
            if row.unknown:
                words = [self.repo.get_word(word_id).text for word_id in self.repo.word_ids_for_sentence(row.id)]
            suggestions.append(Suggestion(sentence_id=row.id, text=row.text, unknown_words=words))
        return suggestions


ALGORITHMS = {
    WordieAlgorithm.name: WordieAlgorithm,
    AnkiAlgorithm.name: AnkiAlgorithm,
}


def build_algorithm(name: str, repo: LexiconRepository, tokenizer: Tokenizer = tokenize) -> SrsAlgorithm:
    try:
        factory = ALGORITHMS[name]
    except KeyError:
        raise ValidationError(f"Unknown algorithm {name!r}") from None
    return factory(repo, tokenizer)
