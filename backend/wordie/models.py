from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Text, Float, DateTime, ForeignKey, Index, Boolean
)
from sqlalchemy.orm import relationship

from wordie.database import Base


class Word(Base):
    __tablename__ = "words"

    id = Column(Integer, primary_key=True, autoincrement=True)
    text = Column(String(255), unique=True, nullable=False)  # normalized lemma

    card = relationship("Card", back_populates="word", uselist=False)
    sentence_links = relationship("SentenceWord", back_populates="word")


class Sentence(Base):
    __tablename__ = "sentences"

    id = Column(Integer, primary_key=True, autoincrement=True)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.now)

    word_links = relationship("SentenceWord", back_populates="sentence")
    card = relationship("SentenceCard", back_populates="sentence", uselist=False)


class SentenceWord(Base):
    """Membership of a word in a sentence; one row per distinct pair."""
    __tablename__ = "sentence_words"

    sentence_id = Column(Integer, ForeignKey("sentences.id"), primary_key=True)
    word_id = Column(Integer, ForeignKey("words.id"), primary_key=True)
    position = Column(Integer, nullable=False, default=0)  # first occurrence in the sentence

    sentence = relationship("Sentence", back_populates="word_links")
    word = relationship("Word", back_populates="sentence_links")

    __table_args__ = (
        Index("ix_sentence_words_word_id", "word_id", "sentence_id"),
    )


class CardColumns:
    """Review-state columns shared by word cards and sentence cards."""

    review_count = Column(Integer, nullable=False, default=0)
    ease = Column(Float, nullable=False, default=2.5)
    interval_seconds = Column(Integer, nullable=True)
    due = Column(DateTime, nullable=True, index=True)  # NULL = new
    added_order = Column(Integer, nullable=False, index=True)


class Card(CardColumns, Base):
    __tablename__ = "cards"

    word_id = Column(Integer, ForeignKey("words.id"), primary_key=True)

    word = relationship("Word", back_populates="card")


class SentenceCard(CardColumns, Base):
    __tablename__ = "sentence_cards"

    sentence_id = Column(Integer, ForeignKey("sentences.id"), primary_key=True)

    sentence = relationship("Sentence", back_populates="card")


class ReviewLog(Base):
    __tablename__ = "review_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    word_id = Column(Integer, ForeignKey("words.id"), nullable=True, index=True)
    sentence_id = Column(Integer, ForeignKey("sentences.id"), nullable=True, index=True)
    difficulty = Column(String(10), nullable=False)  # again/hard/good/easy
    reviewed_at = Column(DateTime, nullable=False, index=True)
    was_new = Column(Boolean, nullable=False, default=False)
    review_count = Column(Integer, nullable=False)
    ease = Column(Float, nullable=False)
    interval_seconds = Column(Integer, nullable=True)
    due = Column(DateTime, nullable=True)
