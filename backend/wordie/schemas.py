from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator

from wordie.services.srs import Difficulty


class MaterialIn(BaseModel):
    sentences: list[str] = Field(default_factory=list)
    text: Optional[str] = None  # free text, split into sentences

    @model_validator(mode="after")
    def _require_content(self):
        if not self.sentences and not (self.text and self.text.strip()):
            raise ValueError("Provide sentences or text")
        return self


class MaterialOut(BaseModel):
    added: int
    sentence_ids: list[int]


class SuggestionOut(BaseModel):
    sentence_id: int
    text: str
    unknown_words: list[str]
    model_config = {"from_attributes": True}


class ReviewOut(BaseModel):
    kind: Optional[Literal["new", "due"]] = None
    sentence_id: Optional[int] = None
    text: Optional[str] = None
    unknown_word_count: Optional[int] = None
    words_due_count: Optional[int] = None
    # False when the next new sentence is harder than the configured i+N limit
    show_card: bool = True
    suggestions: list[SuggestionOut] = Field(default_factory=list)


class ReviewSubmitIn(BaseModel):
    difficulty: Difficulty
    response_ms: Optional[int] = None


class ReviewSubmitOut(BaseModel):
    learned: int
    reviewed: int
    cards_learned_today: int
    cards_reviewed_today: int


class ClockIn(BaseModel):
    now: datetime


class ClockOut(BaseModel):
    now: datetime


class StatsOut(BaseModel):
    algorithm: str
    sentences: int
    cards: int
    new: int
    learning: int
    graduated: int
    learned_today: int
    reviewed_today: int
