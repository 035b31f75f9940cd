import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from wordie.config import settings
from wordie.database import get_db
from wordie.errors import InvariantViolation, SrsError, StorageError, ValidationError
from wordie.schemas import (
    ClockIn,
    ClockOut,
    ReviewOut,
    ReviewSubmitIn,
    ReviewSubmitOut,
    StatsOut,
    SuggestionOut,
)
from wordie.services.interaction_logger import log_interaction
from wordie.services.review_scheduler import ReviewScheduler, SessionState, create_scheduler
from wordie.services.sentence_aggregator import NewReview

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/review", tags=["review"])


def get_session_state(request: Request) -> SessionState:
    state = getattr(request.app.state, "session_state", None)
    if state is None:
        state = SessionState()
        request.app.state.session_state = state
    return state


def get_scheduler(
    state: SessionState = Depends(get_session_state),
    db: Session = Depends(get_db),
) -> ReviewScheduler:
    return create_scheduler(db, state=state)


def raise_http(exc: SrsError):
    if isinstance(exc, ValidationError):
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if isinstance(exc, StorageError):
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    if isinstance(exc, InvariantViolation):
        logger.error("Invariant violation: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    raise exc


@router.get("/next", response_model=ReviewOut)
def next_review(scheduler: ReviewScheduler = Depends(get_scheduler)):
    """Select the next sentence and hold it until an answer is submitted."""
    try:
        review = scheduler.get_next_review()
    except SrsError as exc:
        raise_http(exc)

    if review is None:
        return ReviewOut()

    if isinstance(review, NewReview):
        out = ReviewOut(
            kind="new",
            sentence_id=review.sentence_id,
            text=review.text,
            unknown_word_count=review.unknown_word_count,
        )
        if review.unknown_word_count > settings.max_new_words_per_sentence:
            out.show_card = False
            try:
                suggestions = scheduler.suggest_by_unknown_count(
                    review.unknown_word_count, settings.max_suggested_sentences
                )
            except SrsError as exc:
                raise_http(exc)
            out.suggestions = [SuggestionOut.model_validate(s) for s in suggestions]
        return out

    return ReviewOut(
        kind="due",
        sentence_id=review.sentence_id,
        text=review.text,
        words_due_count=review.words_due_count,
    )


@router.post("/submit", response_model=ReviewSubmitOut)
def submit(body: ReviewSubmitIn, scheduler: ReviewScheduler = Depends(get_scheduler)):
    pending = scheduler.pending
    if pending is None:
        raise HTTPException(status_code=409, detail="No review is awaiting an answer")
    try:
        outcome = scheduler.submit_review(body.difficulty)
    except SrsError as exc:
        raise_http(exc)

    log_interaction(
        event="review_submitted",
        sentence_id=pending.sentence_id,
        difficulty=body.difficulty.value,
        kind=pending.kind,
        response_ms=body.response_ms,
        words_reviewed=outcome.reviewed,
    )
    return ReviewSubmitOut(
        learned=outcome.learned,
        reviewed=outcome.reviewed,
        cards_learned_today=scheduler.cards_learned_today(),
        cards_reviewed_today=scheduler.cards_reviewed_today(),
    )


@router.get("/suggestions", response_model=list[SuggestionOut])
def suggestions(
    limit: int = Query(1, ge=0),
    max_results: int = Query(settings.max_suggested_sentences, ge=1, le=100),
    scheduler: ReviewScheduler = Depends(get_scheduler),
):
    """Sentences with at most ``limit`` unknown words, easiest first."""
    try:
        found = scheduler.suggest_by_unknown_count(limit, max_results)
    except SrsError as exc:
        raise_http(exc)
    return [SuggestionOut.model_validate(s) for s in found]


@router.get("/stats", response_model=StatsOut)
def stats(scheduler: ReviewScheduler = Depends(get_scheduler)):
    try:
        return scheduler.stats()
    except SrsError as exc:
        raise_http(exc)


@router.post("/reset-day", response_model=StatsOut)
def reset_day(scheduler: ReviewScheduler = Depends(get_scheduler)):
    scheduler.reset_daily_counters()
    try:
        return scheduler.stats()
    except SrsError as exc:
        raise_http(exc)


@router.post("/clock", response_model=ClockOut)
def set_clock(body: ClockIn, scheduler: ReviewScheduler = Depends(get_scheduler)):
    scheduler.advance_clock(body.now)
    return ClockOut(now=scheduler.now)
