from fastapi import APIRouter, Depends

from wordie.errors import SrsError
from wordie.routers.review import get_scheduler, raise_http
from wordie.schemas import MaterialIn, MaterialOut
from wordie.services.interaction_logger import log_interaction
from wordie.services.review_scheduler import ReviewScheduler
from wordie.services.tokenizer import split_sentences

router = APIRouter(prefix="/api/material", tags=["material"])


@router.post("", response_model=MaterialOut)
def add_material(body: MaterialIn, scheduler: ReviewScheduler = Depends(get_scheduler)):
    """Add sentences, either as a list or as free text split into sentences."""
    sentences = list(body.sentences)
    if body.text:
        sentences.extend(split_sentences(body.text))
    try:
        sentence_ids = scheduler.add_material(sentences)
    except SrsError as exc:
        raise_http(exc)

    log_interaction(event="material_added", count=len(sentence_ids))
    return MaterialOut(added=len(sentence_ids), sentence_ids=sentence_ids)
