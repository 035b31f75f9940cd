import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wordie.database import initialize_db
from wordie.routers import material, review
from wordie.services.review_scheduler import SessionState

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    initialize_db()
    # One learner per process; counters live for the process lifetime.
    app.state.session_state = SessionState()
    logger.info("Starting wordie")
    yield


app = FastAPI(title="Wordie Sentence Review API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(material.router)
app.include_router(review.router)


@app.get("/")
def root():
    return {"app": "wordie", "status": "ok"}
