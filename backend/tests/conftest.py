import os
from datetime import datetime

import pytest
from sqlalchemy import StaticPool, create_engine, event
from sqlalchemy.orm import sessionmaker

os.environ["DATABASE_URL"] = "sqlite://"

from wordie.config import settings
from wordie.database import Base, get_db
from wordie.main import app
import wordie.models  # noqa: F401
from wordie.services.lexicon_repo import LexiconRepository
from wordie.services.review_scheduler import SessionState, create_scheduler

T0 = datetime(2024, 3, 1, 9, 0, 0)


@pytest.fixture(autouse=True)
def _interaction_logs(tmp_path, monkeypatch):
    """Keep JSONL interaction logs out of the real data directory."""
    monkeypatch.setattr(settings, "log_dir", tmp_path / "logs")


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def repo(db_session):
    return LexiconRepository(db_session)


@pytest.fixture
def scheduler(db_session):
    return create_scheduler(
        db_session,
        state=SessionState(now=T0),
        algorithm="wordie",
        daily_new_limit=50,
        max_learning_cards=50,
    )


@pytest.fixture
def client(db_session):
    from fastapi.testclient import TestClient

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        app.state.session_state = SessionState(now=T0)
        yield c
    app.dependency_overrides.clear()


def count_commits(db_session):
    """Attach a listener that counts commits; returns the counter dict."""
    counter = {"count": 0}

    def _after_commit(session):
        counter["count"] += 1

    event.listen(db_session, "after_commit", _after_commit)
    return counter
