import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from wordie.database import initialize_db, make_engine, reinitialize_db
from wordie.models import Card, Sentence, SentenceWord, Word


def test_word_text_unique(db_session):
    db_session.add(Word(text="cat"))
    db_session.flush()
    db_session.add(Word(text="cat"))
    with pytest.raises(IntegrityError):
        db_session.flush()


def test_relationships(db_session):
    word = Word(text="cat")
    sentence = Sentence(text="cat")
    db_session.add_all([word, sentence])
    db_session.flush()
    db_session.add(SentenceWord(sentence_id=sentence.id, word_id=word.id, position=0))
    db_session.add(Card(word_id=word.id, review_count=0, ease=2.5, added_order=0))
    db_session.commit()

    assert word.card.added_order == 0
    assert [link.sentence.text for link in word.sentence_links] == ["cat"]
    assert sentence.created_at is not None


def test_initialize_and_reinitialize():
    engine = make_engine("sqlite://")
    initialize_db(engine)
    assert {"words", "sentences", "sentence_words", "cards", "sentence_cards", "review_log"} <= set(
        inspect(engine).get_table_names()
    )

    session = sessionmaker(bind=engine)()
    session.add(Word(text="cat"))
    session.commit()
    session.close()

    reinitialize_db(engine)
    session = sessionmaker(bind=engine)()
    assert session.query(Word).count() == 0
    session.close()
    engine.dispose()
