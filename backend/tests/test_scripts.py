import io

import pytest

from conftest import T0
from scripts.import_sentences import load_sentences, run_import
from scripts.simulate_usage import SAMPLE_SENTENCES, DayResult, run_simulation, write_csv


def _write_csv(tmp_path, rows):
    path = tmp_path / "sentences.csv"
    lines = ["core_index,sentence_expression,sentence_meaning"]
    lines += [f"{i},{text},x" for i, text in enumerate(rows)]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def test_load_sentences_skips_blank_and_caps(tmp_path):
    path = _write_csv(tmp_path, ["猫が寝る。", "", "犬も寝る。", "鳥が飛ぶ。"])
    assert load_sentences(path) == ["猫が寝る。", "犬も寝る。", "鳥が飛ぶ。"]
    assert load_sentences(path, max_sentences=2) == ["猫が寝る。", "犬も寝る。"]


def test_load_sentences_requires_column(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("a,b\n1,2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_sentences(path)


def test_run_import(tmp_path, db_session):
    path = _write_csv(tmp_path, ["the cat", "the dog"])
    result = run_import(db_session, path)
    assert result == {"imported": 2, "words": 3, "sentences": 2}


@pytest.mark.parametrize("algorithm", ["wordie", "anki"])
def test_simulation_learns_everything_and_keeps_reviewing(algorithm):
    results = run_simulation(SAMPLE_SENTENCES, days=5, algorithm=algorithm, seed=1, start=T0)
    assert [r.day for r in results] == [0, 1, 2, 3, 4]
    assert results[0].learnt > 0
    assert results[0].reviewed >= 1
    assert all(r.learnt == 0 for r in results[1:])


def test_simulation_respects_daily_limit():
    results = run_simulation(SAMPLE_SENTENCES, days=3, algorithm="anki", daily_new_limit=4, seed=3, start=T0)
    assert [r.learnt for r in results] == [4, 4, 4]


def test_write_csv():
    out = io.StringIO()
    write_csv([DayResult(day=0, learnt=3, reviewed=7)], out)
    assert out.getvalue() == "day,learnt,reviewed\n0,3,7\n"
