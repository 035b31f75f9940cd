import json

from wordie.config import settings


def _add(client, *sentences):
    resp = client.post("/api/material", json={"sentences": list(sentences)})
    assert resp.status_code == 200
    return resp.json()


def test_root(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["app"] == "wordie"


def test_add_material(client):
    data = _add(client, "the cat", "the dog")
    assert data["added"] == 2
    assert len(data["sentence_ids"]) == 2


def test_add_material_from_text(client):
    resp = client.post("/api/material", json={"text": "猫が寝る。犬も寝る。"})
    assert resp.status_code == 200
    assert resp.json()["added"] == 2


def test_add_material_requires_content(client):
    resp = client.post("/api/material", json={})
    assert resp.status_code == 422


def test_add_blank_sentence(client):
    resp = client.post("/api/material", json={"sentences": ["ok", "  "]})
    assert resp.status_code == 400
    assert client.get("/api/review/stats").json()["sentences"] == 0


def test_next_review_empty(client):
    resp = client.get("/api/review/next")
    assert resp.status_code == 200
    assert resp.json()["kind"] is None


def test_review_flow(client):
    _add(client, "cat")
    resp = client.get("/api/review/next")
    data = resp.json()
    assert data["kind"] == "new"
    assert data["unknown_word_count"] == 1
    assert data["show_card"] is True

    resp = client.post("/api/review/submit", json={"difficulty": "good", "response_ms": 1200})
    assert resp.status_code == 200
    assert resp.json() == {"learned": 1, "reviewed": 1, "cards_learned_today": 1, "cards_reviewed_today": 1}

    data = client.get("/api/review/next").json()
    assert data["kind"] == "due"
    assert data["words_due_count"] == 1


def test_submit_without_pending(client):
    resp = client.post("/api/review/submit", json={"difficulty": "good"})
    assert resp.status_code == 409


def test_submit_bad_difficulty(client):
    _add(client, "cat")
    client.get("/api/review/next")
    resp = client.post("/api/review/submit", json={"difficulty": "perfect"})
    assert resp.status_code == 422


def test_hard_sentence_offers_suggestions(client):
    _add(client, "one two three", "four five")
    data = client.get("/api/review/next").json()
    assert data["kind"] == "new"
    assert data["unknown_word_count"] == 2
    assert data["show_card"] is False
    assert [s["text"] for s in data["suggestions"]] == ["four five"]


def test_suggestions_endpoint(client):
    _add(client, "a", "b c")
    resp = client.get("/api/review/suggestions", params={"limit": 1})
    assert resp.status_code == 200
    assert [s["text"] for s in resp.json()] == ["a"]

    resp = client.get("/api/review/suggestions", params={"limit": -1})
    assert resp.status_code == 422


def test_stats_and_reset_day(client):
    _add(client, "a")
    client.get("/api/review/next")
    client.post("/api/review/submit", json={"difficulty": "easy"})

    stats = client.get("/api/review/stats").json()
    assert stats["algorithm"] == "wordie"
    assert stats["graduated"] == 1
    assert stats["learned_today"] == 1

    stats = client.post("/api/review/reset-day").json()
    assert stats["learned_today"] == 0
    assert stats["reviewed_today"] == 0


def test_clock(client):
    _add(client, "a")
    client.get("/api/review/next")
    client.post("/api/review/submit", json={"difficulty": "easy"})
    assert client.get("/api/review/next").json()["kind"] is None

    resp = client.post("/api/review/clock", json={"now": "2024-03-02T12:00:00"})
    assert resp.status_code == 200
    assert resp.json()["now"] == "2024-03-02T12:00:00"
    assert client.get("/api/review/next").json()["kind"] == "due"


def test_submit_is_logged(client):
    _add(client, "a")
    client.get("/api/review/next")
    client.post("/api/review/submit", json={"difficulty": "hard", "response_ms": 900})

    log_files = list(settings.log_dir.glob("interactions_*.jsonl"))
    assert len(log_files) == 1
    entries = [json.loads(line) for line in log_files[0].read_text().splitlines()]
    submitted = [e for e in entries if e["event"] == "review_submitted"]
    assert submitted[0]["difficulty"] == "hard"
    assert submitted[0]["kind"] == "new"
    assert submitted[0]["response_ms"] == 900


def test_japanese_sentences_share_word_cards(client):
    client.post("/api/material", json={"text": "猫は魚を食べた。犬も魚を食べます。"})
    stats = client.get("/api/review/stats").json()
    assert stats["sentences"] == 2
    # 6 + 6 morphemes; 魚, を and 食べる are shared
    assert 1 < stats["cards"] <= 9
