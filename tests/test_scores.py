from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from prizeboard.main import create_app
from tests.conftest import ADMIN_HEADERS, iso, read_document


def post_score(client, player_id, score, ts=None):
    payload = {"player_id": player_id, "score": score}
    if ts is not None:
        payload["ts"] = ts
    return client.post("/api/score", json=payload)


def test_submit_returns_rank_and_public_code(client):
    first = post_score(client, "alice", 100, iso(1))
    second = post_score(client, "bob", 150, iso(2))

    assert first.status_code == 200
    assert second.status_code == 200
    body = second.json()
    assert body["ok"] is True
    assert body["best"] is True
    assert body["prize_code"] is None
    assert (body["rank"], body["total_players"]) == (1, 2)
    assert body["pub_code"].startswith("PLY-")


def test_lower_score_is_not_best(client):
    post_score(client, "alice", 100)
    lower = post_score(client, "alice", 90)

    assert lower.status_code == 200
    assert lower.json()["best"] is False
    assert lower.json()["total_players"] == 1


def test_resubmission_appends_new_entry(client):
    post_score(client, "alice", 100, iso(1))
    post_score(client, "alice", 100, iso(1))

    scores = read_document(client)["scores"]
    assert [row["id"] for row in scores] == [1, 2]
    assert scores[0]["ua"] == "testclient"


@pytest.mark.parametrize("score", [0, 1_000_000, "500", 12.7])
def test_accepted_scores(client, score):
    response = post_score(client, "alice", score)

    assert response.status_code == 200


@pytest.mark.parametrize("score", [-5, 2_000_000, "lots", None, True])
def test_rejected_scores_are_audited(client, score):
    response = post_score(client, "alice", score)

    assert response.status_code == 400
    assert response.json()["ok"] is False
    assert response.json()["error"] == "bad_request"

    document = read_document(client)
    assert document["scores"] == []
    assert [row["action"] for row in document["logs"]] == ["score_reject"]


def test_missing_player_id_is_rejected(client):
    response = client.post("/api/score", json={"score": 10})

    assert response.status_code == 400


def test_long_player_id_is_truncated(client):
    response = post_score(client, "p" * 80, 10)

    assert response.status_code == 200
    assert read_document(client)["scores"][0]["player_id"] == "p" * 64


def test_submit_reports_existing_prize_code(client):
    post_score(client, "alice", 100)
    issued = client.post("/api/issue-code", json={"player_id": "alice", "rank": 1}, headers=ADMIN_HEADERS)

    again = post_score(client, "alice", 10)

    assert again.json()["prize_code"] == issued.json()["code"]


def test_accepted_submission_is_audited(client):
    post_score(client, "alice", 42)

    logs = read_document(client)["logs"]
    assert logs[-1]["action"] == "score_submit"
    assert logs[-1]["player_id"] == "alice"
    assert logs[-1]["ip"] == "testclient"


def test_fourth_submission_in_window_is_rate_limited(settings):
    settings.score_rate_limit = 3
    with TestClient(create_app(settings)) as api:
        statuses = [post_score(api, "alice", n).status_code for n in range(4)]

        assert statuses == [200, 200, 200, 429]
        assert read_document(api)["logs"][-1]["action"] == "score_rate_limited"
        assert len(read_document(api)["scores"]) == 3
