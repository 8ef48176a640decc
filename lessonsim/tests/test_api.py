"""
Tests for the REST API.

Tests:
- Health and compile endpoints
- Session lifecycle over HTTP
- Accepted and rejected actions
- Error codes for unknown sessions and bad card data
"""

import pytest
from fastapi.testclient import TestClient

from ..api import APIService, create_app


def _card(card_id, value=10, **extra):
    data = {"id": card_id, "name": card_id, "effects": [{"type": "score_fixed", "value": value}]}
    data.update(extra)
    return data


@pytest.fixture
def client():
    return TestClient(create_app(APIService()))


@pytest.fixture
def session_id(client):
    response = client.post("/api/v1/sessions", json={
        "cards": [_card(f"c{i}") for i in range(6)],
        "status": {"vocal": 0, "hp": 30},
        "turn_attributes": ["vocal", "dance", "visual"],
        "drinks": [{"id": "tea", "name": "Tea", "effects": [{"type": "buff_genki", "value": 5}]}],
        "random_seed": 4,
    })
    assert response.status_code == 200
    return response.json()["session_id"]


class TestSystem:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["service"] == "lessonsim"

    def test_root(self, client):
        assert client.get("/").json()["docs"] == "/api/docs"


class TestCompile:
    """Tests for POST /api/v1/compile."""

    def test_compile_success(self, client):
        response = client.post("/api/v1/compile", json={
            "name": "アピール",
            "description": "パラメータ+10,元気+2",
            "plan": "sense",
            "cost": 4,
        })
        body = response.json()
        assert response.status_code == 200
        assert body["success"]
        assert body["status"] == "success"
        assert body["effect_count"] == 2
        assert body["card"]["id"] == "sense_アピール"
        assert body["card"]["cost"] == 4

    def test_compile_failure(self, client):
        body = client.post("/api/v1/compile", json={"name": "謎", "description": "ふしぎな効果"}).json()
        assert not body["success"]
        assert body["unparsed"] == ["ふしぎな効果"]


class TestSessions:
    """Tests for session endpoints."""

    def test_create_and_get(self, client, session_id):
        body = client.get(f"/api/v1/sessions/{session_id}").json()
        assert body["turn"] == 1
        assert body["max_turns"] == 3
        assert body["seed"] == 4
        assert session_id in client.get("/api/v1/sessions").json()["sessions"]

    def test_state(self, client, session_id):
        state = client.get(f"/api/v1/sessions/{session_id}/state").json()
        assert len(state["hand"]) == 3
        assert state["deck_count"] == 3
        assert state["current_turn_attribute"] == "vocal"
        assert state["drinks"][0]["drink_id"] == "tea"

    def test_delete(self, client, session_id):
        body = client.delete(f"/api/v1/sessions/{session_id}").json()
        assert body["success"]
        assert client.get(f"/api/v1/sessions/{session_id}").status_code == 404

    def test_unknown_session(self, client):
        response = client.get("/api/v1/sessions/nope/state")
        assert response.status_code == 404
        assert response.json()["error_code"] == "SESSION_NOT_FOUND"

    def test_invalid_card_data(self, client):
        response = client.post("/api/v1/sessions", json={"cards": [{"id": "nameless"}]})
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_CARD_DATA"

    def test_invalid_deck(self, client):
        response = client.post("/api/v1/sessions", json={
            "cards": [_card("a"), _card("a", value=20)],
        })
        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert body["details"]["errors"]

    def test_deck_copies(self, client):
        response = client.post("/api/v1/sessions", json={"cards": [_card("a")] * 4})
        assert response.status_code == 200

    def test_bad_turn_attribute(self, client):
        response = client.post("/api/v1/sessions", json={"cards": [_card("a")], "turn_attributes": ["singing"]})
        assert response.status_code == 422


class TestActions:
    """Tests for play, end-turn, drink and cost preview."""

    def test_play_accepted_then_rejected(self, client, session_id):
        hand = client.get(f"/api/v1/sessions/{session_id}/state").json()["hand"]

        first = client.post(f"/api/v1/sessions/{session_id}/play", json={"card_id": hand[0]["card_id"]}).json()
        assert first["accepted"]
        assert first["game_state"]["score"] == 10
        assert first["game_state"]["cards_played"] == 1

        second = client.post(f"/api/v1/sessions/{session_id}/play", json={"card_id": hand[1]["card_id"]}).json()
        assert not second["accepted"]
        assert second["game_state"]["score"] == 10

    def test_end_turn(self, client, session_id):
        body = client.post(f"/api/v1/sessions/{session_id}/end-turn").json()
        assert body["accepted"]
        assert body["game_state"]["turn"] == 2
        assert body["game_state"]["current_turn_attribute"] == "dance"

    def test_end_turn_on_final_turn(self, client, session_id):
        client.post(f"/api/v1/sessions/{session_id}/end-turn")
        client.post(f"/api/v1/sessions/{session_id}/end-turn")
        body = client.post(f"/api/v1/sessions/{session_id}/end-turn").json()
        assert not body["accepted"]
        assert body["game_state"]["turn"] == 3
        assert body["game_state"]["is_finished"]

    def test_drink(self, client, session_id):
        body = client.post(f"/api/v1/sessions/{session_id}/drink", json={"drink_id": "tea"}).json()
        assert body["accepted"]
        assert body["game_state"]["genki"] == 5
        assert body["game_state"]["drinks"][0]["used"]

        again = client.post(f"/api/v1/sessions/{session_id}/drink", json={"drink_id": "tea"}).json()
        assert not again["accepted"]

    def test_cost_preview(self, client, session_id):
        hand = client.get(f"/api/v1/sessions/{session_id}/state").json()["hand"]
        body = client.get(f"/api/v1/sessions/{session_id}/cost/{hand[0]['card_id']}").json()
        assert body["actual_cost"] == 0
        assert body["playable"]

    def test_cost_preview_not_in_hand(self, client, session_id):
        response = client.get(f"/api/v1/sessions/{session_id}/cost/nope")
        assert response.status_code == 404
        assert response.json()["error_code"] == "CARD_NOT_IN_HAND"
