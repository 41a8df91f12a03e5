"""
Tests for the API service and HTTP endpoints.

Tests:
- Service-level match lifecycle
- HTTP status codes for every error path
- Action submission round trip
"""

import pytest
from fastapi.testclient import TestClient

from ..api import APIService, create_app
from ..api.schemas import ActionKind, ActionRequest, CreateMatchRequest, ErrorCode, ErrorResponse, MatchStatus
from ..games.tarot import TAROT_CARDS


class TestAPIService:
    """Tests for APIService."""

    @pytest.fixture
    def service(self):
        return APIService()

    def test_create_match(self, service):
        match = service.create_match(CreateMatchRequest(player_name="Ana", seed=42))

        assert match.match_id
        assert match.status == MatchStatus.ACTIVE
        assert match.phase == "set"
        assert match.human_player_ids == [1]
        assert match.legal_actions
        assert all(info.player_id == 1 for info in match.legal_actions)
        assert match.state.players[0].name == "Ana"

    def test_unknown_personality(self, service):
        with pytest.raises(ValueError):
            service.create_match(CreateMatchRequest(bot_personality="reckless"))

    def test_get_nonexistent_match(self, service):
        response = service.get_match("nope")
        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.MATCH_NOT_FOUND

    def test_bot_seat_rejected(self, service):
        match = service.create_match(CreateMatchRequest(seed=1))
        response = service.submit_action(match.match_id, ActionRequest(player_id=2, action=ActionKind.PASS))
        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.INVALID_ACTION

    def test_end_match(self, service):
        match = service.create_match(CreateMatchRequest(seed=1))
        assert match.match_id in service.list_matches()

        assert service.end_match(match.match_id)
        assert match.match_id not in service.list_matches()
        assert not service.end_match(match.match_id)

    def test_card_library(self, service):
        cards = service.card_library()
        assert len(cards) == len(TAROT_CARDS)
        priestess = next(c for c in cards if c.card_id == "cups-priestess")
        assert priestess.instant_windows == ["before_set"]


class TestHTTP:
    """Tests for the FastAPI endpoints."""

    @pytest.fixture
    def client(self):
        return TestClient(create_app(APIService()))

    @pytest.fixture
    def match(self, client):
        response = client.post("/api/v1/matches", json={"player_name": "Ana", "seed": 42})
        assert response.status_code == 201
        return response.json()

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_cards(self, client):
        body = client.get("/api/v1/cards").json()
        assert body["count"] == len(TAROT_CARDS)

    def test_create_and_list(self, client, match):
        assert match["status"] == "active"
        listed = client.get("/api/v1/matches").json()
        assert match["match_id"] in listed["matches"]

    def test_unknown_personality_is_422(self, client):
        response = client.post("/api/v1/matches", json={"bot_personality": "reckless"})
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_unknown_match_is_404(self, client):
        response = client.get("/api/v1/matches/nope")
        assert response.status_code == 404
        assert response.json()["error_code"] == "MATCH_NOT_FOUND"

    def test_malformed_body_is_422(self, client, match):
        response = client.post(
            f"/api/v1/matches/{match['match_id']}/actions",
            json={"player_id": 5, "action": "set_card"},
        )
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_invalid_set_is_400(self, client, match):
        response = client.post(
            f"/api/v1/matches/{match['match_id']}/actions",
            json={"player_id": 1, "action": "set_card", "instance_id": "bogus#1"},
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_ACTION"

    def test_bot_seat_is_400(self, client, match):
        response = client.post(
            f"/api/v1/matches/{match['match_id']}/actions",
            json={"player_id": 2, "action": "pass"},
        )
        assert response.status_code == 400

    def test_valid_set(self, client, match):
        set_action = next(a for a in match["legal_actions"] if a["action"] == "set_card")
        response = client.post(
            f"/api/v1/matches/{match['match_id']}/actions",
            json={"player_id": 1, "action": "set_card", "instance_id": set_action["instance_id"]},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"]
        assert body["log_lines"]
        assert body["match"]["match_id"] == match["match_id"]

    def test_snapshot(self, client, match):
        response = client.get(f"/api/v1/matches/{match['match_id']}/snapshot")
        assert response.status_code == 200
        snapshot = response.json()
        assert snapshot["match_id"] == match["match_id"]
        assert len(snapshot["players"]) == 2

    def test_delete_then_404(self, client, match):
        match_id = match["match_id"]
        response = client.delete(f"/api/v1/matches/{match_id}", params={"reason": "done"})
        assert response.status_code == 200
        assert response.json()["success"]

        assert client.get(f"/api/v1/matches/{match_id}").status_code == 404
        assert client.delete(f"/api/v1/matches/{match_id}").status_code == 404
