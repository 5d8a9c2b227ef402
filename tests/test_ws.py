"""Tests for the WebSocket transport.

Critical scenarios tested:
- Connecting starts a game and sends the initial state
- Game actions are answered with an accept/reject result plus events
- Malformed messages and unknown actions produce errors
- Health endpoints
"""

import pytest
from fastapi.testclient import TestClient
from pydantic import TypeAdapter

from app.config import Settings
from app.main import app
from app.schemas.game_engine import GameMode
from app.services.game.engine import AnyGameEvent, GameStateChanged
from app.services.websocket.manager import ConnectionManager, set_connection_manager

from .conftest import ScriptedSupplier


@pytest.fixture
def client():
    settings = Settings(DEFAULT_GAME_MODE=GameMode.HUMAN, OPPONENT_MOVE_DELAY=0.0)
    set_connection_manager(
        ConnectionManager(settings=settings, supplier=ScriptedSupplier(), server_id="test")
    )
    with TestClient(app) as test_client:
        yield test_client
    set_connection_manager(None)


def receive_until(ws, message_type: str, limit: int = 10) -> dict:
    """Read messages until one of `message_type` arrives."""
    for _ in range(limit):
        message = ws.receive_json()
        if message["type"] == message_type:
            return message
    raise AssertionError(f"no {message_type} message received")


def cell_click(row: int, col: int, request_id: str = "r1") -> dict:
    return {
        "type": "game_action",
        "request_id": request_id,
        "payload": {"action_type": "cell_click", "position": {"row": row, "col": col}},
    }


class TestHttpEndpoints:
    """Test the plain HTTP routes."""

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_root(self, client: TestClient):
        assert client.get("/").json() == {"message": "Shogi Orchestrator API"}


class TestWebSocketGame:
    """Test playing over the socket."""

    def test_connect_sends_initial_state(self, client: TestClient):
        with client.websocket_connect("/api/v1/ws") as ws:
            connected = ws.receive_json()

            assert connected["type"] == "connected"
            assert connected["payload"]["server_id"] == "test"
            state = connected["payload"]["state"]
            assert state["current_player"] == "sente"
            assert state["game_mode"] == "human"
            assert state["board"][8][4] == {"type": "king", "player": "sente"}

            raw = receive_until(ws, "game_events")["payload"]["events"]
            events = [TypeAdapter(AnyGameEvent).validate_python(e) for e in raw]
            assert isinstance(events[0], GameStateChanged)
            assert events[0].seq == 0

    def test_ping(self, client: TestClient):
        with client.websocket_connect("/api/v1/ws") as ws:
            ws.send_json({"type": "ping", "request_id": "p1"})

            pong = receive_until(ws, "pong")

            assert pong["request_id"] == "p1"

    def test_play_a_move(self, client: TestClient):
        with client.websocket_connect("/api/v1/ws") as ws:
            receive_until(ws, "connected")

            ws.send_json(cell_click(6, 4, "a1"))
            result = receive_until(ws, "game_action_result")
            assert result["request_id"] == "a1"
            assert result["payload"]["accepted"] is True

            ws.send_json(cell_click(5, 4, "a2"))
            assert receive_until(ws, "game_action_result")["payload"]["accepted"] is True

            ws.send_json({"type": "get_game_state", "request_id": "s1"})
            state = receive_until(ws, "game_state")["payload"]["state"]
            assert state["current_player"] == "gote"
            assert state["current_move_index"] == 0
            move = state["history"][0]["move"]
            assert move["kind"] == "move"
            assert move["from"] == {"row": 6, "col": 4}
            assert move["to"] == {"row": 5, "col": 4}

    def test_rejected_action(self, client: TestClient):
        with client.websocket_connect("/api/v1/ws") as ws:
            receive_until(ws, "connected")

            ws.send_json(cell_click(4, 4))
            result = receive_until(ws, "game_action_result")

            assert result["payload"]["accepted"] is False
            assert result["payload"]["error_code"] == "NOT_YOUR_PIECE"

    def test_unknown_action(self, client: TestClient):
        with client.websocket_connect("/api/v1/ws") as ws:
            receive_until(ws, "connected")

            ws.send_json(
                {"type": "game_action", "request_id": "x", "payload": {"action_type": "resign"}}
            )
            error = receive_until(ws, "game_error")

            assert error["payload"]["error_code"] == "INVALID_ACTION"

    def test_invalid_json(self, client: TestClient):
        with client.websocket_connect("/api/v1/ws") as ws:
            receive_until(ws, "connected")

            ws.send_text("not json")
            error = receive_until(ws, "error")

            assert error["payload"]["error_code"] == "INVALID_JSON"

    def test_invalid_message_type(self, client: TestClient):
        with client.websocket_connect("/api/v1/ws") as ws:
            receive_until(ws, "connected")

            ws.send_json({"type": "teleport"})
            error = receive_until(ws, "error")

            assert error["payload"]["error_code"] == "INVALID_MESSAGE"

    def test_oversized_message(self, client: TestClient):
        with client.websocket_connect("/api/v1/ws") as ws:
            receive_until(ws, "connected")

            ws.send_text("x" * (64 * 1024 + 1))
            error = receive_until(ws, "error")

            assert error["payload"]["error_code"] == "MESSAGE_TOO_LARGE"
