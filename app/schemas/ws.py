from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MessageType(str, Enum):
    """WebSocket message types."""

    # Core
    PING = "ping"
    PONG = "pong"
    CONNECTED = "connected"
    ERROR = "error"

    # Game
    GAME_ACTION = "game_action"
    GAME_ACTION_RESULT = "game_action_result"
    GAME_EVENTS = "game_events"
    GET_GAME_STATE = "get_game_state"
    GAME_STATE = "game_state"
    GAME_ERROR = "game_error"


class WSCloseCode:
    """WebSocket close codes (RFC 6455)."""

    NORMAL = 1000
    GOING_AWAY = 1001
    PROTOCOL_ERROR = 1002
    UNSUPPORTED_DATA = 1003
    INVALID_DATA = 1007
    POLICY_VIOLATION = 1008
    MESSAGE_TOO_BIG = 1009
    INTERNAL_ERROR = 1011


class WSClientMessage(BaseModel):
    """Message sent from client to server."""

    type: MessageType
    request_id: str | None = None
    payload: dict[str, Any] | None = None


class WSServerMessage(BaseModel):
    """Message sent from server to client."""

    type: MessageType
    request_id: str | None = None
    payload: dict[str, Any] | None = None


# --- Payload schemas ---


class ConnectedPayload(BaseModel):
    """Payload for the 'connected' message."""

    connection_id: str
    server_id: str
    state: dict[str, Any] = Field(..., description="Initial game state (serialized)")


class PongPayload(BaseModel):
    """Payload for the 'pong' message."""

    server_time: datetime = Field(default_factory=lambda: datetime.now())


class ErrorPayload(BaseModel):
    """Payload for error messages (ERROR, GAME_ERROR)."""

    error_code: str
    message: str


# --- Game payload schemas ---


class GameActionPayload(BaseModel):
    """Payload for GAME_ACTION messages from client.

    Carries the action type plus whatever fields that action needs
    (position, player/index, promote, index, mode, strategy).
    """

    model_config = ConfigDict(extra="allow")

    action_type: str = Field(
        ...,
        description=(
            "Action type: 'new_game', 'set_game_mode', 'select_strategy', 'cell_click', "
            "'captured_piece_click', 'promotion_choice', 'undo', 'replay', 'retry_opponent'"
        ),
    )


class GameActionResultPayload(BaseModel):
    """Payload for GAME_ACTION_RESULT messages.

    A rejected action was ignored and changed nothing; the code says why.
    """

    accepted: bool
    error_code: str | None = None
    message: str | None = None


class GameEventsPayload(BaseModel):
    """Payload for GAME_EVENTS messages to clients.

    Contains events in emission order, each with its sequence number.
    """

    events: list[dict[str, Any]] = Field(
        ..., description="List of game events (serialized)"
    )


class GameStatePayload(BaseModel):
    """Payload for GAME_STATE messages to clients.

    Contains the full game state for reconciliation or initial sync.
    """

    state: dict[str, Any] = Field(..., description="Full game state (serialized)")
