import json
import logging
import time
from collections import defaultdict

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from starlette.websockets import WebSocketState

from app.config import get_settings
from app.schemas.ws import (
    ErrorPayload,
    MessageType,
    WSClientMessage,
    WSServerMessage,
)
from app.services.websocket.handlers import HandlerContext, dispatch
from app.services.websocket.manager import get_connection_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])

# Rate limiting configuration
MAX_MESSAGES_PER_SECOND = 20
RATE_LIMIT_WINDOW = 1.0  # seconds


class RateLimiter:
    """Simple token bucket rate limiter per connection."""

    def __init__(
        self, max_tokens: int = MAX_MESSAGES_PER_SECOND, window: float = RATE_LIMIT_WINDOW
    ):
        self.max_tokens = max_tokens
        self.window = window
        self._tokens: dict[str, list[float]] = defaultdict(list)

    def is_allowed(self, connection_id: str) -> bool:
        """Check if a message is allowed under rate limiting."""
        now = time.time()
        cutoff = now - self.window

        # Remove expired timestamps
        self._tokens[connection_id] = [t for t in self._tokens[connection_id] if t > cutoff]

        # Check if under limit
        if len(self._tokens[connection_id]) >= self.max_tokens:
            return False

        # Record this message
        self._tokens[connection_id].append(now)
        return True

    def remove(self, connection_id: str) -> None:
        """Remove rate limit tracking for a connection."""
        self._tokens.pop(connection_id, None)


# Global rate limiter instance
_rate_limiter = RateLimiter()


def _error(error_code: str, message: str) -> WSServerMessage:
    return WSServerMessage(
        type=MessageType.ERROR,
        payload=ErrorPayload(error_code=error_code, message=message).model_dump(),
    )


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for playing one game.

    Clients connect with: ws://host/api/v1/ws

    On connection the server sends a 'connected' message with the initial
    game state, then streams 'game_events' as the game changes. Clients send
    'game_action' messages to play and 'ping' to keep the connection alive.
    """
    max_message_size = get_settings().WS_MAX_MESSAGE_SIZE

    await websocket.accept()

    manager = get_connection_manager()
    connection = await manager.connect(websocket)
    logger.info("WS connection accepted: %s", connection.connection_id)

    try:
        while True:
            # Check if connection is still open
            if websocket.client_state != WebSocketState.CONNECTED:
                logger.debug("WebSocket no longer connected, exiting loop")
                break

            # Receive raw message with size limit check
            try:
                message_data = await websocket.receive()
            except Exception as e:
                logger.debug("Error receiving message: %s", e)
                break

            # Handle disconnect message
            if message_data.get("type") == "websocket.disconnect":
                break

            raw_text = message_data.get("text")
            raw_bytes = message_data.get("bytes")

            if raw_text:
                message_size = len(raw_text.encode("utf-8"))
            elif raw_bytes:
                message_size = len(raw_bytes)
            else:
                continue

            if message_size > max_message_size:
                logger.warning(
                    "Message too large from connection %s: %d bytes (max %d)",
                    connection.connection_id,
                    message_size,
                    max_message_size,
                )
                await manager.send_to_connection(
                    connection.connection_id,
                    _error(
                        "MESSAGE_TOO_LARGE",
                        f"Message exceeds maximum size of {max_message_size} bytes",
                    ),
                )
                continue

            if not _rate_limiter.is_allowed(connection.connection_id):
                logger.warning("Rate limit exceeded for connection %s", connection.connection_id)
                await manager.send_to_connection(
                    connection.connection_id,
                    _error("RATE_LIMITED", "Too many messages, please slow down"),
                )
                continue

            if not raw_text:
                continue

            try:
                data = json.loads(raw_text)
            except json.JSONDecodeError:
                logger.warning("Invalid JSON from connection %s", connection.connection_id)
                await manager.send_to_connection(
                    connection.connection_id,
                    _error("INVALID_JSON", "Invalid JSON format"),
                )
                continue

            try:
                message = WSClientMessage.model_validate(data)
            except ValidationError as e:
                logger.warning("Invalid message from connection %s: %s", connection.connection_id, e)
                await manager.send_to_connection(
                    connection.connection_id,
                    _error("INVALID_MESSAGE", "Invalid message format"),
                )
                continue

            ctx = HandlerContext(
                connection_id=connection.connection_id,
                message=message,
                manager=manager,
            )

            result = await dispatch(ctx)

            if result is None:
                logger.debug(
                    "Unhandled message type %s from connection %s",
                    message.type,
                    connection.connection_id,
                )
                continue

            if result.response:
                await manager.send_to_connection(connection.connection_id, result.response)

    except WebSocketDisconnect as e:
        logger.info("WS disconnected: connection %s, code %s", connection.connection_id, e.code)
    except Exception as e:
        logger.error("WS error for connection %s: %s", connection.connection_id, e)
    finally:
        _rate_limiter.remove(connection.connection_id)
        await manager.disconnect(connection.connection_id)
