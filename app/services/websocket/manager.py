import asyncio
import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from fastapi import WebSocket

from app.config import Settings, get_settings
from app.schemas.ws import (
    ConnectedPayload,
    GameEventsPayload,
    MessageType,
    WSCloseCode,
    WSServerMessage,
)
from app.services.game import GameSession, build_move_supplier, create_game_session
from app.services.game.engine import GameEvent, MoveSupplier

logger = logging.getLogger(__name__)


@dataclass
class Connection:
    """Represents an active WebSocket connection and the game it plays."""

    connection_id: str
    websocket: WebSocket
    session: GameSession | None = None
    outbox: asyncio.Queue[GameEvent] = field(default_factory=asyncio.Queue)
    sender_task: asyncio.Task | None = None
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_heartbeat: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ConnectionManager:
    """Manages WebSocket connections, one game session per connection.

    Session events are queued synchronously by the session and pushed to the
    client by a per-connection sender task, in emission order.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        supplier: MoveSupplier | None = None,
        server_id: str | None = None,
    ):
        self._settings = settings or get_settings()
        self._supplier = supplier or build_move_supplier(self._settings)
        self._server_id = server_id or os.getenv("HOSTNAME", str(uuid.uuid4())[:8])
        self._connections: dict[str, Connection] = {}

        logger.info("ConnectionManager initialized with server_id: %s", self._server_id)

    @property
    def server_id(self) -> str:
        return self._server_id

    async def connect(self, websocket: WebSocket) -> Connection:
        """Register a new WebSocket connection and start its game.

        Args:
            websocket: The accepted WebSocket instance.

        Returns:
            The created Connection object.
        """
        connection_id = str(uuid.uuid4())
        connection = Connection(connection_id=connection_id, websocket=websocket)

        session = create_game_session(
            self._settings,
            on_event=connection.outbox.put_nowait,
            supplier=self._supplier,
        )
        connection.session = session
        self._connections[connection_id] = connection

        logger.info("Connection %s established on server %s", connection_id, self._server_id)

        # Send connected acknowledgment with the position before any events
        await self.send_to_connection(
            connection_id,
            WSServerMessage(
                type=MessageType.CONNECTED,
                payload=ConnectedPayload(
                    connection_id=connection_id,
                    server_id=self._server_id,
                    state=session.snapshot().model_dump(mode="json", by_alias=True),
                ).model_dump(),
            ),
        )

        connection.sender_task = asyncio.create_task(self._pump_events(connection))
        session.initialize()
        return connection

    async def _pump_events(self, connection: Connection) -> None:
        """Forward queued session events to the client, batching what is ready."""
        while True:
            event = await connection.outbox.get()
            batch = [event]
            while not connection.outbox.empty():
                batch.append(connection.outbox.get_nowait())

            sent = await self.send_to_connection(
                connection.connection_id,
                WSServerMessage(
                    type=MessageType.GAME_EVENTS,
                    payload=GameEventsPayload(
                        events=[e.model_dump(mode="json", by_alias=True) for e in batch]
                    ).model_dump(),
                ),
            )
            if not sent:
                break

    async def disconnect(self, connection_id: str) -> None:
        """Remove a connection and stop its game.

        Args:
            connection_id: The connection to remove.
        """
        connection = self._connections.pop(connection_id, None)
        if connection is None:
            logger.debug("Connection %s not found locally for disconnect", connection_id)
            return

        if connection.session is not None:
            connection.session.close()

        task = connection.sender_task
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        logger.info("Connection %s disconnected", connection_id)

    async def heartbeat(self, connection_id: str) -> None:
        """Update the last heartbeat timestamp for a connection."""
        connection = self._connections.get(connection_id)
        if connection:
            connection.last_heartbeat = datetime.now(timezone.utc)
            logger.debug("Heartbeat updated for connection %s", connection_id)

    async def close_all_connections(self) -> None:
        """Close all active WebSocket connections gracefully."""
        logger.info("Closing all %d connections", len(self._connections))
        for conn_id in list(self._connections.keys()):
            connection = self._connections.get(conn_id)
            if connection:
                try:
                    await connection.websocket.close(code=WSCloseCode.GOING_AWAY)
                except Exception as e:
                    logger.debug("Error closing websocket %s: %s", conn_id, e)
            await self.disconnect(conn_id)

        close = getattr(self._supplier, "close", None)
        if close is not None:
            await close()

    async def send_to_connection(self, connection_id: str, message: WSServerMessage) -> bool:
        """Send a message to a specific connection.

        Args:
            connection_id: The target connection.
            message: The message to send.

        Returns:
            True if sent successfully, False otherwise.
        """
        connection = self._connections.get(connection_id)
        if connection is None:
            logger.debug("Connection %s not found for sending", connection_id)
            return False

        try:
            await connection.websocket.send_json(message.model_dump(mode="json", exclude_none=True))
            return True
        except Exception as e:
            logger.warning("Failed to send to connection %s: %s", connection_id, e)
            await self.disconnect(connection_id)
            return False

    def get_connection(self, connection_id: str) -> Connection | None:
        """Get a connection by ID."""
        return self._connections.get(connection_id)


# Global manager instance (initialized in lifespan)
_connection_manager: ConnectionManager | None = None


def get_connection_manager() -> ConnectionManager:
    """Get the global ConnectionManager instance."""
    global _connection_manager
    if _connection_manager is None:
        _connection_manager = ConnectionManager()
    return _connection_manager


def set_connection_manager(manager: ConnectionManager | None) -> None:
    """Set the global ConnectionManager instance."""
    global _connection_manager
    _connection_manager = manager
