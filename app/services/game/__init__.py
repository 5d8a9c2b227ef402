"""Game service module.

Provides:
- Session construction from settings (create_game_session)
- Game engine processing (engine/)
- Concrete shogi board and rules (shogi/)
- Automated opponents (suppliers.py)
"""

import logging

from app.config import Settings
from app.schemas.game_engine import GameMode

# Re-export from engine for convenience
from .engine import (
    EventSink,
    GameAction,
    GameSession,
    MoveSupplier,
    ValidationResult,
    build_action_from_payload,
    process_action,
)
from .preferences import PreferenceStore
from .shogi import ShogiBoard, ShogiRules
from .suppliers import HttpMoveSupplier, RandomMoveSupplier, build_move_supplier

logger = logging.getLogger(__name__)


def create_game_session(
    settings: Settings,
    on_event: EventSink | None = None,
    *,
    supplier: MoveSupplier | None = None,
    mode: GameMode | None = None,
) -> GameSession:
    """Wire a session with the standard board, rules and configured opponent.

    The session is not initialized; call initialize() from inside the event
    loop that will run it.
    """
    rules = ShogiRules()
    session = GameSession(
        board=ShogiBoard(rules),
        rules=rules,
        supplier=supplier or build_move_supplier(settings),
        preferences=PreferenceStore(settings.OPPONENT_STRATEGY),
        mode=mode or settings.DEFAULT_GAME_MODE,
        opponent_delay=settings.OPPONENT_MOVE_DELAY,
        on_event=on_event,
    )
    logger.debug("Game session created: mode=%s", session.game_mode.value)
    return session


__all__ = [
    # Construction
    "create_game_session",
    "PreferenceStore",
    "ShogiBoard",
    "ShogiRules",
    "HttpMoveSupplier",
    "RandomMoveSupplier",
    "build_move_supplier",
    # Engine
    "GameAction",
    "GameSession",
    "ValidationResult",
    "process_action",
    "build_action_from_payload",
]
