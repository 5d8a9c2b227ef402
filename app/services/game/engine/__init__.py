"""Game engine module - orchestration of a shogi game.

This module provides the core game engine with:
- Action types for explicit user inputs
- Event types for WebSocket broadcasts
- Legal move enumeration on top of a rules oracle
- Interaction, turn and history state machines
- An asynchronous opponent pipeline

Usage:
    from app.services.game.engine import (
        GameSession,
        CellClickAction,
        process_action,
    )

    session = GameSession(board, rules, supplier, preferences, on_event=send)
    session.initialize()

    result = process_action(session, CellClickAction(position=pos))
    if not result.is_valid:
        # Input ignored, state unchanged
        print(f"Ignored: {result.error_code} - {result.error_message}")
"""

# Actions - explicit user inputs
from .actions import (
    CapturedPieceClickAction,
    CellClickAction,
    GameAction,
    NewGameAction,
    PromotionChoiceAction,
    ReplayAction,
    RetryOpponentAction,
    SelectStrategyAction,
    SetGameModeAction,
    UndoAction,
    build_action_from_payload,
)

# Events - for WebSocket broadcasts
from .events import (
    AnyGameEvent,
    CapturedPiecesChanged,
    GameEnded,
    GameEvent,
    GameStateChanged,
    HistoryChanged,
    OpponentError,
    OpponentThinking,
    PromotionDialogOpened,
    SelectionChanged,
)

# Collaborator contracts
from .interfaces import (
    BoardStateHolder,
    MoveSupplier,
    PreferenceSource,
    RulesOracle,
    StrategySelector,
    SupplierRequest,
    SupplierResponse,
)

# Legal moves
from .legal_moves import (
    all_possible_moves,
    has_any_legal_moves,
    valid_drop_positions,
    valid_moves_from,
)

# Main processing
from .process import process_action
from .session import AUTOMATED_PLAYERS, EventSink, GameSession

# Result types
from .validation import ValidationResult

__all__ = [
    # Actions
    "GameAction",
    "NewGameAction",
    "SetGameModeAction",
    "SelectStrategyAction",
    "CellClickAction",
    "CapturedPieceClickAction",
    "PromotionChoiceAction",
    "UndoAction",
    "ReplayAction",
    "RetryOpponentAction",
    "build_action_from_payload",
    # Events
    "GameEvent",
    "AnyGameEvent",
    "GameStateChanged",
    "HistoryChanged",
    "CapturedPiecesChanged",
    "SelectionChanged",
    "OpponentThinking",
    "OpponentError",
    "PromotionDialogOpened",
    "GameEnded",
    # Collaborators
    "BoardStateHolder",
    "MoveSupplier",
    "PreferenceSource",
    "RulesOracle",
    "StrategySelector",
    "SupplierRequest",
    "SupplierResponse",
    # Session
    "AUTOMATED_PLAYERS",
    "EventSink",
    "GameSession",
    "process_action",
    # Validation
    "ValidationResult",
    # Legal moves
    "valid_moves_from",
    "valid_drop_positions",
    "all_possible_moves",
    "has_any_legal_moves",
]
