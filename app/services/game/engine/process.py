"""Main entry point for game action processing.

This module provides the primary interface for applying user inputs:
- process_action(): Dispatches any typed action to the session
- Returns ValidationResult; rejected inputs leave the session unchanged
"""

import logging

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
)
from .interfaces import StrategySelector
from .session import GameSession
from .validation import ValidationResult

logger = logging.getLogger(__name__)


def process_action(session: GameSession, action: GameAction) -> ValidationResult:
    """Apply an action to a session.

    Args:
        session: The game session to act on.
        action: The action to apply.

    Returns:
        ValidationResult. A failed result means the input was ignored; any
        visible change is reported through the session's events instead.

    Example:
        >>> result = process_action(session, CellClickAction(position=pos))
        >>> if not result.is_valid:
        ...     log_ignored(result.error_code)
    """
    action_type = type(action).__name__
    logger.info(
        "Processing action: type=%s, player_to_move=%s, mode=%s",
        action_type,
        session.current_player.value,
        session.game_mode.value,
    )
    logger.debug("Action details: %s", action)

    if isinstance(action, NewGameAction):
        session.initialize()
        result = ValidationResult.ok()

    elif isinstance(action, SetGameModeAction):
        session.set_game_mode(action.mode)
        result = ValidationResult.ok()

    elif isinstance(action, SelectStrategyAction):
        result = _select_strategy(session, action.strategy)

    elif isinstance(action, CellClickAction):
        result = session.click_cell(action.position)

    elif isinstance(action, CapturedPieceClickAction):
        result = session.click_captured_piece(action.player, action.index)

    elif isinstance(action, PromotionChoiceAction):
        result = session.resolve_promotion(action.promote)

    elif isinstance(action, UndoAction):
        result = session.undo()

    elif isinstance(action, ReplayAction):
        result = session.replay(action.index)

    elif isinstance(action, RetryOpponentAction):
        result = session.retry_opponent()

    else:
        logger.error("Unknown action type received: %s", action_type)
        return ValidationResult.error(
            "UNKNOWN_ACTION",
            f"Unknown action type: {action_type}",
        )

    if result.is_valid:
        logger.debug("Action applied: type=%s", action_type)
    else:
        logger.debug(
            "Action ignored: type=%s, code=%s",
            action_type,
            result.error_code,
        )
    return result


def _select_strategy(session: GameSession, strategy: str) -> ValidationResult:
    preferences = session.preferences
    if not isinstance(preferences, StrategySelector):
        return ValidationResult.error(
            "STRATEGY_FIXED",
            "The opponent strategy cannot be changed for this game",
        )
    try:
        preferences.select(strategy)
    except ValueError as e:
        return ValidationResult.error("INVALID_STRATEGY", str(e))
    logger.info("Opponent strategy selected: %s", strategy)
    return ValidationResult.ok()
