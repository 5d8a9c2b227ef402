"""Turn alternation and the terminal result."""

import logging

from app.schemas.game_engine import ROYAL_PIECE, GameResult, PieceType, Player

logger = logging.getLogger(__name__)


class TurnTracker:
    """Whose turn it is and whether the game is over.

    The game is in progress while `result` is None. It becomes terminal only
    when a move captures the royal piece, and leaves that state only through
    reset() (new game) or clear_result() (undo past the capture).
    """

    def __init__(self, first_player: Player = Player.SENTE):
        self.first_player = first_player
        self.current_player = first_player
        self.result: GameResult | None = None

    @property
    def is_terminal(self) -> bool:
        return self.result is not None

    def reset(self) -> None:
        self.current_player = self.first_player
        self.result = None

    def record_capture(self, mover: Player, captured: PieceType | None) -> bool:
        """Close the game if `mover` just captured the royal piece.

        Returns True on the transition to terminal.
        """
        if captured != ROYAL_PIECE or self.is_terminal:
            return False
        self.result = GameResult.for_winner(mover)
        logger.info("Royal piece captured: %s wins", mover.value)
        return True

    def advance(self) -> bool:
        """Hand the turn to the other player; refused once the game is over."""
        if self.is_terminal:
            logger.debug("Turn not advanced: game finished (%s)", self.result.value)
            return False
        self.current_player = self.current_player.opponent()
        return True

    def clear_result(self) -> None:
        if self.result is not None:
            logger.info("Result %s cleared", self.result.value)
        self.result = None
