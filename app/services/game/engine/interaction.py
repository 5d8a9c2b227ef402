"""Interaction state machine - turns raw clicks into committed moves.

States:
- Idle: nothing selected
- PieceSelected: a board piece and its legal destinations
- CapturedSelected: a piece in hand and its legal drop cells
- AwaitingPromotionChoice: a move waiting for the promote/decline answer

Transitions are pure: each returns the next state plus, at most, one commit
for the session to apply. Session-wide guards (opponent thinking, browsing
history, finished game) are checked by the session before calling in.
"""

import logging
from dataclasses import dataclass

from app.schemas.game_engine import (
    CapturedSelection,
    PendingPromotion,
    Piece,
    PieceType,
    Player,
    Position,
)

from .interfaces import BoardView, RulesOracle
from .legal_moves import valid_drop_positions, valid_moves_from
from .validation import PROMOTION_PENDING, ValidationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class PieceSelected:
    pos: Position
    destinations: tuple[Position, ...] = ()


@dataclass(frozen=True)
class CapturedSelected:
    selection: CapturedSelection
    destinations: tuple[Position, ...] = ()


@dataclass(frozen=True)
class AwaitingPromotionChoice:
    pending: PendingPromotion


InteractionState = Idle | PieceSelected | CapturedSelected | AwaitingPromotionChoice

IDLE = Idle()


@dataclass(frozen=True)
class CommitMove:
    from_pos: Position
    to_pos: Position
    promote: bool


@dataclass(frozen=True)
class CommitDrop:
    selection: CapturedSelection
    to_pos: Position


@dataclass(frozen=True)
class Transition:
    """Next interaction state and what, if anything, to commit."""

    state: InteractionState
    commit: CommitMove | CommitDrop | None = None
    rejection: ValidationResult | None = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None


def _in_bounds(board: BoardView, pos: Position) -> bool:
    return 0 <= pos.row < len(board) and 0 <= pos.col < len(board[pos.row])


def _is_own(piece: Piece, player: Player) -> bool:
    return piece.type != PieceType.EMPTY and piece.player == player


def _select_piece(board: BoardView, rules: RulesOracle, pos: Position, player: Player) -> Transition:
    destinations = tuple(valid_moves_from(board, rules, pos, player))
    logger.debug(
        "Selected piece at (%d,%d): %d destinations", pos.row, pos.col, len(destinations)
    )
    return Transition(state=PieceSelected(pos=pos, destinations=destinations))


def click_cell(
    state: InteractionState,
    pos: Position,
    board: BoardView,
    rules: RulesOracle,
    player: Player,
) -> Transition:
    """Resolve a click on a board cell for the player to move."""
    if isinstance(state, AwaitingPromotionChoice):
        return Transition(state=state, rejection=PROMOTION_PENDING)

    if not _in_bounds(board, pos):
        return Transition(
            state=state,
            rejection=ValidationResult.error("INVALID_POSITION", "Position is off the board"),
        )

    clicked = board[pos.row][pos.col]

    if isinstance(state, Idle):
        if _is_own(clicked, player):
            return _select_piece(board, rules, pos, player)
        return Transition(
            state=state,
            rejection=ValidationResult.error("NOT_YOUR_PIECE", "Select one of your own pieces"),
        )

    if isinstance(state, CapturedSelected):
        if pos in state.destinations:
            return Transition(state=IDLE, commit=CommitDrop(selection=state.selection, to_pos=pos))
        return Transition(
            state=IDLE,
            rejection=ValidationResult.error("ILLEGAL_DROP", "Cannot drop there"),
        )

    # PieceSelected
    if pos == state.pos:
        return Transition(state=IDLE)

    if _is_own(clicked, player):
        return _select_piece(board, rules, pos, player)

    if pos not in state.destinations:
        return Transition(
            state=IDLE,
            rejection=ValidationResult.error("ILLEGAL_MOVE", "Cannot move there"),
        )

    piece = board[state.pos.row][state.pos.col]
    can_promote = rules.can_promote(board, state.pos, pos)
    must_promote = rules.must_promote(piece.type, pos, player)

    if can_promote and not must_promote:
        pending = PendingPromotion(from_pos=state.pos, to_pos=pos)
        return Transition(state=AwaitingPromotionChoice(pending=pending))

    return Transition(
        state=IDLE,
        commit=CommitMove(from_pos=state.pos, to_pos=pos, promote=must_promote),
    )


def click_captured_piece(
    state: InteractionState,
    owner: Player,
    index: int,
    captured: list[Piece],
    board: BoardView,
    rules: RulesOracle,
    player: Player,
) -> Transition:
    """Resolve a click on piece `index` of `owner`'s hand.

    Selecting a piece in hand replaces any board selection.
    """
    if isinstance(state, AwaitingPromotionChoice):
        return Transition(state=state, rejection=PROMOTION_PENDING)

    if owner != player:
        return Transition(
            state=state,
            rejection=ValidationResult.error("NOT_YOUR_PIECE", "Not your captured piece"),
        )

    if not 0 <= index < len(captured):
        return Transition(
            state=state,
            rejection=ValidationResult.error("INVALID_INDEX", f"No captured piece at index {index}"),
        )

    piece = captured[index]
    selection = CapturedSelection(player=owner, index=index, piece=piece)
    destinations = tuple(valid_drop_positions(board, rules, piece.type, player))
    logger.debug(
        "Selected captured %s (index %d): %d drop cells",
        piece.type.value,
        index,
        len(destinations),
    )
    return Transition(state=CapturedSelected(selection=selection, destinations=destinations))


def resolve_promotion(state: InteractionState, promote: bool) -> Transition:
    """Answer the promotion dialog; consumes the pending move exactly once."""
    if not isinstance(state, AwaitingPromotionChoice):
        return Transition(
            state=state,
            rejection=ValidationResult.error("NO_PENDING_PROMOTION", "No promotion choice pending"),
        )

    pending = state.pending
    return Transition(
        state=IDLE,
        commit=CommitMove(from_pos=pending.from_pos, to_pos=pending.to_pos, promote=promote),
    )
