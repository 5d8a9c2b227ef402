"""Collaborator contracts consumed by the game engine.

The engine never owns movement rules, board storage or move selection. It is
handed objects satisfying these protocols once, at construction time:

- RulesOracle: pure legality/promotion verdicts
- BoardStateHolder: grid + captured pieces, raw move/drop execution, snapshots
- MoveSupplier: asynchronous automated opponent
- PreferenceSource: which opponent strategy the user selected
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from app.schemas.game_engine import (
    BoardSnapshot,
    CapturedSnapshot,
    MoveDescriptor,
    Piece,
    PieceType,
    Player,
    Position,
)

BoardView = Sequence[Sequence[Piece]]


class RulesOracle(Protocol):
    def is_legal_move(
        self, board: BoardView, from_pos: Position, to_pos: Position, player: Player
    ) -> bool: ...

    def can_promote(self, board: BoardView, from_pos: Position, to_pos: Position) -> bool: ...

    def must_promote(self, piece_type: PieceType, to_pos: Position, player: Player) -> bool: ...

    def can_drop(
        self, board: BoardView, to_pos: Position, piece_type: PieceType, player: Player
    ) -> bool: ...


class BoardStateHolder(Protocol):
    @property
    def grid(self) -> BoardView: ...

    @property
    def captured_pieces(self) -> dict[Player, list[Piece]]: ...

    def reset(self) -> None: ...

    def move_piece(self, from_pos: Position, to_pos: Position, promote: bool) -> Piece | None: ...

    def drop_piece(
        self, piece_type: PieceType, player: Player, to_pos: Position, force: bool = False
    ) -> bool: ...

    def snapshot_board(self) -> BoardSnapshot: ...

    def restore_board(self, snapshot: BoardSnapshot) -> None: ...

    def snapshot_captured(self) -> CapturedSnapshot: ...

    def restore_captured(self, snapshot: CapturedSnapshot) -> None: ...


class SupplierRequest(BaseModel):
    """Everything an automated opponent gets to see for one decision."""

    player: Player
    strategy: str
    board: BoardSnapshot
    captured_pieces: CapturedSnapshot
    legal_moves: list[MoveDescriptor]
    history: list[MoveDescriptor] = []


class SupplierResponse(BaseModel):
    """Outcome of one supplier request.

    On success `move` carries the chosen move; on failure `is_error` is set and
    `status` holds the message to show.
    """

    move: MoveDescriptor | None = None
    status: str = ""
    is_error: bool = False

    @classmethod
    def error(cls, message: str) -> "SupplierResponse":
        return cls(move=None, status=message, is_error=True)


class MoveSupplier(Protocol):
    async def select_move(self, request: SupplierRequest) -> SupplierResponse: ...


class PreferenceSource(Protocol):
    def selected_strategy(self) -> str: ...


@runtime_checkable
class StrategySelector(Protocol):
    """A preference source the user can change during a session."""

    def select(self, strategy: str) -> None: ...
