"""In-memory shogi board: grid, pieces in hand, raw move/drop execution."""

import logging

from app.schemas.game_engine import (
    EMPTY_CELL,
    BoardSnapshot,
    CapturedSnapshot,
    Piece,
    PieceType,
    Player,
    Position,
)

from .constants import BOARD_COLS, BOARD_ROWS, DEMOTIONS, INITIAL_LAYOUT, PROMOTIONS
from .rules import ShogiRules

logger = logging.getLogger(__name__)


class ShogiBoard:
    """Owns the grid and both players' captured pieces.

    Performs no turn bookkeeping; move legality is the caller's concern except
    for unforced drops, which are checked against the rules oracle.
    """

    def __init__(self, rules: ShogiRules | None = None):
        self._rules = rules or ShogiRules(board_rows=BOARD_ROWS)
        self._grid: list[list[Piece]] = []
        self._captured: dict[Player, list[Piece]] = {}
        self.reset()

    @property
    def grid(self) -> list[list[Piece]]:
        return self._grid

    @property
    def captured_pieces(self) -> dict[Player, list[Piece]]:
        return self._captured

    def reset(self) -> None:
        """Set up the standard initial position with empty hands."""
        self._grid = [[EMPTY_CELL for _ in range(BOARD_COLS)] for _ in range(BOARD_ROWS)]
        for row, col, piece_type, player in INITIAL_LAYOUT:
            self._grid[row][col] = Piece(type=piece_type, player=player)
        self._captured = {Player.SENTE: [], Player.GOTE: []}

    def clear(self) -> None:
        """Empty the board and both hands."""
        self._grid = [[EMPTY_CELL for _ in range(BOARD_COLS)] for _ in range(BOARD_ROWS)]
        self._captured = {Player.SENTE: [], Player.GOTE: []}

    def place(self, pos: Position, piece: Piece) -> None:
        self._grid[pos.row][pos.col] = piece

    def piece_at(self, pos: Position) -> Piece:
        return self._grid[pos.row][pos.col]

    def move_piece(self, from_pos: Position, to_pos: Position, promote: bool) -> Piece | None:
        """Move a piece, capturing whatever stands on `to_pos`.

        A captured piece goes to the mover's hand unpromoted. Returns the piece
        as it stood on the board, or None if the target was empty.
        """
        piece = self.piece_at(from_pos)
        if piece.type == PieceType.EMPTY or piece.player is None:
            raise ValueError(f"No piece to move at ({from_pos.row}, {from_pos.col})")

        target = self.piece_at(to_pos)
        captured = None
        if target.type != PieceType.EMPTY:
            captured = target
            self._captured[piece.player].append(
                Piece(type=DEMOTIONS.get(target.type, target.type), player=piece.player)
            )

        moved_type = PROMOTIONS.get(piece.type, piece.type) if promote else piece.type
        self._grid[to_pos.row][to_pos.col] = Piece(type=moved_type, player=piece.player)
        self._grid[from_pos.row][from_pos.col] = EMPTY_CELL

        logger.debug(
            "Board move: %s %s (%d,%d)->(%d,%d) promote=%s captured=%s",
            piece.player.value,
            piece.type.value,
            from_pos.row,
            from_pos.col,
            to_pos.row,
            to_pos.col,
            promote,
            captured.type.value if captured else None,
        )
        return captured

    def drop_piece(
        self, piece_type: PieceType, player: Player, to_pos: Position, force: bool = False
    ) -> bool:
        """Drop a piece of `piece_type` from `player`'s hand onto `to_pos`.

        Returns False when the piece is not in hand, when `to_pos` is off the
        board or occupied, or, unless `force` is set, when the rules forbid
        the drop. Nothing changes when False is returned.
        """
        hand = self._captured[player]
        index = next((i for i, p in enumerate(hand) if p.type == piece_type), None)
        if index is None:
            logger.debug("Drop rejected: %s holds no %s", player.value, piece_type.value)
            return False

        if not (0 <= to_pos.row < BOARD_ROWS and 0 <= to_pos.col < BOARD_COLS):
            logger.debug("Drop rejected: (%d,%d) is off the board", to_pos.row, to_pos.col)
            return False
        if self._grid[to_pos.row][to_pos.col].type != PieceType.EMPTY:
            logger.debug("Drop rejected: (%d,%d) is occupied", to_pos.row, to_pos.col)
            return False

        if not force and not self._rules.can_drop(self._grid, to_pos, piece_type, player):
            logger.debug(
                "Drop rejected by rules: %s %s -> (%d,%d)",
                player.value,
                piece_type.value,
                to_pos.row,
                to_pos.col,
            )
            return False

        hand.pop(index)
        self._grid[to_pos.row][to_pos.col] = Piece(type=piece_type, player=player)
        return True

    def snapshot_board(self) -> BoardSnapshot:
        return tuple(tuple(row) for row in self._grid)

    def restore_board(self, snapshot: BoardSnapshot) -> None:
        self._grid = [list(row) for row in snapshot]

    def snapshot_captured(self) -> CapturedSnapshot:
        return {player: tuple(pieces) for player, pieces in self._captured.items()}

    def restore_captured(self, snapshot: CapturedSnapshot) -> None:
        self._captured = {Player.SENTE: [], Player.GOTE: []}
        for player, pieces in snapshot.items():
            self._captured[player] = list(pieces)
