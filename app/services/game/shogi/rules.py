"""Shogi rules oracle.

Pure functions over a board grid. Legality here is movement legality only:
leaving one's own king attacked is not detected, and the game ends solely by
capturing the king.
"""

from app.schemas.game_engine import PieceType, Player, Position
from app.services.game.engine.interfaces import BoardView

from .constants import PROMOTION_ZONE_DEPTH, PROMOTIONS, SLIDE_MOVES, STEP_MOVES

DROPPABLE = frozenset([*PROMOTIONS, PieceType.GOLD])


def _in_bounds(board: BoardView, pos: Position) -> bool:
    return 0 <= pos.row < len(board) and 0 <= pos.col < len(board[pos.row])


def _forward(player: Player) -> int:
    return -1 if player is Player.SENTE else 1


def _depth(board_rows: int, row: int, player: Player) -> int:
    """Distance of `row` from `player`'s far edge (0 = last rank)."""
    return row if player is Player.SENTE else board_rows - 1 - row


class ShogiRules:
    def __init__(self, board_rows: int = 9):
        self.board_rows = board_rows

    def is_legal_move(
        self, board: BoardView, from_pos: Position, to_pos: Position, player: Player
    ) -> bool:
        if not (_in_bounds(board, from_pos) and _in_bounds(board, to_pos)):
            return False
        if from_pos == to_pos:
            return False

        piece = board[from_pos.row][from_pos.col]
        if piece.type == PieceType.EMPTY or piece.player != player:
            return False

        target = board[to_pos.row][to_pos.col]
        if target.type != PieceType.EMPTY and target.player == player:
            return False

        dr = to_pos.row - from_pos.row
        dc = to_pos.col - from_pos.col
        sign = -_forward(player)  # tables are written from SENTE's side

        for step_dr, step_dc in STEP_MOVES.get(piece.type, []):
            if (step_dr * sign, step_dc) == (dr, dc):
                return True

        for dir_dr, dir_dc in SLIDE_MOVES.get(piece.type, []):
            dir_dr *= sign
            if self._reaches_by_slide(board, from_pos, dr, dc, dir_dr, dir_dc):
                return True

        return False

    @staticmethod
    def _reaches_by_slide(
        board: BoardView, from_pos: Position, dr: int, dc: int, dir_dr: int, dir_dc: int
    ) -> bool:
        steps = max(abs(dr), abs(dc))
        # Target must lie on the ray
        if steps == 0 or (dir_dr * steps, dir_dc * steps) != (dr, dc):
            return False

        for i in range(1, steps):
            cell = board[from_pos.row + dir_dr * i][from_pos.col + dir_dc * i]
            if cell.type != PieceType.EMPTY:
                return False
        return True

    def in_promotion_zone(self, row: int, player: Player) -> bool:
        return _depth(self.board_rows, row, player) < PROMOTION_ZONE_DEPTH

    def can_promote(self, board: BoardView, from_pos: Position, to_pos: Position) -> bool:
        piece = board[from_pos.row][from_pos.col]
        if piece.type not in PROMOTIONS or piece.player is None:
            return False
        return self.in_promotion_zone(from_pos.row, piece.player) or self.in_promotion_zone(
            to_pos.row, piece.player
        )

    def must_promote(self, piece_type: PieceType, to_pos: Position, player: Player) -> bool:
        depth = _depth(self.board_rows, to_pos.row, player)
        if piece_type in (PieceType.PAWN, PieceType.LANCE):
            return depth == 0
        if piece_type == PieceType.KNIGHT:
            return depth < 2
        return False

    def can_drop(
        self, board: BoardView, to_pos: Position, piece_type: PieceType, player: Player
    ) -> bool:
        if piece_type not in DROPPABLE or not _in_bounds(board, to_pos):
            return False
        if board[to_pos.row][to_pos.col].type != PieceType.EMPTY:
            return False
        # A dropped piece must be able to move again
        if self.must_promote(piece_type, to_pos, player):
            return False

        if piece_type == PieceType.PAWN:
            for row in board:
                cell = row[to_pos.col]
                if cell.type == PieceType.PAWN and cell.player == player:
                    return False

        return True
