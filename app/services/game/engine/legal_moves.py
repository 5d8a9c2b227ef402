"""Legal move enumeration on top of a rules oracle.

Every function scans the full board in row-major order and keeps what the
oracle accepts, so results are deterministic for a given position.
"""

from collections.abc import Sequence

from app.schemas.game_engine import Drop, Move, MoveDescriptor, Piece, PieceType, Player, Position

from .interfaces import BoardView, RulesOracle


def _positions(board: BoardView):
    for row in range(len(board)):
        for col in range(len(board[row])):
            yield Position(row=row, col=col)


def valid_moves_from(
    board: BoardView, rules: RulesOracle, pos: Position, player: Player
) -> list[Position]:
    """Destinations the piece at `pos` may legally move to.

    Empty cells and pieces not owned by `player` have no destinations.
    """
    piece = board[pos.row][pos.col]
    if piece.type == PieceType.EMPTY or piece.player != player:
        return []

    return [
        to_pos for to_pos in _positions(board) if rules.is_legal_move(board, pos, to_pos, player)
    ]


def valid_drop_positions(
    board: BoardView, rules: RulesOracle, piece_type: PieceType, player: Player
) -> list[Position]:
    """Cells where `player` may drop a captured piece of `piece_type`."""
    return [pos for pos in _positions(board) if rules.can_drop(board, pos, piece_type, player)]


def _hand_types(captured: Sequence[Piece]) -> list[PieceType]:
    seen: list[PieceType] = []
    for piece in captured:
        if piece.type not in seen:
            seen.append(piece.type)
    return seen


def all_possible_moves(
    board: BoardView,
    rules: RulesOracle,
    player: Player,
    captured: Sequence[Piece] | None = None,
) -> list[MoveDescriptor]:
    """Full legal move set for `player`.

    Board moves come first ordered by (from_row, from_col, to_row, to_col).
    A destination where promotion is optional yields a promoting and a
    non-promoting variant (in that order); an obligatory promotion yields only
    the promoting one. Drops follow, one pass per distinct piece type held
    (in order of first appearance in `captured`), ordered by (to_row, to_col).
    """
    moves: list[MoveDescriptor] = []

    for from_pos in _positions(board):
        piece = board[from_pos.row][from_pos.col]
        if piece.type == PieceType.EMPTY or piece.player != player:
            continue

        for to_pos in _positions(board):
            if not rules.is_legal_move(board, from_pos, to_pos, player):
                continue

            if rules.can_promote(board, from_pos, to_pos):
                must = rules.must_promote(piece.type, to_pos, player)
                variants = (True,) if must else (True, False)
            else:
                variants = (False,)

            target = board[to_pos.row][to_pos.col]
            capture = None if target.type == PieceType.EMPTY else target.type
            for promote in variants:
                moves.append(
                    Move(
                        player=player,
                        from_pos=from_pos,
                        to=to_pos,
                        piece_type=piece.type,
                        promote=promote,
                        capture=capture,
                    )
                )

    for piece_type in _hand_types(captured or []):
        for to_pos in valid_drop_positions(board, rules, piece_type, player):
            moves.append(Drop(player=player, piece_type=piece_type, to=to_pos))

    return moves


def has_any_legal_moves(
    board: BoardView,
    rules: RulesOracle,
    player: Player,
    captured: Sequence[Piece] | None = None,
) -> bool:
    """Quick check if `player` has anything to play.

    Cheaper than all_possible_moves() when only existence matters.
    """
    for from_pos in _positions(board):
        if valid_moves_from(board, rules, from_pos, player):
            return True

    return any(
        valid_drop_positions(board, rules, piece_type, player)
        for piece_type in _hand_types(captured or [])
    )
