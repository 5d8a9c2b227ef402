"""Board geometry, piece movement tables and the initial layout."""

from app.schemas.game_engine import PieceType, Player

BOARD_ROWS = 9
BOARD_COLS = 9

# Rows counted from the owner's far edge
PROMOTION_ZONE_DEPTH = 3

PROMOTIONS: dict[PieceType, PieceType] = {
    PieceType.PAWN: PieceType.PROMOTED_PAWN,
    PieceType.LANCE: PieceType.PROMOTED_LANCE,
    PieceType.KNIGHT: PieceType.PROMOTED_KNIGHT,
    PieceType.SILVER: PieceType.PROMOTED_SILVER,
    PieceType.BISHOP: PieceType.HORSE,
    PieceType.ROOK: PieceType.DRAGON,
}

DEMOTIONS: dict[PieceType, PieceType] = {v: k for k, v in PROMOTIONS.items()}

# (row_delta, col_delta) from SENTE's point of view, forward is -1
_KING_STEPS = [(-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1)]
_GOLD_STEPS = [(-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, 0)]
_SILVER_STEPS = [(-1, -1), (-1, 0), (-1, 1), (1, -1), (1, 1)]
_ORTHOGONAL = [(-1, 0), (0, -1), (0, 1), (1, 0)]
_DIAGONAL = [(-1, -1), (-1, 1), (1, -1), (1, 1)]

STEP_MOVES: dict[PieceType, list[tuple[int, int]]] = {
    PieceType.PAWN: [(-1, 0)],
    PieceType.KNIGHT: [(-2, -1), (-2, 1)],
    PieceType.SILVER: _SILVER_STEPS,
    PieceType.GOLD: _GOLD_STEPS,
    PieceType.KING: _KING_STEPS,
    PieceType.PROMOTED_PAWN: _GOLD_STEPS,
    PieceType.PROMOTED_LANCE: _GOLD_STEPS,
    PieceType.PROMOTED_KNIGHT: _GOLD_STEPS,
    PieceType.PROMOTED_SILVER: _GOLD_STEPS,
    PieceType.HORSE: _ORTHOGONAL,
    PieceType.DRAGON: _DIAGONAL,
}

SLIDE_MOVES: dict[PieceType, list[tuple[int, int]]] = {
    PieceType.LANCE: [(-1, 0)],
    PieceType.BISHOP: _DIAGONAL,
    PieceType.ROOK: _ORTHOGONAL,
    PieceType.HORSE: _DIAGONAL,
    PieceType.DRAGON: _ORTHOGONAL,
}

# Back rank as seen from SENTE (col 0 is on SENTE's left)
_BACK_RANK = [
    PieceType.LANCE,
    PieceType.KNIGHT,
    PieceType.SILVER,
    PieceType.GOLD,
    PieceType.KING,
    PieceType.GOLD,
    PieceType.SILVER,
    PieceType.KNIGHT,
    PieceType.LANCE,
]

# (row, col, piece_type, player)
INITIAL_LAYOUT: list[tuple[int, int, PieceType, Player]] = [
    *[(0, col, piece_type, Player.GOTE) for col, piece_type in enumerate(_BACK_RANK)],
    (1, 1, PieceType.ROOK, Player.GOTE),
    (1, 7, PieceType.BISHOP, Player.GOTE),
    *[(2, col, PieceType.PAWN, Player.GOTE) for col in range(BOARD_COLS)],
    *[(6, col, PieceType.PAWN, Player.SENTE) for col in range(BOARD_COLS)],
    (7, 1, PieceType.BISHOP, Player.SENTE),
    (7, 7, PieceType.ROOK, Player.SENTE),
    *[(8, col, piece_type, Player.SENTE) for col, piece_type in enumerate(_BACK_RANK)],
]
