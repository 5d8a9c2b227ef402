from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class Player(str, Enum):
    SENTE = "sente"  # moves first, starts on rows 6-8
    GOTE = "gote"

    def opponent(self) -> "Player":
        return Player.GOTE if self is Player.SENTE else Player.SENTE


class PieceType(str, Enum):
    EMPTY = "empty"
    PAWN = "pawn"
    LANCE = "lance"
    KNIGHT = "knight"
    SILVER = "silver"
    GOLD = "gold"
    BISHOP = "bishop"
    ROOK = "rook"
    KING = "king"
    PROMOTED_PAWN = "promoted_pawn"
    PROMOTED_LANCE = "promoted_lance"
    PROMOTED_KNIGHT = "promoted_knight"
    PROMOTED_SILVER = "promoted_silver"
    HORSE = "horse"
    DRAGON = "dragon"


# Capturing this piece ends the game
ROYAL_PIECE = PieceType.KING


class GameMode(str, Enum):
    HUMAN = "human"
    OPPONENT = "opponent"
    SELF_PLAY = "self_play"


class GameResult(str, Enum):
    SENTE_WIN = "sente_win"
    GOTE_WIN = "gote_win"

    @classmethod
    def for_winner(cls, player: Player) -> "GameResult":
        return cls.SENTE_WIN if player is Player.SENTE else cls.GOTE_WIN


class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    row: int
    col: int


class Piece(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: PieceType
    player: Player | None = None

    @property
    def is_empty(self) -> bool:
        return self.type == PieceType.EMPTY


EMPTY_CELL = Piece(type=PieceType.EMPTY)


# Move descriptors - a Drop has no origin, promotion or capture by construction
class Move(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: Literal["move"] = "move"
    player: Player
    from_pos: Position = Field(..., alias="from")
    to: Position
    piece_type: PieceType
    promote: bool = False
    capture: PieceType | None = None


class Drop(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["drop"] = "drop"
    player: Player
    piece_type: PieceType
    to: Position


MoveDescriptor = Annotated[Move | Drop, Field(discriminator="kind")]

BoardSnapshot = tuple[tuple[Piece, ...], ...]
CapturedSnapshot = dict[Player, tuple[Piece, ...]]


class HistoryEntry(BaseModel):
    """One played move plus the full position right after it."""

    model_config = ConfigDict(frozen=True)

    move: MoveDescriptor
    board: BoardSnapshot
    captured_pieces: CapturedSnapshot


class CapturedSelection(BaseModel):
    model_config = ConfigDict(frozen=True)

    player: Player
    index: int
    piece: Piece


class PendingPromotion(BaseModel):
    model_config = ConfigDict(frozen=True)

    from_pos: Position
    to_pos: Position


class GameStateSnapshot(BaseModel):
    """Full session view for initial sync and reconnects."""

    current_player: Player
    ai_thinking: bool
    game_mode: GameMode
    game_result: GameResult | None = None
    browsing_history: bool = False
    current_move_index: int = -1
    board: BoardSnapshot
    captured_pieces: CapturedSnapshot
    history: list[HistoryEntry] = []
