"""Game event types - outbound notifications for the UI boundary.

Events describe what changed on the session, enabling:
- Efficient WebSocket updates (only send what changed)
- Board highlighting and promotion dialogs on the client
- History list rendering and time-travel controls
- Surfacing opponent status and errors
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from app.schemas.game_engine import (
    CapturedSelection,
    CapturedSnapshot,
    GameMode,
    GameResult,
    HistoryEntry,
    Player,
    Position,
)


class GameEvent(BaseModel):
    """Base class for all game events."""

    event_type: str
    seq: int = 0  # Sequence number assigned by the session


class GameStateChanged(GameEvent):
    """Player to move, thinking flag, mode or result changed."""

    event_type: Literal["game_state_changed"] = "game_state_changed"
    current_player: Player
    ai_thinking: bool
    game_mode: GameMode
    game_result: GameResult | None = None
    browsing_history: bool = False
    current_move_index: int = Field(-1, description="-1 means the initial position")


class HistoryChanged(GameEvent):
    """The move list was appended to, truncated or reset."""

    event_type: Literal["history_changed"] = "history_changed"
    entries: list[HistoryEntry]


class CapturedPiecesChanged(GameEvent):
    """Pieces in hand changed for either player."""

    event_type: Literal["captured_pieces_changed"] = "captured_pieces_changed"
    captured_pieces: CapturedSnapshot


class SelectionChanged(GameEvent):
    """A board or captured piece was selected or deselected."""

    event_type: Literal["selection_changed"] = "selection_changed"
    selected: Position | None = None
    captured_selection: CapturedSelection | None = None
    highlights: list[Position] = Field(
        default_factory=list, description="Legal destinations of the current selection"
    )


class OpponentThinking(GameEvent):
    """Status text from the automated opponent."""

    event_type: Literal["opponent_thinking"] = "opponent_thinking"
    player: Player
    status: str


class OpponentError(GameEvent):
    """The automated opponent failed; the same player remains to move."""

    event_type: Literal["opponent_error"] = "opponent_error"
    player: Player
    message: str


class PromotionDialogOpened(GameEvent):
    """The mover must choose whether to promote."""

    event_type: Literal["promotion_dialog_opened"] = "promotion_dialog_opened"
    from_pos: Position
    to_pos: Position


class GameEnded(GameEvent):
    """The royal piece was captured."""

    event_type: Literal["game_ended"] = "game_ended"
    winner: Player
    result: GameResult


# Union of all event types for type checking
AnyGameEvent = Annotated[
    GameStateChanged
    | HistoryChanged
    | CapturedPiecesChanged
    | SelectionChanged
    | OpponentThinking
    | OpponentError
    | PromotionDialogOpened
    | GameEnded,
    Field(discriminator="event_type"),
]
