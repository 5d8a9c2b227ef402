"""Game action types - explicit user inputs separated from game state."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from app.schemas.game_engine import GameMode, Player, Position


class NewGameAction(BaseModel):
    """Start over from the initial position in the current mode."""

    action_type: Literal["new_game"] = "new_game"


class SetGameModeAction(BaseModel):
    """Switch between human, opponent and self-play modes (restarts the game)."""

    action_type: Literal["set_game_mode"] = "set_game_mode"
    mode: GameMode


class SelectStrategyAction(BaseModel):
    """Pick the strategy the automated opponent uses from its next turn on."""

    action_type: Literal["select_strategy"] = "select_strategy"
    strategy: str = Field(..., min_length=1)


class CellClickAction(BaseModel):
    """Player clicked a board cell."""

    action_type: Literal["cell_click"] = "cell_click"
    position: Position


class CapturedPieceClickAction(BaseModel):
    """Player clicked a piece in a hand."""

    action_type: Literal["captured_piece_click"] = "captured_piece_click"
    player: Player
    index: int = Field(..., ge=0, description="Index into that player's captured pieces")


class PromotionChoiceAction(BaseModel):
    """Player answered the promotion dialog."""

    action_type: Literal["promotion_choice"] = "promotion_choice"
    promote: bool


class UndoAction(BaseModel):
    """Take back the last move."""

    action_type: Literal["undo"] = "undo"


class ReplayAction(BaseModel):
    """Show the position after history entry `index` (-1 = initial position)."""

    action_type: Literal["replay"] = "replay"
    index: int


class RetryOpponentAction(BaseModel):
    """Ask the automated opponent again after it reported an error."""

    action_type: Literal["retry_opponent"] = "retry_opponent"


# Union type for all game actions
GameAction = Annotated[
    NewGameAction
    | SetGameModeAction
    | SelectStrategyAction
    | CellClickAction
    | CapturedPieceClickAction
    | PromotionChoiceAction
    | UndoAction
    | ReplayAction
    | RetryOpponentAction,
    Field(discriminator="action_type"),
]

_ACTION_TYPES: dict[str, type[BaseModel]] = {
    "new_game": NewGameAction,
    "set_game_mode": SetGameModeAction,
    "select_strategy": SelectStrategyAction,
    "cell_click": CellClickAction,
    "captured_piece_click": CapturedPieceClickAction,
    "promotion_choice": PromotionChoiceAction,
    "undo": UndoAction,
    "replay": ReplayAction,
    "retry_opponent": RetryOpponentAction,
}


def build_action_from_payload(payload: dict) -> GameAction:
    """Build a typed action from a raw payload dict.

    Args:
        payload: Dict with 'action_type' key and action-specific fields.

    Returns:
        The appropriate GameAction subtype.

    Raises:
        ValueError: If action_type is missing or unknown.
        pydantic.ValidationError: If the fields do not fit the action type.
    """
    action_type = payload.get("action_type")

    action_cls = _ACTION_TYPES.get(action_type) if isinstance(action_type, str) else None
    if action_cls is None:
        raise ValueError(f"Unknown action type: {action_type}")
    return action_cls.model_validate(payload)
