"""Concrete shogi board and rules used by the game engine."""

from .board import ShogiBoard
from .constants import BOARD_COLS, BOARD_ROWS, INITIAL_LAYOUT
from .rules import ShogiRules

__all__ = [
    "BOARD_COLS",
    "BOARD_ROWS",
    "INITIAL_LAYOUT",
    "ShogiBoard",
    "ShogiRules",
]
