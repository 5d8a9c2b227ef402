"""Shared fixtures for game engine tests."""

import asyncio

import pytest

from app.schemas.game_engine import (
    Drop,
    GameMode,
    Move,
    Piece,
    PieceType,
    Player,
    Position,
)
from app.services.game.engine import GameEvent, GameSession, SupplierRequest, SupplierResponse
from app.services.game.preferences import PreferenceStore
from app.services.game.shogi import ShogiBoard, ShogiRules


def pos(row: int, col: int) -> Position:
    """Shorthand for a board position."""
    return Position(row=row, col=col)


def piece(piece_type: PieceType, player: Player) -> Piece:
    """Shorthand for an owned piece."""
    return Piece(type=piece_type, player=player)


def make_move(
    player: Player,
    from_rc: tuple[int, int],
    to_rc: tuple[int, int],
    piece_type: PieceType,
    promote: bool = False,
) -> Move:
    """Helper to create a supplier move."""
    return Move(
        player=player,
        from_pos=pos(*from_rc),
        to=pos(*to_rc),
        piece_type=piece_type,
        promote=promote,
    )


def make_drop(player: Player, piece_type: PieceType, to_rc: tuple[int, int]) -> Drop:
    """Helper to create a supplier drop."""
    return Drop(player=player, piece_type=piece_type, to=pos(*to_rc))


class EventRecorder:
    """Collects session events in emission order."""

    def __init__(self):
        self.events: list[GameEvent] = []

    def __call__(self, event: GameEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list[GameEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def last(self, event_type: str) -> GameEvent:
        matching = self.of_type(event_type)
        assert matching, f"no {event_type} event emitted"
        return matching[-1]

    def clear(self) -> None:
        self.events.clear()


class ScriptedSupplier:
    """Move supplier that answers from a queue of canned outcomes.

    Each queued item is a SupplierResponse, an exception to raise, or a
    callable taking the request and returning a SupplierResponse. With an
    empty queue it picks the first legal move.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests: list[SupplierRequest] = []
        self.gate: asyncio.Event | None = None

    def queue(self, *outcomes) -> None:
        self.outcomes.extend(outcomes)

    async def select_move(self, request: SupplierRequest) -> SupplierResponse:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()

        if not self.outcomes:
            if not request.legal_moves:
                return SupplierResponse.error("no legal moves")
            return SupplierResponse(move=request.legal_moves[0], status="first legal move")

        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return outcome(request)
        return outcome


@pytest.fixture
def rules() -> ShogiRules:
    return ShogiRules()


@pytest.fixture
def board(rules: ShogiRules) -> ShogiBoard:
    """Standard initial position."""
    return ShogiBoard(rules)


@pytest.fixture
def empty_board(rules: ShogiRules) -> ShogiBoard:
    """Board with no pieces and empty hands."""
    b = ShogiBoard(rules)
    b.clear()
    return b


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def supplier() -> ScriptedSupplier:
    return ScriptedSupplier()


@pytest.fixture
def preferences() -> PreferenceStore:
    return PreferenceStore("random")


def build_session(
    board: ShogiBoard,
    rules: ShogiRules,
    supplier,
    preferences: PreferenceStore,
    recorder: EventRecorder,
    mode: GameMode = GameMode.HUMAN,
) -> GameSession:
    """Create and initialize a session with no opponent delay."""
    session = GameSession(
        board,
        rules,
        supplier,
        preferences,
        mode=mode,
        opponent_delay=0.0,
        on_event=recorder,
    )
    session.initialize()
    return session


@pytest.fixture
def human_session(board, rules, supplier, preferences, recorder) -> GameSession:
    """Two humans, initial position, SENTE to move."""
    return build_session(board, rules, supplier, preferences, recorder, GameMode.HUMAN)


def play(session: GameSession, from_rc: tuple[int, int], to_rc: tuple[int, int]) -> None:
    """Select a piece and click a destination, asserting both clicks are accepted."""
    result = session.click_cell(pos(*from_rc))
    assert result.is_valid, result
    result = session.click_cell(pos(*to_rc))
    assert result.is_valid, result
