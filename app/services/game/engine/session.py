"""Game session - owns all mutable game state and drives the state machines.

A session is wired once with its collaborators (board, rules oracle, move
supplier, preference source) and reports every change through a single
event callback. Everything runs on one event loop thread; the only
suspension point is the opponent pipeline's supplier request.
"""

import logging
from collections.abc import Callable

from app.schemas.game_engine import (
    CapturedSelection,
    Drop,
    GameMode,
    GameResult,
    GameStateSnapshot,
    Move,
    MoveDescriptor,
    PendingPromotion,
    PieceType,
    Player,
    Position,
)

from . import interaction
from .events import (
    CapturedPiecesChanged,
    GameEnded,
    GameEvent,
    GameStateChanged,
    HistoryChanged,
    OpponentError,
    OpponentThinking,
    PromotionDialogOpened,
    SelectionChanged,
)
from .history import INITIAL_INDEX, MoveHistory
from .interaction import (
    IDLE,
    AwaitingPromotionChoice,
    CapturedSelected,
    CommitDrop,
    CommitMove,
    InteractionState,
    PieceSelected,
    Transition,
)
from .interfaces import (
    BoardStateHolder,
    MoveSupplier,
    PreferenceSource,
    RulesOracle,
    SupplierRequest,
    SupplierResponse,
)
from .legal_moves import (
    all_possible_moves,
    has_any_legal_moves,
    valid_drop_positions,
    valid_moves_from,
)
from .opponent import OpponentPipeline
from .turns import TurnTracker
from .validation import (
    BROWSING_HISTORY,
    GAME_FINISHED,
    OPPONENT_THINKING,
    PROMOTION_PENDING,
    ValidationResult,
)

logger = logging.getLogger(__name__)

EventSink = Callable[[GameEvent], None]

AUTOMATED_PLAYERS: dict[GameMode, frozenset[Player]] = {
    GameMode.HUMAN: frozenset(),
    GameMode.OPPONENT: frozenset({Player.GOTE}),
    GameMode.SELF_PLAY: frozenset({Player.SENTE, Player.GOTE}),
}

DEFAULT_THINKING_STATUS = "Thinking..."


class GameSession:
    """One game between a human and another human or an automated opponent.

    Args:
        board: Board state holder; reset on every initialize().
        rules: Rules oracle used for all enumeration.
        supplier: Automated opponent.
        preferences: Source of the opponent strategy identifier.
        mode: Which sides are automated.
        opponent_delay: Seconds to wait before each opponent request.
        on_event: Receives every outbound notification, in order.
    """

    def __init__(
        self,
        board: BoardStateHolder,
        rules: RulesOracle,
        supplier: MoveSupplier,
        preferences: PreferenceSource,
        *,
        mode: GameMode = GameMode.OPPONENT,
        opponent_delay: float = 0.5,
        on_event: EventSink | None = None,
        thinking_status: str = DEFAULT_THINKING_STATUS,
    ):
        self._board = board
        self._rules = rules
        self._preferences = preferences
        self._mode = mode
        self._opponent_delay = opponent_delay
        self._on_event = on_event
        self._thinking_status = thinking_status
        self._seq = 0

        self._turns = TurnTracker()
        self._history = MoveHistory()
        self._interaction: InteractionState = IDLE
        self._opponent = OpponentPipeline(
            supplier,
            preferences,
            request_factory=self._build_supplier_request,
            on_started=self._on_opponent_started,
            on_complete=self._on_opponent_response,
        )

    # --- read-only views ---

    @property
    def board(self) -> BoardStateHolder:
        return self._board

    @property
    def preferences(self) -> PreferenceSource:
        return self._preferences

    @property
    def opponent(self) -> OpponentPipeline:
        return self._opponent

    @property
    def history(self) -> MoveHistory:
        return self._history

    @property
    def game_mode(self) -> GameMode:
        return self._mode

    @property
    def current_player(self) -> Player:
        return self._turns.current_player

    @property
    def game_result(self) -> GameResult | None:
        return self._turns.result

    @property
    def ai_thinking(self) -> bool:
        return self._opponent.busy

    @property
    def browsing_history(self) -> bool:
        return self._history.browsing

    @property
    def current_move_index(self) -> int:
        return self._history.current_index

    @property
    def interaction_state(self) -> InteractionState:
        return self._interaction

    @property
    def pending_promotion(self) -> PendingPromotion | None:
        if isinstance(self._interaction, AwaitingPromotionChoice):
            return self._interaction.pending
        return None

    @property
    def selected_captured_piece(self) -> CapturedSelection | None:
        if isinstance(self._interaction, CapturedSelected):
            return self._interaction.selection
        return None

    def is_automated(self, player: Player) -> bool:
        return player in AUTOMATED_PLAYERS[self._mode]

    def snapshot(self) -> GameStateSnapshot:
        return GameStateSnapshot(
            current_player=self.current_player,
            ai_thinking=self.ai_thinking,
            game_mode=self._mode,
            game_result=self.game_result,
            browsing_history=self.browsing_history,
            current_move_index=self.current_move_index,
            board=self._board.snapshot_board(),
            captured_pieces=self._board.snapshot_captured(),
            history=self._history.entries,
        )

    # --- move enumeration on the live board ---

    def valid_moves_from(self, pos: Position) -> list[Position]:
        return valid_moves_from(self._board.grid, self._rules, pos, self.current_player)

    def valid_drop_positions(self, piece_type: PieceType) -> list[Position]:
        return valid_drop_positions(self._board.grid, self._rules, piece_type, self.current_player)

    def all_possible_moves(self, player: Player) -> list[MoveDescriptor]:
        return all_possible_moves(
            self._board.grid, self._rules, player, self._board.captured_pieces[player]
        )

    # --- lifecycle ---

    def initialize(self) -> None:
        """Start a new game in the current mode."""
        self._opponent.cancel()
        self._board.reset()
        self._turns.reset()
        self._history.clear()
        self._interaction = IDLE
        logger.info("New game: mode=%s", self._mode.value)

        self._emit_state()
        self._emit_history()
        self._emit_captured()
        self._emit_selection()
        self._schedule_opponent_if_due()

    def set_game_mode(self, mode: GameMode) -> None:
        self._mode = mode
        self.initialize()

    def close(self) -> None:
        """Drop any pending opponent request; no further events are emitted for it."""
        self._opponent.cancel()

    # --- interaction entry points ---

    def click_cell(self, pos: Position) -> ValidationResult:
        rejection = self._check_interaction_guards()
        if rejection is not None:
            return self._rejected("click_cell", rejection)

        transition = interaction.click_cell(
            self._interaction, pos, self._board.grid, self._rules, self.current_player
        )
        return self._apply_transition("click_cell", transition)

    def click_captured_piece(self, player: Player, index: int) -> ValidationResult:
        rejection = self._check_interaction_guards()
        if rejection is not None:
            return self._rejected("click_captured_piece", rejection)

        transition = interaction.click_captured_piece(
            self._interaction,
            player,
            index,
            self._board.captured_pieces[player],
            self._board.grid,
            self._rules,
            self.current_player,
        )
        return self._apply_transition("click_captured_piece", transition)

    def resolve_promotion(self, promote: bool) -> ValidationResult:
        if self._history.browsing:
            return self._rejected("resolve_promotion", BROWSING_HISTORY)

        transition = interaction.resolve_promotion(self._interaction, promote)
        return self._apply_transition("resolve_promotion", transition)

    # --- time travel ---

    def replay(self, index: int) -> ValidationResult:
        """Show the position after history entry `index` (-1 = initial)."""
        if not self._history.contains(index):
            return self._rejected(
                "replay",
                ValidationResult.error("INVALID_INDEX", f"No history entry {index}"),
            )
        if self._opponent.busy:
            return self._rejected("replay", OPPONENT_THINKING)
        if self.pending_promotion is not None:
            return self._rejected("replay", PROMOTION_PENDING)

        self._materialize(index)
        self._history.browsing = index != self._history.last_index
        if not self._history.browsing:
            self._history.current_index = index
        self._set_interaction(IDLE)
        logger.info("Replayed to index %d (browsing=%s)", index, self._history.browsing)

        self._emit_state()
        self._emit_captured()
        return ValidationResult.ok()

    def undo(self) -> ValidationResult:
        """Take back the move at the cursor and make the prior position live."""
        if self._history.current_index == INITIAL_INDEX:
            return self._rejected("undo", ValidationResult.error("NOTHING_TO_UNDO", "No move to undo"))
        if self._opponent.busy:
            return self._rejected("undo", OPPONENT_THINKING)
        if self.pending_promotion is not None:
            return self._rejected("undo", PROMOTION_PENDING)

        self._turns.clear_result()
        target = self._history.current_index - 1
        self._materialize(target)
        self._history.current_index = target
        self._history.browsing = False
        self._set_interaction(IDLE)
        logger.info("Undo to index %d, %s to move", target, self.current_player.value)

        self._emit_state()
        self._emit_captured()
        return ValidationResult.ok()

    # --- opponent ---

    def retry_opponent(self) -> ValidationResult:
        """Re-issue the opponent request after a failure."""
        if not self.is_automated(self.current_player):
            return self._rejected(
                "retry_opponent",
                ValidationResult.error("NOT_OPPONENT_TURN", "It is not the opponent's turn"),
            )
        rejection = self._check_interaction_guards()
        if rejection is not None:
            return self._rejected("retry_opponent", rejection)
        player = self.current_player
        if not has_any_legal_moves(
            self._board.grid, self._rules, player, self._board.captured_pieces[player]
        ):
            return self._rejected(
                "retry_opponent",
                ValidationResult.error("NO_LEGAL_MOVES", f"{player.value} has no legal moves"),
            )

        self._set_interaction(IDLE)
        self._opponent.schedule(self.current_player)
        self._emit_state()
        return ValidationResult.ok()

    def _schedule_opponent_if_due(self) -> None:
        player = self.current_player
        if not self.is_automated(player) or self._turns.is_terminal or self._history.browsing:
            return
        if self._opponent.schedule(player, delay=self._opponent_delay):
            self._emit_state()

    def _build_supplier_request(self, player: Player, strategy: str) -> SupplierRequest:
        return SupplierRequest(
            player=player,
            strategy=strategy,
            board=self._board.snapshot_board(),
            captured_pieces=self._board.snapshot_captured(),
            legal_moves=self.all_possible_moves(player),
            history=self._history.moves[: self._history.current_index + 1],
        )

    def _on_opponent_started(self, player: Player, strategy: str) -> None:
        self._emit(OpponentThinking(player=player, status=self._thinking_status))

    def _on_opponent_response(self, player: Player, response: SupplierResponse) -> None:
        if response.status:
            self._emit(OpponentThinking(player=player, status=response.status))

        if response.is_error:
            logger.warning("Opponent error for %s: %s", player.value, response.status)
            self._opponent_failed(player, response.status or "The opponent failed to move")
            return

        if self._turns.is_terminal or self._history.browsing or player != self.current_player:
            logger.warning(
                "Opponent response for %s dropped: game no longer waiting for it", player.value
            )
            self._emit_state()
            return

        move = response.move
        if move is None:
            logger.error("Opponent returned no move without an error flag")
            self._opponent_failed(player, "Internal error: the opponent returned no move")
            return

        if move.player != player:
            self._opponent_failed(
                player, f"Internal error: the opponent moved for {move.player.value}"
            )
            return

        self._set_interaction(IDLE)

        if isinstance(move, Move):
            problem = self._check_supplier_move(move)
            if problem is not None:
                self._opponent_failed(player, problem)
                return
            self._commit_move(move.from_pos, move.to, move.promote)
        else:
            problem = self._check_supplier_drop(move)
            if problem is not None:
                self._opponent_failed(player, problem)
                return
            hand = self._board.captured_pieces[player]
            index = next((i for i, p in enumerate(hand) if p.type == move.piece_type), None)
            if index is None:
                logger.error(
                    "Opponent dropped %s but %s holds none", move.piece_type.value, player.value
                )
                self._opponent_failed(
                    player, f"Internal error: no captured {move.piece_type.value} to drop"
                )
                return

            selection = CapturedSelection(player=player, index=index, piece=hand[index])
            self._interaction = CapturedSelected(selection=selection)
            dropped = self._commit_drop(selection, move.to, force=True)
            self._interaction = IDLE
            if dropped is None:
                self._opponent_failed(player, "Internal error: the drop could not be applied")
                return

        self._next_turn()

    def _check_supplier_move(self, move: Move) -> str | None:
        grid = self._board.grid
        if not self._rules.is_legal_move(grid, move.from_pos, move.to, move.player):
            return "The opponent proposed an illegal move"

        piece = grid[move.from_pos.row][move.from_pos.col]
        can_promote = self._rules.can_promote(grid, move.from_pos, move.to)
        if move.promote and not can_promote:
            return "The opponent proposed an impossible promotion"
        if not move.promote and self._rules.must_promote(piece.type, move.to, move.player):
            return "The opponent skipped an obligatory promotion"
        return None

    def _check_supplier_drop(self, drop: Drop) -> str | None:
        grid = self._board.grid
        row, col = drop.to.row, drop.to.col
        if not (0 <= row < len(grid) and 0 <= col < len(grid[row])):
            logger.error("Opponent dropped off the board at (%d,%d)", row, col)
            return f"Internal error: drop target ({row},{col}) is off the board"
        if grid[row][col].type != PieceType.EMPTY:
            logger.error("Opponent dropped onto occupied (%d,%d)", row, col)
            return f"Internal error: drop target ({row},{col}) is occupied"
        return None

    def _opponent_failed(self, player: Player, message: str) -> None:
        self._emit(OpponentError(player=player, message=message))
        self._emit_state()

    # --- commits ---

    def _check_interaction_guards(self) -> ValidationResult | None:
        if self._opponent.busy:
            return OPPONENT_THINKING
        if self.pending_promotion is not None:
            return PROMOTION_PENDING
        if self._history.browsing:
            return BROWSING_HISTORY
        if self._turns.is_terminal:
            return GAME_FINISHED
        return None

    def _apply_transition(self, source: str, transition: Transition) -> ValidationResult:
        self._set_interaction(transition.state)

        commit = transition.commit
        if isinstance(commit, CommitMove):
            self._commit_move(commit.from_pos, commit.to_pos, commit.promote)
            self._next_turn()
        elif isinstance(commit, CommitDrop):
            if self._commit_drop(commit.selection, commit.to_pos) is not None:
                self._next_turn()
            else:
                return self._rejected(
                    source, ValidationResult.error("ILLEGAL_DROP", "The drop was refused")
                )

        if transition.rejection is not None:
            return self._rejected(source, transition.rejection)
        return ValidationResult.ok()

    def _commit_move(self, from_pos: Position, to_pos: Position, promote: bool) -> Move:
        mover = self.current_player
        piece = self._board.grid[from_pos.row][from_pos.col]
        captured = self._board.move_piece(from_pos, to_pos, promote)

        move = Move(
            player=mover,
            from_pos=from_pos,
            to=to_pos,
            piece_type=piece.type,
            promote=promote,
            capture=captured.type if captured else None,
        )
        self._record(move)
        logger.info(
            "Move committed: %s %s (%d,%d)->(%d,%d) promote=%s capture=%s",
            mover.value,
            piece.type.value,
            from_pos.row,
            from_pos.col,
            to_pos.row,
            to_pos.col,
            promote,
            move.capture.value if move.capture else None,
        )

        if self._turns.record_capture(mover, move.capture):
            self._emit_state()
            self._emit(GameEnded(winner=mover, result=self._turns.result))
        return move

    def _commit_drop(
        self, selection: CapturedSelection, to_pos: Position, force: bool = False
    ) -> Drop | None:
        piece_type = selection.piece.type
        if not self._board.drop_piece(piece_type, selection.player, to_pos, force):
            logger.warning(
                "Drop refused by board: %s %s -> (%d,%d)",
                selection.player.value,
                piece_type.value,
                to_pos.row,
                to_pos.col,
            )
            return None

        drop = Drop(player=selection.player, piece_type=piece_type, to=to_pos)
        self._record(drop)
        logger.info(
            "Drop committed: %s %s -> (%d,%d)%s",
            selection.player.value,
            piece_type.value,
            to_pos.row,
            to_pos.col,
            " (forced)" if force else "",
        )
        return drop

    def _record(self, move: MoveDescriptor) -> None:
        self._history.record(
            move, self._board.snapshot_board(), self._board.snapshot_captured()
        )
        self._emit_history()
        self._emit_captured()

    def _next_turn(self) -> None:
        if not self._turns.advance():
            return
        self._emit_state()
        self._schedule_opponent_if_due()

    def _materialize(self, index: int) -> None:
        if index == INITIAL_INDEX:
            self._board.reset()
            self._turns.current_player = self._turns.first_player
            return

        entry = self._history[index]
        self._board.restore_board(entry.board)
        self._board.restore_captured(entry.captured_pieces)
        self._turns.current_player = entry.move.player.opponent()

    def _set_interaction(self, state: InteractionState) -> None:
        previous, self._interaction = self._interaction, state
        if state == previous:
            return
        if isinstance(state, AwaitingPromotionChoice):
            pending = state.pending
            self._emit(PromotionDialogOpened(from_pos=pending.from_pos, to_pos=pending.to_pos))
        else:
            self._emit_selection()

    def _rejected(self, source: str, result: ValidationResult) -> ValidationResult:
        logger.debug("%s ignored: %s - %s", source, result.error_code, result.error_message)
        return result

    # --- notifications ---

    def _emit(self, event: GameEvent) -> None:
        event.seq = self._seq
        self._seq += 1
        if self._on_event is not None:
            self._on_event(event)

    def _emit_state(self) -> None:
        self._emit(
            GameStateChanged(
                current_player=self.current_player,
                ai_thinking=self.ai_thinking,
                game_mode=self._mode,
                game_result=self.game_result,
                browsing_history=self.browsing_history,
                current_move_index=self.current_move_index,
            )
        )

    def _emit_history(self) -> None:
        self._emit(HistoryChanged(entries=self._history.entries))

    def _emit_captured(self) -> None:
        self._emit(CapturedPiecesChanged(captured_pieces=self._board.snapshot_captured()))

    def _emit_selection(self) -> None:
        state = self._interaction
        if isinstance(state, PieceSelected):
            event = SelectionChanged(selected=state.pos, highlights=list(state.destinations))
        elif isinstance(state, CapturedSelected):
            event = SelectionChanged(
                captured_selection=state.selection, highlights=list(state.destinations)
            )
        else:
            event = SelectionChanged()
        self._emit(event)
