"""Tests for the game session with two human players.

Critical scenarios tested:
- A first pawn move records history and hands over the turn
- Promotion dialog, drops and selection events
- Royal capture ends the game; undo reopens it
- Replay round-trip, browsing guard and history truncation
- Event sequencing
"""

from app.schemas.game_engine import (
    EMPTY_CELL,
    Drop,
    GameMode,
    GameResult,
    Move,
    PendingPromotion,
    PieceType,
    Player,
)
from app.services.game.engine import GameSession
from app.services.game.engine.interaction import IDLE, PieceSelected
from app.services.game.shogi import ShogiBoard

from .conftest import EventRecorder, piece, play, pos


def setup_king_hunt(session: GameSession, board: ShogiBoard) -> None:
    """SENTE king and gold vs a lone GOTE king, then two quiet moves.

    Leaves SENTE to move with the gold on (4,4) next to the GOTE king on (3,4).
    """
    board.clear()
    board.place(pos(8, 8), piece(PieceType.KING, Player.SENTE))
    board.place(pos(4, 4), piece(PieceType.GOLD, Player.SENTE))
    board.place(pos(2, 4), piece(PieceType.KING, Player.GOTE))

    play(session, (8, 8), (7, 8))
    play(session, (2, 4), (3, 4))


class TestFirstMove:
    """Test the initial pawn push scenario."""

    def test_pawn_push(self, human_session: GameSession, board: ShogiBoard):
        captured_before = board.snapshot_captured()

        play(human_session, (6, 4), (5, 4))

        assert len(human_session.history) == 1
        entry = human_session.history[0]
        assert entry.move == Move(
            player=Player.SENTE,
            from_pos=pos(6, 4),
            to=pos(5, 4),
            piece_type=PieceType.PAWN,
        )
        assert human_session.current_player == Player.GOTE
        assert human_session.current_move_index == 0
        assert board.snapshot_captured() == captured_before
        assert human_session.game_result is None
        assert board.piece_at(pos(5, 4)) == piece(PieceType.PAWN, Player.SENTE)

    def test_pawn_push_events(self, human_session: GameSession, recorder: EventRecorder):
        recorder.clear()

        play(human_session, (6, 4), (5, 4))

        types = [e.event_type for e in recorder.events]
        assert types == [
            "selection_changed",
            "selection_changed",
            "history_changed",
            "captured_pieces_changed",
            "game_state_changed",
        ]
        assert recorder.events[0].selected == pos(6, 4)
        assert recorder.events[0].highlights == [pos(5, 4)]
        assert recorder.last("game_state_changed").current_player == Player.GOTE

    def test_cannot_move_opponent_piece(self, human_session: GameSession):
        result = human_session.click_cell(pos(2, 4))

        assert not result.is_valid
        assert result.error_code == "NOT_YOUR_PIECE"
        assert human_session.interaction_state == IDLE

    def test_illegal_destination_changes_nothing(
        self, human_session: GameSession, board: ShogiBoard
    ):
        before = board.snapshot_board()
        human_session.click_cell(pos(6, 4))

        result = human_session.click_cell(pos(3, 4))

        assert result.error_code == "ILLEGAL_MOVE"
        assert board.snapshot_board() == before
        assert len(human_session.history) == 0
        assert human_session.current_player == Player.SENTE


class TestPromotionInSession:
    """Test the promotion dialog through the session."""

    def _open_dialog(self, session: GameSession, board: ShogiBoard) -> None:
        board.clear()
        board.place(pos(3, 4), piece(PieceType.SILVER, Player.SENTE))
        board.place(pos(0, 0), piece(PieceType.KING, Player.GOTE))
        session.click_cell(pos(3, 4))
        session.click_cell(pos(2, 4))

    def test_dialog_opens_and_blocks_input(
        self, human_session: GameSession, board: ShogiBoard, recorder: EventRecorder
    ):
        self._open_dialog(human_session, board)

        assert human_session.pending_promotion == PendingPromotion(
            from_pos=pos(3, 4), to_pos=pos(2, 4)
        )
        dialog = recorder.last("promotion_dialog_opened")
        assert (dialog.from_pos, dialog.to_pos) == (pos(3, 4), pos(2, 4))

        assert human_session.click_cell(pos(3, 4)).error_code == "PROMOTION_PENDING"
        assert not human_session.undo().is_valid
        assert human_session.replay(-1).error_code == "PROMOTION_PENDING"
        assert len(human_session.history) == 0

    def test_accepting_promotes(self, human_session: GameSession, board: ShogiBoard):
        self._open_dialog(human_session, board)

        assert human_session.resolve_promotion(True).is_valid

        assert board.piece_at(pos(2, 4)) == piece(PieceType.PROMOTED_SILVER, Player.SENTE)
        assert human_session.history[0].move.promote is True
        assert human_session.pending_promotion is None
        assert human_session.current_player == Player.GOTE

    def test_declining_keeps_piece(self, human_session: GameSession, board: ShogiBoard):
        self._open_dialog(human_session, board)

        human_session.resolve_promotion(False)

        assert board.piece_at(pos(2, 4)) == piece(PieceType.SILVER, Player.SENTE)
        assert human_session.history[0].move.promote is False

    def test_second_answer_is_rejected(self, human_session: GameSession, board: ShogiBoard):
        self._open_dialog(human_session, board)
        human_session.resolve_promotion(True)

        result = human_session.resolve_promotion(True)

        assert result.error_code == "NO_PENDING_PROMOTION"
        assert len(human_session.history) == 1


class TestDropsInSession:
    """Test dropping captured pieces."""

    def test_drop_from_hand(
        self, human_session: GameSession, board: ShogiBoard, recorder: EventRecorder
    ):
        board.captured_pieces[Player.SENTE].append(piece(PieceType.GOLD, Player.SENTE))

        assert human_session.click_captured_piece(Player.SENTE, 0).is_valid
        assert human_session.selected_captured_piece.piece.type == PieceType.GOLD
        assert len(recorder.last("selection_changed").highlights) == 41

        assert human_session.click_cell(pos(4, 4)).is_valid

        assert board.piece_at(pos(4, 4)) == piece(PieceType.GOLD, Player.SENTE)
        assert board.captured_pieces[Player.SENTE] == []
        assert human_session.history[0].move == Drop(
            player=Player.SENTE, piece_type=PieceType.GOLD, to=pos(4, 4)
        )
        assert human_session.selected_captured_piece is None
        assert human_session.current_player == Player.GOTE

    def test_capture_fills_hand_for_later_drop(
        self, human_session: GameSession, board: ShogiBoard
    ):
        board.clear()
        board.place(pos(5, 4), piece(PieceType.PAWN, Player.SENTE))
        board.place(pos(4, 4), piece(PieceType.SILVER, Player.GOTE))
        board.place(pos(0, 0), piece(PieceType.KING, Player.GOTE))
        board.place(pos(8, 8), piece(PieceType.KING, Player.SENTE))

        play(human_session, (5, 4), (4, 4))

        assert human_session.history[0].move.capture == PieceType.SILVER
        assert human_session.history[0].captured_pieces[Player.SENTE] == (
            piece(PieceType.SILVER, Player.SENTE),
        )

    def test_cannot_select_opponent_hand(self, human_session: GameSession, board: ShogiBoard):
        board.captured_pieces[Player.GOTE].append(piece(PieceType.GOLD, Player.GOTE))

        result = human_session.click_captured_piece(Player.GOTE, 0)

        assert result.error_code == "NOT_YOUR_PIECE"
        assert human_session.selected_captured_piece is None


class TestRoyalCapture:
    """Test the terminal result and undoing out of it."""

    def test_capturing_king_ends_game(
        self, human_session: GameSession, board: ShogiBoard, recorder: EventRecorder
    ):
        setup_king_hunt(human_session, board)

        play(human_session, (4, 4), (3, 4))

        assert human_session.game_result == GameResult.SENTE_WIN
        ended = recorder.last("game_ended")
        assert ended.winner == Player.SENTE
        assert ended.result == GameResult.SENTE_WIN
        # No turn alternation after the terminating move
        assert human_session.current_player == Player.SENTE

    def test_finished_game_rejects_input(self, human_session: GameSession, board: ShogiBoard):
        setup_king_hunt(human_session, board)
        play(human_session, (4, 4), (3, 4))

        result = human_session.click_cell(pos(7, 8))

        assert result.error_code == "GAME_FINISHED"
        assert len(human_session.history) == 3

    def test_undo_reopens_game(self, human_session: GameSession, board: ShogiBoard):
        setup_king_hunt(human_session, board)
        play(human_session, (4, 4), (3, 4))

        assert human_session.undo().is_valid

        assert human_session.game_result is None
        assert human_session.current_player == Player.SENTE
        assert human_session.current_move_index == 1
        assert not human_session.browsing_history
        assert board.piece_at(pos(3, 4)) == piece(PieceType.KING, Player.GOTE)
        assert board.piece_at(pos(4, 4)) == piece(PieceType.GOLD, Player.SENTE)
        assert board.captured_pieces[Player.SENTE] == []


class TestTimeTravel:
    """Test replay, browsing and undo."""

    def _three_moves(self, session: GameSession) -> None:
        play(session, (6, 4), (5, 4))
        play(session, (2, 4), (3, 4))
        play(session, (6, 0), (5, 0))

    def test_replay_last_reproduces_snapshot(self, human_session: GameSession, board: ShogiBoard):
        self._three_moves(human_session)
        expected_board = board.snapshot_board()
        expected_captured = board.snapshot_captured()

        human_session.replay(0)
        assert human_session.replay(2).is_valid

        assert board.snapshot_board() == expected_board
        assert board.snapshot_captured() == expected_captured
        assert not human_session.browsing_history
        assert human_session.current_player == Player.GOTE

    def test_replay_initial_position(self, human_session: GameSession, board: ShogiBoard):
        self._three_moves(human_session)

        assert human_session.replay(-1).is_valid

        assert board.piece_at(pos(6, 4)) == piece(PieceType.PAWN, Player.SENTE)
        assert board.piece_at(pos(5, 4)) == EMPTY_CELL
        assert human_session.current_player == Player.SENTE
        assert human_session.browsing_history

    def test_replay_sets_player_after_entry(self, human_session: GameSession):
        self._three_moves(human_session)

        human_session.replay(1)

        assert human_session.current_player == Player.SENTE
        assert human_session.browsing_history
        # Cursor stays on the live position while browsing
        assert human_session.current_move_index == 2

    def test_replay_out_of_range_is_rejected(self, human_session: GameSession, board: ShogiBoard):
        self._three_moves(human_session)
        before = board.snapshot_board()

        assert human_session.replay(3).error_code == "INVALID_INDEX"
        assert human_session.replay(-2).error_code == "INVALID_INDEX"
        assert board.snapshot_board() == before

    def test_browsing_rejects_moves(self, human_session: GameSession):
        self._three_moves(human_session)
        human_session.replay(0)

        before = human_session.board.snapshot_board()
        human_session.board.captured_pieces[Player.SENTE].append(
            piece(PieceType.GOLD, Player.SENTE)
        )

        result = human_session.click_cell(pos(2, 4))

        assert result.error_code == "BROWSING_HISTORY"
        assert human_session.click_captured_piece(Player.SENTE, 0).error_code == (
            "BROWSING_HISTORY"
        )
        assert human_session.resolve_promotion(True).error_code == "BROWSING_HISTORY"
        assert human_session.interaction_state == IDLE
        assert human_session.board.snapshot_board() == before
        assert len(human_session.history) == 3

    def test_replay_clears_selection(self, human_session: GameSession):
        self._three_moves(human_session)
        human_session.click_cell(pos(2, 0))
        assert isinstance(human_session.interaction_state, PieceSelected)

        human_session.replay(0)

        assert human_session.interaction_state == IDLE

    def test_undo_then_different_move_truncates(self, human_session: GameSession, board: ShogiBoard):
        self._three_moves(human_session)

        assert human_session.undo().is_valid
        assert human_session.current_player == Player.SENTE
        assert len(human_session.history) == 3

        play(human_session, (6, 8), (5, 8))

        assert len(human_session.history) == 3
        assert human_session.history[2].move.from_pos == pos(6, 8)
        assert human_session.current_move_index == 2
        assert board.piece_at(pos(6, 0)) == piece(PieceType.PAWN, Player.SENTE)

    def test_undo_all_the_way_back(self, human_session: GameSession, board: ShogiBoard):
        play(human_session, (6, 4), (5, 4))

        human_session.undo()

        assert human_session.current_move_index == -1
        assert human_session.current_player == Player.SENTE
        assert board.piece_at(pos(6, 4)) == piece(PieceType.PAWN, Player.SENTE)
        assert human_session.undo().error_code == "NOTHING_TO_UNDO"

    def test_replay_last_after_undo_redoes(self, human_session: GameSession, board: ShogiBoard):
        self._three_moves(human_session)
        human_session.undo()

        human_session.replay(2)

        assert human_session.current_move_index == 2
        assert not human_session.browsing_history
        assert board.piece_at(pos(5, 0)) == piece(PieceType.PAWN, Player.SENTE)


class TestSessionLifecycle:
    """Test initialize, mode changes and event sequencing."""

    def test_initialize_emits_full_state(self, human_session: GameSession, recorder: EventRecorder):
        types = [e.event_type for e in recorder.events]

        assert types == [
            "game_state_changed",
            "history_changed",
            "captured_pieces_changed",
            "selection_changed",
        ]

    def test_new_game_resets_everything(self, human_session: GameSession, board: ShogiBoard):
        play(human_session, (6, 4), (5, 4))

        human_session.initialize()

        assert len(human_session.history) == 0
        assert human_session.current_move_index == -1
        assert human_session.current_player == Player.SENTE
        assert board.piece_at(pos(5, 4)) == EMPTY_CELL

    def test_events_are_sequenced(self, human_session: GameSession, recorder: EventRecorder):
        play(human_session, (6, 4), (5, 4))
        play(human_session, (2, 4), (3, 4))

        assert [e.seq for e in recorder.events] == list(range(len(recorder.events)))

    def test_snapshot_matches_session(self, human_session: GameSession):
        play(human_session, (6, 4), (5, 4))

        snapshot = human_session.snapshot()

        assert snapshot.current_player == Player.GOTE
        assert snapshot.game_mode == GameMode.HUMAN
        assert snapshot.current_move_index == 0
        assert len(snapshot.history) == 1
        assert snapshot.ai_thinking is False

    def test_automated_players_by_mode(self, human_session: GameSession):
        assert not human_session.is_automated(Player.SENTE)
        assert not human_session.is_automated(Player.GOTE)
