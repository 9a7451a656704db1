"""Tests for trainer.replay module."""

import chess
import pytest

from trainer.errors import InvalidSolutionMove, InvalidStartPosition
from trainer.replay import replay_to_end, apply_uci, parse_uci, board_from


class TestReplayToEnd:
    """Tests for replay_to_end function."""

    def test_matches_direct_application(self):
        """Replaying equals pushing each move in turn."""
        solution = ["e2e4", "e7e5", "g1f3", "b8c6", "f1c4"]
        direct = chess.Board()
        for uci in solution:
            direct.push_uci(uci)

        replayed = replay_to_end(chess.STARTING_FEN, solution)
        assert replayed.fen() == direct.fen()

    def test_does_not_mutate_input_board(self):
        start = chess.Board()
        replay_to_end(start, ["e2e4", "e7e5"])
        assert start.fen() == chess.STARTING_FEN
        assert start.move_stack == []

    def test_returns_new_board_for_empty_solution(self):
        start = chess.Board()
        result = replay_to_end(start, [])
        assert result is not start
        assert result.fen() == start.fen()

    def test_missing_promotion_piece_defaults_to_queen(self):
        board = replay_to_end("8/4P1k1/8/8/8/8/8/4K3 w - - 0 1", ["e7e8"])
        piece = board.piece_at(chess.E8)
        assert piece == chess.Piece(chess.QUEEN, chess.WHITE)

    def test_explicit_underpromotion_is_kept(self):
        board = replay_to_end("8/4P1k1/8/8/8/8/8/4K3 w - - 0 1", ["e7e8n"])
        assert board.piece_at(chess.E8) == chess.Piece(chess.KNIGHT, chess.WHITE)

    def test_illegal_move_raises_with_ply(self):
        with pytest.raises(InvalidSolutionMove) as exc_info:
            replay_to_end(chess.STARTING_FEN, ["e2e4", "e2e4"])
        assert exc_info.value.ply == 1
        assert exc_info.value.move == "e2e4"

    def test_unparseable_move_raises(self):
        with pytest.raises(InvalidSolutionMove):
            replay_to_end(chess.STARTING_FEN, ["zz99"])

    def test_bad_fen_raises(self):
        with pytest.raises(InvalidStartPosition) as exc_info:
            replay_to_end("not a fen", ["e2e4"])
        assert isinstance(exc_info.value, InvalidSolutionMove)
        assert "Bad starting position" in str(exc_info.value)
        assert "Solution move" not in str(exc_info.value)


class TestApplyUci:
    """Tests for apply_uci and parse_uci."""

    def test_apply_pushes_move(self):
        board = chess.Board()
        move = apply_uci(board, "g1f3")
        assert move == chess.Move.from_uci("g1f3")
        assert board.turn == chess.BLACK

    def test_apply_rejects_illegal_move_without_pushing(self):
        board = chess.Board()
        with pytest.raises(InvalidSolutionMove):
            apply_uci(board, "e1e2")
        assert board.fen() == chess.STARTING_FEN

    def test_parse_does_not_promote_non_pawns(self):
        board = chess.Board("4k3/8/8/8/8/8/8/R3K3 w - - 0 1")
        assert parse_uci(board, "a1a8").promotion is None

    def test_board_from_copies_board(self):
        board = chess.Board()
        board.push_uci("e2e4")
        copy = board_from(board)
        assert copy is not board
        assert copy.fen() == board.fen()
