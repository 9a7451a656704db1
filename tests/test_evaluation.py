"""Tests for trainer.evaluation module."""

from unittest.mock import MagicMock

import chess
import pytest
import requests

from trainer.errors import AnalysisUnavailable, AnalysisQuotaExhausted
from trainer.evaluation import (
    AnalysisClient,
    Evaluation,
    PositionEvaluator,
    SOURCE_MATERIAL,
    SOURCE_REMOTE,
    material_balance,
    strip_en_passant,
)

# White pawn on e5 can take en passant on f6
EP_FEN = "rnbqkbnr/ppp1p1pp/8/3pPp2/8/8/PPPP1PPP/RNBQKBNR w KQkq f6 0 3"


def make_response(data=None, status=200, json_error=False):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = status < 400
    if json_error:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = data
    return resp


def make_client(response=None, error=None):
    session = MagicMock()
    if error:
        session.post.side_effect = error
    else:
        session.post.return_value = response
    return AnalysisClient(base_url="http://analysis.test/v1", session=session), session


class FakeClient:
    """Analysis client that replays scripted results and counts calls."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def analyse(self, board):
        self.calls += 1
        result = self.results[min(self.calls, len(self.results)) - 1]
        if isinstance(result, Exception):
            raise result
        return result


class TestMaterialBalance:
    """Tests for material_balance function."""

    def test_initial_position_is_level(self):
        assert material_balance(chess.Board()) == 0

    def test_extra_rook_for_white(self):
        board = chess.Board("4k3/8/8/8/8/8/8/R3K3 w - - 0 1")
        assert material_balance(board) == 5

    def test_extra_queen_for_black(self):
        board = chess.Board("3qk3/8/8/8/8/8/8/4K3 w - - 0 1")
        assert material_balance(board) == -9

    def test_piece_weights(self):
        board = chess.Board("4k3/8/8/8/8/8/7P/NBRQK3 w - - 0 1")
        assert material_balance(board) == 3 + 3 + 5 + 9 + 1

    @pytest.mark.parametrize("fen", [
        chess.STARTING_FEN,
        "4k3/7r/8/8/8/8/8/R3K3 b - - 0 1",
        "r3k3/8/8/1N6/8/8/8/6K1 w - - 0 1",
        "3qk3/pp6/8/8/8/8/8/4K2B w - - 0 1",
    ])
    def test_colour_flip_negates_score(self, fen):
        board = chess.Board(fen)
        assert material_balance(board.mirror()) == -material_balance(board)


class TestStripEnPassant:
    """Tests for strip_en_passant function."""

    def test_replaces_en_passant_square(self):
        assert strip_en_passant(EP_FEN) == "rnbqkbnr/ppp1p1pp/8/3pPp2/8/8/PPPP1PPP/RNBQKBNR w KQkq - 0 3"

    def test_leaves_other_fens_alone(self):
        assert strip_en_passant(chess.STARTING_FEN) == chess.STARTING_FEN


class TestAnalysisClient:
    """Tests for AnalysisClient.analyse."""

    def test_successful_response(self):
        client, session = make_client(make_response({"eval": 1.25, "move": "e2e4", "depth": 12}))
        evaluation = client.analyse(chess.Board())
        assert evaluation == Evaluation(score=1.25, source=SOURCE_REMOTE, best_move="e2e4", depth=12)

    def test_request_strips_en_passant_but_board_keeps_it(self):
        client, session = make_client(make_response({"eval": 0.3}))
        board = chess.Board(EP_FEN)
        client.analyse(board)

        payload = session.post.call_args.kwargs["json"]
        assert payload["fen"].split()[3] == "-"
        assert board.ep_square == chess.F6
        assert "f6" in board.fen()

    def test_request_uses_timeout(self):
        client, session = make_client(make_response({"eval": 0.0}))
        client.timeout = 2.5
        client.analyse(chess.Board())
        assert session.post.call_args.kwargs["timeout"] == 2.5

    def test_quota_error_raises_quota_exhausted(self):
        client, _ = make_client(make_response({"type": "error", "error": "HIGH_USAGE", "text": "slow down"}))
        with pytest.raises(AnalysisQuotaExhausted) as exc_info:
            client.analyse(chess.Board())
        assert exc_info.value.code == "HIGH_USAGE"

    def test_other_error_payload_is_unavailable(self):
        client, _ = make_client(make_response({"type": "error", "error": "INVALID_FEN"}))
        with pytest.raises(AnalysisUnavailable) as exc_info:
            client.analyse(chess.Board())
        assert not isinstance(exc_info.value, AnalysisQuotaExhausted)

    def test_missing_eval_is_unavailable(self):
        client, _ = make_client(make_response({"move": "e2e4"}))
        with pytest.raises(AnalysisUnavailable):
            client.analyse(chess.Board())

    def test_timeout_is_unavailable(self):
        client, _ = make_client(error=requests.Timeout("too slow"))
        with pytest.raises(AnalysisUnavailable):
            client.analyse(chess.Board())

    def test_http_error_without_json_is_unavailable(self):
        client, _ = make_client(make_response(status=502, json_error=True))
        with pytest.raises(AnalysisUnavailable):
            client.analyse(chess.Board())

    def test_http_429_is_quota(self):
        client, _ = make_client(make_response(status=429, json_error=True))
        with pytest.raises(AnalysisQuotaExhausted):
            client.analyse(chess.Board())


class TestPositionEvaluator:
    """Tests for PositionEvaluator retry and fallback behaviour."""

    def test_without_client_uses_material(self):
        evaluator = PositionEvaluator()
        evaluation = evaluator.evaluate(chess.Board("4k3/8/8/8/8/8/8/R3K3 w - - 0 1"))
        assert evaluation.score == 5
        assert evaluation.source == SOURCE_MATERIAL

    def test_returns_remote_evaluation(self):
        client = FakeClient(Evaluation(score=-2.0, source=SOURCE_REMOTE))
        evaluator = PositionEvaluator(client, sleep=lambda s: None)
        assert evaluator.evaluate(chess.Board()).score == -2.0
        assert client.calls == 1

    def test_quota_falls_back_without_retry(self):
        client = FakeClient(AnalysisQuotaExhausted("HIGH_USAGE"))
        sleeps = []
        evaluator = PositionEvaluator(client, max_attempts=5, sleep=sleeps.append)
        evaluation = evaluator.evaluate(chess.Board("4k3/8/8/8/8/8/8/R3K3 w - - 0 1"))
        assert client.calls == 1
        assert sleeps == []
        assert evaluation.source == SOURCE_MATERIAL
        assert evaluation.score == 5

    def test_retries_then_succeeds(self):
        client = FakeClient(AnalysisUnavailable("timeout"), Evaluation(score=0.5, source=SOURCE_REMOTE))
        sleeps = []
        evaluator = PositionEvaluator(client, max_attempts=5, retry_delay=0.25, sleep=sleeps.append)
        assert evaluator.evaluate(chess.Board()).score == 0.5
        assert client.calls == 2
        assert sleeps == [0.25]

    @pytest.mark.parametrize("attempts", [1, 3, 5])
    def test_gives_up_after_exactly_max_attempts(self, attempts):
        client = FakeClient(AnalysisUnavailable("timeout"))
        sleeps = []
        evaluator = PositionEvaluator(client, max_attempts=attempts, retry_delay=0.1, sleep=sleeps.append)
        with pytest.raises(AnalysisUnavailable):
            evaluator.evaluate(chess.Board())
        assert client.calls == attempts
        assert len(sleeps) == attempts - 1

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            PositionEvaluator(FakeClient(), max_attempts=0)
