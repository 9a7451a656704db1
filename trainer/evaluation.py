"""
Position evaluation: remote analysis with a material-count fallback.

Scores are in pawns from white's point of view (positive = white better),
matching the remote service's "eval" field.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

import chess
import requests

from trainer.constants import (
    PIECE_VALUES,
    ANALYSIS_API_URL,
    ANALYSIS_DEPTH,
    ANALYSIS_MAX_THINKING_TIME,
    ANALYSIS_TIMEOUT,
    ANALYSIS_MAX_ATTEMPTS,
    ANALYSIS_RETRY_DELAY,
    QUOTA_ERROR_CODES,
)
from trainer.errors import AnalysisUnavailable, AnalysisQuotaExhausted

SOURCE_REMOTE = "remote"
SOURCE_MATERIAL = "material"


@dataclass
class Evaluation:
    """A signed evaluation of one position."""
    score: float  # pawns, white positive
    source: str  # SOURCE_REMOTE or SOURCE_MATERIAL
    best_move: Optional[str] = None  # UCI, remote analysis only
    depth: Optional[int] = None
    mate: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            'score': self.score,
            'source': self.source,
            'best_move': self.best_move,
            'depth': self.depth,
            'mate': self.mate,
        }


def material_balance(board: chess.Board) -> float:
    """Sum of piece values, white minus black."""
    score = 0
    for piece in board.piece_map().values():
        value = PIECE_VALUES[piece.piece_type]
        score += value if piece.color == chess.WHITE else -value
    return float(score)


def material_evaluation(board: chess.Board) -> Evaluation:
    return Evaluation(score=material_balance(board), source=SOURCE_MATERIAL)


def strip_en_passant(fen: str) -> str:
    """
    Replace the en-passant field of a FEN with '-'.

    The analysis service rejects FENs carrying an en-passant square; only
    the copy sent to it is rewritten.
    """
    parts = fen.split()
    if len(parts) >= 4:
        parts[3] = '-'
    return ' '.join(parts)


class AnalysisClient:
    """HTTP client for the remote analysis service."""

    def __init__(self, base_url: str = ANALYSIS_API_URL, depth: int = ANALYSIS_DEPTH,
                 max_thinking_time: int = ANALYSIS_MAX_THINKING_TIME,
                 timeout: float = ANALYSIS_TIMEOUT, session: requests.Session = None):
        self.base_url = base_url
        self.depth = depth
        self.max_thinking_time = max_thinking_time
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers['Content-Type'] = 'application/json'

    def analyse(self, board: chess.Board) -> Evaluation:
        """
        Ask the service for one evaluation of the board.

        Raises AnalysisQuotaExhausted on a usage-limit response and
        AnalysisUnavailable on every other failure.
        """
        payload = {
            'fen': strip_en_passant(board.fen()),
            'depth': self.depth,
            'maxThinkingTime': self.max_thinking_time,
        }
        try:
            resp = self.session.post(self.base_url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise AnalysisUnavailable(f"Analysis request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = None

        if isinstance(data, dict) and data.get('type') == 'error':
            code = str(data.get('error') or '')
            if code.upper() in QUOTA_ERROR_CODES:
                raise AnalysisQuotaExhausted(code, data.get('text'))
            raise AnalysisUnavailable(f"Analysis service error: {code or data.get('text')}")

        if resp.status_code == 429:
            raise AnalysisQuotaExhausted('HTTP_429')
        if not resp.ok:
            raise AnalysisUnavailable(f"Analysis service returned HTTP {resp.status_code}")
        if not isinstance(data, dict):
            raise AnalysisUnavailable("Analysis service returned a non-JSON body")

        return self._parse(data)

    @staticmethod
    def _parse(data: dict) -> Evaluation:
        if data.get('eval') is None:
            raise AnalysisUnavailable("Malformed analysis response: missing 'eval'")
        try:
            score = float(data['eval'])
        except (TypeError, ValueError) as e:
            raise AnalysisUnavailable(f"Malformed analysis response: eval={data['eval']!r}") from e
        if not math.isfinite(score):
            raise AnalysisUnavailable(f"Malformed analysis response: eval={score}")
        return Evaluation(
            score=score,
            source=SOURCE_REMOTE,
            best_move=data.get('move') or None,
            depth=data.get('depth'),
            mate=data.get('mate'),
        )


class PositionEvaluator:
    """
    Evaluate positions remotely with a bounded retry budget.

    Without a client every evaluation is the material fallback. A quota
    response switches to the fallback immediately. Any other failure is
    retried after a fixed delay; once max_attempts calls have failed the
    last AnalysisUnavailable is raised to the caller.
    """

    def __init__(self, client: AnalysisClient = None,
                 max_attempts: int = ANALYSIS_MAX_ATTEMPTS,
                 retry_delay: float = ANALYSIS_RETRY_DELAY,
                 sleep: Callable[[float], None] = time.sleep):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.client = client
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.sleep = sleep

    def evaluate(self, board: chess.Board) -> Evaluation:
        if self.client is None:
            return material_evaluation(board)

        last_error = None
        for attempt in range(self.max_attempts):
            try:
                return self.client.analyse(board)
            except AnalysisQuotaExhausted as e:
                print(f"  Analysis quota exhausted ({e.code}), using material count")
                return material_evaluation(board)
            except AnalysisUnavailable as e:
                last_error = e
                if attempt < self.max_attempts - 1:
                    print(f"  {e} - retrying in {self.retry_delay}s... "
                          f"(attempt {attempt + 1}/{self.max_attempts})")
                    self.sleep(self.retry_delay)
        raise AnalysisUnavailable(
            f"Analysis unavailable after {self.max_attempts} attempts: {last_error}"
        ) from last_error


def evaluator_from_config(config: dict, offline: bool = False) -> PositionEvaluator:
    """Build a PositionEvaluator from the [analysis] config section."""
    analysis = config.get('analysis', {})
    client = None
    if analysis.get('enabled', True) and not offline:
        client = AnalysisClient(
            base_url=analysis.get('url', ANALYSIS_API_URL),
            depth=analysis.get('depth', ANALYSIS_DEPTH),
            max_thinking_time=analysis.get('max_thinking_time', ANALYSIS_MAX_THINKING_TIME),
            timeout=analysis.get('timeout', ANALYSIS_TIMEOUT),
        )
    return PositionEvaluator(
        client=client,
        max_attempts=analysis.get('max_attempts', ANALYSIS_MAX_ATTEMPTS),
        retry_delay=analysis.get('retry_delay', ANALYSIS_RETRY_DELAY),
    )
