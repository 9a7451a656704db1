"""
Game review: annotate each move of a PGN game with a quality label.

With a UCI engine command each position is analysed at a fixed depth.
Without one the material count stands in (one ply deep), which is enough
to flag hanging pieces.
"""

import io
import subprocess
from dataclasses import dataclass
from typing import Optional

import chess
import chess.engine
import chess.pgn

from trainer.constants import QUALITY_THRESHOLDS
from trainer.evaluation import material_balance

MATE_SCORE = 10000

SYMBOLS = {
    "best": "!!",
    "excellent": "!",
    "good": "",
    "inaccuracy": "?!",
    "mistake": "?",
    "blunder": "??",
}


@dataclass
class MoveQuality:
    label: str
    symbol: str


@dataclass
class MoveReview:
    """Review of a single move."""
    ply: int
    san: str
    uci: str
    color: str
    best_move: Optional[str]  # SAN
    score_before: int  # centipawns, white positive
    score_after: int
    loss: int  # centipawns lost from the mover's point of view
    quality: MoveQuality

    def to_dict(self) -> dict:
        return {
            'ply': self.ply,
            'san': self.san,
            'uci': self.uci,
            'color': self.color,
            'best_move': self.best_move,
            'score_before': self.score_before,
            'score_after': self.score_after,
            'loss': self.loss,
            'quality': self.quality.label,
            'symbol': self.quality.symbol,
        }


def classify_move_quality(loss_cp: float) -> MoveQuality:
    """Map a centipawn loss to a quality label."""
    loss_cp = abs(loss_cp)
    for limit, label in QUALITY_THRESHOLDS:
        if loss_cp < limit:
            return MoveQuality(label, SYMBOLS[label])
    return MoveQuality("blunder", SYMBOLS["blunder"])


def find_played_move(before_fen: str, after_fen: str) -> Optional[str]:
    """Return the SAN of the legal move leading from one FEN to the other."""
    board = chess.Board(before_fen)
    target = chess.Board(after_fen)
    for move in board.legal_moves:
        board.push(move)
        same = board.board_fen() == target.board_fen() and board.turn == target.turn
        board.pop()
        if same:
            return board.san(move)
    return None


def _material_cp(board: chess.Board) -> int:
    return int(material_balance(board) * 100)


def _material_best(board: chess.Board) -> tuple[int, Optional[chess.Move]]:
    """Best one-ply material score for the side to move (white positive)."""
    sign = 1 if board.turn == chess.WHITE else -1
    best_score, best_move = None, None
    for move in board.legal_moves:
        board.push(move)
        score = _material_cp(board)
        board.pop()
        if best_score is None or score * sign > best_score * sign:
            best_score, best_move = score, move
    if best_score is None:
        return _material_cp(board), None
    return best_score, best_move


def _engine_score(engine, board: chess.Board, depth: int) -> tuple[int, Optional[chess.Move]]:
    info = engine.analyse(board, chess.engine.Limit(depth=depth))
    score = info["score"].white().score(mate_score=MATE_SCORE)
    pv = info.get("pv") or [None]
    return score, pv[0]


def review_game(pgn_text: str, engine_cmd=None, depth: int = 12,
                on_move: callable = None) -> list[MoveReview]:
    """
    Review every mainline move of a PGN game.

    engine_cmd can be a path string or an argument list for popen_uci.
    """
    game = chess.pgn.read_game(io.StringIO(pgn_text))
    if game is None:
        raise ValueError("No game found in PGN text")

    engine = None
    if engine_cmd:
        engine = chess.engine.SimpleEngine.popen_uci(engine_cmd, stderr=subprocess.DEVNULL)

    reviews = []
    board = game.board()
    try:
        for ply, move in enumerate(game.mainline_moves(), 1):
            mover = board.turn
            if engine:
                best_score, best_move = _engine_score(engine, board, depth)
            else:
                best_score, best_move = _material_best(board)
            best_san = board.san(best_move) if best_move else None
            san = board.san(move)

            board.push(move)
            if engine:
                after_score, _ = _engine_score(engine, board, depth)
            else:
                after_score = _material_cp(board)

            if move == best_move:
                loss = 0
            elif mover == chess.WHITE:
                loss = max(0, best_score - after_score)
            else:
                loss = max(0, after_score - best_score)

            reviews.append(MoveReview(
                ply=ply,
                san=san,
                uci=move.uci(),
                color="white" if mover == chess.WHITE else "black",
                best_move=best_san,
                score_before=best_score,
                score_after=after_score,
                loss=loss,
                quality=classify_move_quality(loss),
            ))
            if on_move:
                on_move(ply)
    finally:
        if engine:
            engine.quit()

    return reviews
