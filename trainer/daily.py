"""
Lichess daily puzzle.
"""

import chess
import requests

from trainer.constants import LICHESS_DAILY_URL
from trainer.errors import DailyPuzzleError
from trainer.puzzle import Puzzle


def fetch_daily_puzzle(session: requests.Session = None, url: str = LICHESS_DAILY_URL,
                       timeout: float = 15) -> dict:
    """Fetch the daily puzzle payload."""
    session = session or requests.Session()
    try:
        resp = session.get(url, headers={'Accept': 'application/json'}, timeout=timeout)
        resp.raise_for_status()
        return resp.json()
    except (requests.RequestException, ValueError) as e:
        raise DailyPuzzleError(f"Failed to fetch daily puzzle: {e}") from e


def _san_tokens(pgn: str) -> list[str]:
    tokens = []
    for token in pgn.split():
        if '.' in token or '[' in token or ']' in token:
            continue
        if token in ('1-0', '0-1', '1/2-1/2', '*'):
            continue
        tokens.append(token)
    return tokens


def puzzle_from_daily(payload: dict) -> Puzzle:
    """
    Convert a daily puzzle payload into a Puzzle.

    The game's moves are played up to and including ply `initialPly`; the
    resulting position is the puzzle's start.
    """
    try:
        game = payload['game']
        info = payload['puzzle']
        pgn = game['pgn']
        initial_ply = int(info['initialPly'])
        solution = tuple(info['solution'])
    except (KeyError, TypeError, ValueError) as e:
        raise DailyPuzzleError(f"Malformed daily puzzle payload: {e}") from e

    board = chess.Board()
    for san in _san_tokens(pgn)[:initial_ply + 1]:
        try:
            board.push_san(san)
        except ValueError as e:
            raise DailyPuzzleError(f"Bad move {san!r} in daily puzzle game: {e}") from e

    rating = info.get('rating')
    return Puzzle(
        puzzle_id=str(info.get('id', 'daily')),
        fen=board.fen(),
        solution=solution,
        rating=int(rating) if rating is not None else None,
        themes=tuple(info.get('themes') or ()),
        is_daily=True,
    )
