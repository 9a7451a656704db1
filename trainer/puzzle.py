"""
Puzzle records and selection from the static puzzle database.
"""

import json
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from trainer.constants import (
    SURVIVAL_BAND,
    SURVIVAL_WIDEN,
    SURVIVAL_MIN_RATING,
    SURVIVAL_MAX_RATING,
)


@dataclass(frozen=True)
class Puzzle:
    """One puzzle: a start position and the moves that solve it."""
    puzzle_id: str
    fen: str
    solution: tuple[str, ...]
    rating: Optional[int] = None
    themes: tuple[str, ...] = field(default_factory=tuple)
    difficulty: Optional[str] = None  # e.g. 'beginner', 'intermediate'
    phase: Optional[str] = None  # e.g. 'middlegame', 'endgame'
    is_daily: bool = False

    @classmethod
    def from_record(cls, record: dict, index: int = 0) -> "Puzzle":
        """
        Build a Puzzle from a database record.

        Records use the puzzle-database column names: FEN, Moves (space
        separated UCI), Rating, Themes (space separated), Difficulty,
        Position and optionally PuzzleId.
        """
        moves = record.get('Moves') or ''
        if isinstance(moves, str):
            moves = moves.split()
        themes = record.get('Themes') or ''
        if isinstance(themes, str):
            themes = themes.split()
        rating = record.get('Rating')
        if rating is not None:
            try:
                rating = int(rating)
            except (TypeError, ValueError):
                rating = None
        return cls(
            puzzle_id=str(record.get('PuzzleId') or f"#{index + 1}"),
            fen=(record.get('FEN') or '').strip(),
            solution=tuple(moves),
            rating=rating,
            themes=tuple(themes),
            difficulty=record.get('Difficulty'),
            phase=record.get('Position'),
        )

    @property
    def theme_text(self) -> str:
        return ' '.join(self.themes)

    def to_dict(self) -> dict:
        return {
            'id': self.puzzle_id,
            'fen': self.fen,
            'rating': self.rating,
            'themes': list(self.themes),
            'difficulty': self.difficulty,
            'phase': self.phase,
            'solution_length': len(self.solution),
            'is_daily': self.is_daily,
        }


_database_cache: dict[Path, list[Puzzle]] = {}


def load_puzzle_database(path: Path, use_cache: bool = True) -> list[Puzzle]:
    """
    Load puzzles from a JSON file containing a list of records.

    Records without a FEN or solution are skipped. The parsed list is
    cached per path, so the file is read once per process.
    """
    path = Path(path)
    if use_cache and path in _database_cache:
        return _database_cache[path]

    with open(path, 'r', encoding='utf-8') as f:
        records = json.load(f)

    puzzles = []
    for index, record in enumerate(records):
        puzzle = Puzzle.from_record(record, index)
        if not puzzle.fen or not puzzle.solution:
            continue
        puzzles.append(puzzle)

    if use_cache:
        _database_cache[path] = puzzles
    return puzzles


def pick_random(puzzles: list[Puzzle], difficulty: str = None, phase: str = None,
                rng: random.Random = None) -> Puzzle:
    """
    Pick a random puzzle matching difficulty and phase.

    Falls back to the whole database when nothing matches the filter.
    """
    if not puzzles:
        raise ValueError("Puzzle database is empty")
    rng = rng or random
    pool = [
        p for p in puzzles
        if (difficulty is None or p.difficulty == difficulty)
        and (phase is None or p.phase == phase)
    ]
    return rng.choice(pool or puzzles)


def rating_band(target: int, band: int = SURVIVAL_BAND,
                min_rating: int = SURVIVAL_MIN_RATING,
                max_rating: int = SURVIVAL_MAX_RATING) -> tuple[int, int]:
    """Inclusive (low, high) rating window around a target."""
    return max(min_rating, target - band), min(max_rating, target + band)


def pick_by_rating_band(puzzles: list[Puzzle], target: int, rng: random.Random = None,
                        band: int = SURVIVAL_BAND, widen: int = SURVIVAL_WIDEN,
                        min_rating: int = SURVIVAL_MIN_RATING,
                        max_rating: int = SURVIVAL_MAX_RATING) -> Puzzle:
    """
    Pick a random puzzle rated near the target.

    Tries target +/- band first, then a window widened by `widen` on each
    side, then any puzzle at all.
    """
    if not puzzles:
        raise ValueError("Puzzle database is empty")
    rng = rng or random
    low, high = rating_band(target, band, min_rating, max_rating)
    rated = [p for p in puzzles if p.rating is not None]

    pool = [p for p in rated if low <= p.rating <= high]
    if not pool:
        pool = [p for p in rated if low - widen <= p.rating <= high + widen]
    return rng.choice(pool or puzzles)
