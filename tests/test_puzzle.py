"""Tests for trainer.puzzle module."""

import json
import random
import tempfile
from pathlib import Path

import chess
import pytest

from trainer.evaluation import PositionEvaluator
from trainer.orientation import OrientationSelector
from trainer.puzzle import (
    Puzzle,
    load_puzzle_database,
    pick_by_rating_band,
    pick_random,
    rating_band,
)
from trainer.replay import replay_to_end

DATA_FILE = Path(__file__).parent.parent / "data" / "puzzles.json"


def write_database(records) -> Path:
    with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
        json.dump(records, f)
        f.flush()
        return Path(f.name)


def make(puzzle_id, rating, difficulty=None, phase=None):
    return Puzzle(puzzle_id, chess.STARTING_FEN, ("e2e4",), rating,
                  difficulty=difficulty, phase=phase)


class TestFromRecord:
    """Tests for Puzzle.from_record."""

    def test_parses_database_columns(self):
        puzzle = Puzzle.from_record({
            "PuzzleId": "abc12",
            "FEN": "r3k3/8/8/1N6/8/8/8/6K1 w - - 0 1",
            "Moves": "b5c7 e8e7 c7a8",
            "Rating": "900",
            "Themes": "fork short",
            "Difficulty": "beginner",
            "Position": "endgame",
        })
        assert puzzle.puzzle_id == "abc12"
        assert puzzle.solution == ("b5c7", "e8e7", "c7a8")
        assert puzzle.rating == 900
        assert puzzle.themes == ("fork", "short")
        assert puzzle.theme_text == "fork short"
        assert puzzle.difficulty == "beginner"
        assert puzzle.phase == "endgame"

    def test_missing_id_uses_index(self):
        puzzle = Puzzle.from_record({"FEN": chess.STARTING_FEN, "Moves": "e2e4"}, index=4)
        assert puzzle.puzzle_id == "#5"
        assert puzzle.rating is None

    def test_bad_rating_becomes_none(self):
        puzzle = Puzzle.from_record({"FEN": chess.STARTING_FEN, "Moves": "e2e4", "Rating": "hard"})
        assert puzzle.rating is None

    def test_puzzle_is_immutable(self):
        puzzle = make("p", 800)
        with pytest.raises(AttributeError):
            puzzle.solution = ("d2d4",)


class TestLoadPuzzleDatabase:
    """Tests for load_puzzle_database function."""

    def test_skips_records_without_fen_or_moves(self):
        path = write_database([
            {"FEN": chess.STARTING_FEN, "Moves": "e2e4", "Rating": 600},
            {"FEN": "", "Moves": "e2e4"},
            {"FEN": chess.STARTING_FEN, "Moves": ""},
        ])
        puzzles = load_puzzle_database(path, use_cache=False)
        assert len(puzzles) == 1

    def test_caches_per_path(self):
        path = write_database([{"FEN": chess.STARTING_FEN, "Moves": "e2e4"}])
        first = load_puzzle_database(path)
        path.write_text("[]")
        assert load_puzzle_database(path) is first

    def test_shipped_database_replays(self):
        """Every bundled puzzle must replay and hand the player the move."""
        puzzles = load_puzzle_database(DATA_FILE, use_cache=False)
        assert len(puzzles) >= 5
        selector = OrientationSelector(PositionEvaluator())
        for puzzle in puzzles:
            replay_to_end(puzzle.fen, puzzle.solution)
            session = selector.prepare(puzzle)
            assert session.board.turn == session.orientation


class TestPickRandom:
    """Tests for pick_random function."""

    def test_filters_by_difficulty_and_phase(self):
        puzzles = [make("a", 600, "beginner", "endgame"), make("b", 600, "beginner", "middlegame"),
                   make("c", 1500, "advanced", "endgame")]
        rng = random.Random(3)
        for _ in range(20):
            assert pick_random(puzzles, "beginner", "endgame", rng).puzzle_id == "a"

    def test_falls_back_to_everything(self):
        puzzles = [make("a", 600, "beginner"), make("b", 600, "beginner")]
        assert pick_random(puzzles, "expert", rng=random.Random(1)) in puzzles

    def test_empty_database_raises(self):
        with pytest.raises(ValueError):
            pick_random([])


class TestRatingBand:
    """Tests for rating band selection."""

    def test_band_is_clamped(self):
        assert rating_band(700) == (625, 775)
        assert rating_band(320) == (300, 395)
        assert rating_band(3480) == (3405, 3500)

    def test_picks_within_band(self):
        puzzles = [make("low", 400), make("mid", 700), make("high", 1500)]
        rng = random.Random(5)
        for _ in range(20):
            assert pick_by_rating_band(puzzles, 720, rng).puzzle_id == "mid"

    def test_widens_when_band_empty(self):
        puzzles = [make("near", 900), make("far", 2000)]
        rng = random.Random(5)
        for _ in range(20):
            assert pick_by_rating_band(puzzles, 700, rng).puzzle_id == "near"

    def test_falls_back_to_any_puzzle(self):
        puzzles = [make("unrated", None), make("far", 2500)]
        assert pick_by_rating_band(puzzles, 700, random.Random(2)) in puzzles
