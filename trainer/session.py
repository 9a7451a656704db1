"""
Puzzle sessions and survival runs.

A PuzzleSession holds everything about one puzzle being played (board,
solution cursor, hints, history) so the same logic runs from the CLI, the
web API or a test without any module-level state. A SurvivalRun strings
sessions together with lives, score and a rising target rating.
"""

import random
import uuid
from dataclasses import dataclass, field
from typing import Optional

import chess

from trainer.constants import (
    SURVIVAL_LIVES,
    SURVIVAL_START_RATING,
    SURVIVAL_BAND,
    SURVIVAL_WIDEN,
    SURVIVAL_MIN_RATING,
    SURVIVAL_MAX_RATING,
    SURVIVAL_INCREMENT_LOW,
    SURVIVAL_INCREMENT_HIGH,
    MAX_PUZZLE_DRAWS,
)
from trainer.errors import UnusablePuzzle, NoPlayablePuzzle
from trainer.evaluation import Evaluation
from trainer.orientation import color_name
from trainer.puzzle import Puzzle, pick_by_rating_band
from trainer.replay import parse_uci, apply_uci

CORRECT = "correct"
INCORRECT = "incorrect"
SOLVED = "solved"
ILLEGAL = "illegal"
FINISHED = "finished"


@dataclass
class MoveOutcome:
    """What happened when the player submitted a move."""
    status: str
    move: str
    reply: Optional[str] = None  # opponent move auto-played after a correct move
    fen: str = ""

    @property
    def is_correct(self) -> bool:
        return self.status in (CORRECT, SOLVED)

    def to_dict(self) -> dict:
        return {'status': self.status, 'move': self.move, 'reply': self.reply, 'fen': self.fen}


@dataclass
class Hint:
    level: int  # 1 = origin square, 2 = destination square, 3 = full move
    squares: list[str]
    message: str

    def to_dict(self) -> dict:
        return {'level': self.level, 'squares': self.squares, 'message': self.message}


@dataclass
class PuzzleSession:
    """State of one puzzle in play."""
    puzzle: Puzzle
    board: chess.Board
    orientation: chess.Color
    solution_index: int = 0
    evaluation: Optional[Evaluation] = None
    auto_move: Optional[str] = None  # first solution move played to hand over the turn
    hint_level: int = 0
    history: list[tuple[str, bool]] = field(default_factory=list)
    mistakes: int = 0
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self):
        if self.auto_move and not self.history:
            self.history.append((self.auto_move, True))

    @property
    def is_complete(self) -> bool:
        return self.solution_index >= len(self.puzzle.solution)

    @property
    def expected_move(self) -> Optional[str]:
        if self.is_complete:
            return None
        return self.puzzle.solution[self.solution_index]

    def _expected_uci(self) -> str:
        return parse_uci(self.board, self.expected_move).uci()

    def submit_move(self, uci: str) -> MoveOutcome:
        """
        Check a move against the solution.

        A correct move is played and the opponent's reply (if the line goes
        on) is played straight after it. A wrong but legal move is recorded
        and taken back. Illegal moves change nothing.
        """
        if self.is_complete:
            return MoveOutcome(FINISHED, uci, fen=self.board.fen())

        try:
            move = parse_uci(self.board, uci)
        except (ValueError, TypeError):
            return MoveOutcome(ILLEGAL, uci, fen=self.board.fen())
        if not self.board.is_legal(move):
            return MoveOutcome(ILLEGAL, uci, fen=self.board.fen())

        played = move.uci()
        if played != self._expected_uci():
            self.history.append((played, False))
            self.mistakes += 1
            return MoveOutcome(INCORRECT, played, fen=self.board.fen())

        self.board.push(move)
        self.history.append((played, True))
        self.solution_index += 1
        self.hint_level = 0

        reply = None
        if not self.is_complete:
            reply = apply_uci(self.board, self.expected_move, self.solution_index).uci()
            self.history.append((reply, True))
            self.solution_index += 1

        status = SOLVED if self.is_complete else CORRECT
        return MoveOutcome(status, played, reply=reply, fen=self.board.fen())

    def hint(self) -> Optional[Hint]:
        """Next step of the hint ladder, or None once the puzzle is done."""
        if self.is_complete:
            return None
        expected = self.expected_move
        from_square, to_square = expected[:2], expected[2:4]
        if self.hint_level == 0:
            self.hint_level = 1
            return Hint(1, [from_square], "Consider this square")
        if self.hint_level == 1:
            self.hint_level = 2
            return Hint(2, [from_square, to_square], "Try moving here")
        self.hint_level = 0
        return Hint(3, [], f"Solution: {from_square} to {to_square}")

    def state(self) -> dict:
        return {
            'id': self.session_id,
            'puzzle': self.puzzle.to_dict(),
            'fen': self.board.fen(),
            'orientation': color_name(self.orientation),
            'turn': color_name(self.board.turn),
            'solution_index': self.solution_index,
            'complete': self.is_complete,
            'auto_move': self.auto_move,
            'history': [{'move': m, 'correct': ok} for m, ok in self.history],
            'evaluation': self.evaluation.to_dict() if self.evaluation else None,
        }


def next_session(puzzles: list[Puzzle], selector, pick,
                 max_draws: int = MAX_PUZZLE_DRAWS) -> PuzzleSession:
    """
    Draw puzzles with `pick(puzzles)` until one can be prepared.

    Unusable puzzles are skipped; after max_draws failed draws
    NoPlayablePuzzle is raised.
    """
    for _ in range(max_draws):
        puzzle = pick(puzzles)
        try:
            return selector.prepare(puzzle)
        except UnusablePuzzle as e:
            print(f"  Skipping puzzle: {e}")
    raise NoPlayablePuzzle(f"No playable puzzle found in {max_draws} draws")


class SurvivalRun:
    """
    Survival mode: solve puzzles of rising rating until the lives run out.

    Each wrong move costs a life. Each solved puzzle scores a point and
    raises the target rating by a random step.
    """

    def __init__(self, puzzles: list[Puzzle], selector, rng: random.Random = None,
                 settings: dict = None, player: str = "default"):
        settings = settings or {}
        self.player = player
        self.puzzles = puzzles
        self.selector = selector
        self.rng = rng or random.Random()
        self.max_lives = settings.get('lives', SURVIVAL_LIVES)
        self.start_rating = settings.get('start_rating', SURVIVAL_START_RATING)
        self.band = settings.get('band', SURVIVAL_BAND)
        self.widen = settings.get('widen', SURVIVAL_WIDEN)
        self.min_rating = settings.get('min_rating', SURVIVAL_MIN_RATING)
        self.max_rating = settings.get('max_rating', SURVIVAL_MAX_RATING)
        self.increment_low = settings.get('increment_low', SURVIVAL_INCREMENT_LOW)
        self.increment_high = settings.get('increment_high', SURVIVAL_INCREMENT_HIGH)
        self.max_draws = settings.get('max_draws', MAX_PUZZLE_DRAWS)
        self.run_id = uuid.uuid4().hex
        self.current: Optional[PuzzleSession] = None
        self.reset(load=False)

    def reset(self, load: bool = True):
        self.lives = self.max_lives
        self.score = 0
        self.target_rating = self.start_rating
        self.best_rating = self.start_rating
        self.streak = 0
        self.best_streak = 0
        self.current = None
        if load:
            self.next_puzzle()

    @property
    def is_over(self) -> bool:
        return self.lives <= 0

    def _pick(self, puzzles: list[Puzzle]) -> Puzzle:
        return pick_by_rating_band(
            puzzles, self.target_rating, self.rng,
            band=self.band, widen=self.widen,
            min_rating=self.min_rating, max_rating=self.max_rating,
        )

    def next_puzzle(self) -> PuzzleSession:
        self.current = next_session(self.puzzles, self.selector, self._pick, self.max_draws)
        return self.current

    def raise_target(self):
        step = self.rng.randint(self.increment_low, self.increment_high)
        self.target_rating = min(self.max_rating, self.target_rating + step)
        self.best_rating = max(self.best_rating, self.target_rating)

    def submit_move(self, uci: str) -> MoveOutcome:
        """Play a move in the current puzzle and update lives, score and target."""
        if self.is_over:
            return MoveOutcome(FINISHED, uci)
        if self.current is None:
            self.next_puzzle()

        session = self.current
        outcome = session.submit_move(uci)
        if outcome.status == INCORRECT:
            self.lives -= 1
            self.streak = 0
        elif outcome.status == SOLVED:
            self.score += 1
            if session.mistakes == 0:
                self.streak += 1
                self.best_streak = max(self.best_streak, self.streak)
            self.raise_target()
            self.current = None
            self.next_puzzle()
        return outcome

    def state(self) -> dict:
        return {
            'id': self.run_id,
            'player': self.player,
            'lives': self.lives,
            'max_lives': self.max_lives,
            'score': self.score,
            'target_rating': self.target_rating,
            'best_rating': self.best_rating,
            'streak': self.streak,
            'best_streak': self.best_streak,
            'game_over': self.is_over,
            'puzzle': self.current.state() if self.current else None,
        }
