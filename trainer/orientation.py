"""
Choosing which side the player takes in a puzzle.

The solution is replayed to its final position and that position is
evaluated; the player gets the side that ends up better. When the score is
exactly level, or no evaluation could be had, the player gets the side to
move in the starting position.
"""

from dataclasses import dataclass
from typing import Optional

import chess

from trainer.errors import InvalidSolutionMove, AnalysisUnavailable, UnusablePuzzle
from trainer.evaluation import Evaluation, PositionEvaluator, material_evaluation
from trainer.replay import board_from, apply_uci, replay_to_end

# Policies for an evaluation that is still unavailable after every retry
UNAVAILABLE_SIDE_TO_MOVE = "side_to_move"
UNAVAILABLE_MATERIAL = "material"
UNAVAILABLE_DISCARD = "discard"
UNAVAILABLE_POLICIES = (UNAVAILABLE_SIDE_TO_MOVE, UNAVAILABLE_MATERIAL, UNAVAILABLE_DISCARD)


@dataclass
class OrientationChoice:
    """Result of choose_orientation."""
    orientation: chess.Color
    final_board: chess.Board
    evaluation: Optional[Evaluation]

    @property
    def orientation_name(self) -> str:
        return color_name(self.orientation)


def color_name(color: chess.Color) -> str:
    return "white" if color == chess.WHITE else "black"


def orientation_for_score(score: Optional[float], side_to_move: chess.Color) -> chess.Color:
    """Positive favours white, negative black, zero/None the side to move."""
    if score is None or score == 0:
        return side_to_move
    return chess.WHITE if score > 0 else chess.BLACK


def reconcile(start, solution, orientation: chess.Color) -> tuple[chess.Board, int]:
    """
    Set up the board the player will see.

    If the side to move at the start is not the player's side, the first
    solution move is played for the opponent. Returns the board and the
    index of the next solution move; the player's side is always on move
    in the returned board.
    """
    board = board_from(start)
    index = 0
    if board.turn != orientation:
        if not solution:
            raise InvalidSolutionMove(0, "", board.fen(), "no move to hand the turn over")
        apply_uci(board, solution[0], 0)
        index = 1
    return board, index


class OrientationSelector:
    """Decide a puzzle's orientation from the evaluation of its final position."""

    def __init__(self, evaluator: PositionEvaluator,
                 on_unavailable: str = UNAVAILABLE_SIDE_TO_MOVE):
        if on_unavailable not in UNAVAILABLE_POLICIES:
            raise ValueError(f"Unknown unavailable-analysis policy: {on_unavailable!r}")
        self.evaluator = evaluator
        self.on_unavailable = on_unavailable

    def choose_orientation(self, start, solution, puzzle_id: str = "?") -> OrientationChoice:
        """
        Replay, evaluate and decide.

        Raises UnusablePuzzle when the solution does not replay, or when
        analysis stays unavailable under the 'discard' policy.
        """
        try:
            start_board = board_from(start)
            final_board = replay_to_end(start_board, solution)
        except InvalidSolutionMove as e:
            raise UnusablePuzzle(puzzle_id, e) from e

        try:
            evaluation = self.evaluator.evaluate(final_board)
        except AnalysisUnavailable as e:
            if self.on_unavailable == UNAVAILABLE_DISCARD:
                raise UnusablePuzzle(puzzle_id, e) from e
            if self.on_unavailable == UNAVAILABLE_MATERIAL:
                evaluation = material_evaluation(final_board)
            else:
                evaluation = None

        score = evaluation.score if evaluation is not None else None
        orientation = orientation_for_score(score, start_board.turn)
        return OrientationChoice(orientation, final_board, evaluation)

    def prepare(self, puzzle):
        """
        Build a ready-to-play PuzzleSession for a puzzle.

        Daily puzzles start with the solver's own move, so the player keeps
        the side to move and no evaluation is made.
        """
        from trainer.session import PuzzleSession

        if puzzle.is_daily:
            try:
                board = board_from(puzzle.fen)
                replay_to_end(board, puzzle.solution)
            except InvalidSolutionMove as e:
                raise UnusablePuzzle(puzzle.puzzle_id, e) from e
            if not puzzle.solution:
                raise UnusablePuzzle(puzzle.puzzle_id)
            return PuzzleSession(puzzle=puzzle, board=board, orientation=board.turn)

        choice = self.choose_orientation(puzzle.fen, puzzle.solution, puzzle.puzzle_id)
        try:
            board, index = reconcile(puzzle.fen, puzzle.solution, choice.orientation)
        except InvalidSolutionMove as e:
            raise UnusablePuzzle(puzzle.puzzle_id, e) from e
        if index >= len(puzzle.solution):
            # The opponent's move was the whole line; nothing left to play
            raise UnusablePuzzle(puzzle.puzzle_id)
        auto_move = puzzle.solution[0] if index == 1 else None
        return PuzzleSession(
            puzzle=puzzle,
            board=board,
            orientation=choice.orientation,
            solution_index=index,
            evaluation=choice.evaluation,
            auto_move=auto_move,
        )
