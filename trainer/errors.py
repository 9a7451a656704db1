"""
Exception types raised by the trainer.

Only the orientation selector turns these into decisions; everything below
it propagates them.
"""


class TrainerError(Exception):
    """Base class for trainer errors."""


class InvalidSolutionMove(TrainerError):
    """A solution move could not be applied - the puzzle record is corrupt."""

    def __init__(self, ply: int, move: str, fen: str, reason: str = "illegal move"):
        self.ply = ply
        self.move = move
        self.fen = fen
        self.reason = reason
        super().__init__(f"Solution move {ply + 1} ({move!r}) rejected at {fen}: {reason}")


class InvalidStartPosition(InvalidSolutionMove):
    """The puzzle's starting FEN does not parse."""

    def __init__(self, fen: str, reason: str):
        self.ply = -1
        self.move = ""
        self.fen = fen
        self.reason = reason
        TrainerError.__init__(self, f"Bad starting position {fen!r}: {reason}")


class AnalysisUnavailable(TrainerError):
    """The remote analysis service failed (network, timeout, bad payload)."""


class AnalysisQuotaExhausted(AnalysisUnavailable):
    """The remote analysis service reported its usage budget is spent."""

    def __init__(self, code: str, message: str = None):
        self.code = code
        super().__init__(message or f"Analysis quota exhausted ({code})")


class UnusablePuzzle(TrainerError):
    """The puzzle cannot be played and should be replaced by another one."""

    def __init__(self, puzzle_id: str, cause: Exception = None):
        self.puzzle_id = puzzle_id
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Puzzle {puzzle_id} is unusable{detail}")


class NoPlayablePuzzle(TrainerError):
    """No usable puzzle could be drawn within the draw budget."""


class DailyPuzzleError(TrainerError):
    """The daily puzzle could not be fetched or converted."""
