"""
Chess puzzle trainer package.

Usage:
    python -m trainer --help
    python -m trainer --play --difficulty beginner
    python -m trainer --survival --offline
    python -m trainer --review game.pgn --engine /usr/local/bin/stockfish
"""

from trainer.errors import (
    TrainerError,
    InvalidSolutionMove,
    InvalidStartPosition,
    AnalysisUnavailable,
    AnalysisQuotaExhausted,
    UnusablePuzzle,
    NoPlayablePuzzle,
)
from trainer.evaluation import Evaluation, PositionEvaluator, AnalysisClient, material_balance
from trainer.orientation import OrientationSelector, OrientationChoice, reconcile
from trainer.puzzle import Puzzle
from trainer.replay import replay_to_end

__all__ = [
    # Errors
    'TrainerError',
    'InvalidSolutionMove',
    'InvalidStartPosition',
    'AnalysisUnavailable',
    'AnalysisQuotaExhausted',
    'UnusablePuzzle',
    'NoPlayablePuzzle',
    # Core
    'Evaluation',
    'PositionEvaluator',
    'AnalysisClient',
    'material_balance',
    'OrientationSelector',
    'OrientationChoice',
    'reconcile',
    'Puzzle',
    'replay_to_end',
]
