"""
Constants for the chess puzzle trainer.
"""

import chess

# Relative piece weights for the material fallback (pawns, white positive)
PIECE_VALUES = {
    chess.PAWN: 1,
    chess.KNIGHT: 3,
    chess.BISHOP: 3,
    chess.ROOK: 5,
    chess.QUEEN: 9,
    chess.KING: 0,
}

# Remote analysis defaults (overridable in config.toml / environment)
ANALYSIS_API_URL = "https://chess-api.com/v1"
ANALYSIS_DEPTH = 12
ANALYSIS_MAX_THINKING_TIME = 50  # milliseconds, as the service expects
ANALYSIS_TIMEOUT = 5.0  # seconds, enforced client-side
ANALYSIS_MAX_ATTEMPTS = 5
ANALYSIS_RETRY_DELAY = 0.5  # seconds between attempts (fixed, no backoff growth)

# Error codes the analysis service uses when its usage budget is spent
QUOTA_ERROR_CODES = ("HIGH_USAGE", "QUOTA_EXCEEDED", "RATE_LIMITED")

# Survival mode
SURVIVAL_LIVES = 3
SURVIVAL_START_RATING = 700
SURVIVAL_BAND = 75
SURVIVAL_WIDEN = 150
SURVIVAL_MIN_RATING = 300
SURVIVAL_MAX_RATING = 3500
SURVIVAL_INCREMENT_LOW = 50
SURVIVAL_INCREMENT_HIGH = 100
MAX_PUZZLE_DRAWS = 25  # give up drawing after this many unusable puzzles

# Game review thresholds (centipawn loss, upper bound exclusive)
QUALITY_THRESHOLDS = (
    (25, "best"),
    (50, "excellent"),
    (100, "good"),
    (200, "inaccuracy"),
    (400, "mistake"),
)

# Coach (hint proxy) defaults
OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"
OPENAI_DEFAULT_MODEL = "gpt-4"
COACH_MAX_TOKENS = 400
COACH_TEMPERATURE = 0.3
COACH_TIMEOUT = 30

LICHESS_DAILY_URL = "https://lichess.org/api/puzzle/daily"

# Live puzzle sessions and survival runs kept by the web API; oldest evicted first
MAX_LIVE_SESSIONS = 1000

# Database retry settings - exponential backoff for handling extended outages
DB_MAX_RETRIES = 5
DB_RETRY_BASE_DELAY = 1  # seconds (initial delay)
DB_RETRY_MAX_DELAY = 15  # seconds (cap on delay between retries)
