"""
High-score persistence.

Best effort: only active when DATABASE_URL is configured, and a failed save
never interrupts play.
"""

import os
import sys
import time
import traceback
from functools import wraps
from pathlib import Path

from dotenv import load_dotenv

from trainer.constants import (
    DB_MAX_RETRIES,
    DB_RETRY_BASE_DELAY,
    DB_RETRY_MAX_DELAY,
)

# Load environment variables
load_dotenv(Path(__file__).parent.parent / '.env')

# Add project root to path for web module imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Cache the app instance to avoid recreating it for every DB operation
_app_instance = None


def db_enabled() -> bool:
    return os.getenv('DATABASE_URL') is not None


def db_retry(func):
    """Decorator to retry database operations on connection errors with exponential backoff."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        global _app_instance
        for attempt in range(DB_MAX_RETRIES):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                error_str = str(e).lower()
                # Check if it's a connection error worth retrying
                if any(msg in error_str for msg in ['connection', 'closed', 'terminated', 'timeout', 'operationalerror']):
                    if attempt < DB_MAX_RETRIES - 1:
                        wait_time = min(DB_RETRY_BASE_DELAY * (2 ** attempt), DB_RETRY_MAX_DELAY)
                        print(f"Database connection error, retrying in {wait_time}s... (attempt {attempt + 1}/{DB_MAX_RETRIES})")
                        time.sleep(wait_time)
                        # Reset the app instance to force new connection
                        _app_instance = None
                        continue
                # Not a connection error, or out of retries - raise immediately
                raise
    return wrapper


def _get_app():
    """Get or create the Flask app instance for DB operations."""
    global _app_instance
    if _app_instance is None and db_enabled():
        from web.app import create_app
        _app_instance = create_app()
    return _app_instance


def merge_high_score(existing: dict | None, rating: int, puzzles: int, streak: int) -> dict:
    """Combine a stored record with a finished run, keeping the best of each."""
    existing = existing or {}
    return {
        'best_rating': max(existing.get('best_rating') or 0, rating),
        'puzzles_solved': max(existing.get('puzzles_solved') or 0, puzzles),
        'best_streak': max(existing.get('best_streak') or 0, streak),
    }


@db_retry
def load_high_score(player: str = 'default') -> dict | None:
    """Return the stored high score for a player, or None."""
    if not db_enabled():
        return None
    from web.models import HighScore

    app = _get_app()
    with app.app_context():
        record = HighScore.query.filter_by(player=player).first()
        return record.to_dict() if record else None


@db_retry
def _save_high_score_impl(player: str, rating: int, puzzles: int, streak: int) -> dict:
    from web.database import db
    from web.models import HighScore

    app = _get_app()
    with app.app_context():
        record = HighScore.query.filter_by(player=player).first()
        if not record:
            record = HighScore(player=player)
            db.session.add(record)
        merged = merge_high_score(record.to_dict() if record.id else None, rating, puzzles, streak)
        record.best_rating = merged['best_rating']
        record.puzzles_solved = merged['puzzles_solved']
        record.best_streak = merged['best_streak']
        db.session.commit()
        return record.to_dict()


def save_high_score(player: str, rating: int, puzzles: int, streak: int) -> dict | None:
    """
    Store a finished run if it beats the saved record.

    Returns the stored record, or None if the database is not configured or
    the save failed.
    """
    if not db_enabled():
        return None
    try:
        return _save_high_score_impl(player, rating, puzzles, streak)
    except Exception as e:
        print(f"Error: Failed to save high score: {e}")
        traceback.print_exc()
        print("Warning: High score not saved.")
        return None
