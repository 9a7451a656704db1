"""
SQLAlchemy models for the puzzle trainer.
"""

from datetime import datetime
from web.database import db


class HighScore(db.Model):
    """Best survival result for one player."""
    __tablename__ = 'high_scores'

    id = db.Column(db.Integer, primary_key=True)
    player = db.Column(db.String(100), unique=True, nullable=False)
    best_rating = db.Column(db.Integer, nullable=False, default=0)
    puzzles_solved = db.Column(db.Integer, nullable=False, default=0)
    best_streak = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            'player': self.player,
            'best_rating': self.best_rating,
            'puzzles_solved': self.puzzles_solved,
            'best_streak': self.best_streak,
        }

    def __repr__(self):
        return f'<HighScore {self.player}: {self.best_rating}>'
