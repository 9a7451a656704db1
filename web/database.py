"""
SQLAlchemy instance shared by the app factory and the models.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
