"""
Flask JSON API for the chess puzzle trainer.
"""
