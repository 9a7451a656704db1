"""
Configuration loading.

Values come from trainer/config.toml, overridden by environment variables
(a .env file in the project root is loaded first).
"""

import os
from pathlib import Path

from dotenv import load_dotenv

try:
    import tomllib
except ImportError:
    import tomli as tomllib

PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_FILE = Path(__file__).parent / 'config.toml'

load_dotenv(PROJECT_ROOT / '.env')


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == '':
        return default
    return value.strip().lower() not in ('0', 'false', 'no', 'off')


def load_config(config_file: Path = None) -> dict:
    """Load trainer configuration with environment overrides applied."""
    with open(config_file or CONFIG_FILE, 'rb') as f:
        config = tomllib.load(f)

    analysis = config.setdefault('analysis', {})
    analysis['enabled'] = _env_bool('ANALYSIS_ENABLED', analysis.get('enabled', True))
    if os.getenv('ANALYSIS_API_URL'):
        analysis['url'] = os.getenv('ANALYSIS_API_URL')
    if os.getenv('ANALYSIS_ON_UNAVAILABLE'):
        analysis['on_unavailable'] = os.getenv('ANALYSIS_ON_UNAVAILABLE')

    puzzles = config.setdefault('puzzles', {})
    if os.getenv('PUZZLE_DB_PATH'):
        puzzles['database'] = os.getenv('PUZZLE_DB_PATH')

    config.setdefault('survival', {})
    return config


def puzzle_database_path(config: dict) -> Path:
    """Resolve the configured puzzle database path relative to the project root."""
    path = Path(config['puzzles'].get('database', 'data/puzzles.json'))
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path
