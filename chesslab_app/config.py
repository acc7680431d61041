# File: chesslab_app/config.py
# Application configuration, populated from the environment (.env supported).

import os

from dotenv import load_dotenv

load_dotenv()

# chesslab_app/config.py lives one level below the project root.
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))

# Default SQLite database file, kept under database/ at the project root
DATABASE_PATH = os.path.join(BASE_DIR, "database", "chesslab.db")


def _env_float(name, default=None):
    value = os.environ.get(name)
    if value is None or value == '':
        return default
    return float(value)


def _env_float_list(name, default=None):
    """Parse a comma separated list of floats, e.g. ``0.016,0.083,1``."""
    value = os.environ.get(name)
    if not value:
        return default
    return [float(part) for part in value.split(',') if part.strip()]


class Config:
    """Configuration for the ChessLab Flask application."""

    SECRET_KEY = os.environ.get('SECRET_KEY')
    if not SECRET_KEY:
        # Development fallback, set SECRET_KEY in production
        SECRET_KEY = 'dev-secret-key-replace-in-production'

    SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI') or f'sqlite:///{DATABASE_PATH}'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'connect_args': {'timeout': 30},
    }
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_DIR = os.environ.get('LOG_DIR') or os.path.join(BASE_DIR, 'logs')
    LOG_JSON = os.environ.get('LOG_JSON', '0') == '1'
    LOG_TO_FILE = os.environ.get('LOG_TO_FILE', '1') == '1'

    # SM-2 scheduler overrides. None means "use the module default".
    SM2_LEARNING_STEPS = _env_float_list('SM2_LEARNING_STEPS')
    SM2_RELEARNING_STEPS = _env_float_list('SM2_RELEARNING_STEPS')
    SM2_STARTING_EASE = _env_float('SM2_STARTING_EASE')
    SM2_EASY_BONUS = _env_float('SM2_EASY_BONUS')
    SM2_MINIMUM_EASE = _env_float('SM2_MINIMUM_EASE')
    SM2_PARTIAL_INTERVAL_FACTOR = _env_float('SM2_PARTIAL_INTERVAL_FACTOR')

    @classmethod
    def init_app(cls, app):
        """Create the directories the app writes to."""
        uri = app.config.get('SQLALCHEMY_DATABASE_URI', '')
        if uri == f'sqlite:///{DATABASE_PATH}':
            os.makedirs(os.path.dirname(DATABASE_PATH), exist_ok=True)
        if app.config.get('LOG_TO_FILE'):
            os.makedirs(app.config['LOG_DIR'], exist_ok=True)
