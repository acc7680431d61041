"""Bootstrap helpers for configuring the Flask application."""

from __future__ import annotations

from flask import Flask

from .error_handlers import AuthenticationError, register_error_handlers
from .extensions import csrf_protect, db, login_manager, migrate
from .logging_config import setup_logging
from .module_registry import register_default_modules


def configure_logging(app: Flask) -> None:
    """Configure the package logger and route the Flask logger through it."""

    logger = setup_logging(
        app,
        log_level=app.config.get("LOG_LEVEL", "INFO"),
        log_dir=app.config.get("LOG_DIR"),
        json_format=app.config.get("LOG_JSON", False),
        log_to_file=app.config.get("LOG_TO_FILE", True),
    )
    app.logger.handlers = list(logger.handlers)
    app.logger.setLevel(logger.level)
    app.logger.propagate = False
    app.logger.info("Flask app logger configured successfully.")


def register_extensions(app: Flask) -> None:
    """Initialize shared extensions with the Flask app instance."""

    db.init_app(app)
    login_manager.init_app(app)
    csrf_protect.init_app(app)
    migrate.init_app(app, db)


def register_auth_callbacks(app: Flask) -> None:
    """Wire Flask-Login to the user table and to JSON 401 responses."""

    @login_manager.user_loader
    def load_user(user_id: str):
        from ..models import User

        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        raise AuthenticationError()


def register_blueprints(app: Flask) -> None:
    """Register all default blueprints with the app."""

    register_default_modules(app)


def initialize_database(app: Flask) -> None:
    """Create database tables that do not exist yet."""

    from .. import models  # noqa: F401  (registers the mappers)

    db.create_all()
    app.logger.debug("Database tables ensured at %s", app.config.get("SQLALCHEMY_DATABASE_URI"))


__all__ = [
    "configure_logging",
    "register_extensions",
    "register_auth_callbacks",
    "register_blueprints",
    "register_error_handlers",
    "initialize_database",
]
