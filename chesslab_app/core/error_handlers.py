"""
Error Handlers for ChessLab

Provides:
- Custom exception classes
- Consistent error response format
- Flask error handlers
"""

from typing import Any, Dict, Optional

from flask import current_app, jsonify, request
from flask_wtf.csrf import CSRFError
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db


class ChessLabError(Exception):
    """Base exception class for ChessLab."""

    def __init__(
        self,
        message: str,
        code: str = 'UNKNOWN_ERROR',
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for JSON response."""
        return {
            'success': False,
            'message': self.message,
            'code': self.code,
            'details': self.details
        }


class NotFoundError(ChessLabError):
    """Resource not found."""

    def __init__(self, message: str = 'Resource not found', resource: str = None, code: str = 'NOT_FOUND'):
        super().__init__(
            message=message,
            code=code,
            status_code=404,
            details={'resource': resource} if resource else None
        )


class ValidationError(ChessLabError):
    """Input validation failed."""

    def __init__(self, message: str = 'Validation failed', errors: Dict = None, code: str = 'VALIDATION_ERROR'):
        super().__init__(
            message=message,
            code=code,
            status_code=400,
            details={'errors': errors} if errors else None
        )


class AuthenticationError(ChessLabError):
    """Caller is not logged in."""

    def __init__(self, message: str = 'Authentication required'):
        super().__init__(
            message=message,
            code='UNAUTHENTICATED',
            status_code=401
        )


class AuthorizationError(ChessLabError):
    """Access denied."""

    def __init__(self, message: str = 'Access denied'):
        super().__init__(
            message=message,
            code='FORBIDDEN',
            status_code=403
        )


def error_response(
    message: str,
    code: str = 'ERROR',
    status_code: int = 400,
    details: Dict = None
) -> tuple:
    """Create a standardized error response."""
    response = {
        'success': False,
        'message': message,
        'code': code
    }
    if details:
        response['details'] = details

    return jsonify(response), status_code


def register_error_handlers(app):
    """Register error handlers with Flask app."""

    @app.errorhandler(ChessLabError)
    def handle_chesslab_error(error):
        if error.status_code >= 500:
            current_app.logger.error(f"{error.code}: {error.message}")
        else:
            current_app.logger.info(f"{error.code}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error):
        db.session.rollback()
        current_app.logger.exception('Database error, transaction rolled back')
        return error_response('Internal server error', 'SERVER_ERROR', 500)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(error):
        if request.path.startswith('/api/'):
            return error_response(error.description, 'CSRF_ERROR', 400)
        return error

    @app.errorhandler(404)
    def handle_not_found(error):
        if request.path.startswith('/api/'):
            return error_response('Endpoint not found', 'NOT_FOUND', 404)
        return error

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        if request.path.startswith('/api/'):
            return error_response('Method not allowed', 'METHOD_NOT_ALLOWED', 405)
        return error

    @app.errorhandler(500)
    def handle_internal_error(error):
        current_app.logger.exception('Internal server error')
        if request.path.startswith('/api/'):
            return error_response('Internal server error', 'SERVER_ERROR', 500)
        return error
