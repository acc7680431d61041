"""
Auth Service - Core authentication logic.

Handles user registration and credential checks.
Decouples DB logic from Routes.
"""
import logging
from typing import Optional

from flask import current_app
from sqlalchemy import or_

from chesslab_app.core.error_handlers import ValidationError
from chesslab_app.core.extensions import db
from chesslab_app.core.signals import user_registered
from chesslab_app.models import User
from chesslab_app.modules.repertoire.services.repertoire_service import RepertoireService
from chesslab_app.modules.shared.utils.datetime_utils import utcnow
from chesslab_app.modules.shared.utils.db_session import run_in_transaction

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class AuthService:
    """Service for Authentication related operations."""

    @staticmethod
    def register_user(username: str, email: str, password: str) -> User:
        """
        Register a new user with an empty white and black repertoire.

        Raises:
            ValidationError: missing fields, short password, or the username
                or email is already taken
        """
        username = (username or '').strip()
        email = (email or '').strip().lower()
        password = password or ''

        errors = {}
        if not username:
            errors['username'] = 'required'
        if not email or '@' not in email:
            errors['email'] = 'invalid'
        if len(password) < MIN_PASSWORD_LENGTH:
            errors['password'] = f'must be at least {MIN_PASSWORD_LENGTH} characters'
        if errors:
            raise ValidationError('Invalid registration data', errors=errors)

        taken = User.query.filter(or_(User.username == username, User.email == email)).first()
        if taken is not None:
            raise ValidationError(
                'Username or email already registered', code='USER_EXISTS'
            )

        def work() -> User:
            user = User(username=username, email=email)
            user.set_password(password)
            db.session.add(user)
            # Flush to get the id for the repertoires
            db.session.flush()
            RepertoireService.ensure_user_repertoires(user.user_id)
            return user

        user = run_in_transaction(db.session, work)
        logger.info("User registered: %s (%s)", username, user.user_id)

        user_registered.send(current_app._get_current_object(), user=user)
        return user

    @staticmethod
    def authenticate_user(username_or_email: str, password: str) -> Optional[User]:
        """
        Verify credentials.

        Returns:
            User object if valid, None otherwise.
        """
        if not username_or_email or not password:
            return None
        login = username_or_email.strip()
        user = User.query.filter(or_(User.username == login, User.email == login.lower())).first()
        if user and user.check_password(password):
            return user
        return None

    @staticmethod
    def touch_last_seen(user: User) -> None:
        user.last_seen = utcnow()
        db.session.commit()
