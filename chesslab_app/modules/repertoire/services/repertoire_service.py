import logging
from typing import Dict, Optional

from chesslab_app.core.error_handlers import AuthorizationError
from chesslab_app.core.extensions import db
from chesslab_app.models import Repertoire, RepertoireEntry
from chesslab_app.modules.shared.utils.db_session import is_row_id

from ..exceptions import EntryNotFoundError, InvalidColorError

logger = logging.getLogger(__name__)


class RepertoireService:
    """Lookups and ownership checks shared by the repertoire and SRS modules."""

    @staticmethod
    def parse_color(color) -> str:
        if isinstance(color, str) and color.strip().lower() in Repertoire.COLORS:
            return color.strip().lower()
        raise InvalidColorError(color)

    @staticmethod
    def ensure_user_repertoires(user_id: int) -> Dict[str, Repertoire]:
        """
        Make sure the user has one repertoire per colour.
        Flushes but does not commit; callers own the transaction.
        """
        repertoires = {
            repertoire.color: repertoire
            for repertoire in Repertoire.query.filter_by(user_id=user_id).all()
        }
        for color in Repertoire.COLORS:
            if color not in repertoires:
                repertoire = Repertoire(user_id=user_id, color=color)
                db.session.add(repertoire)
                repertoires[color] = repertoire
                logger.info("Created %s repertoire for user %s", color, user_id)
        db.session.flush()
        return repertoires

    @staticmethod
    def get_repertoire(user_id: int, color: str) -> Optional[Repertoire]:
        color = RepertoireService.parse_color(color)
        return Repertoire.query.filter_by(user_id=user_id, color=color).first()

    @staticmethod
    def get_owned_entry(user_id: int, entry_id: int) -> RepertoireEntry:
        """
        Raises:
            EntryNotFoundError: no such entry
            AuthorizationError: the entry belongs to another user
        """
        entry = db.session.get(RepertoireEntry, entry_id) if is_row_id(entry_id) else None
        if entry is None:
            raise EntryNotFoundError(entry_id)
        if entry.repertoire.user_id != user_id:
            raise AuthorizationError('You do not have access to this entry')
        return entry
