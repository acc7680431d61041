import logging
from typing import List, Optional

from flask import current_app
from sqlalchemy import delete

from chesslab_app.core.error_handlers import AuthorizationError, ValidationError
from chesslab_app.core.extensions import db
from chesslab_app.core.signals import entries_deleted
from chesslab_app.models import Opening, Repertoire, RepertoireEntry
from chesslab_app.modules.shared.utils.db_session import is_row_id, run_in_transaction

from ..exceptions import OpeningNotFoundError
from .position_store import PositionStore
from .repertoire_service import RepertoireService

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 255


def _clean_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError('Opening name is required', errors={'name': 'required'})
    name = name.strip()
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(
            f'Opening name must be at most {MAX_NAME_LENGTH} characters', errors={'name': 'too_long'}
        )
    return name


class OpeningService:
    """Named groupings of entries within a repertoire."""

    @staticmethod
    def get_owned_opening(user_id: int, opening_id: int) -> Opening:
        opening = db.session.get(Opening, opening_id) if is_row_id(opening_id) else None
        if opening is None:
            raise OpeningNotFoundError(opening_id)
        if opening.repertoire.user_id != user_id:
            raise AuthorizationError('You do not have access to this opening')
        return opening

    @staticmethod
    def resolve_for_line(repertoire: Repertoire, opening_id=None, opening_name=None) -> Optional[Opening]:
        """
        Opening a newly saved line is filed under: an existing opening of the
        same repertoire, a new one named ``opening_name``, or none.
        Must run inside the caller's transaction.
        """
        if opening_id is not None:
            opening = db.session.get(Opening, opening_id) if is_row_id(opening_id) else None
            if opening is None or opening.repertoire_id != repertoire.repertoire_id:
                raise OpeningNotFoundError(opening_id)
            return opening

        if opening_name:
            opening = Opening(repertoire_id=repertoire.repertoire_id, name=_clean_name(opening_name))
            db.session.add(opening)
            db.session.flush()
            return opening

        return None

    @staticmethod
    def list_openings(user_id: int, color: Optional[str] = None) -> List[Opening]:
        query = (
            Opening.query
            .join(Repertoire, Opening.repertoire_id == Repertoire.repertoire_id)
            .filter(Repertoire.user_id == user_id)
        )
        if color is not None:
            query = query.filter(Repertoire.color == RepertoireService.parse_color(color))
        return query.order_by(Opening.name, Opening.opening_id).all()

    @staticmethod
    def create_opening(user_id: int, color: str, name: str, notes: Optional[str] = None) -> Opening:
        color = RepertoireService.parse_color(color)
        name = _clean_name(name)

        def work() -> Opening:
            repertoire = RepertoireService.ensure_user_repertoires(user_id)[color]
            opening = Opening(repertoire_id=repertoire.repertoire_id, name=name, notes=notes)
            db.session.add(opening)
            db.session.flush()
            return opening

        opening = run_in_transaction(db.session, work)
        logger.info("Created opening %s (%s) for user %s", opening.opening_id, color, user_id)
        return opening

    @staticmethod
    def update_opening(user_id: int, opening_id: int, name=None, notes=None) -> Opening:
        """Rename and/or annotate. Fields left as ``None`` are unchanged."""
        opening = OpeningService.get_owned_opening(user_id, opening_id)
        new_name = _clean_name(name) if name is not None else None

        def work() -> Opening:
            if new_name is not None:
                opening.name = new_name
            if notes is not None:
                opening.notes = notes
            return opening

        return run_in_transaction(db.session, work)

    @staticmethod
    def delete_opening(user_id: int, opening_id: int) -> List[int]:
        """
        Delete an opening together with its entries, then sweep orphaned
        positions. Returns the ids of the deleted entries.
        """
        opening = OpeningService.get_owned_opening(user_id, opening_id)
        repertoire_id = opening.repertoire_id

        def work():
            entry_ids = [
                entry_id for (entry_id,) in
                db.session.query(RepertoireEntry.entry_id).filter_by(opening_id=opening_id).all()
            ]
            if entry_ids:
                db.session.execute(
                    delete(RepertoireEntry).where(RepertoireEntry.entry_id.in_(entry_ids)),
                    execution_options={'synchronize_session': False},
                )
            db.session.execute(
                delete(Opening).where(Opening.opening_id == opening_id),
                execution_options={'synchronize_session': False},
            )
            removed = PositionStore.sweep_orphans()
            return entry_ids, removed

        entry_ids, positions_removed = run_in_transaction(db.session, work)
        logger.info(
            "Deleted opening %s with %s entries for user %s", opening_id, len(entry_ids), user_id
        )
        if entry_ids:
            entries_deleted.send(
                current_app._get_current_object(),
                user_id=user_id,
                repertoire_id=repertoire_id,
                entry_ids=entry_ids,
                positions_removed=positions_removed,
            )
        return entry_ids
