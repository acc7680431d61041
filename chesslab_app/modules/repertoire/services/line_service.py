import datetime
import logging
from typing import List, Optional, Sequence

from flask import current_app

from chesslab_app.core.extensions import db
from chesslab_app.core.signals import line_saved
from chesslab_app.models import RepertoireEntry
from chesslab_app.modules.shared.utils.datetime_utils import ensure_utc, utcnow
from chesslab_app.modules.shared.utils.db_session import run_in_transaction
from chesslab_app.modules.srs.engine.sm2 import SM2Engine
from chesslab_app.modules.srs.services.settings_service import SM2SettingsService

from ..engine.replay import LinePly, collect_line_plies, convert_san_to_uci
from ..exceptions import EmptyOrMismatchedLineError, LineMustEndOnOwnMoveError
from .opening_service import OpeningService
from .position_store import PositionStore
from .repertoire_service import RepertoireService

logger = logging.getLogger(__name__)


class LineService:
    """Ingestion of a played line into a user's repertoire."""

    @staticmethod
    def validate_line(color: str, san_moves: Sequence[str],
                      uci_moves: Optional[Sequence[str]] = None) -> List[LinePly]:
        """
        Check a line and return the plies of ``color`` to store.

        Raises, in this order:
            InvalidColorError
            EmptyOrMismatchedLineError: no moves, or SAN/UCI lengths differ
            LineMustEndOnOwnMoveError: the last ply is the opponent's
            InvalidMoveError: a move cannot be replayed or SAN/UCI disagree
        """
        color = RepertoireService.parse_color(color)
        san_moves = list(san_moves or [])

        if not san_moves or (uci_moves is not None and len(uci_moves) != len(san_moves)):
            raise EmptyOrMismatchedLineError(len(san_moves), len(uci_moves or []))

        # White moves on odd plies, black on even.
        ends_on_white = len(san_moves) % 2 == 1
        if ends_on_white != (color == 'white'):
            raise LineMustEndOnOwnMoveError(color, len(san_moves))

        if uci_moves is None:
            uci_moves = convert_san_to_uci(san_moves)

        return collect_line_plies(color, san_moves, list(uci_moves))

    @staticmethod
    def save_line(
        user_id: int,
        color: str,
        san_moves: Sequence[str],
        uci_moves: Optional[Sequence[str]] = None,
        opening_id: Optional[int] = None,
        opening_name: Optional[str] = None,
        now: Optional[datetime.datetime] = None,
    ) -> int:
        """
        Store every position of ``color`` along the line as a card.

        Positions already known (from any user) are reused; position/move
        pairs already in the repertoire are skipped. Nothing is written
        unless the whole line is valid.

        Returns:
            Number of entries created.
        """
        plies = LineService.validate_line(color, san_moves, uci_moves)
        color = RepertoireService.parse_color(color)
        config = SM2SettingsService.get_config()
        now = ensure_utc(now) if now else utcnow()

        def work():
            repertoire = RepertoireService.ensure_user_repertoires(user_id)[color]
            opening = OpeningService.resolve_for_line(repertoire, opening_id, opening_name)
            position_ids = PositionStore.upsert_many(ply.fen for ply in plies)

            candidates = list(dict.fromkeys(
                (position_ids[ply.fen], ply.uci) for ply in plies
            ))
            rows = (
                db.session.query(RepertoireEntry.position_id, RepertoireEntry.expected_move)
                .filter(
                    RepertoireEntry.repertoire_id == repertoire.repertoire_id,
                    RepertoireEntry.position_id.in_(sorted({position_id for position_id, _ in candidates})),
                )
                .all()
            )
            existing = {(position_id, move) for position_id, move in rows}

            initial = SM2Engine.new_card_state(config, now)
            new_entries = [
                RepertoireEntry(
                    repertoire_id=repertoire.repertoire_id,
                    opening_id=opening.opening_id if opening else None,
                    position_id=position_id,
                    expected_move=move,
                    interval=initial.interval,
                    ease_factor=initial.ease_factor,
                    repetitions=initial.repetitions,
                    phase=initial.phase.value,
                    learning_step_index=initial.learning_step_index,
                    next_review_date=initial.next_review_date,
                )
                for position_id, move in candidates
                if (position_id, move) not in existing
            ]
            db.session.add_all(new_entries)
            db.session.flush()
            return repertoire.repertoire_id, len(new_entries)

        repertoire_id, created = run_in_transaction(db.session, work)

        logger.info(
            "Saved %s line for user %s: %s plies, %s new entries",
            color, user_id, len(san_moves), created,
        )
        line_saved.send(
            current_app._get_current_object(),
            user_id=user_id,
            repertoire_id=repertoire_id,
            color=color,
            entries_created=created,
            plies=len(san_moves),
        )
        return created
