import datetime
import logging
from typing import List, Optional, Tuple, Union

from flask import current_app

from chesslab_app.core.extensions import db
from chesslab_app.core.signals import card_reviewed
from chesslab_app.models import Repertoire, RepertoireEntry
from chesslab_app.modules.repertoire.services.repertoire_service import RepertoireService
from chesslab_app.modules.shared.utils.db_session import run_in_transaction
from chesslab_app.modules.shared.utils.datetime_utils import ensure_utc, utcnow

from ..engine.sm2 import SM2Engine
from ..schemas import ReviewResponse, ReviewResult
from .settings_service import SM2SettingsService

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Orchestrator for review submissions.
    Loads the entry, runs the SM-2 engine, persists the new state and emits
    the ``card_reviewed`` signal.
    """

    @staticmethod
    def submit_review(
        user_id: int,
        entry_id: int,
        response: Union[ReviewResponse, str],
        now: Optional[datetime.datetime] = None,
    ) -> Tuple[RepertoireEntry, ReviewResult]:
        """
        Main entry point for processing a review.

        Raises:
            InvalidResponseError: unknown response (checked first)
            EntryNotFoundError: no such entry
            AuthorizationError: entry belongs to another user
        """
        response = ReviewResponse.parse(response)
        entry = RepertoireService.get_owned_entry(user_id, entry_id)
        config = SM2SettingsService.get_config()
        now = ensure_utc(now) if now else utcnow()

        def work() -> ReviewResult:
            result = SM2Engine.process_review(entry.to_card_state(), response, config, now)
            entry.apply_card_state(result.new_state)
            return result

        result = run_in_transaction(db.session, work)

        logger.info(
            "Review user=%s entry=%s response=%s -> phase=%s interval=%s",
            user_id, entry_id, response.value, result.new_state.phase.value, result.interval_days,
        )

        card_reviewed.send(
            current_app._get_current_object(),
            user_id=user_id,
            entry_id=entry_id,
            response=response.value,
            phase=result.new_state.phase.value,
            interval_days=result.interval_days,
            next_review_date=result.next_review_date,
        )
        return entry, result

    @staticmethod
    def get_due_entries(
        user_id: int,
        color: Optional[str] = None,
        now: Optional[datetime.datetime] = None,
    ) -> List[RepertoireEntry]:
        """Entries of the user that are due, soonest first."""
        query = (
            RepertoireEntry.query
            .join(Repertoire, RepertoireEntry.repertoire_id == Repertoire.repertoire_id)
            .filter(Repertoire.user_id == user_id)
        )
        if color is not None:
            query = query.filter(Repertoire.color == RepertoireService.parse_color(color))

        entries = query.order_by(RepertoireEntry.next_review_date, RepertoireEntry.entry_id).all()
        return SM2Engine.get_cards_for_review(entries, now)
