import datetime
from typing import Optional

from chesslab_app.models import Position, Repertoire, RepertoireEntry
from chesslab_app.modules.shared.utils.datetime_utils import ensure_utc, utcnow

from ..engine.replay import is_first_move_position


class StatsService:

    @staticmethod
    def get_training_stats(user_id: int, now: Optional[datetime.datetime] = None) -> dict:
        """
        Due count, total positions and learned/total per colour.

        The very first move of each colour is left out: it is a choice of
        opening rather than something to recall.
        """
        now = ensure_utc(now) if now else utcnow()
        color_stats = {color: {'learned': 0, 'total': 0} for color in Repertoire.COLORS}
        due_count = 0

        rows = (
            RepertoireEntry.query
            .join(Repertoire, RepertoireEntry.repertoire_id == Repertoire.repertoire_id)
            .join(Position, RepertoireEntry.position_id == Position.position_id)
            .filter(Repertoire.user_id == user_id)
            .with_entities(
                Repertoire.color,
                Position.fen,
                RepertoireEntry.repetitions,
                RepertoireEntry.next_review_date,
            )
            .all()
        )

        for color, fen, repetitions, next_review_date in rows:
            if is_first_move_position(fen, color):
                continue
            color_stats[color]['total'] += 1
            if repetitions and repetitions > 0:
                color_stats[color]['learned'] += 1
            if next_review_date is not None and ensure_utc(next_review_date) <= now:
                due_count += 1

        return {
            'dueCount': due_count,
            'totalPositions': sum(stats['total'] for stats in color_stats.values()),
            'colorStats': color_stats,
        }
