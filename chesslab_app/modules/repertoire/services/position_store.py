"""
Content-addressed store of board positions.

One row per FEN, shared by every entry (of every user) that reaches it.
Writers race on the unique ``fen`` column, so inserts use the dialect's
``ON CONFLICT DO NOTHING`` and the ids are read back afterwards.
"""

import logging
from typing import Dict, Iterable

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError

from chesslab_app.core.extensions import db
from chesslab_app.models import Position, RepertoireEntry

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    'sqlite': sqlite_insert,
    'postgresql': postgresql_insert,
}


class PositionStore:

    @staticmethod
    def upsert_many(fens: Iterable[str]) -> Dict[str, int]:
        """
        Insert-or-get a batch of positions.

        Returns:
            Mapping of every requested FEN to its position id.
        """
        unique_fens = list(dict.fromkeys(fens))
        if not unique_fens:
            return {}

        insert = _UPSERT_INSERTS.get(db.engine.dialect.name)
        if insert is not None:
            statement = (
                insert(Position)
                .values([{'fen': fen} for fen in unique_fens])
                .on_conflict_do_nothing(index_elements=['fen'])
            )
            db.session.execute(statement)
        else:
            PositionStore._insert_missing_one_by_one(unique_fens)

        rows = db.session.execute(
            select(Position.fen, Position.position_id).where(Position.fen.in_(unique_fens))
        ).all()
        return {fen: position_id for fen, position_id in rows}

    @staticmethod
    def _insert_missing_one_by_one(fens):
        existing = set(db.session.scalars(select(Position.fen).where(Position.fen.in_(fens))))
        for fen in fens:
            if fen in existing:
                continue
            try:
                with db.session.begin_nested():
                    db.session.add(Position(fen=fen))
            except IntegrityError:
                # Inserted concurrently; the row is read back by the caller.
                logger.debug("Position already stored: %s", fen)

    @staticmethod
    def sweep_orphans() -> int:
        """Delete positions no entry refers to. Returns the number removed."""
        referenced = (
            select(RepertoireEntry.entry_id)
            .where(RepertoireEntry.position_id == Position.position_id)
            .correlate(Position)
            .exists()
        )
        result = db.session.execute(
            delete(Position).where(~referenced),
            execution_options={'synchronize_session': False},
        )
        removed = result.rowcount or 0
        if removed:
            logger.info("Swept %s orphaned positions", removed)
        return removed
