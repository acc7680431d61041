"""
Subtree deletion.

Entries carry no parent pointer. The children of an entry are the entries
of the same repertoire whose position is reached by playing the entry's
expected move followed by any opponent reply, so the subtree is found by
walking the game tree breadth-first. Transpositions can reach a position
along several paths; the visited set keeps each entry to a single visit.
"""

import logging
from collections import deque
from typing import Dict, List

from flask import current_app
from sqlalchemy import delete

from chesslab_app.core.extensions import db
from chesslab_app.core.signals import entries_deleted
from chesslab_app.models import Position, RepertoireEntry
from chesslab_app.modules.shared.utils.db_session import run_in_transaction

from ..engine.replay import opponent_replies
from .position_store import PositionStore
from .repertoire_service import RepertoireService

logger = logging.getLogger(__name__)


def _entries_by_fen(repertoire_id: int) -> Dict[str, List[RepertoireEntry]]:
    rows = (
        db.session.query(RepertoireEntry, Position.fen)
        .join(Position, RepertoireEntry.position_id == Position.position_id)
        .filter(RepertoireEntry.repertoire_id == repertoire_id)
        .all()
    )
    by_fen: Dict[str, List[RepertoireEntry]] = {}
    for entry, fen in rows:
        by_fen.setdefault(fen, []).append(entry)
    return by_fen


def collect_subtree(root: RepertoireEntry, by_fen: Dict[str, List[RepertoireEntry]]) -> List[int]:
    """Ids of ``root`` and every entry below it, in breadth-first order."""
    visited = {root.entry_id}
    order = [root.entry_id]
    queue = deque([(root.position.fen, root.expected_move)])

    while queue:
        fen, move = queue.popleft()
        for child_fen in opponent_replies(fen, move):
            for child in by_fen.get(child_fen, ()):
                if child.entry_id in visited:
                    continue
                visited.add(child.entry_id)
                order.append(child.entry_id)
                queue.append((child_fen, child.expected_move))
    return order


class DeletionService:

    @staticmethod
    def delete_entry_and_descendants(user_id: int, entry_id: int) -> List[int]:
        """
        Delete an entry with its whole subtree, then sweep positions no
        longer used by anyone.

        Raises:
            EntryNotFoundError, AuthorizationError: before anything is deleted

        Returns:
            Ids of the deleted entries, the requested one first.
        """
        root = RepertoireService.get_owned_entry(user_id, entry_id)
        repertoire_id = root.repertoire_id

        def work():
            ids = collect_subtree(root, _entries_by_fen(repertoire_id))
            db.session.execute(
                delete(RepertoireEntry).where(RepertoireEntry.entry_id.in_(ids)),
                execution_options={'synchronize_session': False},
            )
            removed = PositionStore.sweep_orphans()
            return ids, removed

        deleted_ids, positions_removed = run_in_transaction(db.session, work)
        logger.info(
            "Deleted entry %s with %s descendants for user %s (%s positions swept)",
            entry_id, len(deleted_ids) - 1, user_id, positions_removed,
        )
        entries_deleted.send(
            current_app._get_current_object(),
            user_id=user_id,
            repertoire_id=repertoire_id,
            entry_ids=deleted_ids,
            positions_removed=positions_removed,
        )
        return deleted_ids
