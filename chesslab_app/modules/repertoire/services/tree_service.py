import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import joinedload

from chesslab_app.models import RepertoireEntry
from chesslab_app.modules.shared.utils.datetime_utils import isoformat

from ..engine.replay import STARTING_FEN, format_move_sequence, opponent_replies, ply_from_fen
from .repertoire_service import RepertoireService

logger = logging.getLogger(__name__)


def _node(entry: RepertoireEntry) -> dict:
    return {
        'id': entry.entry_id,
        'fen': entry.position.fen,
        'expectedMove': entry.expected_move,
        'opponentMove': None,
        'moveNumber': 0,
        'moveSequence': '',
        'openingId': entry.opening_id,
        'phase': entry.phase,
        'repetitions': entry.repetitions,
        'nextReviewDate': isoformat(entry.next_review_date),
        'children': [],
    }


def _expand(node: dict, opponent_move: Optional[str], moves: List[str], first_ply: int,
            children_of: Dict[int, List[Tuple[str, dict]]]) -> dict:
    """
    Copy of ``node`` reached along ``moves``, with its subtree.
    A transposed entry gets one copy per path.
    """
    expanded = dict(node)
    expanded['opponentMove'] = opponent_move
    expanded['moveNumber'] = (first_ply + len(moves) + 1) // 2
    expanded['moveSequence'] = format_move_sequence(moves, first_ply)
    expanded['children'] = [
        _expand(child, reply, moves + [reply, child['expectedMove']], first_ply, children_of)
        for reply, child in children_of.get(node['id'], ())
    ]
    return expanded


class TreeService:
    """Rebuilds the implicit line tree of a repertoire for display."""

    @staticmethod
    def build_tree(user_id: int, color: str) -> Optional[dict]:
        """
        Returns:
            The root node, ``None`` for an empty repertoire. Several
            independent roots are wrapped in a virtual node on the
            starting position.
        """
        repertoire = RepertoireService.get_repertoire(user_id, color)
        if repertoire is None:
            return None

        entries = (
            RepertoireEntry.query
            .options(joinedload(RepertoireEntry.position))
            .filter_by(repertoire_id=repertoire.repertoire_id)
            .order_by(RepertoireEntry.created_at, RepertoireEntry.entry_id)
            .all()
        )
        if not entries:
            return None

        nodes = [_node(entry) for entry in entries]
        by_fen: Dict[str, List[dict]] = {}
        for node in nodes:
            by_fen.setdefault(node['fen'], []).append(node)

        children_of: Dict[int, List[Tuple[str, dict]]] = {}
        child_ids = set()
        for node in nodes:
            for fen, reply in opponent_replies(node['fen'], node['expectedMove']).items():
                for child in by_fen.get(fen, ()):
                    children_of.setdefault(node['id'], []).append((reply, child))
                    child_ids.add(child['id'])

        roots = [
            _expand(node, None, [node['expectedMove']], ply_from_fen(node['fen']), children_of)
            for node in nodes if node['id'] not in child_ids
        ]

        if len(roots) == 1:
            return roots[0]

        logger.debug("Repertoire %s has %s roots", repertoire.repertoire_id, len(roots))
        return {
            'id': f'virtual-root-{repertoire.repertoire_id}',
            'fen': STARTING_FEN,
            'expectedMove': None,
            'opponentMove': None,
            'moveNumber': 0,
            'moveSequence': 'Starting Position',
            'children': roots,
        }
