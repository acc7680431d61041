import chess
import pytest

from chesslab_app.core.error_handlers import AuthorizationError
from chesslab_app.core.signals import entries_deleted
from chesslab_app.models import Position, RepertoireEntry
from chesslab_app.modules.repertoire.exceptions import EntryNotFoundError
from chesslab_app.modules.repertoire.services.deletion_service import DeletionService
from chesslab_app.modules.repertoire.services.line_service import LineService
from chesslab_app.modules.repertoire.services.position_store import PositionStore

RUY_LOPEZ = ['e4', 'e5', 'Nf3', 'Nc6', 'Bb5']
QGD = ['d4', 'd5', 'c4', 'e6', 'Nc3']
ENGLISH_TO_QGD = ['c4', 'e6', 'd4', 'd5', 'Nc3']


def fen_after(*san_moves):
    board = chess.Board()
    for san in san_moves:
        board.push_san(san)
    return board.fen()


def entry_at(user, san_moves, move):
    return (
        RepertoireEntry.query
        .join(Position)
        .filter(
            Position.fen == fen_after(*san_moves),
            RepertoireEntry.expected_move == move,
            RepertoireEntry.repertoire.has(user_id=user.user_id),
        )
        .one()
    )


class TestDeleteSubtree:

    def test_root_deletion_removes_the_whole_chain(self, user):
        LineService.save_line(user.user_id, 'white', RUY_LOPEZ)
        root = entry_at(user, [], 'e2e4')

        deleted = DeletionService.delete_entry_and_descendants(user.user_id, root.entry_id)

        assert len(deleted) == 3
        assert deleted[0] == root.entry_id
        assert RepertoireEntry.query.count() == 0
        assert Position.query.count() == 0

    def test_leaf_deletion_removes_only_the_leaf(self, user):
        LineService.save_line(user.user_id, 'white', RUY_LOPEZ)
        leaf = entry_at(user, ['e4', 'e5', 'Nf3', 'Nc6'], 'f1b5')

        deleted = DeletionService.delete_entry_and_descendants(user.user_id, leaf.entry_id)

        assert deleted == [leaf.entry_id]
        assert RepertoireEntry.query.count() == 2
        assert Position.query.count() == 2

    def test_middle_deletion_keeps_ancestors(self, user):
        LineService.save_line(user.user_id, 'white', RUY_LOPEZ)
        middle = entry_at(user, ['e4', 'e5'], 'g1f3')

        deleted = DeletionService.delete_entry_and_descendants(user.user_id, middle.entry_id)

        assert len(deleted) == 2
        assert [entry.expected_move for entry in RepertoireEntry.query.all()] == ['e2e4']

    def test_sibling_branches_are_kept(self, user):
        LineService.save_line(user.user_id, 'white', RUY_LOPEZ)
        LineService.save_line(user.user_id, 'white', ['e4', 'c5', 'Nf3'])
        ruy = entry_at(user, ['e4', 'e5'], 'g1f3')

        DeletionService.delete_entry_and_descendants(user.user_id, ruy.entry_id)

        remaining = sorted(entry.expected_move for entry in RepertoireEntry.query.all())
        assert remaining == ['e2e4', 'g1f3']

    def test_transpositions_are_visited_once(self, user):
        LineService.save_line(user.user_id, 'white', QGD)
        LineService.save_line(user.user_id, 'white', ENGLISH_TO_QGD)
        root = entry_at(user, [], 'd2d4')

        deleted = DeletionService.delete_entry_and_descendants(user.user_id, root.entry_id)

        # 1.d4, 2.c4 and the shared 3.Nc3
        assert len(deleted) == 3
        assert len(set(deleted)) == 3
        remaining = sorted(entry.expected_move for entry in RepertoireEntry.query.all())
        assert remaining == ['c2c4', 'd2d4']
        # The starting position is still used by 1.c4
        assert Position.query.filter_by(fen=chess.STARTING_FEN).count() == 1
        assert Position.query.count() == 2

    def test_positions_used_by_another_user_survive(self, user, other_user):
        LineService.save_line(user.user_id, 'white', RUY_LOPEZ)
        LineService.save_line(other_user.user_id, 'white', RUY_LOPEZ)
        root = entry_at(user, [], 'e2e4')

        DeletionService.delete_entry_and_descendants(user.user_id, root.entry_id)

        assert RepertoireEntry.query.count() == 3
        assert Position.query.count() == 3

    def test_other_colour_is_untouched(self, user):
        LineService.save_line(user.user_id, 'white', RUY_LOPEZ)
        LineService.save_line(user.user_id, 'black', ['e4', 'e5'])
        root = entry_at(user, [], 'e2e4')

        DeletionService.delete_entry_and_descendants(user.user_id, root.entry_id)

        assert [entry.expected_move for entry in RepertoireEntry.query.all()] == ['e7e5']

    def test_entries_deleted_signal(self, app, user):
        LineService.save_line(user.user_id, 'white', RUY_LOPEZ)
        root = entry_at(user, [], 'e2e4')
        received = []

        def receiver(sender, **kwargs):
            received.append(kwargs)

        with entries_deleted.connected_to(receiver, app):
            deleted = DeletionService.delete_entry_and_descendants(user.user_id, root.entry_id)

        assert received[0]['entry_ids'] == deleted
        assert received[0]['positions_removed'] == 3


class TestDeleteChecks:

    def test_missing_entry(self, user):
        with pytest.raises(EntryNotFoundError):
            DeletionService.delete_entry_and_descendants(user.user_id, 12345)

    def test_other_users_entry(self, user, other_user):
        LineService.save_line(user.user_id, 'white', RUY_LOPEZ)
        root = entry_at(user, [], 'e2e4')

        with pytest.raises(AuthorizationError):
            DeletionService.delete_entry_and_descendants(other_user.user_id, root.entry_id)

        assert RepertoireEntry.query.count() == 3

    def test_id_out_of_integer_range(self, user):
        with pytest.raises(EntryNotFoundError):
            DeletionService.delete_entry_and_descendants(user.user_id, 10 ** 20)

    def test_failure_during_sweep_rolls_back_deletion(self, user, monkeypatch):
        LineService.save_line(user.user_id, 'white', QGD)
        root = entry_at(user, [], 'd2d4')

        def boom(*args, **kwargs):
            raise RuntimeError('boom')

        monkeypatch.setattr(PositionStore, 'sweep_orphans', staticmethod(boom))
        with pytest.raises(RuntimeError):
            DeletionService.delete_entry_and_descendants(user.user_id, root.entry_id)

        assert RepertoireEntry.query.count() == 3
        assert Position.query.count() == 3
