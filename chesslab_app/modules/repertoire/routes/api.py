from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from chesslab_app.core.error_handlers import ValidationError
from chesslab_app.modules.shared.utils.request_utils import get_json_body, parse_int

from ..services.deletion_service import DeletionService
from ..services.line_service import LineService
from ..services.opening_service import OpeningService
from ..services.stats_service import StatsService
from ..services.tree_service import TreeService

repertoire_api_bp = Blueprint('repertoire_api', __name__, url_prefix='/api')


def _move_list(data: dict, key: str, required: bool):
    moves = data.get(key)
    if moves is None:
        return [] if required else None
    if not isinstance(moves, list) or not all(isinstance(move, str) for move in moves):
        raise ValidationError(f'{key} must be a list of strings', errors={key: 'invalid'})
    return moves


@repertoire_api_bp.route('/repertoire-entries/save-line', methods=['POST'])
@login_required
def save_line():
    data = get_json_body()
    opening_id = data.get('openingId')

    created = LineService.save_line(
        current_user.user_id,
        data.get('color'),
        _move_list(data, 'movesInSan', required=True),
        _move_list(data, 'movesInUci', required=False),
        opening_id=parse_int(opening_id, 'openingId') if opening_id is not None else None,
        opening_name=data.get('openingName'),
    )
    return jsonify({'success': True, 'entriesCreated': created}), 201


@repertoire_api_bp.route('/repertoire-entries/<int:entry_id>', methods=['DELETE'])
@login_required
def delete_entry(entry_id):
    deleted_ids = DeletionService.delete_entry_and_descendants(current_user.user_id, entry_id)
    return jsonify({'success': True, 'deletedCount': len(deleted_ids), 'deletedIds': deleted_ids})


@repertoire_api_bp.route('/repertoires', methods=['GET'])
@login_required
def repertoire_tree():
    """Line tree of the repertoire of ``?color=``."""
    root = TreeService.build_tree(current_user.user_id, request.args.get('color', 'white'))
    return jsonify({'root': root})


@repertoire_api_bp.route('/openings', methods=['GET'])
@login_required
def list_openings():
    openings = OpeningService.list_openings(current_user.user_id, request.args.get('color'))
    return jsonify({'openings': [opening.to_dict() for opening in openings]})


@repertoire_api_bp.route('/openings', methods=['POST'])
@login_required
def create_opening():
    data = get_json_body()
    opening = OpeningService.create_opening(
        current_user.user_id, data.get('color'), data.get('name'), notes=data.get('notes')
    )
    return jsonify({'success': True, 'opening': opening.to_dict()}), 201


@repertoire_api_bp.route('/openings/<int:opening_id>', methods=['PATCH'])
@login_required
def update_opening(opening_id):
    data = get_json_body()
    opening = OpeningService.update_opening(
        current_user.user_id, opening_id, name=data.get('name'), notes=data.get('notes')
    )
    return jsonify({'success': True, 'opening': opening.to_dict()})


@repertoire_api_bp.route('/openings/<int:opening_id>', methods=['DELETE'])
@login_required
def delete_opening(opening_id):
    deleted_ids = OpeningService.delete_opening(current_user.user_id, opening_id)
    return jsonify({'success': True, 'deletedCount': len(deleted_ids), 'deletedIds': deleted_ids})


@repertoire_api_bp.route('/training-stats', methods=['GET'])
@login_required
def training_stats():
    return jsonify(StatsService.get_training_stats(current_user.user_id))
