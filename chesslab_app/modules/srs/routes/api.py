from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from chesslab_app.core.error_handlers import ValidationError
from chesslab_app.modules.shared.utils.datetime_utils import isoformat
from chesslab_app.modules.shared.utils.request_utils import get_json_body, parse_int

from ..services.review_service import ReviewService

srs_api_bp = Blueprint('srs_api', __name__, url_prefix='/api/repertoire-entries')


@srs_api_bp.route('/review', methods=['POST'])
@login_required
def review_entry():
    """Grade one entry: {entryId, response}."""
    data = get_json_body()
    if data.get('entryId') is None or data.get('response') is None:
        raise ValidationError(
            'entryId and response are required',
            errors={key: 'required' for key in ('entryId', 'response') if data.get(key) is None},
        )
    entry_id = parse_int(data['entryId'], 'entryId')

    entry, result = ReviewService.submit_review(current_user.user_id, entry_id, data['response'])
    return jsonify({
        'success': True,
        'nextReviewDate': isoformat(result.next_review_date),
        'intervalDays': result.interval_days,
        'message': result.message,
        'entry': entry.to_dict(),
    })


@srs_api_bp.route('/due', methods=['GET'])
@login_required
def due_entries():
    entries = ReviewService.get_due_entries(current_user.user_id, color=request.args.get('color'))
    return jsonify({
        'entries': [entry.to_dict() for entry in entries],
        'count': len(entries),
    })
