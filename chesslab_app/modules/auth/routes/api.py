from flask import Blueprint, jsonify
from flask_login import current_user, login_required, login_user, logout_user
from flask_wtf.csrf import generate_csrf

from chesslab_app.core.error_handlers import AuthenticationError
from chesslab_app.modules.shared.utils.request_utils import get_json_body

from ..services.auth_service import AuthService

auth_api_bp = Blueprint('auth_api', __name__, url_prefix='/api/auth')


@auth_api_bp.route('/register', methods=['POST'])
def register():
    data = get_json_body()
    user = AuthService.register_user(data.get('username'), data.get('email'), data.get('password'))
    login_user(user)
    return jsonify({'success': True, 'user': user.to_dict()}), 201


@auth_api_bp.route('/login', methods=['POST'])
def login():
    data = get_json_body()
    user = AuthService.authenticate_user(data.get('username') or data.get('email'), data.get('password'))
    if user is None:
        raise AuthenticationError('Invalid username or password')
    login_user(user, remember=bool(data.get('remember')))
    AuthService.touch_last_seen(user)
    return jsonify({'success': True, 'user': user.to_dict()})


@auth_api_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})


@auth_api_bp.route('/me', methods=['GET'])
@login_required
def me():
    return jsonify({'success': True, 'user': current_user.to_dict()})


@auth_api_bp.route('/csrf-token', methods=['GET'])
def csrf_token():
    """Token for the X-CSRFToken header of subsequent writes."""
    return jsonify({'csrfToken': generate_csrf()})
