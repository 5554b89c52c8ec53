from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required

from scoreboard import get_broadcaster
from scoreboard.auth import authenticate, issue_token
from scoreboard.services.matches import MATCHES
from scoreboard.services.registries import COMMENTS, FIXTURES

api = Blueprint('api', __name__)


@api.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    user = authenticate(data.get('username'), data.get('password'))
    if not user:
        current_app.logger.warning(f"[auth] failed login for {data.get('username')!r}")
        return jsonify({'success': False, 'error': 'Invalid credentials'}), 401
    return jsonify({'success': True, 'token': issue_token(user), 'user': user.to_dict()})


@api.route('/matches', methods=['GET'])
def get_matches():
    """Public snapshot of all matches with their live elapsed time."""
    return jsonify({'success': True, 'data': get_broadcaster().snapshot(MATCHES)})


@api.route('/comments', methods=['GET'])
@login_required
def get_comments():
    return jsonify({'success': True, 'data': get_broadcaster().snapshot(COMMENTS)})


@api.route('/fixtures', methods=['GET'])
def get_fixtures():
    return jsonify({'success': True, 'data': get_broadcaster().snapshot(FIXTURES)})
