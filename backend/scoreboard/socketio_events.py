from functools import wraps
from typing import Dict, Optional

from flask import current_app, request
from flask_socketio import emit

from scoreboard import get_broadcaster, get_fixture_storage, socketio
from scoreboard.auth import require_admin
from scoreboard.errors import AuthError, ScoreboardError
from scoreboard.services import matches, registries
from scoreboard.services.broadcast import NAMESPACE
from scoreboard.services.matches import MATCHES
from scoreboard.services.registries import COMMENTS, FIXTURES

# Handshake token per connected socket, verified again on every admin action
_sid_tokens: Dict[str, Optional[str]] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _reports_errors(admin: bool = False):
    """Run a handler, turning domain errors into unicast events.

    Admin handlers check the connection's token first and answer
    ``auth-required`` without attempting the action when it is not valid.
    """
    def decorator(handler):
        @wraps(handler)
        def wrapper(*args):
            sid = _get_sid()
            try:
                if admin:
                    require_admin(_sid_tokens.get(sid))
                return handler(*args)
            except AuthError as exc:
                current_app.logger.warning(f"[auth] {sid} {handler.__name__}: {exc.message}")
                emit('auth-required', {'message': exc.message})
            except ScoreboardError as exc:
                current_app.logger.info(f"[socket-error] {sid} {handler.__name__}: {exc.message}")
                emit('error', {'message': exc.message})
        return wrapper
    return decorator


def handle_connect(auth=None):
    token = auth.get('token') if isinstance(auth, dict) else None
    _sid_tokens[_get_sid()] = token
    current_app.logger.info(f"[connect] {_get_sid()} token={'yes' if token else 'no'}")
    get_broadcaster().initial_sync(_get_sid())


def handle_disconnect(*args):
    _sid_tokens.pop(_get_sid(), None)
    current_app.logger.info(f"[disconnect] {_get_sid()}")


def handle_request_matches(*args):
    get_broadcaster().send_snapshot(MATCHES, to=_get_sid())


def handle_request_comments(*args):
    get_broadcaster().send_snapshot(COMMENTS, to=_get_sid())


def handle_request_fixtures(*args):
    get_broadcaster().send_snapshot(FIXTURES, to=_get_sid())


@_reports_errors(admin=True)
def handle_create_match(data=None):
    match = matches.create_match(data, get_broadcaster())
    emit('match-created', {'id': match.id})


@_reports_errors(admin=True)
def handle_update_match(data=None):
    data = data if isinstance(data, dict) else {}
    matches.update_match(data.get('id'), data, get_broadcaster())


@_reports_errors(admin=True)
def handle_delete_match(match_id=None):
    matches.delete_match(match_id, get_broadcaster())


@_reports_errors()
def handle_add_comment(text=None):
    if isinstance(text, dict):
        text = text.get('text')
    registries.add_comment(text, get_broadcaster())


@_reports_errors(admin=True)
def handle_delete_comment(comment_id=None):
    registries.delete_comment(comment_id, get_broadcaster())


@_reports_errors(admin=True)
def handle_delete_fixture(fixture_id=None):
    registries.delete_fixture(fixture_id, get_fixture_storage(), get_broadcaster())


def register_socketio_handlers(namespace: str = NAMESPACE) -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    # Public
    socketio.on_event('request-matches', handle_request_matches, namespace=namespace)
    socketio.on_event('request-comments', handle_request_comments, namespace=namespace)
    socketio.on_event('request-fixtures', handle_request_fixtures, namespace=namespace)
    socketio.on_event('add-comment', handle_add_comment, namespace=namespace)
    # Admin only
    socketio.on_event('create-match', handle_create_match, namespace=namespace)
    socketio.on_event('update-match', handle_update_match, namespace=namespace)
    socketio.on_event('delete-match', handle_delete_match, namespace=namespace)
    socketio.on_event('delete-comment', handle_delete_comment, namespace=namespace)
    socketio.on_event('delete-fixture', handle_delete_fixture, namespace=namespace)
