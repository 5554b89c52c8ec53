"""Admin credentials.

Admins log in once and receive a signed, time-limited token. HTTP requests
present it as ``Authorization: Bearer <token>``; Socket.IO clients present
it in the handshake ``auth`` payload.
"""

from typing import Optional

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from scoreboard import db
from scoreboard.errors import AuthError
from scoreboard.models import User

TOKEN_SALT = 'scoreboard-admin'
ADMIN_ROLE = 'admin'


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=TOKEN_SALT)


def authenticate(username, password) -> Optional[User]:
    if not username or not password:
        return None
    user = User.query.filter_by(username=username).first()
    if user and user.check_password(password):
        return user
    return None


def issue_token(user: User) -> str:
    return _serializer().dumps({'uid': user.id, 'role': ADMIN_ROLE})


def verify_token(token) -> Optional[User]:
    if not token or not isinstance(token, str):
        return None
    max_age = int(current_app.config.get('TOKEN_MAX_AGE_SEC', 3600))
    try:
        data = _serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        current_app.logger.info("[auth] expired token")
        return None
    except BadSignature:
        current_app.logger.warning("[auth] bad token signature")
        return None
    if not isinstance(data, dict) or data.get('role') != ADMIN_ROLE:
        return None
    try:
        return db.session.get(User, int(data.get('uid')))
    except (TypeError, ValueError):
        return None


def require_admin(token) -> User:
    if not token:
        raise AuthError('Token required for this action')
    user = verify_token(token)
    if user is None:
        raise AuthError('Invalid or expired token')
    return user


def bearer_token(header) -> Optional[str]:
    if not header:
        return None
    scheme, _, value = header.partition(' ')
    if scheme.lower() != 'bearer' or not value.strip():
        return None
    return value.strip()
