from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from scoreboard import db
from scoreboard.errors import StorageError, ValidationError


def commit_or_raise(action: str) -> None:
    """Commit the session; on failure roll back, log and raise StorageError."""
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception(f"[storage] {action} failed")
        raise StorageError(f'Error {action}') from exc


def parse_id(value, label: str = 'id') -> int:
    if value is None or isinstance(value, bool):
        raise ValidationError(f'{label} is required')
    if isinstance(value, dict):
        value = value.get('id')
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'Invalid {label}')
    if parsed <= 0:
        raise ValidationError(f'Invalid {label}')
    return parsed


def clean_text(value) -> str:
    return value.strip() if isinstance(value, str) else ''
