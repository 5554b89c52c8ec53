"""Comment and fixture registries.

Both are plain append/delete collections that publish a fresh snapshot of
their channel after every change, and lose rows older than the retention
window.
"""

from datetime import datetime, timedelta
from typing import Optional

from flask import current_app

from scoreboard import db
from scoreboard.errors import NotFoundError, ValidationError
from scoreboard.models import Comment, Fixture
from .common import commit_or_raise, parse_id

COMMENTS = 'comments'
FIXTURES = 'fixtures'

COMMENT_MAX_LEN = 300


def add_comment(text, broadcaster) -> Comment:
    if not isinstance(text, str) or not text.strip():
        raise ValidationError('Comment cannot be empty')
    text = text.strip()
    if len(text) > COMMENT_MAX_LEN:
        raise ValidationError(f'Comment is too long (max {COMMENT_MAX_LEN} characters)')
    comment = Comment(text=text)
    db.session.add(comment)
    commit_or_raise('saving comment')
    current_app.logger.info(f"[comment-add] comment={comment.id} length={len(text)}")
    broadcaster.publish(COMMENTS)
    return comment


def delete_comment(comment_id, broadcaster) -> bool:
    comment_id = parse_id(comment_id, 'Comment id')
    comment = db.session.get(Comment, comment_id)
    deleted = comment is not None
    if deleted:
        db.session.delete(comment)
        commit_or_raise('deleting comment')
    current_app.logger.info(f"[comment-delete] comment={comment_id} deleted={deleted}")
    broadcaster.publish(COMMENTS)
    return deleted


def list_comments():
    return Comment.query.order_by(Comment.created_at.desc(), Comment.id.desc()).all()


def add_fixture(reference, storage, broadcaster) -> Fixture:
    if not isinstance(reference, str) or not reference:
        raise ValidationError('Fixture reference is required')
    if not storage.exists(reference):
        raise ValidationError('Fixture file not found')
    fixture = Fixture(image=reference)
    db.session.add(fixture)
    commit_or_raise('saving fixture')
    current_app.logger.info(f"[fixture-add] fixture={fixture.id} image={reference}")
    broadcaster.publish(FIXTURES)
    return fixture


def remove_fixture_file(storage, reference: str) -> None:
    try:
        storage.remove(reference)
    except (OSError, ValidationError):
        # A leftover file is logged, never raised
        current_app.logger.exception(f"[fixture-delete] could not remove file {reference!r}")


def delete_fixture(fixture_id, storage, broadcaster) -> Fixture:
    fixture_id = parse_id(fixture_id, 'Fixture id')
    fixture = db.session.get(Fixture, fixture_id)
    if fixture is None:
        raise NotFoundError(f'Fixture {fixture_id} not found')
    reference = fixture.image
    db.session.delete(fixture)
    commit_or_raise('deleting fixture')
    remove_fixture_file(storage, reference)
    current_app.logger.info(f"[fixture-delete] fixture={fixture_id} image={reference}")
    broadcaster.publish(FIXTURES)
    return fixture


def list_fixtures():
    return Fixture.query.order_by(Fixture.created_at.desc(), Fixture.id.desc()).all()


def purge_expired(storage, broadcaster, retention_days: int = 30, now: Optional[datetime] = None) -> dict:
    """Delete comments and fixtures older than ``retention_days``.

    Returns the number of rows removed per channel.
    """
    cutoff = (now or datetime.utcnow()) - timedelta(days=retention_days)

    removed_comments = Comment.query.filter(Comment.created_at < cutoff).delete(synchronize_session=False)
    stale_fixtures = Fixture.query.filter(Fixture.created_at < cutoff).all()
    references = [f.image for f in stale_fixtures]
    for fixture in stale_fixtures:
        db.session.delete(fixture)
    commit_or_raise('purging old rows')

    for reference in references:
        remove_fixture_file(storage, reference)

    current_app.logger.info(
        f"[sweep] cutoff={cutoff.isoformat()} comments={removed_comments} fixtures={len(references)}"
    )
    if removed_comments:
        broadcaster.publish(COMMENTS)
    if references:
        broadcaster.publish(FIXTURES)
    return {COMMENTS: removed_comments, FIXTURES: len(references)}
