import time

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from scoreboard import db
from scoreboard.errors import StorageError, ValidationError
from .matches import MATCHES, list_matches
from .registries import COMMENTS, FIXTURES, list_comments, list_fixtures

NAMESPACE = '/ws'
CHANNELS = (MATCHES, COMMENTS, FIXTURES)
EVENTS = {
    MATCHES: 'matches-updated',
    COMMENTS: 'comments-updated',
    FIXTURES: 'fixtures-updated',
}


class Broadcaster:
    """Pushes channel snapshots to connected Socket.IO clients.

    Matches are serialized with their live elapsed time, so every publish
    reflects the clock at the moment it is sent.
    """

    def __init__(self, socketio, namespace: str = NAMESPACE):
        self.socketio = socketio
        self.namespace = namespace

    def snapshot(self, channel: str, now=None) -> list:
        """Ordered rows of ``channel`` as dicts. Raises StorageError on read failure."""
        if channel not in EVENTS:
            raise ValidationError(f'Unknown channel: {channel!r}')
        try:
            if channel == MATCHES:
                if now is None:
                    now = time.time()
                return [m.to_dict(now) for m in list_matches()]
            if channel == COMMENTS:
                return [c.to_dict() for c in list_comments()]
            return [f.to_dict() for f in list_fixtures()]
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.exception(f"[broadcast] reading {channel} failed")
            raise StorageError(f'Error reading {channel}') from exc

    def _snapshot_or_empty(self, channel: str) -> list:
        try:
            return self.snapshot(channel)
        except StorageError:
            return []

    def publish(self, channel: str) -> list:
        """Send the current snapshot of ``channel`` to every client."""
        payload = self._snapshot_or_empty(channel)
        self.socketio.emit(EVENTS[channel], payload, namespace=self.namespace)
        current_app.logger.debug(f"[broadcast] {EVENTS[channel]} rows={len(payload)}")
        return payload

    def send_snapshot(self, channel: str, to: str) -> list:
        """Send the current snapshot of ``channel`` to a single client."""
        payload = self._snapshot_or_empty(channel)
        self.socketio.emit(EVENTS[channel], payload, namespace=self.namespace, to=to)
        return payload

    def initial_sync(self, sid: str) -> None:
        for channel in CHANNELS:
            self.send_snapshot(channel, to=sid)
        current_app.logger.info(f"[sync] sent initial snapshots to {sid}")
