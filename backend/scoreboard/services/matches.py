"""Match state machine.

Every mutation of a match goes through this module: it validates the
payload, applies status side effects on the match clock, commits, and asks
the broadcaster to push a fresh matches snapshot. Mutations of the same
match id are serialized with a per-id lock so that read-then-write status
transitions (closing a running segment) never interleave.
"""

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Optional

from flask import current_app
from sqlalchemy import case

from scoreboard import db
from scoreboard.errors import NotFoundError, ValidationError
from scoreboard.models import (
    Match, MATCH_STATUSES, OTHER_STATUS_RANK, PLAYING, STATUS_RANK, WAITING,
)
from .common import clean_text, commit_or_raise, parse_id
from .timer import accumulate

MATCHES = 'matches'

TITLE_MAX_LEN = 128
TEAM_MAX_LEN = 64
# Counters are stored as 32-bit integers
COUNTER_MAX = 2 ** 31 - 1

_match_locks: Dict[int, threading.Lock] = {}
_locks_guard = threading.Lock()


@contextmanager
def match_lock(match_id: int):
    with _locks_guard:
        lock = _match_locks.setdefault(match_id, threading.Lock())
    with lock:
        yield


@dataclass(frozen=True)
class Delta:
    """A counter update: increment, decrement or set to an absolute value.

    Counters never go below zero whatever the update.
    """

    kind: str
    value: Optional[int] = None

    INCREMENT = 'increment'
    DECREMENT = 'decrement'
    SET = 'set'

    @classmethod
    def increment(cls) -> 'Delta':
        return cls(cls.INCREMENT)

    @classmethod
    def decrement(cls) -> 'Delta':
        return cls(cls.DECREMENT)

    @classmethod
    def set(cls, value: int, label: str = 'value') -> 'Delta':
        value = int(value)
        if value > COUNTER_MAX:
            raise ValidationError(f'{label.capitalize()} must be at most {COUNTER_MAX}')
        return cls(cls.SET, value)

    @classmethod
    def parse(cls, raw, label: str = 'value') -> 'Delta':
        """Build a Delta from its wire form: 'increment', 'decrement' or an integer."""
        if isinstance(raw, Delta):
            return raw
        if isinstance(raw, bool):
            raise ValidationError(f'Invalid {label} update')
        if isinstance(raw, int):
            return cls.set(raw, label)
        if isinstance(raw, float) and raw.is_integer():
            return cls.set(int(raw), label)
        if isinstance(raw, str):
            token = raw.strip().lower()
            if token == cls.INCREMENT:
                return cls.increment()
            if token == cls.DECREMENT:
                return cls.decrement()
        raise ValidationError(f'Invalid {label} update')

    def apply(self, current: int) -> int:
        current = int(current or 0)
        if self.kind == self.INCREMENT:
            return min(current + 1, COUNTER_MAX)
        if self.kind == self.DECREMENT:
            return max(current - 1, 0)
        return max(self.value, 0)


def parse_status(raw) -> str:
    status = clean_text(raw).lower()
    if status not in MATCH_STATUSES:
        raise ValidationError(f'Unknown status: {raw!r}')
    return status


def parse_roster(raw) -> list:
    """Accept a list of names or a comma separated string."""
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(',')
    if not isinstance(raw, (list, tuple)):
        raise ValidationError('Roster must be a list of names')
    names = []
    for name in raw:
        if not isinstance(name, str):
            raise ValidationError('Roster must be a list of names')
        if name.strip():
            names.append(name.strip())
    return names


def transition(match: Match, status: str, now: float) -> None:
    """Move ``match`` to ``status`` keeping the clock consistent.

    Any status may follow any other. Only playing has a running segment.
    """
    if status == PLAYING:
        if match.started_at is None:
            match.started_at = now
    elif status == WAITING:
        match.started_at = None
        match.elapsed_seconds = 0
    elif match.started_at is not None:
        match.elapsed_seconds = accumulate(match, now)
        match.started_at = None
    match.status = status


def _parse_update(data: dict) -> dict:
    """Validate every recognized field before anything is applied."""
    changes = {}
    present = {k: v for k, v in data.items() if v is not None}
    if 'status' in present:
        changes['status'] = parse_status(present['status'])
    for field in ('roster1', 'roster2'):
        if field in present:
            changes[field] = parse_roster(present[field])
    for field in ('score1', 'score2', 'minute'):
        if field in present:
            changes[field] = Delta.parse(present[field], field)
    for field in ('sanctions', 'notes'):
        if field in present:
            if not isinstance(present[field], str):
                raise ValidationError(f'{field} must be text')
            changes[field] = present[field]
    return changes


def create_match(data, broadcaster, now: Optional[float] = None) -> Match:
    data = data or {}
    if now is None:
        now = time.time()
    title = clean_text(data.get('title'))
    team1 = clean_text(data.get('team1'))
    team2 = clean_text(data.get('team2'))
    if not (title and team1 and team2):
        raise ValidationError('Title and both teams are required')
    if team1.casefold() == team2.casefold():
        raise ValidationError('Teams must be different')
    if len(title) > TITLE_MAX_LEN or len(team1) > TEAM_MAX_LEN or len(team2) > TEAM_MAX_LEN:
        raise ValidationError('Title or team name is too long')
    status = parse_status(data.get('status') or WAITING)

    match = Match(
        title=title,
        team1=team1,
        team2=team2,
        score1=0,
        score2=0,
        minute=0,
        elapsed_seconds=0,
        status=WAITING,
    )
    match.players1 = []
    match.players2 = []
    transition(match, status, now)
    db.session.add(match)
    commit_or_raise('creating match')
    current_app.logger.info(f"[match-create] match={match.id} title={title!r} status={status}")

    # Publish only once the insert is committed and visible to readers
    broadcaster.publish(MATCHES)
    return match


def update_match(match_id, data, broadcaster, now: Optional[float] = None) -> Match:
    """Apply the fields present in ``data`` to the match.

    Returns the match. When no recognized field is present nothing is
    written and nothing is broadcast.
    """
    match_id = parse_id(match_id, 'Match id')
    changes = _parse_update(data or {})
    if now is None:
        now = time.time()

    with match_lock(match_id):
        match = db.session.get(Match, match_id)
        if match is None:
            raise NotFoundError(f'Match {match_id} not found')

        if 'minute' in changes and match.status == PLAYING:
            # The manual minute is frozen while the clock runs
            current_app.logger.info(f"[match-update] match={match_id} minute ignored while playing")
            del changes['minute']
        if not changes:
            current_app.logger.info(f"[match-update] match={match_id} nothing to update")
            return match

        if 'status' in changes:
            previous = match.status
            transition(match, changes['status'], now)
            current_app.logger.info(
                f"[match-status] match={match_id} {previous} -> {match.status} elapsed={match.elapsed_seconds}"
            )
        if 'roster1' in changes:
            match.players1 = changes['roster1']
        if 'roster2' in changes:
            match.players2 = changes['roster2']
        for field in ('score1', 'score2', 'minute'):
            if field in changes:
                setattr(match, field, changes[field].apply(getattr(match, field)))
        for field in ('sanctions', 'notes'):
            if field in changes:
                setattr(match, field, changes[field])

        db.session.add(match)
        commit_or_raise('updating match')

    current_app.logger.info(f"[match-update] match={match_id} fields={sorted(changes)}")
    broadcaster.publish(MATCHES)
    return match


def delete_match(match_id, broadcaster) -> bool:
    """Delete the match if it exists. Missing ids are ignored."""
    match_id = parse_id(match_id, 'Match id')
    with match_lock(match_id):
        match = db.session.get(Match, match_id)
        deleted = match is not None
        if deleted:
            db.session.delete(match)
            commit_or_raise('deleting match')
    with _locks_guard:
        _match_locks.pop(match_id, None)

    current_app.logger.info(f"[match-delete] match={match_id} deleted={deleted}")
    broadcaster.publish(MATCHES)
    return deleted


def list_matches():
    rank = case(STATUS_RANK, value=Match.status, else_=OTHER_STATUS_RANK)
    return Match.query.order_by(rank, Match.created_at.desc(), Match.id.desc()).all()


def any_playing() -> bool:
    return db.session.query(Match.id).filter(Match.status == PLAYING).first() is not None
