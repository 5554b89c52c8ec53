from datetime import datetime
import json

from flask_login import UserMixin

from scoreboard import bcrypt, db

WAITING = 'waiting'
PLAYING = 'playing'
PAUSED = 'paused'
FINISHED = 'finished'
MATCH_STATUSES = (WAITING, PLAYING, PAUSED, FINISHED)

# Snapshot ordering: live matches first, then upcoming, then finished
STATUS_RANK = {PLAYING: 1, WAITING: 2, FINISHED: 3}
OTHER_STATUS_RANK = 4

ROSTER_SEPARATOR = '|'


def _isoformat(value):
    return value.isoformat() if value else None


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
        }


class Match(db.Model):
    __tablename__ = 'match'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(128), nullable=False)
    team1 = db.Column(db.String(64), nullable=False)
    team2 = db.Column(db.String(64), nullable=False)
    score1 = db.Column(db.Integer, nullable=False, default=0)
    score2 = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default=WAITING, index=True)
    # JSON-encoded lists of player names, one per side
    roster1 = db.Column(db.Text, nullable=True)
    roster2 = db.Column(db.Text, nullable=True)
    sanctions = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    # Seconds played in closed segments; the running segment is derived from started_at
    elapsed_seconds = db.Column(db.Integer, nullable=False, default=0)
    started_at = db.Column(db.Float, nullable=True)  # epoch seconds, set only while playing
    minute = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    @property
    def players1(self):
        return json.loads(self.roster1) if self.roster1 else []

    @players1.setter
    def players1(self, names):
        self.roster1 = json.dumps(list(names))

    @property
    def players2(self):
        return json.loads(self.roster2) if self.roster2 else []

    @players2.setter
    def players2(self, names):
        self.roster2 = json.dumps(list(names))

    @property
    def rosters(self):
        """Combined display form of both rosters; never persisted."""
        return ', '.join(self.players1) + ROSTER_SEPARATOR + ', '.join(self.players2)

    def to_dict(self, now=None):
        from scoreboard.services.timer import live_elapsed
        return {
            'id': self.id,
            'title': self.title,
            'team1': self.team1,
            'team2': self.team2,
            'score1': self.score1,
            'score2': self.score2,
            'status': self.status,
            'roster1': self.players1,
            'roster2': self.players2,
            'rosters': self.rosters,
            'sanctions': self.sanctions,
            'notes': self.notes,
            'minute': self.minute,
            'elapsed_seconds': self.elapsed_seconds,
            'started_at': self.started_at,
            'elapsed': live_elapsed(self, now),
            'created_at': _isoformat(self.created_at),
        }


class Comment(db.Model):
    __tablename__ = 'comment'
    id = db.Column(db.Integer, primary_key=True)
    text = db.Column(db.String(300), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'text': self.text,
            'created_at': _isoformat(self.created_at),
        }


class Fixture(db.Model):
    __tablename__ = 'fixture'
    id = db.Column(db.Integer, primary_key=True)
    image = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'image': self.image,
            'url': f'/uploads/{self.image}',
            'created_at': _isoformat(self.created_at),
        }
