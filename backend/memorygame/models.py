from memorygame import db, bcrypt
from flask_login import UserMixin
from datetime import datetime, timezone


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


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

class Ranking(db.Model):
    """One leaderboard entry."""
    __tablename__ = 'ranking'
    id = db.Column(db.Integer, primary_key=True)
    player_name = db.Column(db.String(64), nullable=False, index=True)
    score = db.Column(db.Integer, nullable=False, index=True)
    moves = db.Column(db.Integer, nullable=False)
    time = db.Column(db.String(16), nullable=False)  # MM:SS
    elapsed_seconds = db.Column(db.Integer, nullable=False)
    difficulty = db.Column(db.String(16), nullable=False)
    efficiency = db.Column(db.Integer, nullable=False)
    date = db.Column(db.DateTime, nullable=False, default=_utcnow)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)

    user = db.relationship('User', backref=db.backref('rankings', lazy='dynamic'))

    def to_dict(self):
        return {
            'id': self.id,
            'playerName': self.player_name,
            'score': self.score,
            'moves': self.moves,
            'time': self.time,
            'difficulty': self.difficulty,
            'efficiency': self.efficiency,
            'date': _iso(self.date),
        }

class HistoryEntry(db.Model):
    """A finished game in a player's personal history."""
    __tablename__ = 'history_entry'
    id = db.Column(db.Integer, primary_key=True)
    player_name = db.Column(db.String(64), nullable=False, index=True)
    score = db.Column(db.Integer, nullable=False)
    moves = db.Column(db.Integer, nullable=False)
    time = db.Column(db.String(16), nullable=False)
    difficulty = db.Column(db.String(16), nullable=False)
    efficiency = db.Column(db.Integer, nullable=False)
    date = db.Column(db.DateTime, nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'playerName': self.player_name,
            'score': self.score,
            'moves': self.moves,
            'time': self.time,
            'difficulty': self.difficulty,
            'efficiency': self.efficiency,
            'date': _iso(self.date),
        }
