from gamehub import db
from datetime import datetime, timezone
import secrets
import time


def utcnow():
    """Naive UTC timestamp; all stored datetimes are naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_user_id():
    """Millisecond clock plus random suffix, e.g. ``user_1718000000000_9f3a0c1e``."""
    return f"user_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


def isoformat_utc(value):
    return value.isoformat() + 'Z' if value else None


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(50), unique=True, nullable=False, index=True, default=generate_user_id)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    evm_address = db.Column(db.String(42), nullable=False)
    # Derived: sum of best_score over this user's GameStat rows
    total_points = db.Column(db.BigInteger, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_login = db.Column(db.DateTime, nullable=True)

    game_stats = db.relationship('GameStat', back_populates='user', cascade='all, delete-orphan')
    sessions = db.relationship('UserSession', back_populates='user', cascade='all, delete-orphan')
    leaderboard_entries = db.relationship('LeaderboardEntry', back_populates='user', cascade='all, delete-orphan')
    checkpoints = db.relationship('Checkpoint', back_populates='user', cascade='all, delete-orphan')

    def games_summary(self):
        return {
            stat.game_type: {'bestScore': stat.best_score, 'gamesPlayed': stat.games_played}
            for stat in self.game_stats
        }

    def to_dict(self, include_games=False):
        data = {
            'user_id': self.user_id,
            'name': self.name,
            'email': self.email,
            'evm_address': self.evm_address,
            'total_points': self.total_points,
            'created_at': isoformat_utc(self.created_at),
            'last_login': isoformat_utc(self.last_login),
        }
        if include_games:
            data['games'] = self.games_summary()
        return data

    def __repr__(self):
        return f"<User {self.user_id}>"


class UserSession(db.Model):
    __tablename__ = 'user_sessions'
    id = db.Column(db.Integer, primary_key=True)
    session_token = db.Column(db.String(255), unique=True, nullable=False, index=True)
    user_id = db.Column(db.String(50), db.ForeignKey('users.user_id', ondelete='CASCADE'), nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship('User', back_populates='sessions')


class GameStat(db.Model):
    __tablename__ = 'game_stats'
    __table_args__ = (db.UniqueConstraint('user_id', 'game_type', name='uq_game_stats_user_game'),)
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(50), db.ForeignKey('users.user_id', ondelete='CASCADE'), nullable=False)
    game_type = db.Column(db.String(20), nullable=False)
    best_score = db.Column(db.Integer, nullable=False, default=0)
    games_played = db.Column(db.Integer, nullable=False, default=0)
    total_time_played = db.Column(db.Integer, nullable=False, default=0)  # seconds, reserved
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship('User', back_populates='game_stats')


class LeaderboardEntry(db.Model):
    """One score submission. Append-only history."""
    __tablename__ = 'leaderboard'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(50), db.ForeignKey('users.user_id', ondelete='CASCADE'), nullable=False)
    game_type = db.Column(db.String(20), nullable=False)
    score = db.Column(db.Integer, nullable=False)
    achieved_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship('User', back_populates='leaderboard_entries')


db.Index('idx_game_score', LeaderboardEntry.game_type, LeaderboardEntry.score.desc())


class Checkpoint(db.Model):
    __tablename__ = 'game_checkpoints'
    __table_args__ = (db.Index('idx_user_game', 'user_id', 'game_type'),)
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(50), db.ForeignKey('users.user_id', ondelete='CASCADE'), nullable=False)
    game_type = db.Column(db.String(20), nullable=False)
    checkpoint_name = db.Column(db.String(100), nullable=True)
    game_state = db.Column(db.JSON, nullable=False)
    score = db.Column(db.Integer, nullable=True)
    level = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship('User', back_populates='checkpoints')

    def to_summary(self):
        return {
            'id': self.id,
            'name': self.checkpoint_name,
            'score': self.score,
            'level': self.level,
            'createdAt': isoformat_utc(self.created_at),
        }

    def to_dict(self):
        data = self.to_summary()
        data['gameType'] = self.game_type
        data['gameState'] = self.game_state
        return data
