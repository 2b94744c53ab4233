import threading
import weakref

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from gamehub.models import GameStat, LeaderboardEntry, User, utcnow
from .results import ErrorKind, Result

DEFAULT_MAX_SCORE = 1_000_000_000

# Per-user submit locks (process-local); the row lock covers other processes.
# Entries drop out once no request holds the lock.
_user_locks = weakref.WeakValueDictionary()
_user_locks_guard = threading.Lock()


def _lock_for(user_id) -> threading.Lock:
    with _user_locks_guard:
        lock = _user_locks.get(user_id)
        if lock is None:
            lock = threading.Lock()
            _user_locks[user_id] = lock
        return lock


def coerce_score(raw, max_score=DEFAULT_MAX_SCORE):
    """Return ``raw`` as an int in ``[0, max_score]``, or None if it is not one."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, float):
        if not raw.is_integer():
            return None
        raw = int(raw)
    if not isinstance(raw, int):
        return None
    if raw < 0 or raw > max_score:
        return None
    return raw


class ScoreLedger:
    """Records score submissions and keeps per-game and total aggregates.

    ``submit_score`` is one transaction: stats upsert, history append and
    total-points recompute commit together or not at all.
    """

    def __init__(self, session, game_types, max_score=DEFAULT_MAX_SCORE, clock=utcnow):
        self.session = session
        self.game_types = set(game_types)
        self.max_score = max_score
        self.clock = clock

    def submit_score(self, user_id, game_type, score) -> Result:
        if not game_type or score is None:
            return Result.failure(ErrorKind.VALIDATION_ERROR, 'gameType and score are required')
        if game_type not in self.game_types:
            return Result.failure(ErrorKind.VALIDATION_ERROR, f'Unsupported game type: {game_type}')
        value = coerce_score(score, self.max_score)
        if value is None:
            return Result.failure(
                ErrorKind.VALIDATION_ERROR, f'score must be an integer between 0 and {self.max_score}'
            )

        with _lock_for(user_id):
            try:
                outcome = self._apply(user_id, game_type, value)
                if outcome is None:
                    self.session.rollback()
                    return Result.failure(ErrorKind.NOT_FOUND, 'User not found')
                self.session.commit()
            except SQLAlchemyError:
                self.session.rollback()
                current_app.logger.exception(f"[score-error] user={user_id} game={game_type}")
                return Result.server_error()

        current_app.logger.info(
            f"[score] user={user_id} game={game_type} score={value} new_best={outcome['isNewBest']}"
        )
        return Result.success(outcome)

    def _apply(self, user_id, game_type, score):
        stat = (
            self.session.query(GameStat)
            .filter_by(user_id=user_id, game_type=game_type)
            .with_for_update()
            .first()
        )
        current_best = stat.best_score if stat else 0
        is_new_best = score > current_best
        now = self.clock()

        if stat is None:
            stat = GameStat(user_id=user_id, game_type=game_type, best_score=score, games_played=1, updated_at=now)
        else:
            stat.games_played = (stat.games_played or 0) + 1
            stat.best_score = max(current_best, score)
            stat.updated_at = now
        self.session.add(stat)
        self.session.add(LeaderboardEntry(user_id=user_id, game_type=game_type, score=score, achieved_at=now))
        self.session.flush()

        if not self._recompute_total_points(user_id):
            return None
        return {'isNewBest': is_new_best, 'previousBest': current_best, 'newScore': score}

    def _recompute_total_points(self, user_id) -> bool:
        total = (
            self.session.query(func.coalesce(func.sum(GameStat.best_score), 0))
            .filter(GameStat.user_id == user_id)
            .scalar_subquery()
        )
        updated = (
            self.session.query(User)
            .filter(User.user_id == user_id)
            .update({User.total_points: total}, synchronize_session=False)
        )
        return updated == 1
