from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from gamehub.models import LeaderboardEntry, User, isoformat_utc
from .results import ErrorKind, Result


class LeaderboardRanker:
    """Standings derived on demand from the leaderboard history.

    Every query first reduces the history to one entry per user: their
    highest score, the most recent such entry on ties.
    """

    def __init__(self, session, game_types, default_limit=10, max_limit=100):
        self.session = session
        self.game_types = set(game_types)
        self.default_limit = default_limit
        self.max_limit = max_limit

    def _best_per_user(self, game_type):
        rn = func.row_number().over(
            partition_by=LeaderboardEntry.user_id,
            order_by=(
                LeaderboardEntry.score.desc(),
                LeaderboardEntry.achieved_at.desc(),
                LeaderboardEntry.id.desc(),
            ),
        ).label('rn')
        return (
            self.session.query(
                LeaderboardEntry.user_id,
                LeaderboardEntry.score,
                LeaderboardEntry.achieved_at,
                rn,
            )
            .filter(LeaderboardEntry.game_type == game_type)
            .subquery()
        )

    def top_scores(self, game_type, limit=None) -> Result:
        if game_type not in self.game_types:
            return _unsupported(game_type)
        if limit is None:
            limit = self.default_limit
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            return Result.failure(ErrorKind.VALIDATION_ERROR, 'limit must be a positive integer')
        limit = min(limit, self.max_limit)

        ranked = self._best_per_user(game_type)
        try:
            rows = (
                self.session.query(
                    ranked.c.user_id,
                    User.name,
                    User.evm_address,
                    ranked.c.score,
                    ranked.c.achieved_at,
                )
                .select_from(ranked)
                .join(User, User.user_id == ranked.c.user_id)
                .filter(ranked.c.rn == 1)
                # Equal scores: whoever got there first, then user id
                .order_by(ranked.c.score.desc(), ranked.c.achieved_at.asc(), ranked.c.user_id.asc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError:
            self.session.rollback()
            current_app.logger.exception(f"[leaderboard-error] game={game_type}")
            return Result.server_error()

        return Result.success([
            {
                'user_id': row.user_id,
                'name': row.name,
                'evm_address': row.evm_address,
                'score': row.score,
                'achieved_at': isoformat_utc(row.achieved_at),
            }
            for row in rows
        ])

    def rank_of(self, user_id, game_type) -> Result:
        """Competition rank of ``user_id``; value is ``{'rank', 'score'}`` or None."""
        if game_type not in self.game_types:
            return _unsupported(game_type)
        best = (
            self.session.query(
                LeaderboardEntry.user_id.label('user_id'),
                func.max(LeaderboardEntry.score).label('best'),
            )
            .filter(LeaderboardEntry.game_type == game_type)
            .group_by(LeaderboardEntry.user_id)
            .subquery()
        )
        try:
            mine = self.session.query(best.c.best).filter(best.c.user_id == user_id).scalar()
            if mine is None:
                return Result.success(None)
            higher = self.session.query(func.count()).select_from(best).filter(best.c.best > mine).scalar()
        except SQLAlchemyError:
            self.session.rollback()
            current_app.logger.exception(f"[rank-error] user={user_id} game={game_type}")
            return Result.server_error()
        return Result.success({'rank': int(higher) + 1, 'score': mine})


def _unsupported(game_type):
    return Result.failure(ErrorKind.VALIDATION_ERROR, f'Unsupported game type: {game_type}')
