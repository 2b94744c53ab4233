from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from gamehub.models import Checkpoint, utcnow
from .results import ErrorKind, Result


class CheckpointStore:
    """Saved game states, keyed by (user, game type, id)."""

    def __init__(self, session, game_types, default_limit=10, max_limit=100, clock=utcnow):
        self.session = session
        self.game_types = set(game_types)
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.clock = clock

    def _check_game_type(self, game_type):
        if game_type not in self.game_types:
            return Result.failure(ErrorKind.VALIDATION_ERROR, f'Unsupported game type: {game_type}')
        return None

    def save(self, user_id, game_type, game_state, name=None) -> Result:
        if not game_type or game_state is None:
            return Result.failure(ErrorKind.VALIDATION_ERROR, 'gameType and gameState are required')
        invalid = self._check_game_type(game_type)
        if invalid:
            return invalid
        if not isinstance(game_state, dict):
            return Result.failure(ErrorKind.VALIDATION_ERROR, 'gameState must be an object')
        if name is not None and (not isinstance(name, str) or len(name) > 100):
            return Result.failure(ErrorKind.VALIDATION_ERROR, 'checkpointName must be a string of at most 100 characters')

        now = self.clock()
        checkpoint = Checkpoint(
            user_id=user_id,
            game_type=game_type,
            checkpoint_name=name or f"Autosave {now.strftime('%Y-%m-%d %H:%M:%S')} UTC",
            game_state=game_state,
            score=_int_or(game_state.get('score'), 0),
            level=_int_or(game_state.get('level'), 1),
            created_at=now,
        )
        try:
            self.session.add(checkpoint)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            current_app.logger.exception(f"[checkpoint-save-error] user={user_id} game={game_type}")
            return Result.server_error()
        current_app.logger.info(f"[checkpoint-save] user={user_id} game={game_type} id={checkpoint.id}")
        return Result.success(checkpoint)

    def load(self, user_id, game_type, checkpoint_id=None) -> Result:
        """A specific checkpoint when ``checkpoint_id`` is given, else the newest."""
        invalid = self._check_game_type(game_type)
        if invalid:
            return invalid
        query = self.session.query(Checkpoint).filter_by(user_id=user_id, game_type=game_type)
        try:
            if checkpoint_id is not None:
                checkpoint = query.filter(Checkpoint.id == checkpoint_id).first()
            else:
                checkpoint = query.order_by(Checkpoint.created_at.desc(), Checkpoint.id.desc()).first()
        except SQLAlchemyError:
            self.session.rollback()
            current_app.logger.exception(f"[checkpoint-load-error] user={user_id} game={game_type}")
            return Result.server_error()
        if checkpoint is None:
            return Result.failure(ErrorKind.NOT_FOUND, 'No checkpoint found')
        return Result.success(checkpoint)

    def list(self, user_id, game_type, limit=None) -> Result:
        invalid = self._check_game_type(game_type)
        if invalid:
            return invalid
        if limit is None:
            limit = self.default_limit
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            return Result.failure(ErrorKind.VALIDATION_ERROR, 'limit must be a positive integer')
        try:
            checkpoints = (
                self.session.query(Checkpoint)
                .filter_by(user_id=user_id, game_type=game_type)
                .order_by(Checkpoint.created_at.desc(), Checkpoint.id.desc())
                .limit(min(limit, self.max_limit))
                .all()
            )
        except SQLAlchemyError:
            self.session.rollback()
            current_app.logger.exception(f"[checkpoint-list-error] user={user_id} game={game_type}")
            return Result.server_error()
        return Result.success(checkpoints)

    def delete(self, user_id, checkpoint_id) -> Result:
        try:
            deleted = (
                self.session.query(Checkpoint)
                .filter_by(user_id=user_id, id=checkpoint_id)
                .delete(synchronize_session=False)
            )
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            current_app.logger.exception(f"[checkpoint-delete-error] user={user_id} id={checkpoint_id}")
            return Result.server_error()
        if not deleted:
            return Result.failure(ErrorKind.NOT_FOUND, 'Checkpoint not found')
        current_app.logger.info(f"[checkpoint-delete] user={user_id} id={checkpoint_id}")
        return Result.success()


def _int_or(value, default):
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
