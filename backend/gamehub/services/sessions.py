import secrets
from datetime import timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from gamehub.models import User, UserSession, utcnow
from .results import ErrorKind, Result

TOKEN_BYTES = 32  # 256 bits
DEFAULT_TTL = timedelta(hours=24)


class SessionAuthority:
    """Issues, validates and revokes opaque bearer tokens.

    Expired sessions are rejected on lookup; they stay in storage until
    ``purge_expired`` runs.
    """

    def __init__(self, session, ttl=DEFAULT_TTL, clock=utcnow):
        self.session = session
        self.ttl = ttl
        self.clock = clock

    def issue(self, user_id) -> Result:
        """Create a session for ``user_id``; value is ``(token, expires_at)``.

        Commits the enclosing transaction, so callers may stage related
        writes (e.g. last-login) before calling.
        """
        token = secrets.token_hex(TOKEN_BYTES)
        expires_at = self.clock() + self.ttl
        try:
            self.session.add(UserSession(session_token=token, user_id=user_id, expires_at=expires_at))
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            current_app.logger.exception(f"[session-issue-error] user={user_id}")
            return Result.server_error()
        return Result.success((token, expires_at))

    def validate(self, token) -> Result:
        if not token:
            return Result.failure(ErrorKind.UNAUTHENTICATED, 'No token provided')
        try:
            user = (
                self.session.query(User)
                .join(UserSession, UserSession.user_id == User.user_id)
                .filter(UserSession.session_token == token, UserSession.expires_at > self.clock())
                .first()
            )
        except SQLAlchemyError:
            self.session.rollback()
            current_app.logger.exception("[session-validate-error]")
            return Result.server_error()
        if user is None:
            return Result.failure(ErrorKind.UNAUTHENTICATED, 'Invalid or expired session')
        return Result.success(user)

    def revoke(self, token) -> Result:
        try:
            deleted = self.session.query(UserSession).filter_by(session_token=token).delete(synchronize_session=False)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            current_app.logger.exception("[session-revoke-error]")
            return Result.server_error()
        current_app.logger.info(f"[session-revoke] deleted={deleted}")
        return Result.success()

    def purge_expired(self) -> Result:
        """Delete stored sessions whose expiry has passed; value is the count."""
        try:
            deleted = (
                self.session.query(UserSession)
                .filter(UserSession.expires_at <= self.clock())
                .delete(synchronize_session=False)
            )
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            current_app.logger.exception("[session-purge-error]")
            return Result.server_error()
        return Result.success(deleted)
