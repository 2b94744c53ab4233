import re

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from gamehub.models import GameStat, User, utcnow
from .results import ErrorKind, Result

EVM_ADDRESS_RE = re.compile(r'^0x[0-9a-fA-F]{40}$')
INVALID_CREDENTIALS_MESSAGE = 'Invalid email or password'


def normalize_email(email):
    return (email or '').strip().lower()


class CredentialStore:
    """Signup and signin on top of the users table.

    ``bcrypt`` is the Flask-Bcrypt extension; ``sessions`` is the
    ``SessionAuthority`` used to open a session after a good signin.
    """

    def __init__(self, session, bcrypt, sessions, game_types):
        self.session = session
        self.bcrypt = bcrypt
        self.sessions = sessions
        self.game_types = list(game_types)
        self._dummy_hash = None

    def register(self, name, email, password, evm_address) -> Result:
        if not all(isinstance(v, str) and v.strip() for v in (name, email, password, evm_address)):
            return Result.failure(ErrorKind.VALIDATION_ERROR, 'All fields are required')
        name = name.strip()
        email = normalize_email(email)
        evm_address = evm_address.strip()
        if len(name) > 100:
            return Result.failure(ErrorKind.VALIDATION_ERROR, 'Name must be 100 characters or less')
        if '@' not in email or len(email) > 255:
            return Result.failure(ErrorKind.VALIDATION_ERROR, 'Email address is not valid')
        if not EVM_ADDRESS_RE.match(evm_address):
            return Result.failure(ErrorKind.VALIDATION_ERROR, 'Wallet address must be 0x followed by 40 hex characters')

        try:
            if self.session.query(User.id).filter(User.email == email).first():
                return Result.failure(ErrorKind.DUPLICATE_EMAIL, 'Email already exists')
            user = User(
                name=name,
                email=email,
                password_hash=self.bcrypt.generate_password_hash(password).decode('utf-8'),
                evm_address=evm_address,
                total_points=0,
            )
            self.session.add(user)
            self.session.flush()
            for game_type in self.game_types:
                self.session.add(GameStat(user_id=user.user_id, game_type=game_type))
            self.session.commit()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email
            self.session.rollback()
            return Result.failure(ErrorKind.DUPLICATE_EMAIL, 'Email already exists')
        except SQLAlchemyError:
            self.session.rollback()
            current_app.logger.exception("[signup-error]")
            return Result.server_error()
        current_app.logger.info(f"[signup] user={user.user_id}")
        return Result.success(user)

    def authenticate(self, email, password) -> Result:
        """Check credentials and open a session.

        Value is ``(user, token, expires_at)``. Unknown email and wrong
        password both give the same INVALID_CREDENTIALS failure.
        """
        if not all(isinstance(v, str) and v for v in (email, password)):
            return Result.failure(ErrorKind.VALIDATION_ERROR, 'Email and password are required')
        try:
            user = self.session.query(User).filter_by(email=normalize_email(email)).first()
        except SQLAlchemyError:
            self.session.rollback()
            current_app.logger.exception("[signin-error]")
            return Result.server_error()

        if user is None:
            # Spend the same hashing work as a real check
            self.bcrypt.check_password_hash(self._get_dummy_hash(), password)
            current_app.logger.info("[signin-fail] reason=credentials")
            return Result.failure(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)
        if not self.bcrypt.check_password_hash(user.password_hash, password):
            current_app.logger.info("[signin-fail] reason=credentials")
            return Result.failure(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

        user.last_login = utcnow()
        self.session.add(user)
        issued = self.sessions.issue(user.user_id)
        if not issued.ok:
            return issued
        token, expires_at = issued.value
        current_app.logger.info(f"[signin] user={user.user_id}")
        return Result.success((user, token, expires_at))

    def _get_dummy_hash(self):
        if self._dummy_hash is None:
            self._dummy_hash = self.bcrypt.generate_password_hash('not-a-real-password').decode('utf-8')
        return self._dummy_hash
