from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    VALIDATION_ERROR = 'validation_error'
    UNAUTHENTICATED = 'unauthenticated'
    DUPLICATE_EMAIL = 'duplicate_email'
    INVALID_CREDENTIALS = 'invalid_credentials'
    NOT_FOUND = 'not_found'
    SERVER_ERROR = 'server_error'

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.VALIDATION_ERROR: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.DUPLICATE_EMAIL: 409,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.SERVER_ERROR: 500,
}

SERVER_ERROR_MESSAGE = 'Server error'


@dataclass(frozen=True)
class Result:
    """Outcome of a service call: a value on success, an error kind otherwise."""

    ok: bool
    value: Any = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, value=None) -> 'Result':
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> 'Result':
        return cls(ok=False, error=kind, message=message)

    @classmethod
    def server_error(cls) -> 'Result':
        return cls.failure(ErrorKind.SERVER_ERROR, SERVER_ERROR_MESSAGE)
