"""Core services: sessions, accounts, score ledger, leaderboard, checkpoints.

Each service is constructed with an explicit database session handle and
returns a ``Result`` instead of raising, so the HTTP layer only translates
outcomes into responses.
"""

from .results import ErrorKind, Result
from .sessions import SessionAuthority
from .accounts import CredentialStore
from .scores import ScoreLedger
from .leaderboard import LeaderboardRanker
from .checkpoints import CheckpointStore

__all__ = [
    'CheckpointStore',
    'CredentialStore',
    'ErrorKind',
    'LeaderboardRanker',
    'Result',
    'ScoreLedger',
    'SessionAuthority',
]
