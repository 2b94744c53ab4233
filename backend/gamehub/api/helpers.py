from datetime import timedelta
from functools import wraps

from flask import current_app, jsonify, request

from gamehub import bcrypt, db
from gamehub.services import (
    CheckpointStore,
    CredentialStore,
    LeaderboardRanker,
    ScoreLedger,
    SessionAuthority,
)


def session_authority():
    return SessionAuthority(db.session, ttl=timedelta(hours=current_app.config.get('SESSION_TTL_HOURS', 24)))


def credential_store():
    return CredentialStore(
        db.session,
        bcrypt,
        session_authority(),
        current_app.config['SUPPORTED_GAME_TYPES'],
    )


def score_ledger():
    return ScoreLedger(
        db.session,
        current_app.config['SUPPORTED_GAME_TYPES'],
        max_score=current_app.config.get('MAX_SCORE', 1_000_000_000),
    )


def leaderboard_ranker():
    cfg = current_app.config
    return LeaderboardRanker(
        db.session,
        cfg['SUPPORTED_GAME_TYPES'],
        default_limit=cfg.get('LEADERBOARD_DEFAULT_LIMIT', 10),
        max_limit=cfg.get('LEADERBOARD_MAX_LIMIT', 100),
    )


def checkpoint_store():
    cfg = current_app.config
    return CheckpointStore(
        db.session,
        cfg['SUPPORTED_GAME_TYPES'],
        default_limit=cfg.get('CHECKPOINT_LIST_DEFAULT_LIMIT', 10),
        max_limit=cfg.get('LEADERBOARD_MAX_LIMIT', 100),
    )


def bearer_token():
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip() or None
    return None


def json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def error_response(result):
    return jsonify({
        'success': False,
        'error': result.error.value,
        'message': result.message,
    }), result.error.status_code


def token_required(view):
    """Resolve the bearer token to a User and pass it to the view as ``user``."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        result = session_authority().validate(bearer_token())
        if not result.ok:
            return error_response(result)
        return view(*args, user=result.value, **kwargs)

    return wrapper
