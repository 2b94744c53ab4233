from flask import Blueprint, jsonify

from gamehub.models import isoformat_utc
from .helpers import bearer_token, credential_store, error_response, json_body, session_authority, token_required

auth = Blueprint('auth', __name__)


@auth.route('/signup', methods=['POST'])
def signup():
    data = json_body()
    result = credential_store().register(
        data.get('name'),
        data.get('email'),
        data.get('password'),
        data.get('evmAddress'),
    )
    if not result.ok:
        return error_response(result)
    return jsonify({'success': True, 'user': result.value.to_dict()}), 201


@auth.route('/signin', methods=['POST'])
def signin():
    data = json_body()
    result = credential_store().authenticate(data.get('email'), data.get('password'))
    if not result.ok:
        return error_response(result)
    user, token, expires_at = result.value
    return jsonify({
        'success': True,
        'user': user.to_dict(include_games=True),
        'sessionToken': token,
        'expiresAt': isoformat_utc(expires_at),
    })


@auth.route('/verify', methods=['GET'])
@token_required
def verify(user):
    return jsonify({'success': True, 'user': user.to_dict(include_games=True)})


@auth.route('/signout', methods=['POST'])
@token_required
def signout(user):
    result = session_authority().revoke(bearer_token())
    if not result.ok:
        return error_response(result)
    return jsonify({'success': True})
