from flask import Blueprint, jsonify, request

from .helpers import error_response, json_body, leaderboard_ranker, score_ledger, token_required

scores = Blueprint('scores', __name__)


@scores.route('/score/update', methods=['POST'])
@token_required
def update_score(user):
    data = json_body()
    result = score_ledger().submit_score(user.user_id, data.get('gameType'), data.get('score'))
    if not result.ok:
        return error_response(result)
    return jsonify({'success': True, **result.value})


@scores.route('/leaderboard/<string:game_type>', methods=['GET'])
def get_leaderboard(game_type):
    result = leaderboard_ranker().top_scores(game_type, request.args.get('limit', type=int))
    if not result.ok:
        return error_response(result)
    return jsonify({'success': True, 'leaderboard': result.value})


@scores.route('/score/rank/<string:game_type>', methods=['GET'])
@token_required
def get_rank(game_type, user):
    result = leaderboard_ranker().rank_of(user.user_id, game_type)
    if not result.ok:
        return error_response(result)
    standing = result.value
    if standing is None:
        return jsonify({'success': True, 'rank': None, 'score': 0})
    return jsonify({'success': True, 'rank': standing['rank'], 'score': standing['score']})
