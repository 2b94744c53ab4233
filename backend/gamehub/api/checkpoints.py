from flask import Blueprint, jsonify, request

from .helpers import checkpoint_store, error_response, json_body, token_required

checkpoints = Blueprint('checkpoints', __name__)


@checkpoints.route('/save', methods=['POST'])
@token_required
def save_checkpoint(user):
    data = json_body()
    result = checkpoint_store().save(
        user.user_id,
        data.get('gameType'),
        data.get('gameState'),
        name=data.get('checkpointName'),
    )
    if not result.ok:
        return error_response(result)
    checkpoint = result.value
    return jsonify({
        'success': True,
        'checkpointId': checkpoint.id,
        'createdAt': checkpoint.to_summary()['createdAt'],
    }), 201


@checkpoints.route('/load/<string:game_type>', methods=['GET'])
@token_required
def load_checkpoint(game_type, user):
    result = checkpoint_store().load(user.user_id, game_type, request.args.get('checkpointId', type=int))
    if not result.ok:
        return error_response(result)
    return jsonify({'success': True, 'checkpoint': result.value.to_dict()})


@checkpoints.route('/list/<string:game_type>', methods=['GET'])
@token_required
def list_checkpoints(game_type, user):
    result = checkpoint_store().list(user.user_id, game_type, request.args.get('limit', type=int))
    if not result.ok:
        return error_response(result)
    return jsonify({'success': True, 'checkpoints': [c.to_summary() for c in result.value]})


@checkpoints.route('/<int:checkpoint_id>', methods=['DELETE'])
@token_required
def delete_checkpoint(checkpoint_id, user):
    result = checkpoint_store().delete(user.user_id, checkpoint_id)
    if not result.ok:
        return error_response(result)
    return jsonify({'success': True})
