from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from gamehub import db

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'success': True, 'message': 'Welcome to the GameHub server!'})


@main.route('/api/health')
def health():
    """Liveness plus a storage round-trip."""
    try:
        db.session.execute(text('SELECT 1'))
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("[health] database unreachable")
        return jsonify({'success': False, 'error': 'server_error', 'message': 'Database unavailable'}), 503
    return jsonify({'success': True, 'database': 'ok'})
