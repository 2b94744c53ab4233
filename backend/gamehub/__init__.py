from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_cors import CORS
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
migrate = Migrate()

DEMO_USERS = [
    # name, email, wallet, {game_type: [scores]}
    ('Alice Gamer', 'alice@example.com', '0x1234567890abcdef1234567890abcdef12345678', {'2048': [2048], 'tetris': [3000]}),
    ('Bob Player', 'bob@example.com', '0xabcdef1234567890abcdef1234567890abcdef12', {'2048': [1024], 'tetris': [2500]}),
    ('Charlie Pro', 'charlie@example.com', '0x9876543210fedcba9876543210fedcba98765432', {'2048': [4096], 'tetris': [5000]}),
]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(
        flask_app,
        supports_credentials=True,
        origins=flask_app.config.get('CORS_ORIGINS', []),
        allow_headers=['Content-Type', 'Authorization'],
        methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
    )

    # Import and register blueprints here
    from gamehub.main import main
    flask_app.register_blueprint(main)

    from gamehub.api.auth import auth
    flask_app.register_blueprint(auth, url_prefix='/api/auth')

    from gamehub.api.scores import scores
    flask_app.register_blueprint(scores, url_prefix='/api')

    from gamehub.api.checkpoints import checkpoints
    flask_app.register_blueprint(checkpoints, url_prefix='/api/checkpoint')

    register_error_handlers(flask_app)

    @flask_app.before_request
    def log_request():
        # Path only: bodies and headers carry passwords and tokens
        flask_app.logger.debug(f"{request.method} {request.path}")

    register_cli_commands(flask_app)

    return flask_app


def register_error_handlers(flask_app):
    @flask_app.errorhandler(HTTPException)
    def handle_http_error(exc):
        if exc.code == 404:
            kind = 'not_found'
        elif exc.code == 401:
            kind = 'unauthenticated'
        elif exc.code and exc.code < 500:
            kind = 'validation_error'
        else:
            kind = 'server_error'
        return jsonify({'success': False, 'error': kind, 'message': exc.description}), exc.code

    @flask_app.errorhandler(SQLAlchemyError)
    def handle_storage_error(exc):
        db.session.rollback()
        flask_app.logger.exception("[storage-error] unhandled")
        return jsonify({'success': False, 'error': 'server_error', 'message': 'Server error'}), 500


def register_cli_commands(flask_app):
    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from gamehub.api.helpers import credential_store, score_ledger
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            accounts = credential_store()
            ledger = score_ledger()
            for name, email, wallet, games in DEMO_USERS:
                created = accounts.register(name, email, 'password', wallet)
                if not created.ok:
                    raise click.ClickException(f"Seeding {email} failed: {created.message}")
                for game_type, game_scores in games.items():
                    for score in game_scores:
                        submitted = ledger.submit_score(created.value.user_id, game_type, score)
                        if not submitted.ok:
                            raise click.ClickException(f"Seeding {email}/{game_type} failed: {submitted.message}")

            click.echo('Database has been reset and seeded!')

    @click.command('purge-sessions')
    def purge_sessions_command():
        """Deletes expired sessions."""
        from gamehub.api.helpers import session_authority
        with flask_app.app_context():
            result = session_authority().purge_expired()
            if not result.ok:
                raise click.ClickException(result.message)
            click.echo(f'Purged {result.value} expired session(s).')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(purge_sessions_command)
