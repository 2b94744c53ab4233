"""create users, sessions, game stats, leaderboard and checkpoint tables

Revision ID: 1a7c3e5b9d20
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '1a7c3e5b9d20'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa.inspect(bind).get_table_names())

    if 'users' not in existing_tables:
        op.create_table(
            'users',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.String(length=50), nullable=False),
            sa.Column('name', sa.String(length=100), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('password_hash', sa.String(length=255), nullable=False),
            sa.Column('evm_address', sa.String(length=42), nullable=False),
            sa.Column('total_points', sa.BigInteger(), nullable=False, server_default='0'),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
            sa.Column('last_login', sa.DateTime(), nullable=True),
        )
        op.create_index('ix_users_user_id', 'users', ['user_id'], unique=True)
        op.create_index('ix_users_email', 'users', ['email'], unique=True)

    if 'user_sessions' not in existing_tables:
        op.create_table(
            'user_sessions',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('session_token', sa.String(length=255), nullable=False),
            sa.Column('user_id', sa.String(length=50), sa.ForeignKey('users.user_id', ondelete='CASCADE'), nullable=False),
            sa.Column('expires_at', sa.DateTime(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        )
        op.create_index('ix_user_sessions_session_token', 'user_sessions', ['session_token'], unique=True)

    if 'game_stats' not in existing_tables:
        op.create_table(
            'game_stats',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.String(length=50), sa.ForeignKey('users.user_id', ondelete='CASCADE'), nullable=False),
            sa.Column('game_type', sa.String(length=20), nullable=False),
            sa.Column('best_score', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('games_played', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('total_time_played', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
            sa.UniqueConstraint('user_id', 'game_type', name='uq_game_stats_user_game'),
        )

    if 'leaderboard' not in existing_tables:
        op.create_table(
            'leaderboard',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.String(length=50), sa.ForeignKey('users.user_id', ondelete='CASCADE'), nullable=False),
            sa.Column('game_type', sa.String(length=20), nullable=False),
            sa.Column('score', sa.Integer(), nullable=False),
            sa.Column('achieved_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        )
        op.create_index('idx_game_score', 'leaderboard', ['game_type', sa.text('score DESC')])

    if 'game_checkpoints' not in existing_tables:
        op.create_table(
            'game_checkpoints',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.String(length=50), sa.ForeignKey('users.user_id', ondelete='CASCADE'), nullable=False),
            sa.Column('game_type', sa.String(length=20), nullable=False),
            sa.Column('checkpoint_name', sa.String(length=100), nullable=True),
            sa.Column('game_state', sa.JSON(), nullable=False),
            sa.Column('score', sa.Integer(), nullable=True),
            sa.Column('level', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        )
        op.create_index('idx_user_game', 'game_checkpoints', ['user_id', 'game_type'])


def downgrade():
    op.drop_index('idx_user_game', table_name='game_checkpoints')
    op.drop_table('game_checkpoints')
    op.drop_index('idx_game_score', table_name='leaderboard')
    op.drop_table('leaderboard')
    op.drop_table('game_stats')
    op.drop_index('ix_user_sessions_session_token', table_name='user_sessions')
    op.drop_table('user_sessions')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_user_id', table_name='users')
    op.drop_table('users')
