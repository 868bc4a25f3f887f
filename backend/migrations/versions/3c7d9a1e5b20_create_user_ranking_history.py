"""create user, ranking and history_entry tables

Revision ID: 3c7d9a1e5b20
Revises:
Create Date: 2025-09-14 10:20:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c7d9a1e5b20'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'user' not in existing_tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('password_hash', sa.String(length=256), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_user_username', 'user', ['username'], unique=True)

    if 'ranking' not in existing_tables:
        op.create_table(
            'ranking',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('player_name', sa.String(length=64), nullable=False),
            sa.Column('score', sa.Integer(), nullable=False),
            sa.Column('moves', sa.Integer(), nullable=False),
            sa.Column('time', sa.String(length=16), nullable=False),
            sa.Column('elapsed_seconds', sa.Integer(), nullable=False),
            sa.Column('difficulty', sa.String(length=16), nullable=False),
            sa.Column('efficiency', sa.Integer(), nullable=False),
            sa.Column('date', sa.DateTime(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint(['user_id'], ['user.id']),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_ranking_player_name', 'ranking', ['player_name'])
        op.create_index('ix_ranking_score', 'ranking', ['score'])

    if 'history_entry' not in existing_tables:
        op.create_table(
            'history_entry',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('player_name', sa.String(length=64), nullable=False),
            sa.Column('score', sa.Integer(), nullable=False),
            sa.Column('moves', sa.Integer(), nullable=False),
            sa.Column('time', sa.String(length=16), nullable=False),
            sa.Column('difficulty', sa.String(length=16), nullable=False),
            sa.Column('efficiency', sa.Integer(), nullable=False),
            sa.Column('date', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_history_entry_player_name', 'history_entry', ['player_name'])


def downgrade():
    op.drop_index('ix_history_entry_player_name', table_name='history_entry')
    op.drop_table('history_entry')
    op.drop_index('ix_ranking_score', table_name='ranking')
    op.drop_index('ix_ranking_player_name', table_name='ranking')
    op.drop_table('ranking')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
