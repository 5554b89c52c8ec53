"""create user, match, comment and fixture tables

Revision ID: 4c2a9d1e7b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c2a9d1e7b10'
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

    if 'match' not in existing_tables:
        op.create_table(
            'match',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(length=128), nullable=False),
            sa.Column('team1', sa.String(length=64), nullable=False),
            sa.Column('team2', sa.String(length=64), nullable=False),
            sa.Column('score1', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('score2', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('status', sa.String(length=16), nullable=False, server_default='waiting'),
            sa.Column('roster1', sa.Text(), nullable=True),
            sa.Column('roster2', sa.Text(), nullable=True),
            sa.Column('sanctions', sa.Text(), nullable=True),
            sa.Column('notes', sa.Text(), nullable=True),
            sa.Column('elapsed_seconds', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('started_at', sa.Float(), nullable=True),
            sa.Column('minute', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_match_status', 'match', ['status'])
        op.create_index('ix_match_created_at', 'match', ['created_at'])

    if 'comment' not in existing_tables:
        op.create_table(
            'comment',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('text', sa.String(length=300), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_comment_created_at', 'comment', ['created_at'])

    if 'fixture' not in existing_tables:
        op.create_table(
            'fixture',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('image', sa.String(length=255), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_fixture_created_at', 'fixture', ['created_at'])


def downgrade():
    op.drop_index('ix_fixture_created_at', table_name='fixture')
    op.drop_table('fixture')
    op.drop_index('ix_comment_created_at', table_name='comment')
    op.drop_table('comment')
    op.drop_index('ix_match_created_at', table_name='match')
    op.drop_index('ix_match_status', table_name='match')
    op.drop_table('match')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
