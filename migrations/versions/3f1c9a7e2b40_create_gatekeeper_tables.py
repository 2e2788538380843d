"""create users, progressions and realm_solves tables

Revision ID: 3f1c9a7e2b40
Revises:
Create Date: 2026-10-19 09:12:44.318207

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c9a7e2b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Skip tables that create_all() already built on a fresh database
    from sqlalchemy import inspect
    conn = op.get_bind()
    existing_tables = inspect(conn).get_table_names()

    if 'users' not in existing_tables:
        op.create_table(
            'users',
            sa.Column('id', sa.String(length=64), nullable=False),
            sa.Column('username', sa.String(length=100), nullable=False),
            sa.Column('password_hash', sa.String(length=255), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('username')
        )
        op.create_index('ix_users_username', 'users', ['username'], unique=True)

    if 'progressions' not in existing_tables:
        op.create_table(
            'progressions',
            sa.Column('user_id', sa.String(length=128), nullable=False),
            sa.Column('current_order', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.Column('completed_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('user_id')
        )

    if 'realm_solves' not in existing_tables:
        op.create_table(
            'realm_solves',
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('user_id', sa.String(length=128), nullable=False),
            sa.Column('realm', sa.String(length=50), nullable=False),
            sa.Column('solved_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['progressions.user_id']),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'realm', name='uq_realm_solves_user_realm')
        )
        op.create_index('ix_realm_solves_user_id', 'realm_solves', ['user_id'])


def downgrade():
    op.drop_index('ix_realm_solves_user_id', 'realm_solves')
    op.drop_table('realm_solves')
    op.drop_table('progressions')
    op.drop_index('ix_users_username', 'users')
    op.drop_table('users')
