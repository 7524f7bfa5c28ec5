"""create users and missions

Revision ID: 3c1f0a9d2b71
Revises:
Create Date: 2025-11-26 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f0a9d2b71'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=128), nullable=False),
        sa.Column('push_tokens', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table(
        'missions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('mission_id', sa.String(length=128), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('scheduled_date', sa.String(length=32), nullable=False, server_default=''),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='unopened'),
        sa.Column('comment', sa.Text(), nullable=False, server_default=''),
        sa.Column('assigned_to_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('opened_by_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('opened_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('mission_id'),
    )
    op.create_index('ix_missions_status', 'missions', ['status'])
    op.create_index('ix_missions_assigned_created', 'missions', ['assigned_to_id', 'created_at'])


def downgrade() -> None:
    op.drop_index('ix_missions_assigned_created', table_name='missions')
    op.drop_index('ix_missions_status', table_name='missions')
    op.drop_table('missions')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
