"""Add caregivers and baby_events tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
import sqlmodel
from alembic import op

from app.core.config import settings

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

OPEN_SLEEP = sa.text("type = 'sleep' AND sleep_start_time IS NOT NULL AND sleep_end_time IS NULL")


def upgrade() -> None:
    """Create caregivers and baby_events tables and seed the configured caregivers."""
    caregivers = op.create_table('caregivers', sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.PrimaryKeyConstraint('id'))
    op.create_index(op.f('ix_caregivers_name'), 'caregivers', ['name'], unique=True)
    # Sleep transitions lock these rows; seed them so they exist before the first request
    op.bulk_insert(caregivers, [{'name': name} for name in settings.ALLOWED_USERS])

    op.create_table('baby_events', sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('type', sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column('user_name', sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=True),
        sa.Column('subtype', sqlmodel.sql.sqltypes.AutoString(length=20), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('sleep_start_time', sa.DateTime(), nullable=True),
        sa.Column('sleep_end_time', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.ForeignKeyConstraint(['user_name'], ['caregivers.name']),
        sa.PrimaryKeyConstraint('id'))
    op.create_index(op.f('ix_baby_events_type'), 'baby_events', ['type'], unique=False)
    op.create_index(op.f('ix_baby_events_timestamp'), 'baby_events', ['timestamp'], unique=False)
    op.create_index('ix_baby_events_user_type', 'baby_events', ['user_name', 'type'], unique=False)
    op.create_index('uq_open_sleep_per_user', 'baby_events', ['user_name'], unique=True,
                    postgresql_where=OPEN_SLEEP, sqlite_where=OPEN_SLEEP)


def downgrade() -> None:
    """Drop baby_events and caregivers tables."""
    op.drop_index('uq_open_sleep_per_user', table_name='baby_events')
    op.drop_index('ix_baby_events_user_type', table_name='baby_events')
    op.drop_index(op.f('ix_baby_events_timestamp'), table_name='baby_events')
    op.drop_index(op.f('ix_baby_events_type'), table_name='baby_events')
    op.drop_table('baby_events')
    op.drop_index(op.f('ix_caregivers_name'), table_name='caregivers')
    op.drop_table('caregivers')
