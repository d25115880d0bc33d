"""create scheduling tables

Revision ID: 5f2a9c1d7e40
Revises:
Create Date: 2026-10-19 09:12:44.218301

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '5f2a9c1d7e40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # 1. users / boats / activities (catalog)
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='HELPER'),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('birth_date', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'boats',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('boat_type', sa.String(length=20), nullable=False, server_default='SAILING'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'activities',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('default_duration_days', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_general', sa.Boolean(), nullable=False, server_default='false'),
        sa.PrimaryKeyConstraint('id')
    )

    # 2. assignments
    op.create_table(
        'assignments',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('date', sa.String(length=32), nullable=False),
        sa.Column('boat_id', sa.String(length=36), nullable=False),
        sa.Column('instructor_id', sa.String(length=36), nullable=True),
        sa.Column('helper_id', sa.String(length=36), nullable=True),
        sa.Column('activity_id', sa.String(length=36), nullable=True),
        sa.Column('duration_days', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='CONFIRMED'),
        sa.Column('instructor_status', sa.String(length=20), nullable=False, server_default='PENDING'),
        sa.Column('helper_status', sa.String(length=20), nullable=False, server_default='PENDING'),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_assignments_date', 'assignments', ['date'])
    op.create_index('ix_assignments_boat_id', 'assignments', ['boat_id'])

    # 3. availabilities (one row per user/day)
    op.create_table(
        'availabilities',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('date', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='UNKNOWN'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'date', name='uq_availabilities_user_date')
    )

    # 4. general events + responses
    op.create_table(
        'general_events',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('date', sa.String(length=32), nullable=False),
        sa.Column('activity_id', sa.String(length=36), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=True),
        sa.Column('end_time', sa.String(length=5), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_general_events_date', 'general_events', ['date'])
    op.create_table(
        'general_event_responses',
        sa.Column('event_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='PENDING'),
        sa.ForeignKeyConstraint(['event_id'], ['general_events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('event_id', 'user_id')
    )

    # 5. maintenance_records
    op.create_table(
        'maintenance_records',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('boat_id', sa.String(length=36), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('date', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='TODO'),
        sa.Column('expiration_date', sa.String(length=32), nullable=True),
        sa.Column('recurrence_interval', sa.Integer(), nullable=True),
        sa.Column('recurrence_unit', sa.String(length=10), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_maintenance_records_boat_id', 'maintenance_records', ['boat_id'])

    # 6. user_notifications
    op.create_table(
        'user_notifications',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('read', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('data_json', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_user_notifications_user_read', 'user_notifications', ['user_id', 'read'])

    # 7. event_log (outbox) + consumer checkpoints
    op.create_table(
        'event_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('actor_user_id', sa.String(length=36), nullable=True),
        sa.Column('event_type', sa.String(length=128), nullable=False),
        sa.Column('payload_json', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('occurred_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('idempotency_key', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('idempotency_key')
    )
    op.create_index('ix_event_log_event_type', 'event_log', ['event_type'])
    op.create_index('ix_event_log_occurred_at', 'event_log', ['occurred_at'])
    op.create_table(
        'projector_checkpoints',
        sa.Column('projector_name', sa.String(length=64), nullable=False),
        sa.Column('last_event_id', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('projector_name')
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('projector_checkpoints')
    op.drop_index('ix_event_log_occurred_at', table_name='event_log')
    op.drop_index('ix_event_log_event_type', table_name='event_log')
    op.drop_table('event_log')
    op.drop_index('ix_user_notifications_user_read', table_name='user_notifications')
    op.drop_table('user_notifications')
    op.drop_index('ix_maintenance_records_boat_id', table_name='maintenance_records')
    op.drop_table('maintenance_records')
    op.drop_table('general_event_responses')
    op.drop_index('ix_general_events_date', table_name='general_events')
    op.drop_table('general_events')
    op.drop_table('availabilities')
    op.drop_index('ix_assignments_boat_id', table_name='assignments')
    op.drop_index('ix_assignments_date', table_name='assignments')
    op.drop_table('assignments')
    op.drop_table('activities')
    op.drop_table('boats')
    op.drop_table('users')
