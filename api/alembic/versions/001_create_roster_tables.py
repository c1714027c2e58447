"""create_roster_tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table('roster_periods'):
        op.create_table('roster_periods',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('owner_id', sa.String(length=255), nullable=False),
            sa.Column('crew_id', sa.Text(), nullable=False),
            sa.Column('period_start', sa.Date(), nullable=False),
            sa.Column('period_end', sa.Date(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
            sa.Column('last_updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('owner_id', 'crew_id', 'period_start', 'period_end', name='uq_roster_periods_window')
        )
        op.create_index(op.f('ix_roster_periods_id'), 'roster_periods', ['id'], unique=False)
        op.create_index(op.f('ix_roster_periods_owner_id'), 'roster_periods', ['owner_id'], unique=False)

    if not inspector.has_table('roster_versions'):
        op.create_table('roster_versions',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('period_id', sa.Integer(), nullable=False),
            sa.Column('version_number', sa.Integer(), nullable=False),
            sa.Column('source_file_name', sa.Text(), nullable=True),
            sa.Column('source_file_size', sa.Integer(), nullable=True),
            sa.Column('json_data', sa.JSON(), nullable=False),
            sa.Column('payload_digest', sa.String(length=64), nullable=False),
            sa.Column('name', sa.Text(), nullable=True),
            sa.Column('flight_time', sa.Text(), nullable=True),
            sa.Column('generated_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('app_version', sa.Text(), nullable=True),
            sa.Column('device_model', sa.Text(), nullable=True),
            sa.Column('os_version', sa.Text(), nullable=True),
            sa.Column('parsed_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
            sa.ForeignKeyConstraint(['period_id'], ['roster_periods.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('period_id', 'version_number', name='uq_roster_versions_number')
        )
        op.create_index(op.f('ix_roster_versions_id'), 'roster_versions', ['id'], unique=False)
        op.create_index(op.f('ix_roster_versions_period_id'), 'roster_versions', ['period_id'], unique=False)

    if not inspector.has_table('roster_days'):
        op.create_table('roster_days',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('period_id', sa.Integer(), nullable=False),
            sa.Column('source_version_id', sa.Integer(), nullable=False),
            sa.Column('date', sa.Date(), nullable=False),
            sa.Column('day_number', sa.Integer(), nullable=True),
            sa.Column('weekday', sa.Text(), nullable=True),
            sa.Column('iso_date', sa.Text(), nullable=True),
            sa.Column('raw_text', sa.Text(), nullable=False),
            sa.Column('parsed_data', sa.JSON(), nullable=False),
            sa.Column('content_digest', sa.String(length=64), nullable=False),
            sa.Column('is_active_for_date', sa.Boolean(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
            sa.ForeignKeyConstraint(['period_id'], ['roster_periods.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['source_version_id'], ['roster_versions.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('period_id', 'date', 'source_version_id', name='uq_roster_days_version_date')
        )
        op.create_index(op.f('ix_roster_days_id'), 'roster_days', ['id'], unique=False)
        op.create_index(op.f('ix_roster_days_source_version_id'), 'roster_days', ['source_version_id'], unique=False)
        op.create_index('ix_roster_days_period_date', 'roster_days', ['period_id', 'date'], unique=False)
        # Un solo dia activo por (periodo, fecha)
        op.create_index(
            'uq_roster_days_active_date',
            'roster_days',
            ['period_id', 'date'],
            unique=True,
            postgresql_where=sa.text('is_active_for_date = true')
        )

    if not inspector.has_table('duty_assignments'):
        op.create_table('duty_assignments',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('roster_day_id', sa.Integer(), nullable=False),
            sa.Column('sequence_order', sa.Integer(), nullable=False),
            sa.Column('duty_kind', sa.Text(), nullable=False),
            sa.Column('duty_type', sa.Text(), nullable=True),
            sa.Column('rule_id', sa.Text(), nullable=False),
            sa.Column('check_in', sa.Text(), nullable=True),
            sa.Column('check_in_station', sa.Text(), nullable=True),
            sa.Column('check_in_date', sa.Date(), nullable=True),
            sa.Column('check_out', sa.Text(), nullable=True),
            sa.Column('check_out_station', sa.Text(), nullable=True),
            sa.Column('check_out_date', sa.Date(), nullable=True),
            sa.Column('is_instructor_duty', sa.Boolean(), nullable=True),
            sa.Column('learning_title', sa.Text(), nullable=True),
            sa.Column('notes', sa.JSON(), nullable=False),
            sa.ForeignKeyConstraint(['roster_day_id'], ['roster_days.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_duty_assignments_id'), 'duty_assignments', ['id'], unique=False)
        op.create_index(op.f('ix_duty_assignments_roster_day_id'), 'duty_assignments', ['roster_day_id'], unique=False)

    if not inspector.has_table('sectors'):
        op.create_table('sectors',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('duty_assignment_id', sa.Integer(), nullable=False),
            sa.Column('flight_number', sa.Text(), nullable=False),
            sa.Column('dep_code', sa.String(length=3), nullable=False),
            sa.Column('arr_code', sa.String(length=3), nullable=False),
            sa.Column('dep_time', sa.Text(), nullable=True),
            sa.Column('arr_time', sa.Text(), nullable=True),
            sa.Column('aircraft', sa.Text(), nullable=True),
            sa.Column('dep_time_utc', sa.DateTime(timezone=True), nullable=True),
            sa.Column('arr_time_utc', sa.DateTime(timezone=True), nullable=True),
            sa.Column('training_kind', sa.Text(), nullable=False),
            sa.Column('cockpit_crew', sa.JSON(), nullable=False),
            sa.Column('cabin_crew', sa.JSON(), nullable=False),
            sa.Column('dep_time_is_local', sa.Boolean(), nullable=False),
            sa.Column('arr_time_is_local', sa.Boolean(), nullable=False),
            sa.ForeignKeyConstraint(['duty_assignment_id'], ['duty_assignments.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_sectors_id'), 'sectors', ['id'], unique=False)
        op.create_index(op.f('ix_sectors_duty_assignment_id'), 'sectors', ['duty_assignment_id'], unique=False)

    if not inspector.has_table('roster_sync_records'):
        op.create_table('roster_sync_records',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('owner_id', sa.String(length=255), nullable=False),
            sa.Column('period_id', sa.Integer(), nullable=True),
            sa.Column('direction', sa.String(length=20), nullable=False),
            sa.Column('days_synced', sa.Integer(), nullable=False),
            sa.Column('sectors_synced', sa.Integer(), nullable=False),
            sa.Column('status', sa.String(length=20), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_roster_sync_records_id'), 'roster_sync_records', ['id'], unique=False)
        op.create_index(op.f('ix_roster_sync_records_owner_id'), 'roster_sync_records', ['owner_id'], unique=False)
        op.create_index(op.f('ix_roster_sync_records_period_id'), 'roster_sync_records', ['period_id'], unique=False)
        op.create_index(op.f('ix_roster_sync_records_created_at'), 'roster_sync_records', ['created_at'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    for table in ('roster_sync_records', 'sectors', 'duty_assignments', 'roster_days', 'roster_versions', 'roster_periods'):
        if inspector.has_table(table):
            op.drop_table(table)
