"""Create amenity booking schema

Revision ID: 3f9a1c7e2b40
Revises:
Create Date: 2026-03-01

Tables:
- buildings / amenities: the bookable (building, amenity) resources
- recurring_patterns: frequency + weekday sets shared by series
- events: one-time bookings and recurring series
- cancelled_occurrences: one row per cancelled (event, date)
- modified_occurrences: one row per modified (event, date), NULL = inherited
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from amenity_booking.models.base import GUID


# revision identifiers, used by Alembic.
revision: str = '3f9a1c7e2b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column('id', GUID(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table('buildings',
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('buildings', schema=None) as batch_op:
        batch_op.create_index('idx_building_name', ['name'], unique=False)
        batch_op.create_index('idx_building_deleted', ['deleted_at'], unique=False)

    op.create_table('amenities',
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('amenities', schema=None) as batch_op:
        batch_op.create_index('idx_amenity_name', ['name'], unique=False)
        batch_op.create_index('idx_amenity_deleted', ['deleted_at'], unique=False)

    op.create_table('recurring_patterns',
        sa.Column('pattern_name', sa.String(length=100), nullable=False),
        sa.Column('frequency', sa.String(length=50), nullable=False),
        sa.Column('days', sa.JSON().with_variant(postgresql.JSONB(), 'postgresql'), nullable=False),
        sa.Column('ordinal', sa.Integer(), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('recurring_patterns', schema=None) as batch_op:
        batch_op.create_index('idx_pattern_frequency', ['frequency'], unique=False)

    op.create_table('events',
        sa.Column('building_id', GUID(), nullable=False),
        sa.Column('amenity_id', GUID(), nullable=False),
        sa.Column('event_title', sa.String(length=200), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('one_time_date', sa.Date(), nullable=True),
        sa.Column('is_recurring', sa.Boolean(), nullable=False),
        sa.Column('recurring_start_date', sa.Date(), nullable=True),
        sa.Column('recurring_end_date', sa.Date(), nullable=True),
        sa.Column('recurring_pattern_id', GUID(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('cost', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('contact_phone', sa.String(length=50), nullable=True),
        sa.Column('contact_email', sa.String(length=200), nullable=True),
        *_audit_columns(),
        sa.CheckConstraint('end_time > start_time', name='ck_event_time_order'),
        sa.ForeignKeyConstraint(['building_id'], ['buildings.id'], ),
        sa.ForeignKeyConstraint(['amenity_id'], ['amenities.id'], ),
        sa.ForeignKeyConstraint(['recurring_pattern_id'], ['recurring_patterns.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('events', schema=None) as batch_op:
        batch_op.create_index('idx_event_resource', ['building_id', 'amenity_id'], unique=False)
        batch_op.create_index('idx_event_one_time_date', ['one_time_date'], unique=False)
        batch_op.create_index('idx_event_recurring_range', ['recurring_start_date', 'recurring_end_date'], unique=False)
        batch_op.create_index('idx_event_pattern', ['recurring_pattern_id'], unique=False)
        batch_op.create_index('idx_event_deleted', ['deleted_at'], unique=False)

    op.create_table('cancelled_occurrences',
        sa.Column('event_id', GUID(), nullable=False),
        sa.Column('excluded_date', sa.Date(), nullable=False),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id', 'excluded_date', name='uq_cancelled_occurrence')
    )
    with op.batch_alter_table('cancelled_occurrences', schema=None) as batch_op:
        batch_op.create_index('idx_cancelled_date', ['excluded_date'], unique=False)

    op.create_table('modified_occurrences',
        sa.Column('event_id', GUID(), nullable=False),
        sa.Column('modified_date', sa.Date(), nullable=False),
        sa.Column('building_id', GUID(), nullable=True),
        sa.Column('amenity_id', GUID(), nullable=True),
        sa.Column('event_title', sa.String(length=200), nullable=True),
        sa.Column('start_time', sa.Time(), nullable=True),
        sa.Column('end_time', sa.Time(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('cost', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('contact_phone', sa.String(length=50), nullable=True),
        sa.Column('contact_email', sa.String(length=200), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ),
        sa.ForeignKeyConstraint(['building_id'], ['buildings.id'], ),
        sa.ForeignKeyConstraint(['amenity_id'], ['amenities.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id', 'modified_date', name='uq_modified_occurrence')
    )
    with op.batch_alter_table('modified_occurrences', schema=None) as batch_op:
        batch_op.create_index('idx_modified_date', ['modified_date'], unique=False)


def downgrade() -> None:
    with op.batch_alter_table('modified_occurrences', schema=None) as batch_op:
        batch_op.drop_index('idx_modified_date')
    op.drop_table('modified_occurrences')

    with op.batch_alter_table('cancelled_occurrences', schema=None) as batch_op:
        batch_op.drop_index('idx_cancelled_date')
    op.drop_table('cancelled_occurrences')

    with op.batch_alter_table('events', schema=None) as batch_op:
        batch_op.drop_index('idx_event_deleted')
        batch_op.drop_index('idx_event_pattern')
        batch_op.drop_index('idx_event_recurring_range')
        batch_op.drop_index('idx_event_one_time_date')
        batch_op.drop_index('idx_event_resource')
    op.drop_table('events')

    with op.batch_alter_table('recurring_patterns', schema=None) as batch_op:
        batch_op.drop_index('idx_pattern_frequency')
    op.drop_table('recurring_patterns')

    with op.batch_alter_table('amenities', schema=None) as batch_op:
        batch_op.drop_index('idx_amenity_deleted')
        batch_op.drop_index('idx_amenity_name')
    op.drop_table('amenities')

    with op.batch_alter_table('buildings', schema=None) as batch_op:
        batch_op.drop_index('idx_building_deleted')
        batch_op.drop_index('idx_building_name')
    op.drop_table('buildings')
