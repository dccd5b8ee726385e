"""Initial reservation schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    # Create tour_configs table
    op.create_table('tour_configs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tour_type', sa.String(length=20), nullable=False),
        sa.Column('times', sa.JSON(), nullable=False),
        sa.Column('child_free_times', sa.JSON(), nullable=False),
        sa.Column('adult_price', sa.Integer(), nullable=False),
        sa.Column('child_price', sa.Integer(), nullable=False),
        sa.Column('valid_from', sa.Date(), nullable=False),
        sa.Column('valid_until', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('adult_price >= 0', name='ck_tour_config_adult_price_non_negative'),
        sa.CheckConstraint('child_price >= 0', name='ck_tour_config_child_price_non_negative'),
        sa.CheckConstraint(
            'valid_until IS NULL OR valid_until >= valid_from',
            name='ck_tour_config_validity_ordered'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tour_configs_tour_type'), 'tour_configs', ['tour_type'], unique=False)
    op.create_index(op.f('ix_tour_configs_valid_from'), 'tour_configs', ['valid_from'], unique=False)

    # Create reservation_holds table
    op.create_table('reservation_holds',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('session_id', sa.String(length=128), nullable=False),
        sa.Column('tour_date', sa.Date(), nullable=False),
        sa.Column('tour_time', sa.Time(), nullable=False),
        sa.Column('tour_type', sa.String(length=20), nullable=False),
        sa.Column('seats', sa.Integer(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('seats > 0', name='ck_reservation_hold_seats_positive'),
        sa.CheckConstraint('length(session_id) > 0', name='ck_reservation_hold_session_id_not_empty'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('session_id', 'tour_date', 'tour_time', name='uq_reservation_hold_session_slot')
    )
    op.create_index(op.f('ix_reservation_holds_expires_at'), 'reservation_holds', ['expires_at'], unique=False)
    op.create_index(
        'ix_reservation_holds_slot', 'reservation_holds', ['tour_date', 'tour_time', 'tour_type'], unique=False
    )

    # Create bookings table
    op.create_table('bookings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('booking_code', sa.String(length=16), nullable=False),
        sa.Column('tour_type', sa.String(length=20), nullable=False),
        sa.Column('tour_date', sa.Date(), nullable=False),
        sa.Column('tour_time', sa.Time(), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=True),
        sa.Column('customer_phone', sa.String(length=64), nullable=True),
        sa.Column('adults', sa.Integer(), nullable=False),
        sa.Column('children', sa.Integer(), nullable=False),
        sa.Column('infants', sa.Integer(), nullable=False),
        sa.Column('wheelchair_adults', sa.Integer(), nullable=False),
        sa.Column('wheelchair_children', sa.Integer(), nullable=False),
        sa.Column('total_amount', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('payment_status', sa.String(length=32), nullable=False),
        sa.Column('payment_method', sa.String(length=32), nullable=True),
        sa.Column('invoice_requested', sa.Boolean(), nullable=False),
        sa.Column('invoice', sa.JSON(), nullable=True),
        sa.Column('sold_on_site', sa.Boolean(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('adults >= 0', name='ck_booking_adults_non_negative'),
        sa.CheckConstraint('children >= 0', name='ck_booking_children_non_negative'),
        sa.CheckConstraint('infants >= 0', name='ck_booking_infants_non_negative'),
        sa.CheckConstraint(
            'wheelchair_adults >= 0 AND wheelchair_adults <= adults',
            name='ck_booking_wheelchair_adults_range'
        ),
        sa.CheckConstraint(
            'wheelchair_children >= 0 AND wheelchair_children <= children',
            name='ck_booking_wheelchair_children_range'
        ),
        sa.CheckConstraint('total_amount >= 0', name='ck_booking_total_amount_non_negative'),
        sa.CheckConstraint('length(booking_code) > 0', name='ck_booking_code_not_empty'),
        sa.CheckConstraint("status IN ('confirmed', 'cancelled')", name='ck_booking_status_valid'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_bookings_booking_code'), 'bookings', ['booking_code'], unique=True)
    op.create_index(op.f('ix_bookings_customer_email'), 'bookings', ['customer_email'], unique=False)
    op.create_index(op.f('ix_bookings_status'), 'bookings', ['status'], unique=False)
    op.create_index(op.f('ix_bookings_tour_date'), 'bookings', ['tour_date'], unique=False)
    op.create_index('ix_bookings_slot', 'bookings', ['tour_date', 'tour_time', 'tour_type'], unique=False)


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index('ix_bookings_slot', table_name='bookings')
    op.drop_index(op.f('ix_bookings_tour_date'), table_name='bookings')
    op.drop_index(op.f('ix_bookings_status'), table_name='bookings')
    op.drop_index(op.f('ix_bookings_customer_email'), table_name='bookings')
    op.drop_index(op.f('ix_bookings_booking_code'), table_name='bookings')
    op.drop_table('bookings')

    op.drop_index('ix_reservation_holds_slot', table_name='reservation_holds')
    op.drop_index(op.f('ix_reservation_holds_expires_at'), table_name='reservation_holds')
    op.drop_table('reservation_holds')

    op.drop_index(op.f('ix_tour_configs_valid_from'), table_name='tour_configs')
    op.drop_index(op.f('ix_tour_configs_tour_type'), table_name='tour_configs')
    op.drop_table('tour_configs')
