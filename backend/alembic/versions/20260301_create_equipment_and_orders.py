"""create_equipment_and_orders

Revision ID: 001_rental_orders
Revises:
Create Date: 2026-03-01

Creates the equipment mirror table and the rental orders table.
Statuses are stored as short strings so new states do not need a
native enum migration.

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_rental_orders'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'equipment',
        sa.Column('equipment_id', sa.Uuid(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('daily_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False,
                  server_default='available'),
        sa.Column('created_at', sa.DateTime(), nullable=False,
                  server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False,
                  server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('equipment_id'),
        sa.CheckConstraint('daily_price >= 0', name='chk_equipment_daily_price_positive'),
    )
    op.create_index('idx_equipment_owner', 'equipment', ['owner_id'])

    op.create_table(
        'orders',
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('equipment_id', sa.Uuid(), nullable=False),
        sa.Column('renter_id', sa.Uuid(), nullable=False),
        sa.Column('provider_id', sa.Uuid(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False,
                  server_default='pending'),
        sa.Column('created_at', sa.DateTime(), nullable=False,
                  server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False,
                  server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('order_id'),
        sa.ForeignKeyConstraint(['equipment_id'], ['equipment.equipment_id']),
        sa.CheckConstraint('end_date > start_date', name='chk_order_date_range'),
        sa.CheckConstraint('total_amount >= 0', name='chk_order_total_amount_positive'),
    )
    op.create_index('idx_orders_equipment_status', 'orders', ['equipment_id', 'status'])
    op.create_index('idx_orders_renter_created', 'orders', ['renter_id', 'created_at'])
    op.create_index('idx_orders_provider_created', 'orders', ['provider_id', 'created_at'])
    # Sweeper scan: in_progress orders by end_date
    op.create_index('idx_orders_status_end_date', 'orders', ['status', 'end_date'])


def downgrade() -> None:
    op.drop_index('idx_orders_status_end_date', table_name='orders')
    op.drop_index('idx_orders_provider_created', table_name='orders')
    op.drop_index('idx_orders_renter_created', table_name='orders')
    op.drop_index('idx_orders_equipment_status', table_name='orders')
    op.drop_table('orders')
    op.drop_index('idx_equipment_owner', table_name='equipment')
    op.drop_table('equipment')
