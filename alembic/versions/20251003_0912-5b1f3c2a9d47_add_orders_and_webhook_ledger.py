"""add_orders_and_webhook_ledger

Revision ID: 5b1f3c2a9d47
Revises:
Create Date: 2025-10-03 09:12:41.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5b1f3c2a9d47'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'orders',
        sa.Column('id', sa.String(length=64), nullable=False, comment='Order ID'),
        sa.Column('user_id', sa.String(length=64), nullable=True, comment='Owner user ID'),
        sa.Column('total_amount', sa.Numeric(precision=15, scale=2), nullable=False, server_default='0', comment='Order total (major units)'),
        sa.Column('payment_method', sa.String(length=32), nullable=True, comment='CARD / CASH_ON_DELIVERY'),
        sa.Column('payment_status', sa.String(length=20), nullable=False, server_default='PENDING', comment='PENDING/COMPLETED/FAILED/REFUNDED'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='PENDING', comment='PENDING/PROCESSING/SHIPPED/DELIVERED/CANCELLED'),
        sa.Column('gateway_intent_id', sa.String(length=255), nullable=True, comment='Gateway payment intent ID'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='Created at'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='Updated at'),
        sa.PrimaryKeyConstraint('id'),
        comment='Order ledger (payment dimension owned by the payment engine)'
    )
    op.create_index('ix_orders_user_id', 'orders', ['user_id'], unique=False)
    op.create_index('ix_orders_payment_status', 'orders', ['payment_status'], unique=False)
    op.create_index('ix_orders_gateway_intent_id', 'orders', ['gateway_intent_id'], unique=False)

    op.create_table(
        'payment_webhook_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('gateway_intent_id', sa.String(length=255), nullable=False, comment='Gateway payment intent ID'),
        sa.Column('event_type', sa.String(length=50), nullable=False, comment='payment_succeeded/payment_failed/charge_refunded'),
        sa.Column('event_id', sa.String(length=255), nullable=True, comment='Gateway event ID, if supplied'),
        sa.Column('order_id', sa.String(length=64), nullable=False, comment='Reconciled order ID'),
        sa.Column('outcome', sa.String(length=20), nullable=False, comment='Reconciliation outcome'),
        sa.Column('processed_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='Processed at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('gateway_intent_id', 'event_type', name='uq_payment_webhook_events_intent_type'),
        comment='Idempotency ledger for webhook reconciliation'
    )
    op.create_index('ix_payment_webhook_events_order_id', 'payment_webhook_events', ['order_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_payment_webhook_events_order_id', table_name='payment_webhook_events')
    op.drop_table('payment_webhook_events')
    op.drop_index('ix_orders_gateway_intent_id', table_name='orders')
    op.drop_index('ix_orders_payment_status', table_name='orders')
    op.drop_index('ix_orders_user_id', table_name='orders')
    op.drop_table('orders')
