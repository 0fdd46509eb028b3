"""Initial inventory schema

Revision ID: 3f1c9a2d7b40
Revises:
Create Date: 2026-10-19 09:12:44.381205

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# Revision identifiers used by Alembic
revision: str = '3f1c9a2d7b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name='created_at', **kw):
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), **kw)


def upgrade() -> None:
    """Upgrade schema."""
    # Accounts and configuration
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        _timestamp(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'system_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', sa.String(), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        _timestamp('updated_at'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_system_settings_id', 'system_settings', ['id'])
    op.create_index('ix_system_settings_key', 'system_settings', ['key'], unique=True)
    op.create_index('ix_system_settings_category', 'system_settings', ['category'])

    op.create_table(
        'company_info',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_name', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('state', sa.String(), nullable=True),
        sa.Column('zip_code', sa.String(), nullable=True),
        sa.Column('country', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('website', sa.String(), nullable=True),
        sa.Column('tax_id', sa.String(), nullable=True),
        sa.Column('currency', sa.String(length=3), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_company_info_id', 'company_info', ['id'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        _timestamp('ts'),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('user_name', sa.String(), nullable=True),
        sa.Column('action', sa.String(length=50), nullable=True),
        sa.Column('entity', sa.String(length=50), nullable=True),
        sa.Column('entity_id', sa.String(length=50), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('ip', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    for column in ('id', 'ts', 'user_id', 'action', 'entity', 'entity_id', 'status'):
        op.create_index(f'ix_audit_logs_{column}', 'audit_logs', [column])

    # Catalog
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('sku', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('unit', sa.String(), nullable=False),
        sa.Column('min_stock', sa.Integer(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        _timestamp(),
        _timestamp('updated_at'),
        sa.CheckConstraint('min_stock >= 0'),
        sa.CheckConstraint('price >= 0'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_products_id', 'products', ['id'])
    op.create_index('ix_products_name', 'products', ['name'])
    op.create_index('ix_products_sku', 'products', ['sku'], unique=True)

    op.create_table(
        'locations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('address', sa.String(), nullable=True),
        _timestamp(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_locations_id', 'locations', ['id'])
    op.create_index('ix_locations_name', 'locations', ['name'], unique=True)

    op.create_table(
        'vendors',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        _timestamp(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_vendors_id', 'vendors', ['id'])
    op.create_index('ix_vendors_name', 'vendors', ['name'])

    # Stock and its ledger
    op.create_table(
        'stocks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('location_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        _timestamp('updated_at'),
        sa.CheckConstraint('quantity >= 0', name='ck_stock_quantity_nonnegative'),
        sa.ForeignKeyConstraint(['location_id'], ['locations.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id', 'location_id', name='uq_stock_product_location'),
    )
    for column in ('id', 'product_id', 'location_id'):
        op.create_index(f'ix_stocks_{column}', 'stocks', [column])

    op.create_table(
        'move_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('move_type', sa.String(length=30), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('location_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('quantity_before', sa.Integer(), nullable=False),
        sa.Column('quantity_after', sa.Integer(), nullable=False),
        sa.Column('quantity_changed', sa.Integer(), nullable=False),
        sa.Column('reference_id', sa.Integer(), nullable=True),
        sa.Column('notes', sa.String(), nullable=True),
        _timestamp(),
        sa.ForeignKeyConstraint(['location_id'], ['locations.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    for column in ('id', 'move_type', 'product_id', 'location_id', 'user_id', 'reference_id', 'created_at'):
        op.create_index(f'ix_move_history_{column}', 'move_history', [column])

    # Documents
    op.create_table(
        'receipt_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('receipt_number', sa.String(), nullable=True),
        sa.Column('vendor_id', sa.Integer(), nullable=False),
        sa.Column('location_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('total_items', sa.Integer(), nullable=False),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('is_validated', sa.Boolean(), nullable=False),
        sa.Column('validated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('validated_by', sa.Integer(), nullable=True),
        _timestamp(),
        sa.ForeignKeyConstraint(['location_id'], ['locations.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['validated_by'], ['users.id']),
        sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_receipt_orders_receipt_number', 'receipt_orders', ['receipt_number'], unique=True)
    for column in ('id', 'vendor_id', 'location_id', 'user_id', 'is_validated', 'created_at'):
        op.create_index(f'ix_receipt_orders_{column}', 'receipt_orders', [column])

    op.create_table(
        'receipt_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('receipt_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity_received', sa.Integer(), nullable=False),
        sa.CheckConstraint('quantity_received > 0'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['receipt_id'], ['receipt_orders.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    for column in ('id', 'receipt_id', 'product_id'):
        op.create_index(f'ix_receipt_items_{column}', 'receipt_items', [column])

    op.create_table(
        'delivery_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('delivery_number', sa.String(), nullable=True),
        sa.Column('location_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('customer_name', sa.String(), nullable=True),
        sa.Column('shipping_address', sa.String(), nullable=True),
        sa.Column('total_items', sa.Integer(), nullable=False),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('is_validated', sa.Boolean(), nullable=False),
        sa.Column('validated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('validated_by', sa.Integer(), nullable=True),
        _timestamp(),
        sa.ForeignKeyConstraint(['location_id'], ['locations.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['validated_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_delivery_orders_delivery_number', 'delivery_orders', ['delivery_number'], unique=True)
    for column in ('id', 'location_id', 'user_id', 'is_validated', 'created_at'):
        op.create_index(f'ix_delivery_orders_{column}', 'delivery_orders', [column])

    op.create_table(
        'delivery_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('delivery_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity_delivered', sa.Integer(), nullable=False),
        sa.CheckConstraint('quantity_delivered > 0'),
        sa.ForeignKeyConstraint(['delivery_id'], ['delivery_orders.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    for column in ('id', 'delivery_id', 'product_id'):
        op.create_index(f'ix_delivery_items_{column}', 'delivery_items', [column])

    op.create_table(
        'internal_transfers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('transfer_number', sa.String(), nullable=True),
        sa.Column('from_location_id', sa.Integer(), nullable=False),
        sa.Column('to_location_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('is_applied', sa.Boolean(), nullable=False),
        sa.Column('applied_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('applied_by', sa.Integer(), nullable=True),
        _timestamp(),
        sa.CheckConstraint('quantity > 0'),
        sa.CheckConstraint('from_location_id <> to_location_id', name='ck_transfer_distinct_locations'),
        sa.ForeignKeyConstraint(['applied_by'], ['users.id']),
        sa.ForeignKeyConstraint(['from_location_id'], ['locations.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['to_location_id'], ['locations.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_internal_transfers_transfer_number', 'internal_transfers', ['transfer_number'], unique=True)
    for column in ('id', 'from_location_id', 'to_location_id', 'product_id', 'user_id', 'is_applied', 'created_at'):
        op.create_index(f'ix_internal_transfers_{column}', 'internal_transfers', [column])

    op.create_table(
        'stock_adjustments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('adjustment_number', sa.String(), nullable=True),
        sa.Column('location_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('quantity_change', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(), nullable=False),
        sa.Column('notes', sa.String(), nullable=True),
        _timestamp(),
        sa.ForeignKeyConstraint(['location_id'], ['locations.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_stock_adjustments_adjustment_number', 'stock_adjustments', ['adjustment_number'], unique=True)
    for column in ('id', 'location_id', 'product_id', 'user_id', 'created_at'):
        op.create_index(f'ix_stock_adjustments_{column}', 'stock_adjustments', [column])

    op.create_table(
        'low_stock_alerts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('location_id', sa.Integer(), nullable=False),
        sa.Column('current_qty', sa.Integer(), nullable=False),
        sa.Column('min_qty', sa.Integer(), nullable=False),
        sa.Column('severity', sa.String(length=10), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        _timestamp(),
        _timestamp('updated_at'),
        sa.ForeignKeyConstraint(['location_id'], ['locations.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id', 'location_id', name='uq_alert_product_location'),
    )
    for column in ('id', 'product_id', 'location_id', 'severity', 'is_read'):
        op.create_index(f'ix_low_stock_alerts_{column}', 'low_stock_alerts', [column])


def downgrade() -> None:
    """Downgrade schema."""
    # Children first
    for table in (
        'low_stock_alerts', 'stock_adjustments', 'internal_transfers', 'delivery_items',
        'delivery_orders', 'receipt_items', 'receipt_orders', 'move_history', 'stocks',
        'vendors', 'locations', 'products', 'audit_logs', 'company_info', 'system_settings', 'users',
    ):
        op.drop_table(table)
