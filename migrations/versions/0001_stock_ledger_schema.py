"""0001 stock ledger schema

Revision ID: 0001_stock_ledger_schema
Revises:
Create Date: 2026-10-17 10:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_stock_ledger_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'product',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('sku', sa.String(64), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('sku'),
    )
    op.create_index('ix_product_name', 'product', ['name'])

    op.create_table(
        'stock_location',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(128), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'stock_level',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id'), nullable=False),
        sa.Column('location_id', sa.Integer(), sa.ForeignKey('stock_location.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('product_id', 'location_id', name='uq_stock_level_product_location'),
        sa.CheckConstraint('quantity >= 0', name='ck_stock_level_quantity_non_negative'),
    )
    op.create_index('ix_stock_level_product_id', 'stock_level', ['product_id'])
    op.create_index('ix_stock_level_location_id', 'stock_level', ['location_id'])

    op.create_table(
        'stock_history',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id'), nullable=False),
        sa.Column('location_id', sa.Integer(), sa.ForeignKey('stock_location.id'), nullable=False),
        sa.Column('quantity_before', sa.Integer(), nullable=False),
        sa.Column('quantity_after', sa.Integer(), nullable=False),
        sa.Column('quantity_change', sa.Integer(), nullable=False),
        sa.Column('operation_type', sa.String(32), nullable=False),
        sa.Column('operation_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_stock_history_product_id', 'stock_history', ['product_id'])
    op.create_index('ix_stock_history_location_id', 'stock_history', ['location_id'])
    op.create_index('ix_stock_history_operation_type', 'stock_history', ['operation_type'])
    op.create_index('ix_stock_history_created_at', 'stock_history', ['created_at'])
    op.create_index('ix_stock_history_product_created', 'stock_history', ['product_id', 'created_at'])

    op.create_table(
        'stock_movement',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('movement_type', sa.String(16), nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('location_id', sa.Integer(), sa.ForeignKey('stock_location.id'), nullable=False),
        sa.Column('reference', sa.String(128), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_stock_movement_movement_type', 'stock_movement', ['movement_type'])
    op.create_index('ix_stock_movement_status', 'stock_movement', ['status'])

    op.create_table(
        'stock_movement_line',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('movement_id', sa.Integer(), sa.ForeignKey('stock_movement.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_stock_movement_line_quantity_positive'),
    )
    op.create_index('ix_stock_movement_line_movement_id', 'stock_movement_line', ['movement_id'])
    op.create_index('ix_stock_movement_line_product_id', 'stock_movement_line', ['product_id'])

    op.create_table(
        'sale',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('location_id', sa.Integer(), sa.ForeignKey('stock_location.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_sale_status', 'sale', ['status'])

    op.create_table(
        'sale_item',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sale_id', sa.Integer(), sa.ForeignKey('sale.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_sale_item_quantity_positive'),
    )
    op.create_index('ix_sale_item_sale_id', 'sale_item', ['sale_id'])
    op.create_index('ix_sale_item_product_id', 'sale_item', ['product_id'])


def downgrade():
    op.drop_table('sale_item')
    op.drop_table('sale')
    op.drop_table('stock_movement_line')
    op.drop_table('stock_movement')
    op.drop_table('stock_history')
    op.drop_table('stock_level')
    op.drop_table('stock_location')
    op.drop_table('product')
