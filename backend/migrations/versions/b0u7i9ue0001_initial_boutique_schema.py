"""initial boutique schema

Revision ID: b0u7i9ue0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete boutique schema:
- products: catalog with boutique and online prices
- product_inventory: one counter per (product, store_type, color, size)
- sales / sale_items: sales with frozen fees and totals
- returns / return_items: refunds and exchanges against a sale
- expenses / purchases: bookkeeping records
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b0u7i9ue0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # products
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('model_number', sa.String(length=64), nullable=False),
        sa.Column('company_name', sa.String(length=255), nullable=False),
        sa.Column('product_type', sa.String(length=64), nullable=False),
        sa.Column('store_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('online_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('image_url', sa.String(length=1024), nullable=True),
        sa.Column('specifications', sa.Text(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('model_number', name='uq_products_model_number'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_company_type', 'products', ['company_name', 'product_type'])

    # ============================================================================
    # product_inventory: the variant ledger
    # ============================================================================
    op.create_table(
        'product_inventory',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('store_type', sa.String(length=16), nullable=False),
        sa.Column('color', sa.String(length=64), nullable=False),
        sa.Column('size', sa.String(length=32), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id', 'store_type', 'color', 'size',
                            name='uq_inventory_product_store_variant'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_product_inventory_product_id', 'product_inventory', ['product_id'])
    op.create_index('ix_inventory_product_store', 'product_inventory', ['product_id', 'store_type'])

    # ============================================================================
    # sales + sale_items
    # ============================================================================
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_number', sa.String(length=64), nullable=False),
        sa.Column('channel', sa.String(length=16), nullable=False),
        sa.Column('payment_method', sa.String(length=32), nullable=False),
        sa.Column('store_type', sa.String(length=16), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_phone', sa.String(length=64), nullable=False),
        sa.Column('employee', sa.String(length=120), nullable=True),
        sa.Column('tracking_number', sa.String(length=128), nullable=True),
        sa.Column('order_status', sa.String(length=32), nullable=True),
        sa.Column('subtotal', sa.Numeric(10, 2), nullable=False),
        sa.Column('fees', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('total', sa.Numeric(10, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invoice_number', name='uq_sales_invoice_number'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sales_created_at', 'sales', ['created_at'])
    op.create_index('ix_sales_channel_created', 'sales', ['channel', 'created_at'])
    op.create_index('ix_sales_store_type_created', 'sales', ['store_type', 'created_at'])

    op.create_table(
        'sale_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('color', sa.String(length=64), nullable=False),
        sa.Column('size', sa.String(length=32), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=False),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sale_items_sale_id', 'sale_items', ['sale_id'])
    op.create_index('ix_sale_items_product_id', 'sale_items', ['product_id'])

    # ============================================================================
    # returns + return_items
    # ============================================================================
    op.create_table(
        'returns',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('original_sale_id', sa.Integer(), nullable=False),
        sa.Column('return_type', sa.String(length=16), nullable=False),
        sa.Column('exchange_type', sa.String(length=32), nullable=True),
        sa.Column('new_product_id', sa.Integer(), nullable=True),
        sa.Column('new_color', sa.String(length=64), nullable=True),
        sa.Column('new_size', sa.String(length=32), nullable=True),
        sa.Column('refund_amount', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['original_sale_id'], ['sales.id']),
        sa.ForeignKeyConstraint(['new_product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_returns_original_sale_id', 'returns', ['original_sale_id'])
    op.create_index('ix_returns_return_type', 'returns', ['return_type'])
    op.create_index('ix_returns_created_at', 'returns', ['created_at'])
    op.create_index('ix_returns_sale_created', 'returns', ['original_sale_id', 'created_at'])

    op.create_table(
        'return_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('return_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('color', sa.String(length=64), nullable=False),
        sa.Column('size', sa.String(length=32), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['return_id'], ['returns.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_return_items_return_id', 'return_items', ['return_id'])
    op.create_index('ix_return_items_product_id', 'return_items', ['product_id'])

    # ============================================================================
    # bookkeeping
    # ============================================================================
    op.create_table(
        'expenses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_expenses_date', 'expenses', ['date'])

    op.create_table(
        'purchases',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('supplier', sa.String(length=255), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_purchases_date', 'purchases', ['date'])


def downgrade():
    op.drop_index('ix_purchases_date', table_name='purchases')
    op.drop_table('purchases')
    op.drop_index('ix_expenses_date', table_name='expenses')
    op.drop_table('expenses')

    op.drop_index('ix_return_items_product_id', table_name='return_items')
    op.drop_index('ix_return_items_return_id', table_name='return_items')
    op.drop_table('return_items')
    op.drop_index('ix_returns_sale_created', table_name='returns')
    op.drop_index('ix_returns_created_at', table_name='returns')
    op.drop_index('ix_returns_return_type', table_name='returns')
    op.drop_index('ix_returns_original_sale_id', table_name='returns')
    op.drop_table('returns')

    op.drop_index('ix_sale_items_product_id', table_name='sale_items')
    op.drop_index('ix_sale_items_sale_id', table_name='sale_items')
    op.drop_table('sale_items')
    op.drop_index('ix_sales_store_type_created', table_name='sales')
    op.drop_index('ix_sales_channel_created', table_name='sales')
    op.drop_index('ix_sales_created_at', table_name='sales')
    op.drop_table('sales')

    op.drop_index('ix_inventory_product_store', table_name='product_inventory')
    op.drop_index('ix_product_inventory_product_id', table_name='product_inventory')
    op.drop_table('product_inventory')

    op.drop_index('ix_products_company_type', table_name='products')
    op.drop_table('products')
