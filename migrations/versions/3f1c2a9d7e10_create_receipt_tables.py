"""create_receipt_tables

Revision ID: 3f1c2a9d7e10
Revises:
Create Date: 2026-10-18 09:12:41.204518

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c2a9d7e10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Skip tables that create_all() may already have built on a fresh database
    from sqlalchemy import inspect
    conn = op.get_bind()
    existing_tables = inspect(conn).get_table_names()

    if 'apartments' not in existing_tables:
        op.create_table(
            'apartments',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=120), nullable=False),
            sa.Column('address', sa.String(length=255), nullable=False),
            sa.Column('city', sa.String(length=120), nullable=False),
            sa.Column('postal_code', sa.String(length=10), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('is_active', sa.Boolean(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('idx_apartments_active', 'apartments', ['is_active'])

    if 'owner' not in existing_tables:
        op.create_table(
            'owner',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=150), nullable=False),
            sa.Column('address1', sa.String(length=255), nullable=False),
            sa.Column('address2', sa.String(length=255), nullable=True),
            sa.Column('city', sa.String(length=120), nullable=True),
            sa.Column('signature', sa.String(length=150), nullable=True),
            sa.Column('signature_path', sa.String(length=500), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )

    if 'receipt_templates' not in existing_tables:
        op.create_table(
            'receipt_templates',
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('name', sa.String(length=200), nullable=False),
            sa.Column('description', sa.String(length=500), nullable=True),
            sa.Column('template_type', sa.String(length=20), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=False),
            sa.Column('is_default', sa.Boolean(), nullable=False),
            sa.Column('configuration', sa.JSON(), nullable=True),
            sa.Column('background_asset_path', sa.String(length=500), nullable=True),
            sa.Column('source_file_path', sa.String(length=500), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.CheckConstraint("template_type IN ('default', 'custom', 'uploaded')", name='ck_receipt_templates_type'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('idx_receipt_templates_default', 'receipt_templates', ['is_default'])

    if 'tenants' not in existing_tables:
        op.create_table(
            'tenants',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('first_name', sa.String(length=100), nullable=False),
            sa.Column('last_name', sa.String(length=100), nullable=False),
            sa.Column('gender', sa.String(length=1), nullable=False),
            sa.Column('email', sa.String(length=120), nullable=True),
            sa.Column('phone', sa.String(length=30), nullable=True),
            sa.Column('address', sa.String(length=255), nullable=True),
            sa.Column('apartment_id', sa.Integer(), nullable=True),
            sa.Column('rent_amount', sa.Numeric(precision=10, scale=2), nullable=False),
            sa.Column('charges', sa.Numeric(precision=10, scale=2), nullable=False),
            sa.Column('deposit_amount', sa.Numeric(precision=10, scale=2), nullable=False),
            sa.Column('lease_start_date', sa.Date(), nullable=True),
            sa.Column('lease_end_date', sa.Date(), nullable=True),
            sa.Column('is_active', sa.Boolean(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.CheckConstraint("gender IN ('M', 'F')", name='ck_tenants_gender'),
            sa.ForeignKeyConstraint(['apartment_id'], ['apartments.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('email')
        )
        op.create_index('idx_tenants_active', 'tenants', ['is_active'])
        op.create_index('idx_tenants_apartment', 'tenants', ['apartment_id'])

    if 'receipts' not in existing_tables:
        op.create_table(
            'receipts',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('tenant_id', sa.Integer(), nullable=False),
            sa.Column('template_id', sa.Integer(), nullable=True),
            sa.Column('month', sa.Integer(), nullable=False),
            sa.Column('year', sa.Integer(), nullable=False),
            sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
            sa.Column('charges', sa.Numeric(precision=10, scale=2), nullable=False),
            sa.Column('payment_date', sa.Date(), nullable=True),
            sa.Column('file_name', sa.String(length=255), nullable=False),
            sa.Column('file_path', sa.String(length=500), nullable=False),
            sa.Column('email_sent', sa.Boolean(), nullable=False),
            sa.Column('email_sent_at', sa.DateTime(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['template_id'], ['receipt_templates.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('tenant_id', 'month', 'year', name='uq_receipts_tenant_period')
        )
        op.create_index('idx_receipts_period', 'receipts', ['year', 'month'])


def downgrade():
    op.drop_index('idx_receipts_period', table_name='receipts')
    op.drop_table('receipts')
    op.drop_index('idx_tenants_apartment', table_name='tenants')
    op.drop_index('idx_tenants_active', table_name='tenants')
    op.drop_table('tenants')
    op.drop_index('idx_receipt_templates_default', table_name='receipt_templates')
    op.drop_table('receipt_templates')
    op.drop_table('owner')
    op.drop_index('idx_apartments_active', table_name='apartments')
    op.drop_table('apartments')
