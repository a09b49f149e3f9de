"""Waste accounting schema: tenants, entries, monthly summaries, official ledger, audit trail.

Revision ID: 001
Revises:
Create Date: 2025-01-15
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'tenants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('label', sa.String(length=255), nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('materials_json', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tenants_id', 'tenants', ['id'])
    op.create_index('ix_tenants_label', 'tenants', ['label'], unique=True)

    op.create_table(
        'api_keys',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('prefix', sa.String(length=16), nullable=False),
        sa.Column('digest', sa.String(length=64), nullable=False),
        sa.Column('label', sa.String(length=255), nullable=True),
        sa.Column('scopes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_used_at', sa.DateTime(), nullable=True),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('digest'),
    )
    op.create_index('ix_api_keys_id', 'api_keys', ['id'])
    op.create_index('ix_api_keys_tenant_id', 'api_keys', ['tenant_id'])
    op.create_index('ix_api_keys_prefix', 'api_keys', ['prefix'])

    op.create_table(
        'daily_waste_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('entry_date', sa.Date(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=20), nullable=False),
        sa.Column('material', sa.String(length=120), nullable=False),
        sa.Column('kg', sa.Float(), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('correlation_id', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('kg >= 0', name='ck_daily_waste_entries_kg_non_negative'),
        sa.CheckConstraint(
            "category IN ('recycling', 'compost', 'reuse', 'landfill')",
            name='ck_daily_waste_entries_category',
        ),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_daily_waste_entries_id', 'daily_waste_entries', ['id'])
    op.create_index('ix_daily_waste_entries_tenant_id', 'daily_waste_entries', ['tenant_id'])
    op.create_index('ix_daily_waste_entries_entry_date', 'daily_waste_entries', ['entry_date'])
    op.create_index('ix_daily_waste_entries_tenant_month', 'daily_waste_entries', ['tenant_id', 'year', 'month'])

    op.create_table(
        'monthly_summaries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('total_recycling', sa.Float(), nullable=False),
        sa.Column('total_compost', sa.Float(), nullable=False),
        sa.Column('total_reuse', sa.Float(), nullable=False),
        sa.Column('total_landfill', sa.Float(), nullable=False),
        sa.Column('total_waste', sa.Float(), nullable=False),
        sa.Column('recycling_breakdown', sa.JSON(), nullable=False),
        sa.Column('compost_breakdown', sa.JSON(), nullable=False),
        sa.Column('reuse_breakdown', sa.JSON(), nullable=False),
        sa.Column('landfill_breakdown', sa.JSON(), nullable=False),
        sa.Column('entry_count', sa.Integer(), nullable=False),
        sa.Column('closed_at', sa.DateTime(), nullable=True),
        sa.Column('closed_by', sa.String(length=255), nullable=True),
        sa.Column('transferred_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('month BETWEEN 1 AND 12', name='ck_monthly_summaries_month'),
        sa.CheckConstraint('entry_count >= 0', name='ck_monthly_summaries_entry_count'),
        sa.CheckConstraint(
            "(status = 'open' AND closed_at IS NULL AND closed_by IS NULL AND transferred_at IS NULL)"
            " OR (status = 'closed' AND closed_at IS NOT NULL AND closed_by IS NOT NULL"
            " AND transferred_at IS NULL)"
            " OR (status = 'transferred' AND closed_at IS NOT NULL AND closed_by IS NOT NULL"
            " AND transferred_at IS NOT NULL)",
            name='ck_monthly_summaries_lifecycle',
        ),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'year', 'month', name='uq_monthly_summaries_tenant_month'),
    )
    op.create_index('ix_monthly_summaries_id', 'monthly_summaries', ['id'])
    op.create_index('ix_monthly_summaries_tenant_id', 'monthly_summaries', ['tenant_id'])

    op.create_table(
        'official_ledger_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('label', sa.String(length=20), nullable=False),
        sa.Column('total_recycling', sa.Float(), nullable=False),
        sa.Column('total_compost', sa.Float(), nullable=False),
        sa.Column('total_reuse', sa.Float(), nullable=False),
        sa.Column('total_landfill', sa.Float(), nullable=False),
        sa.Column('total_diverted', sa.Float(), nullable=False),
        sa.Column('total_generated', sa.Float(), nullable=False),
        sa.Column('deviation_percentage', sa.Float(), nullable=False),
        sa.Column('diverted_breakdown', sa.JSON(), nullable=False),
        sa.Column('not_diverted_breakdown', sa.JSON(), nullable=False),
        sa.Column('source_summary_id', sa.Integer(), nullable=False),
        sa.Column('source_entry_count', sa.Integer(), nullable=False),
        sa.Column('closed_at', sa.DateTime(), nullable=False),
        sa.Column('closed_by', sa.String(length=255), nullable=False),
        sa.Column('recorded_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.ForeignKeyConstraint(['source_summary_id'], ['monthly_summaries.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'year', 'month', name='uq_official_ledger_tenant_month'),
    )
    op.create_index('ix_official_ledger_records_id', 'official_ledger_records', ['id'])
    op.create_index('ix_official_ledger_records_tenant_id', 'official_ledger_records', ['tenant_id'])
    op.create_index('ix_official_ledger_records_year', 'official_ledger_records', ['year'])

    op.create_table(
        'audit_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_sequence', sa.BigInteger(), nullable=False),
        sa.Column('event_hash', sa.String(length=64), nullable=False),
        sa.Column('previous_event_hash', sa.String(length=64), nullable=True),
        sa.Column('correlation_id', sa.String(length=255), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('event_type', sa.String(length=100), nullable=False),
        sa.Column('payload_json', sa.JSON(), nullable=False),
        sa.Column('event_timestamp', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'tenant_sequence', name='uq_audit_events_tenant_sequence'),
    )
    op.create_index('ix_audit_events_id', 'audit_events', ['id'])
    op.create_index('ix_audit_events_event_hash', 'audit_events', ['event_hash'], unique=True)
    op.create_index('ix_audit_events_previous_event_hash', 'audit_events', ['previous_event_hash'])
    op.create_index('ix_audit_events_correlation_id', 'audit_events', ['correlation_id'])
    op.create_index('ix_audit_events_tenant_id', 'audit_events', ['tenant_id'])
    op.create_index('ix_audit_events_event_type', 'audit_events', ['event_type'])

    op.create_table(
        'tenant_sequences',
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('last_sequence', sa.BigInteger(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('tenant_id'),
    )
    op.create_index('ix_tenant_sequences_tenant_id', 'tenant_sequences', ['tenant_id'])


def downgrade() -> None:
    op.drop_table('tenant_sequences')
    op.drop_table('audit_events')
    op.drop_table('official_ledger_records')
    op.drop_table('monthly_summaries')
    op.drop_table('daily_waste_entries')
    op.drop_table('api_keys')
    op.drop_table('tenants')
