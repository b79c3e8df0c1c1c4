"""Create users, cases, clients and change_logs tables

Revision ID: a0c1d2e3f4a5
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = 'a0c1d2e3f4a5'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=True),
        sa.Column('role', sa.String(length=50), nullable=False, server_default='lawyer'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'cases',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('case_type', sa.String(length=50), nullable=False),
        sa.Column('case_level', sa.String(length=10), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='open'),
        sa.Column('closed_reason', sa.Text(), nullable=True),
        sa.Column('void_reason', sa.Text(), nullable=True),
        sa.Column('department', sa.String(length=100), nullable=True),
        sa.Column('province', sa.String(length=100), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('data_source', sa.String(length=200), nullable=True),
        sa.Column('target_amount', sa.String(length=50), nullable=True),
        sa.Column('agency_fee_estimate', sa.String(length=50), nullable=True),
        sa.Column('sales_commission', sa.String(length=50), nullable=True),
        sa.Column('handling_fee', sa.String(length=50), nullable=True),
        sa.Column('has_contract', sa.Boolean(), nullable=True),
        sa.Column('contract_date', sa.Date(), nullable=True),
        sa.Column('clue_date', sa.Date(), nullable=True),
        sa.Column('entry_date', sa.Date(), nullable=True),
        sa.Column('next_follow_up_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('assigned_sale_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('assigned_lawyer_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('assigned_assistant_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('remark', sa.Text(), nullable=True),
        sa.Column('insurance_types', sa.JSON(), nullable=True),
        sa.Column('participants', sa.JSON(), nullable=True),
        sa.Column('hearings', sa.JSON(), nullable=True),
        sa.Column('collections', sa.JSON(), nullable=True),
        sa.Column('timeline', sa.JSON(), nullable=True),
        # Optimistic concurrency: first committed write moves 0 -> 1
        sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_by_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('updated_by_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_cases_status', 'cases', ['status'])
    op.create_index('ix_cases_assigned_lawyer_id', 'cases', ['assigned_lawyer_id'])

    op.create_table(
        'clients',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=300), nullable=False),
        sa.Column('entity_type', sa.String(length=20), nullable=False, server_default='personal'),
        sa.Column('id_number', sa.String(length=100), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('remark', sa.Text(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_by_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_clients_name', 'clients', ['name'])

    op.create_table(
        'change_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=20), nullable=False),
        sa.Column('actor_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('actor_name', sa.String(length=200), nullable=True),
        sa.Column('actor_role', sa.String(length=50), nullable=True),
        sa.Column('changes', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_change_logs_entity', 'change_logs', ['entity_type', 'entity_id', 'version'])


def downgrade():
    op.drop_index('ix_change_logs_entity', table_name='change_logs')
    op.drop_table('change_logs')

    op.drop_index('ix_clients_name', table_name='clients')
    op.drop_table('clients')

    op.drop_index('ix_cases_assigned_lawyer_id', table_name='cases')
    op.drop_index('ix_cases_status', table_name='cases')
    op.drop_table('cases')

    op.drop_table('users')
