"""Initial migration: blueprints, blueprint fields, contracts, field values

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None

FIELD_TYPES = ('text', 'date', 'signature', 'checkbox')
CONTRACT_STATUSES = ('created', 'approved', 'sent', 'signed', 'locked', 'revoked')


def upgrade() -> None:
    op.create_table(
        'blueprints',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'blueprint_fields',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('blueprint_id', sa.Uuid(), sa.ForeignKey('blueprints.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.Enum(*FIELD_TYPES, name='fieldtype'), nullable=False),
        sa.Column('label', sa.String(255), nullable=False),
        sa.Column('position_x', sa.Float(), nullable=False),
        sa.Column('position_y', sa.Float(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.Column('seq', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_blueprint_fields_blueprint_id', 'blueprint_fields', ['blueprint_id'])

    op.create_table(
        'contracts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('blueprint_id', sa.Uuid(), sa.ForeignKey('blueprints.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('status', sa.Enum(*CONTRACT_STATUSES, name='contractstatus'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
    )
    op.create_index('ix_contracts_blueprint_id', 'contracts', ['blueprint_id'])
    op.create_index('ix_contracts_status', 'contracts', ['status'])

    op.create_table(
        'contract_field_values',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('contract_id', sa.Uuid(), sa.ForeignKey('contracts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('blueprint_field_id', sa.Uuid(), sa.ForeignKey('blueprint_fields.id'), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.UniqueConstraint('contract_id', 'blueprint_field_id', name='uq_contract_field_value'),
    )
    op.create_index('ix_contract_field_values_contract_id', 'contract_field_values', ['contract_id'])


def downgrade() -> None:
    op.drop_index('ix_contract_field_values_contract_id', table_name='contract_field_values')
    op.drop_table('contract_field_values')
    op.drop_index('ix_contracts_status', table_name='contracts')
    op.drop_index('ix_contracts_blueprint_id', table_name='contracts')
    op.drop_table('contracts')
    op.drop_index('ix_blueprint_fields_blueprint_id', table_name='blueprint_fields')
    op.drop_table('blueprint_fields')
    op.drop_table('blueprints')
    sa.Enum(name='contractstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='fieldtype').drop(op.get_bind(), checkfirst=True)
