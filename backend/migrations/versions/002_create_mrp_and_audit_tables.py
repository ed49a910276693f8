"""Create MRP run, MRP requirement and audit log tables

Revision ID: 002
Revises: 001
Create Date: 2025-01-13 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('mrp_runs',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('run_number', sa.String(length=50), nullable=False),
    sa.Column('run_date', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
    sa.Column('planning_horizon_days', sa.Integer(), nullable=False, server_default='30'),
    sa.Column('status', sa.String(length=20), nullable=False, server_default='running'),
    sa.Column('total_requirements', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('total_shortages', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('notes', sa.Text(), nullable=True),
    sa.Column('created_by', sa.Integer(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
    sa.Column('completed_at', sa.DateTime(), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('run_number')
    )
    op.create_index(op.f('ix_mrp_runs_id'), 'mrp_runs', ['id'], unique=False)
    op.create_index(op.f('ix_mrp_runs_run_number'), 'mrp_runs', ['run_number'], unique=True)
    op.create_index(op.f('ix_mrp_runs_run_date'), 'mrp_runs', ['run_date'], unique=False)
    op.create_index(op.f('ix_mrp_runs_status'), 'mrp_runs', ['status'], unique=False)

    op.create_table('mrp_requirements',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('mrp_run_id', sa.Integer(), nullable=False),
    sa.Column('production_order_id', sa.Integer(), nullable=False),
    sa.Column('item_id', sa.Integer(), nullable=False),
    sa.Column('required_quantity', sa.Numeric(precision=18, scale=4), nullable=False),
    sa.Column('available_quantity', sa.Numeric(precision=18, scale=4), nullable=False, server_default='0'),
    sa.Column('shortage_quantity', sa.Numeric(precision=18, scale=4), nullable=False, server_default='0'),
    sa.Column('required_date', sa.Date(), nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
    sa.ForeignKeyConstraint(['mrp_run_id'], ['mrp_runs.id'], ),
    sa.ForeignKeyConstraint(['production_order_id'], ['production_orders.id'], ),
    sa.ForeignKeyConstraint(['item_id'], ['items.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_mrp_requirements_id'), 'mrp_requirements', ['id'], unique=False)
    op.create_index(op.f('ix_mrp_requirements_mrp_run_id'), 'mrp_requirements', ['mrp_run_id'], unique=False)
    op.create_index(op.f('ix_mrp_requirements_production_order_id'), 'mrp_requirements', ['production_order_id'], unique=False)
    op.create_index(op.f('ix_mrp_requirements_item_id'), 'mrp_requirements', ['item_id'], unique=False)
    op.create_index(op.f('ix_mrp_requirements_status'), 'mrp_requirements', ['status'], unique=False)

    op.create_table('audit_logs',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('user_id', sa.Integer(), nullable=True),
    sa.Column('action', sa.String(length=50), nullable=False),
    sa.Column('module', sa.String(length=50), nullable=False),
    sa.Column('record_type', sa.String(length=50), nullable=False),
    sa.Column('record_id', sa.Integer(), nullable=True),
    sa.Column('old_values', sa.JSON(), nullable=True),
    sa.Column('new_values', sa.JSON(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_audit_logs_id'), 'audit_logs', ['id'], unique=False)
    op.create_index(op.f('ix_audit_logs_user_id'), 'audit_logs', ['user_id'], unique=False)
    op.create_index(op.f('ix_audit_logs_action'), 'audit_logs', ['action'], unique=False)
    op.create_index(op.f('ix_audit_logs_record_id'), 'audit_logs', ['record_id'], unique=False)
    op.create_index(op.f('ix_audit_logs_created_at'), 'audit_logs', ['created_at'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('audit_logs')
    op.drop_table('mrp_requirements')
    op.drop_table('mrp_runs')
