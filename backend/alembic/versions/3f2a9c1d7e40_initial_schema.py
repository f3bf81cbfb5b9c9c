"""initial_schema

Revision ID: 3f2a9c1d7e40
Revises:
Create Date: 2025-10-20 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7e40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(updated: bool = True) -> list[sa.Column]:
    cols = [sa.Column('created_at', sa.DateTime(timezone=True), nullable=False)]
    if updated:
        cols.append(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False))
    return cols


def upgrade() -> None:
    op.create_table(
        'tenants',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'quickbooks_connections',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('realm_id', sa.String(length=50), nullable=False),
        sa.Column('access_token', sa.Text(), nullable=False),
        sa.Column('refresh_token', sa.Text(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('refresh_expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('last_sync_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id'),
    )

    op.create_table(
        'employees',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('qb_employee_id', sa.String(length=50), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('hourly_rate', sa.Numeric(8, 2), nullable=False),
        sa.Column('filing_status', sa.String(length=50), nullable=False),
        sa.Column('allowances', sa.Integer(), nullable=False),
        sa.Column('additional_withholding', sa.Numeric(8, 2), nullable=False),
        sa.Column('department', sa.String(length=100), nullable=True),
        sa.Column('job_title', sa.String(length=100), nullable=True),
        sa.Column('payment_method', sa.String(length=50), nullable=False),
        sa.Column('hired_date', sa.Date(), nullable=True),
        sa.Column('released_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'qb_employee_id', name='uq_employees_tenant_qb_employee'),
    )
    op.create_index('ix_employees_tenant_active', 'employees', ['tenant_id', 'is_active'])

    op.create_table(
        'pay_periods',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('process_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('employee_count', sa.Integer(), nullable=True),
        sa.Column('total_gross_pay', sa.Numeric(12, 2), nullable=True),
        sa.Column('total_net_pay', sa.Numeric(12, 2), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_pay_periods_tenant_start', 'pay_periods', ['tenant_id', 'start_date'])

    op.create_table(
        'time_entries',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('employee_id', sa.Uuid(), nullable=False),
        sa.Column('pay_period_id', sa.Uuid(), nullable=True),
        sa.Column('qb_employee_id', sa.String(length=50), nullable=True),
        sa.Column('qb_time_activity_id', sa.String(length=50), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('hours', sa.Numeric(5, 2), nullable=False),
        sa.Column('regular_hours', sa.Numeric(5, 2), nullable=False),
        sa.Column('overtime_hours', sa.Numeric(5, 2), nullable=False),
        sa.Column('source', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('hourly_rate', sa.Numeric(8, 2), nullable=True),
        sa.Column('billable', sa.Boolean(), nullable=False),
        sa.Column('customer_id', sa.String(length=50), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id']),
        sa.ForeignKeyConstraint(['pay_period_id'], ['pay_periods.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'qb_time_activity_id', name='uq_time_entries_tenant_qb_activity'),
    )
    op.create_index(
        'ix_time_entries_tenant_employee_date', 'time_entries', ['tenant_id', 'employee_id', 'date']
    )
    op.create_index('ix_time_entries_pay_period', 'time_entries', ['pay_period_id'])

    op.create_table(
        'pay_stubs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('pay_period_id', sa.Uuid(), nullable=False),
        sa.Column('employee_id', sa.Uuid(), nullable=False),
        sa.Column('regular_hours', sa.Numeric(7, 2), nullable=False),
        sa.Column('overtime_hours', sa.Numeric(7, 2), nullable=False),
        sa.Column('hourly_rate', sa.Numeric(8, 2), nullable=False),
        sa.Column('regular_pay', sa.Numeric(10, 2), nullable=False),
        sa.Column('overtime_pay', sa.Numeric(10, 2), nullable=False),
        sa.Column('gross_pay', sa.Numeric(10, 2), nullable=False),
        sa.Column('federal_tax', sa.Numeric(10, 2), nullable=False),
        sa.Column('state_tax', sa.Numeric(10, 2), nullable=False),
        sa.Column('social_security', sa.Numeric(10, 2), nullable=False),
        sa.Column('medicare', sa.Numeric(10, 2), nullable=False),
        sa.Column('total_deductions', sa.Numeric(10, 2), nullable=False),
        sa.Column('net_pay', sa.Numeric(10, 2), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['pay_period_id'], ['pay_periods.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('pay_period_id', 'employee_id', name='uq_pay_stubs_period_employee'),
    )


def downgrade() -> None:
    op.drop_table('pay_stubs')
    op.drop_index('ix_time_entries_pay_period', table_name='time_entries')
    op.drop_index('ix_time_entries_tenant_employee_date', table_name='time_entries')
    op.drop_table('time_entries')
    op.drop_index('ix_pay_periods_tenant_start', table_name='pay_periods')
    op.drop_table('pay_periods')
    op.drop_index('ix_employees_tenant_active', table_name='employees')
    op.drop_table('employees')
    op.drop_table('quickbooks_connections')
    op.drop_table('users')
    op.drop_table('tenants')
