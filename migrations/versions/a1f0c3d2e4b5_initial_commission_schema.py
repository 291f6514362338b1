"""initial commission schema

Revision ID: a1f0c3d2e4b5
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1f0c3d2e4b5'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _commission_cols(prefix):
    return [
        sa.Column(f'{prefix}_commission_type', sa.String(length=16), nullable=False, server_default='percentage'),
        sa.Column(f'{prefix}_commission_amount', sa.Float(), nullable=False, server_default='0'),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='admin'),
        sa.Column('status', sa.String(length=20), nullable=True, server_default='active'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Active'),
        sa.Column('base_salary', sa.Float(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('base_salary >= 0', name='ck_employee_base_salary_nonneg'),
    )
    op.create_index('ix_emp_role', 'employees', ['role'])
    op.create_index('ix_emp_status', 'employees', ['status'])

    op.create_table(
        'projects',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('client_name', sa.String(length=200), nullable=False),
        sa.Column('total_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Active'),
        sa.Column('bonus_pool', sa.Float(), nullable=False, server_default='0'),
        sa.Column('project_manager_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='SET NULL'), nullable=True),
        sa.Column('team_lead_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='SET NULL'), nullable=True),
        sa.Column('manager_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='SET NULL'), nullable=True),
        sa.Column('bidder_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='SET NULL'), nullable=True),
        *_commission_cols('pm'),
        *_commission_cols('team_lead'),
        *_commission_cols('manager'),
        *_commission_cols('bidder'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('total_amount >= 0', name='ck_project_total_nonneg'),
        sa.CheckConstraint('bonus_pool >= 0', name='ck_project_bonus_pool_nonneg'),
    )
    op.create_index('ix_project_status', 'projects', ['status'])
    op.create_index('ix_project_dates', 'projects', ['start_date', 'end_date'])

    op.create_table(
        'project_developers',
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_table(
        'employee_projects',
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'monthly_project_revenues',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('month', sa.String(length=7), nullable=False),
        sa.Column('amount_collected', sa.Float(), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('project_id', 'month', name='uq_revenue_project_month'),
        sa.CheckConstraint('amount_collected >= 0', name='ck_revenue_amount_nonneg'),
    )
    op.create_index('ix_revenue_month', 'monthly_project_revenues', ['month'])

    op.create_table(
        'app_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('usd_to_pkr_rate', sa.Float(), nullable=False, server_default='278.5'),
        sa.Column('pm_commission_percentage', sa.Float(), nullable=False, server_default='10'),
        sa.Column('team_lead_bonus_amount', sa.Float(), nullable=False, server_default='10000'),
        sa.Column('bidder_bonus_amount', sa.Float(), nullable=False, server_default='5000'),
        sa.Column('last_updated_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('usd_to_pkr_rate > 0', name='ck_settings_rate_positive'),
    )

    op.create_table(
        'commission_configs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('role', sa.String(length=16), nullable=False, unique=True),
        sa.Column('commission_type', sa.String(length=16), nullable=False),
        sa.Column('commission_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('commission_amount >= 0', name='ck_commission_config_amount_nonneg'),
    )

    op.create_table(
        'salaries',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('month', sa.String(length=7), nullable=False),
        sa.Column('base_salary', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Pending'),
        sa.Column('paid_date', sa.DateTime(), nullable=True),
        sa.Column('payment_reference', sa.String(length=120), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('employee_id', 'month', name='uq_salary_employee_month'),
        sa.CheckConstraint('base_salary >= 0', name='ck_salary_base_nonneg'),
    )
    op.create_index('ix_salaries_employee_id', 'salaries', ['employee_id'])
    op.create_index('ix_salary_month', 'salaries', ['month'])
    op.create_index('ix_salary_status', 'salaries', ['status'])

    op.create_table(
        'salary_lines',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('salary_id', sa.Integer(), sa.ForeignKey('salaries.id', ondelete='CASCADE'), nullable=False),
        sa.Column('kind', sa.String(length=32), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('commission_type', sa.String(length=16), nullable=True),
        sa.Column('commission_rate', sa.Float(), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.CheckConstraint('amount >= 0', name='ck_salary_line_amount_nonneg'),
    )
    op.create_index('ix_salary_lines_salary_id', 'salary_lines', ['salary_id'])
    op.create_index('ix_salary_lines_project_id', 'salary_lines', ['project_id'])

    op.create_table(
        'project_history',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('change_type', sa.String(length=20), nullable=False),
        sa.Column('changed_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('changes', sa.JSON(), nullable=False),
        sa.Column('snapshot', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_project_history_project_id', 'project_history', ['project_id'])
    op.create_index('ix_history_project_created', 'project_history', ['project_id', 'created_at'])
    op.create_index('ix_history_change_type', 'project_history', ['change_type'])


def downgrade() -> None:
    op.drop_table('project_history')
    op.drop_table('salary_lines')
    op.drop_table('salaries')
    op.drop_table('commission_configs')
    op.drop_table('app_settings')
    op.drop_table('monthly_project_revenues')
    op.drop_table('employee_projects')
    op.drop_table('project_developers')
    op.drop_table('projects')
    op.drop_table('employees')
    op.drop_table('users')
