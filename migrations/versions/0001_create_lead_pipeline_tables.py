"""Create lead pipeline tables

Revision ID: 0001_lead_pipeline
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_lead_pipeline'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

USER_ROLE = sa.Enum('salesman', 'call_operator', 'technician', 'team_lead', 'super_admin', name='user_role')
LEAD_STATUS = sa.Enum('new', 'ringing', 'contacted', 'hold', 'transit', 'declined', 'completed', name='lead_status')
LEAD_LIKELIHOOD = sa.Enum('hot', 'warm', 'cold', name='lead_likelihood')
PROPERTY_TYPE = sa.Enum('residential', 'commercial', 'industrial', name='property_type')
CUSTOMER_STATUS = sa.Enum('active', 'inactive', name='customer_status')
PROJECT_STATUS = sa.Enum(
    'Awaiting 1st Payment', 'Material Distribution', 'Awaiting 2nd Payment',
    'Work in Progress', 'Meter Installation', 'Completed',
    name='project_status',
)
PAYMENT_METHOD = sa.Enum('cash', 'loan', name='payment_method')
LOAN_STATUS = sa.Enum('pending', 'approved', 'disbursed', 'rejected', name='loan_status')
NOTIFICATION_TYPE = sa.Enum('reschedule', 'lead_assigned', 'lead_completed', 'general', name='notification_type')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def _slot(name):
    return [
        sa.Column(f'{name}_id', sa.Uuid(), sa.ForeignKey('app_users.id'), nullable=True),
        sa.Column(f'{name}_name', sa.String(255), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'app_users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('phone', sa.String(32), nullable=True),
        sa.Column('role', USER_ROLE, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_app_users_email', 'app_users', ['email'])
    op.create_index('ix_app_users_role', 'app_users', ['role'])

    op.create_table(
        'leads',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('phone_number', sa.String(32), nullable=False),
        sa.Column('additional_phone', sa.String(32), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('property_type', PROPERTY_TYPE, nullable=False),
        sa.Column('likelihood', LEAD_LIKELIHOOD, nullable=False),
        sa.Column('status', LEAD_STATUS, nullable=False),
        *_slot('salesman'),
        *_slot('call_operator'),
        *_slot('technician'),
        *_slot('team_lead'),
        *_slot('super_admin'),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('created_by_name', sa.String(255), nullable=True),
        sa.Column('call_notes', sa.Text(), nullable=True),
        sa.Column('visit_notes', sa.Text(), nullable=True),
        sa.Column('follow_up_date', sa.Date(), nullable=True),
        sa.Column('rescheduled_date', sa.Date(), nullable=True),
        sa.Column('rescheduled_by', sa.String(255), nullable=True),
        sa.Column('reschedule_reason', sa.Text(), nullable=True),
        sa.Column('scheduled_call_date', sa.Date(), nullable=True),
        sa.Column('scheduledCallTime', sa.String(16), nullable=True),
        sa.Column('scheduled_call_reason', sa.Text(), nullable=True),
        sa.Column('call_later_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_call_later_date', sa.Date(), nullable=True),
        sa.Column('last_call_later_reason', sa.Text(), nullable=True),
        sa.Column('customer_id', sa.Uuid(), nullable=True, unique=True),
        *_timestamps(),
    )
    for column in ('phone_number', 'additional_phone', 'status', 'salesman_id',
                   'call_operator_id', 'technician_id', 'scheduled_call_date'):
        op.create_index(f'ix_leads_{column}', 'leads', [column])

    op.create_table(
        'customers',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('customer_id', sa.String(32), nullable=False, unique=True),
        sa.Column('lead_id', sa.Uuid(), sa.ForeignKey('leads.id', name='fk_customers_lead_id'),
                  nullable=False, unique=True),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('phone_number', sa.String(32), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('property_type', PROPERTY_TYPE, nullable=False),
        sa.Column('status', CUSTOMER_STATUS, nullable=False),
        sa.Column('project_status', PROJECT_STATUS, nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('electricity_bill_number', sa.String(64), nullable=True),
        sa.Column('average_electricity_usage', sa.Float(), nullable=True),
        sa.Column('electricity_usage_unit', sa.String(16), nullable=True),
        sa.Column('has_paid_first_installment', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('payment_method', PAYMENT_METHOD, nullable=True),
        sa.Column('cash_bill_number', sa.String(64), nullable=True),
        sa.Column('loan_provider', sa.String(255), nullable=True),
        sa.Column('loan_amount', sa.Float(), nullable=True),
        sa.Column('loan_account_number', sa.String(64), nullable=True),
        sa.Column('loan_status', LOAN_STATUS, nullable=True),
        sa.Column('loan_notes', sa.Text(), nullable=True),
        sa.Column('customer_needs', sa.Text(), nullable=True),
        sa.Column('preferred_installation_date', sa.Date(), nullable=True),
        sa.Column('special_requirements', sa.Text(), nullable=True),
        sa.Column('converted_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_customers_customer_id', 'customers', ['customer_id'])

    with op.batch_alter_table('leads') as batch:
        batch.create_foreign_key('fk_leads_customer_id', 'customers', ['customer_id'], ['id'])

    op.create_table(
        'call_later_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('lead_id', sa.Uuid(), sa.ForeignKey('leads.id'), nullable=False),
        sa.Column('call_operator_id', sa.Uuid(), sa.ForeignKey('app_users.id'), nullable=False),
        sa.Column('call_operator_name', sa.String(255), nullable=False),
        sa.Column('call_later_date', sa.Date(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_call_later_logs_lead_id', 'call_later_logs', ['lead_id'])
    op.create_index('ix_call_later_logs_call_operator_id', 'call_later_logs', ['call_operator_id'])

    op.create_table(
        'call_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('app_users.id'), nullable=False),
        sa.Column('caller_name', sa.String(255), nullable=True),
        sa.Column('lead_id', sa.Uuid(), sa.ForeignKey('leads.id'), nullable=True),
        sa.Column('customer_id', sa.Uuid(), sa.ForeignKey('customers.id'), nullable=True),
        sa.Column('status_at_call', sa.String(20), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    for column in ('user_id', 'lead_id', 'customer_id'):
        op.create_index(f'ix_call_logs_{column}', 'call_logs', [column])

    op.create_table(
        'duplicate_lead_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('attempted_phone_number', sa.String(32), nullable=False),
        sa.Column('attempted_customer_name', sa.String(255), nullable=True),
        sa.Column('attempted_by_id', sa.Uuid(), nullable=True),
        sa.Column('attempted_by_name', sa.String(255), nullable=True),
        sa.Column('attempted_by_role', sa.String(32), nullable=True),
        sa.Column('existing_lead_id', sa.Uuid(), sa.ForeignKey('leads.id'), nullable=False),
        sa.Column('existing_lead_customer_name', sa.String(255), nullable=False),
        sa.Column('existing_lead_phone_number', sa.String(32), nullable=False),
        sa.Column('existing_lead_status', sa.String(20), nullable=False),
        sa.Column('existing_lead_owner_name', sa.String(255), nullable=True),
        sa.Column('existing_lead_owner_role', sa.String(32), nullable=True),
        sa.Column('attempted_lead_data', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_duplicate_lead_logs_existing_lead_id', 'duplicate_lead_logs', ['existing_lead_id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', NOTIFICATION_TYPE, nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])


def downgrade() -> None:
    op.drop_table('notifications')
    op.drop_table('duplicate_lead_logs')
    op.drop_table('call_logs')
    op.drop_table('call_later_logs')
    with op.batch_alter_table('leads') as batch:
        batch.drop_constraint('fk_leads_customer_id', type_='foreignkey')
    op.drop_table('customers')
    op.drop_table('leads')
    op.drop_table('app_users')
