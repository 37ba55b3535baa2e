"""initial_schema

Revision ID: 3f1c2a7d9e40
Revises:
Create Date: 2026-01-03 12:15:19.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a7d9e40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'profiles',
        sa.Column('user_id', sa.String(length=36), primary_key=True),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('grade', sa.String(), nullable=True),
        sa.Column('role', sa.String(), nullable=False, server_default='student'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("role IN ('student', 'teacher', 'admin')", name='ck_profiles_role'),
    )
    op.create_index('ix_profiles_user_id', 'profiles', ['user_id'])

    op.create_table(
        'subscriptions',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('plan_type', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('amount_kes', sa.Integer(), nullable=False),
        sa.Column('payment_method', sa.String(), nullable=False),
        sa.Column('transaction_id', sa.String(), nullable=True),
        sa.Column('mpesa_receipt_number', sa.String(), nullable=True),
        sa.Column('starts_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("plan_type IN ('monthly', 'quarterly', 'yearly')", name='ck_subscriptions_plan_type'),
        sa.CheckConstraint("status IN ('pending', 'active', 'expired', 'cancelled')", name='ck_subscriptions_status'),
        sa.CheckConstraint("payment_method IN ('mpesa', 'airtel', 'paypal', 'zelle')", name='ck_subscriptions_payment_method'),
    )
    op.create_index('ix_subscriptions_user_id', 'subscriptions', ['user_id'])

    op.create_table(
        'payment_transactions',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('subscription_id', sa.String(length=36), sa.ForeignKey('subscriptions.id'), nullable=True),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('plan_type', sa.String(), nullable=True),
        sa.Column('amount_kes', sa.Integer(), nullable=False),
        sa.Column('amount_paid_kes', sa.Integer(), nullable=True),
        sa.Column('payment_method', sa.String(), nullable=False),
        sa.Column('checkout_request_id', sa.String(), nullable=True),
        sa.Column('merchant_request_id', sa.String(), nullable=True),
        sa.Column('mpesa_receipt_number', sa.String(), nullable=True),
        sa.Column('phone_number', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='initiated'),
        sa.Column('result_code', sa.String(), nullable=True),
        sa.Column('result_desc', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "status IN ('initiated', 'pending', 'completed', 'failed', 'cancelled')",
            name='ck_payment_transactions_status',
        ),
    )
    op.create_index('ix_payment_transactions_user_id', 'payment_transactions', ['user_id'])
    op.create_index('ix_payment_transactions_checkout_request_id', 'payment_transactions', ['checkout_request_id'])

    op.create_table(
        'study_activities',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('skill_code', sa.String(), nullable=False),
        sa.Column('difficulty', sa.Float(), nullable=False),
        sa.Column('locale', sa.String(), nullable=False, server_default='ke'),
        sa.Column('estimated_time_sec', sa.Integer(), nullable=False),
        sa.Column('content', sa.JSON(), nullable=True),
    )
    op.create_index('ix_study_activities_skill_code', 'study_activities', ['skill_code'])

    op.create_table(
        'learner_skills',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('skill_code', sa.String(), nullable=False),
        sa.Column('proficiency', sa.Float(), nullable=False),
        sa.Column('last_practiced_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'skill_code', name='uq_learner_skill'),
        sa.CheckConstraint('proficiency >= 0 AND proficiency <= 1', name='ck_learner_skills_proficiency'),
    )
    op.create_index('ix_learner_skills_user_id', 'learner_skills', ['user_id'])

    op.create_table(
        'activity_reports',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('activity_id', sa.String(length=36), sa.ForeignKey('study_activities.id'), nullable=False),
        sa.Column('score', sa.Float(), nullable=False),
        sa.Column('time_spent_sec', sa.Integer(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_activity_reports_user_id', 'activity_reports', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_activity_reports_user_id', table_name='activity_reports')
    op.drop_table('activity_reports')
    op.drop_index('ix_learner_skills_user_id', table_name='learner_skills')
    op.drop_table('learner_skills')
    op.drop_index('ix_study_activities_skill_code', table_name='study_activities')
    op.drop_table('study_activities')
    op.drop_index('ix_payment_transactions_checkout_request_id', table_name='payment_transactions')
    op.drop_index('ix_payment_transactions_user_id', table_name='payment_transactions')
    op.drop_table('payment_transactions')
    op.drop_index('ix_subscriptions_user_id', table_name='subscriptions')
    op.drop_table('subscriptions')
    op.drop_index('ix_profiles_user_id', table_name='profiles')
    op.drop_table('profiles')
