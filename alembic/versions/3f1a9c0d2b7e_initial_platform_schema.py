"""initial_platform_schema

Revision ID: 3f1a9c0d2b7e
Revises:
Create Date: 2026-10-19 09:12:40.118223

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f1a9c0d2b7e'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('plans',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('limit_5h_units', sa.Float(), nullable=False),
        sa.Column('limit_7d_units', sa.Float(), nullable=False),
        sa.Column('stripe_price_id', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('is_hidden', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('users',
        sa.Column('id', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('stripe_customer_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('stripe_customer_id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=False)

    op.create_table('subscriptions',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('buyer_user_id', sa.BigInteger(), nullable=False),
        sa.Column('plan_id', sa.String(length=32), nullable=False),
        sa.Column('stripe_customer_id', sa.String(length=255), nullable=True),
        sa.Column('stripe_subscription_id', sa.String(length=255), nullable=True),
        sa.Column('stripe_status', sa.String(length=50), nullable=True),
        sa.Column('auto_renew_enabled', sa.Boolean(), nullable=False),
        sa.Column('current_period_end', sa.BigInteger(), nullable=True),
        sa.Column('redeemed_code_jti', sa.String(length=64), nullable=True),
        sa.Column('custom_plan_name', sa.String(), nullable=True),
        sa.Column('custom_plan_description', sa.Text(), nullable=True),
        sa.Column('custom_limit_5h_units', sa.Float(), nullable=True),
        sa.Column('custom_limit_7d_units', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('expired_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['buyer_user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_subscriptions_buyer_user_id'), 'subscriptions', ['buyer_user_id'], unique=False)
    op.create_index(op.f('ix_subscriptions_plan_id'), 'subscriptions', ['plan_id'], unique=False)
    op.create_index(op.f('ix_subscriptions_stripe_subscription_id'), 'subscriptions', ['stripe_subscription_id'], unique=True)
    op.create_index(op.f('ix_subscriptions_redeemed_code_jti'), 'subscriptions', ['redeemed_code_jti'], unique=False)
    op.create_index('idx_subscription_expiry_scan', 'subscriptions', ['expired_at', 'current_period_end'], unique=False)

    op.create_table('deployments',
        sa.Column('subscription_id', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('ledger_user_id', sa.BigInteger(), nullable=True),
        sa.Column('ledger_username', sa.String(length=255), nullable=True),
        sa.Column('deployed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deactivated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('transferred_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['subscription_id'], ['subscriptions.id'], ),
        sa.PrimaryKeyConstraint('subscription_id')
    )
    op.create_index(op.f('ix_deployments_status'), 'deployments', ['status'], unique=False)
    op.create_index(op.f('ix_deployments_ledger_user_id'), 'deployments', ['ledger_user_id'], unique=False)

    op.create_table('redemption_codes',
        sa.Column('jti', sa.String(length=64), nullable=False),
        sa.Column('created_by_user_id', sa.BigInteger(), nullable=True),
        sa.Column('plan_id', sa.String(length=32), nullable=False),
        sa.Column('duration_days', sa.Integer(), nullable=False),
        sa.Column('max_uses', sa.Integer(), nullable=False),
        sa.Column('used_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('expires_at', sa.BigInteger(), nullable=False),
        sa.Column('custom_plan_name', sa.String(), nullable=True),
        sa.Column('custom_plan_description', sa.Text(), nullable=True),
        sa.Column('custom_limit_5h_units', sa.Float(), nullable=True),
        sa.Column('custom_limit_7d_units', sa.Float(), nullable=True),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ),
        sa.PrimaryKeyConstraint('jti')
    )
    op.create_index(op.f('ix_redemption_codes_plan_id'), 'redemption_codes', ['plan_id'], unique=False)

    op.create_table('redemption_code_redemptions',
        sa.Column('jti', sa.String(length=64), nullable=False),
        sa.Column('redeemed_by_user_id', sa.BigInteger(), nullable=False),
        sa.Column('subscription_id', sa.String(length=32), nullable=False),
        sa.Column('redeemed_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['jti'], ['redemption_codes.jti'], ),
        sa.ForeignKeyConstraint(['subscription_id'], ['subscriptions.id'], ),
        sa.PrimaryKeyConstraint('jti', 'redeemed_by_user_id'),
        sa.UniqueConstraint('subscription_id')
    )

    op.create_table('stripe_events',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('received_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_stripe_events_type'), 'stripe_events', ['type'], unique=False)

    op.create_table('audit_logs',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('actor_user_id', sa.BigInteger(), nullable=True),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('subject_subscription_id', sa.String(length=32), nullable=True),
        sa.Column('subject_plan_id', sa.String(length=32), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_audit_logs_actor_user_id'), 'audit_logs', ['actor_user_id'], unique=False)
    op.create_index(op.f('ix_audit_logs_action'), 'audit_logs', ['action'], unique=False)
    op.create_index(op.f('ix_audit_logs_subject_subscription_id'), 'audit_logs', ['subject_subscription_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('audit_logs')
    op.drop_table('stripe_events')
    op.drop_table('redemption_code_redemptions')
    op.drop_table('redemption_codes')
    op.drop_table('deployments')
    op.drop_table('subscriptions')
    op.drop_table('users')
    op.drop_table('plans')
