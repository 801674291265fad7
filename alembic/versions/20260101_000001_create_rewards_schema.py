"""Create rewards schema

Revision ID: 20260101_000001
Revises:
Create Date: 2026-01-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20260101_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


MONEY = sa.DECIMAL(precision=18, scale=8)
RATE = sa.DECIMAL(precision=10, scale=6)


def upgrade() -> None:
    # users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('referral_code', sa.String(length=20), nullable=False),
        sa.Column(
            'total_balance', MONEY, nullable=False, server_default='0',
            comment='Withdrawable balance'
        ),
        sa.Column(
            'earned_balance', MONEY, nullable=False, server_default='0',
            comment='Lifetime earned, never decreases'
        ),
        sa.Column(
            'withdrawn_balance', MONEY, nullable=False, server_default='0'
        ),
        sa.Column(
            'total_referral_earnings', MONEY, nullable=False,
            server_default='0',
            comment='Denormalized running total of commissions received'
        ),
        sa.Column(
            'daily_streak', sa.Integer(), nullable=False, server_default='0'
        ),
        sa.Column('last_checkin_date', sa.Date(), nullable=True),
        sa.Column(
            'is_active', sa.Boolean(), nullable=False,
            server_default=sa.false()
        ),
        sa.Column('last_activity_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'total_balance >= 0',
            name='check_user_total_balance_non_negative'
        ),
        sa.CheckConstraint(
            'earned_balance >= 0',
            name='check_user_earned_balance_non_negative'
        ),
        sa.CheckConstraint(
            'withdrawn_balance >= 0',
            name='check_user_withdrawn_balance_non_negative'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index(
        'ix_users_referral_code', 'users', ['referral_code'], unique=True
    )
    op.create_index('ix_users_is_active', 'users', ['is_active'])
    op.create_index(
        'ix_users_last_activity_date', 'users', ['last_activity_date']
    )

    # earnings (append-only ledger)
    op.create_table(
        'earnings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('level', sa.Integer(), nullable=True),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('amount > 0', name='check_earning_amount_positive'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_earnings_user_id', 'earnings', ['user_id'])
    op.create_index('ix_earnings_created_at', 'earnings', ['created_at'])
    op.create_index(
        'ix_earnings_user_type_created', 'earnings',
        ['user_id', 'type', 'created_at']
    )

    # referrals (materialized upline edges)
    op.create_table(
        'referrals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('inviter_id', sa.Integer(), nullable=False),
        sa.Column('invitee_id', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column(
            'bonus_given', sa.Boolean(), nullable=False,
            server_default=sa.false()
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'level >= 1 AND level <= 7', name='check_referral_level_range'
        ),
        sa.CheckConstraint(
            'inviter_id <> invitee_id', name='check_referral_not_self'
        ),
        sa.ForeignKeyConstraint(
            ['inviter_id'], ['users.id'], ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['invitee_id'], ['users.id'], ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'invitee_id', 'level', name='uq_referrals_invitee_level'
        )
    )
    op.create_index('ix_referrals_inviter_id', 'referrals', ['inviter_id'])
    op.create_index('ix_referrals_invitee_id', 'referrals', ['invitee_id'])
    op.create_index('ix_referrals_level', 'referrals', ['level'])

    # daily_earnings (per-day snapshots)
    op.create_table(
        'daily_earnings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column(
            'total_earned', MONEY, nullable=False, server_default='0'
        ),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'user_id', 'date', name='uq_daily_earnings_user_date'
        )
    )
    op.create_index(
        'ix_daily_earnings_user_id', 'daily_earnings', ['user_id']
    )
    op.create_index('ix_daily_earnings_date', 'daily_earnings', ['date'])

    # referral_commissions (append-only payout audit)
    op.create_table(
        'referral_commissions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('inviter_id', sa.Integer(), nullable=False),
        sa.Column('invitee_id', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('commission_rate', RATE, nullable=False),
        sa.Column('invitee_daily_earnings', MONEY, nullable=False),
        sa.Column('commission_amount', MONEY, nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column(
            'policy', sa.String(length=32), nullable=False,
            server_default='daily_aggregate'
        ),
        sa.Column('idempotency_key', sa.String(length=128), nullable=False),
        sa.Column('source_earning_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ['inviter_id'], ['users.id'], ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['invitee_id'], ['users.id'], ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['source_earning_id'], ['earnings.id'], ondelete='SET NULL'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('idempotency_key')
    )
    op.create_index(
        'ix_referral_commissions_inviter_id', 'referral_commissions',
        ['inviter_id']
    )
    op.create_index(
        'ix_referral_commissions_invitee_id', 'referral_commissions',
        ['invitee_id']
    )
    op.create_index(
        'ix_referral_commissions_inviter_date', 'referral_commissions',
        ['inviter_id', 'date']
    )

    # withdrawals
    op.create_table(
        'withdrawals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('method', sa.String(length=50), nullable=False),
        sa.Column('account', sa.String(length=255), nullable=False),
        sa.Column('amount_requested', MONEY, nullable=False),
        sa.Column('fee', MONEY, nullable=False),
        sa.Column('net_amount', MONEY, nullable=False),
        sa.Column(
            'status', sa.String(length=20), nullable=False,
            server_default='pending'
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'amount_requested > 0', name='check_withdrawal_amount_positive'
        ),
        sa.CheckConstraint(
            'net_amount >= 0', name='check_withdrawal_net_non_negative'
        ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_withdrawals_user_id', 'withdrawals', ['user_id'])
    op.create_index('ix_withdrawals_status', 'withdrawals', ['status'])


def downgrade() -> None:
    op.drop_table('withdrawals')
    op.drop_table('referral_commissions')
    op.drop_table('daily_earnings')
    op.drop_table('referrals')
    op.drop_table('earnings')
    op.drop_table('users')
