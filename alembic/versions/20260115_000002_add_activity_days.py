"""Add activity days

Revision ID: 20260115_000002
Revises: 20260101_000001
Create Date: 2026-01-15

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20260115_000002'
down_revision: Union[str, None] = '20260101_000001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'activity_days',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'user_id', 'date', name='uq_activity_days_user_date'
        )
    )
    op.create_index('ix_activity_days_user_id', 'activity_days', ['user_id'])
    op.create_index('ix_activity_days_date', 'activity_days', ['date'])

    # Backfill from the check-in ledger
    op.execute(
        """
        INSERT INTO activity_days (user_id, date, created_at)
        SELECT user_id, (created_at AT TIME ZONE 'UTC')::date, MIN(created_at)
        FROM earnings
        WHERE type = 'checkin'
        GROUP BY user_id, (created_at AT TIME ZONE 'UTC')::date
        """
    )


def downgrade() -> None:
    op.drop_index('ix_activity_days_date', table_name='activity_days')
    op.drop_index('ix_activity_days_user_id', table_name='activity_days')
    op.drop_table('activity_days')
