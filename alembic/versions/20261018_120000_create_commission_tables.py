"""create commission rules, commissions and payouts tables

Revision ID: 20261018_120000
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261018_120000'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Commission rules
    op.create_table(
        'commission_rules',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('agent_id', sa.BigInteger(), nullable=True, comment='Agent scope, NULL for defaults'),
        sa.Column('university_id', sa.BigInteger(), nullable=True),
        sa.Column('course_id', sa.BigInteger(), nullable=True),
        sa.Column('kind', sa.String(length=20), nullable=False, comment='percentage/flat'),
        sa.Column('value', sa.Numeric(12, 2), nullable=False, comment='Percent (0-100) or fixed amount'),
        sa.Column('priority', sa.Integer(), nullable=False, comment='1 agent+course, 2 agent+university, 3 course, 4 university'),
        sa.Column('active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_commission_rules_scope', 'commission_rules', ['agent_id', 'university_id', 'course_id'])
    op.create_index('ix_commission_rules_priority', 'commission_rules', ['priority'])
    op.create_index('ix_commission_rules_active', 'commission_rules', ['active'])

    # Commissions
    op.create_table(
        'commissions',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('application_id', sa.BigInteger(), nullable=False, comment='One commission per application'),
        sa.Column('agent_id', sa.BigInteger(), nullable=False),
        sa.Column('rule_id', sa.BigInteger(), nullable=True, comment='Resolved rule, NULL when no rule matched'),
        sa.Column('base_amount', sa.Numeric(12, 2), nullable=False, comment='Tuition/fee basis'),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False, comment='Commission owed'),
        sa.Column('kind', sa.String(length=20), nullable=True),
        sa.Column('value', sa.Numeric(12, 2), nullable=False),
        sa.Column('priority_used', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, comment='pending/approved/paid'),
        sa.Column('approved_by', sa.BigInteger(), nullable=True),
        sa.Column('approved_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('application_id')
    )
    op.create_index('ix_commissions_agent_id', 'commissions', ['agent_id'])
    op.create_index('ix_commissions_rule_id', 'commissions', ['rule_id'])
    op.create_index('ix_commissions_agent_status', 'commissions', ['agent_id', 'status'])

    # Payouts
    op.create_table(
        'payouts',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('payout_number', sa.String(length=64), nullable=False, comment='Human-readable number, e.g. PAY-1718000000000-42'),
        sa.Column('agent_id', sa.BigInteger(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, comment='requested/approved/rejected/paid'),
        sa.Column('payment_method', sa.String(length=50), nullable=True),
        sa.Column('payment_reference', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('processed_by', sa.BigInteger(), nullable=True),
        sa.Column('processed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_payouts_payout_number', 'payouts', ['payout_number'], unique=True)
    op.create_index('ix_payouts_agent_id', 'payouts', ['agent_id'])
    op.create_index('ix_payouts_agent_status', 'payouts', ['agent_id', 'status'])


def downgrade() -> None:
    op.drop_index('ix_payouts_agent_status', table_name='payouts')
    op.drop_index('ix_payouts_agent_id', table_name='payouts')
    op.drop_index('ix_payouts_payout_number', table_name='payouts')
    op.drop_table('payouts')

    op.drop_index('ix_commissions_agent_status', table_name='commissions')
    op.drop_index('ix_commissions_rule_id', table_name='commissions')
    op.drop_index('ix_commissions_agent_id', table_name='commissions')
    op.drop_table('commissions')

    op.drop_index('ix_commission_rules_active', table_name='commission_rules')
    op.drop_index('ix_commission_rules_priority', table_name='commission_rules')
    op.drop_index('ix_commission_rules_scope', table_name='commission_rules')
    op.drop_table('commission_rules')
