"""Create community point engine schema.

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


MONEY = sa.DECIMAL(18, 2)
PERCENT = sa.DECIMAL(5, 2)


def upgrade() -> None:
    """Create members, wallets, referral tree, CP ledger and reserve tables."""

    op.create_table(
        'members',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_members_phone', 'members', ['phone'], unique=True)

    op.create_table(
        'member_wallets',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('total_referrals', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unlocked_level', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('onhold_points', MONEY, nullable=False, server_default='0'),
        sa.Column('available_points', MONEY, nullable=False, server_default='0'),
        sa.Column('total_points', MONEY, nullable=False, server_default='0'),
        sa.Column('total_rp', MONEY, nullable=False, server_default='0'),
        sa.Column('total_pp', MONEY, nullable=False, server_default='0'),
        sa.Column('total_cp', MONEY, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint(
            'unlocked_level >= 1 AND unlocked_level <= 30',
            name='check_wallet_unlocked_level_range',
        ),
        sa.ForeignKeyConstraint(['member_id'], ['members.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_member_wallets_member_id', 'member_wallets', ['member_id'], unique=True)

    op.create_table(
        'referrals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('parent_member_id', sa.Integer(), nullable=False),
        sa.Column('child_member_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('parent_member_id <> child_member_id', name='check_referral_not_self'),
        sa.ForeignKeyConstraint(['parent_member_id'], ['members.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['child_member_id'], ['members.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_referrals_parent_member_id', 'referrals', ['parent_member_id'])
    op.create_index('ix_referrals_child_member_id', 'referrals', ['child_member_id'], unique=True)

    op.create_table(
        'cp_level_configs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('level_from', sa.Integer(), nullable=False),
        sa.Column('level_to', sa.Integer(), nullable=False),
        sa.Column('cp_percentage_per_level', PERCENT, nullable=False),
        sa.Column('total_percentage_for_range', PERCENT, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('level_to >= level_from', name='check_cp_level_range_order'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_cp_level_configs_level_from', 'cp_level_configs', ['level_from'])
    op.create_index('ix_cp_level_configs_level_to', 'cp_level_configs', ['level_to'])

    op.create_table(
        'member_community_points',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('total_cp', MONEY, nullable=False, server_default='0'),
        sa.Column('available_cp', MONEY, nullable=False, server_default='0'),
        sa.Column('onhold_cp', MONEY, nullable=False, server_default='0'),
        sa.Column('is_locked', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('level >= 1 AND level <= 30', name='check_member_cp_level_range'),
        sa.ForeignKeyConstraint(['member_id'], ['members.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('member_id', 'level', name='uq_member_cp_level'),
    )
    op.create_index('ix_member_community_points_member_id', 'member_community_points', ['member_id'])

    op.create_table(
        'cp_distribution_pools',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('transaction_ref', sa.String(100), nullable=False),
        sa.Column('reason', sa.String(20), nullable=False),
        sa.Column('source_member_id', sa.Integer(), nullable=False),
        sa.Column('trigger_member_id', sa.Integer(), nullable=False),
        sa.Column('purchase_id', sa.Integer(), nullable=True),
        sa.Column('total_cp_amount', MONEY, nullable=False),
        sa.Column('total_cp_distributed', MONEY, nullable=False, server_default='0'),
        sa.Column('total_transaction_amount', MONEY, nullable=False),
        sa.Column('total_referrals', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unlocked_level', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['source_member_id'], ['members.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['trigger_member_id'], ['members.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reason', 'purchase_id', name='uq_cp_pool_purchase'),
    )
    op.create_index('ix_cp_distribution_pools_transaction_ref', 'cp_distribution_pools', ['transaction_ref'])
    op.create_index('ix_cp_distribution_pools_source_member_id', 'cp_distribution_pools', ['source_member_id'])

    op.create_table(
        'cp_transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('cp_distribution_pool_id', sa.Integer(), nullable=True),
        sa.Column('purchase_id', sa.Integer(), nullable=True),
        sa.Column('source_member_id', sa.Integer(), nullable=False),
        sa.Column('receiver_member_id', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('cp_percentage', PERCENT, nullable=False),
        sa.Column('cp_amount', MONEY, nullable=False),
        sa.Column('is_locked', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('total_referrals', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='available'),
        sa.Column('transaction_type', sa.String(20), nullable=False, server_default='earned'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('locked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('released_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['cp_distribution_pool_id'], ['cp_distribution_pools.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['source_member_id'], ['members.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['receiver_member_id'], ['members.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_cp_transactions_cp_distribution_pool_id', 'cp_transactions', ['cp_distribution_pool_id'])
    op.create_index('ix_cp_transactions_purchase_id', 'cp_transactions', ['purchase_id'])
    op.create_index('ix_cp_transactions_source_member_id', 'cp_transactions', ['source_member_id'])
    op.create_index(
        'idx_cp_transactions_receiver_status_level',
        'cp_transactions',
        ['receiver_member_id', 'status', 'level'],
    )
    op.create_index('idx_cp_transactions_created_at', 'cp_transactions', ['created_at'])

    op.create_table(
        'cp_unlock_histories',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('previous_referrals', sa.Integer(), nullable=False),
        sa.Column('new_referrals', sa.Integer(), nullable=False),
        sa.Column('previous_unlocked_level', sa.Integer(), nullable=False),
        sa.Column('new_unlocked_level', sa.Integer(), nullable=False),
        sa.Column('released_cp_amount', MONEY, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['member_id'], ['members.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_cp_unlock_histories_member_id', 'cp_unlock_histories', ['member_id'])

    op.create_table(
        'point_transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=True),
        sa.Column('referral_member_id', sa.Integer(), nullable=True),
        sa.Column('transaction_points', MONEY, nullable=False),
        sa.Column('transaction_type', sa.String(10), nullable=False),
        sa.Column('points_type', sa.String(10), nullable=False),
        sa.Column('transaction_reason', sa.String(255), nullable=False),
        sa.Column('bap', MONEY, nullable=True),
        sa.Column('brp', MONEY, nullable=True),
        sa.Column('bop', MONEY, nullable=True),
        sa.Column('cr_balance', MONEY, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['member_id'], ['members.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['referral_member_id'], ['members.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_point_transactions_member_id', 'point_transactions', ['member_id'])
    op.create_index(
        'idx_point_transactions_member_type',
        'point_transactions',
        ['member_id', 'transaction_type'],
    )

    op.create_table(
        'company_reserve',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('cr_points', MONEY, nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('id = 1', name='check_company_reserve_singleton'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.execute("INSERT INTO company_reserve (id, cr_points) VALUES (1, 0)")

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='unread'),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['member_id'], ['members.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_member_id', 'notifications', ['member_id'])
    op.create_index('ix_notifications_type', 'notifications', ['type'])


def downgrade() -> None:
    """Drop community point engine schema."""

    op.drop_table('notifications')
    op.drop_table('company_reserve')
    op.drop_table('point_transactions')
    op.drop_table('cp_unlock_histories')
    op.drop_table('cp_transactions')
    op.drop_table('cp_distribution_pools')
    op.drop_table('member_community_points')
    op.drop_table('cp_level_configs')
    op.drop_table('referrals')
    op.drop_table('member_wallets')
    op.drop_table('members')
