"""create users and admin_action_logs

Revision ID: 3b1f6c2d9a40
Revises:
Create Date: 2026-10-19 10:12:41.530118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b1f6c2d9a40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Enum 은 모델과 같이 멤버 이름(대문자)으로 저장
user_role = sa.Enum('ADMIN', 'USER', name='user_role')
account_status = sa.Enum(
    'PENDING_VERIFICATION',
    'ACTIVE',
    'INACTIVE',
    'BLOCKED',
    'SUSPENDED',
    'DELETION_REQUESTED',
    'DELETED',
    name='account_status',
)
admin_action = sa.Enum(
    'CREATE_USER',
    'UPDATE_USER',
    'DELETE_USER',
    'ACTIVATE_USER',
    'DEACTIVATE_USER',
    'BLOCK_USER',
    'SUSPEND_USER',
    'UNBLOCK_USER',
    'SET_ROLE',
    name='admin_action',
)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('username', sa.String(length=30), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('status', account_status, nullable=False),
        sa.Column('email_verified', sa.Boolean(), nullable=False),
        sa.Column('deletion_requested_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deletion_reason', sa.Text(), nullable=True),
        sa.Column('deactivation_reason', sa.Text(), nullable=True),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        sa.Column('onboarding_completed', sa.Boolean(), nullable=False),
        sa.Column('oauth_providers', sa.JSON(), nullable=False),
        sa.Column('email_verification_token', sa.String(length=64), nullable=True),
        sa.Column('email_verification_expiry', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reset_token', sa.String(length=64), nullable=True),
        sa.Column('reset_token_expiry', sa.DateTime(timezone=True), nullable=True),
        sa.Column('refresh_tokens', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_status', 'users', ['status'])
    op.create_index('ix_users_email_verified', 'users', ['email_verified'])
    op.create_index('ix_users_email_verification_token', 'users', ['email_verification_token'])
    op.create_index('ix_users_reset_token', 'users', ['reset_token'])

    op.create_table(
        'admin_action_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('actor_id', sa.Uuid(), nullable=True),
        sa.Column('target_user_id', sa.Uuid(), nullable=True),
        sa.Column('target_email', sa.String(length=255), nullable=True),
        sa.Column('action', admin_action, nullable=False),
        sa.Column('before', sa.String(length=32), nullable=True),
        sa.Column('after', sa.String(length=32), nullable=True),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['actor_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['target_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    op.drop_table('admin_action_logs')

    op.drop_index('ix_users_reset_token', table_name='users')
    op.drop_index('ix_users_email_verification_token', table_name='users')
    op.drop_index('ix_users_email_verified', table_name='users')
    op.drop_index('ix_users_status', table_name='users')
    op.drop_index('ix_users_role', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')

    # PostgreSQL 은 enum 타입이 테이블과 별도로 남음 (다른 DB 에서는 무시됨)
    bind = op.get_bind()
    admin_action.drop(bind, checkfirst=True)
    account_status.drop(bind, checkfirst=True)
    user_role.drop(bind, checkfirst=True)
