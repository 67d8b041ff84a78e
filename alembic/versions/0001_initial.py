"""Initial schema - users, approvable records and approver notifications

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


RECORD_TABLES = ("companies", "agents", "job_desks")


def _approval_columns() -> list:
    return [
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_approved', sa.Boolean(), nullable=False),
        sa.Column('pending_approval', sa.Boolean(), nullable=False),
        sa.Column('approved_by_id', sa.Uuid(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _record_columns() -> list:
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=True),
        sa.Column('managed_by_id', sa.Uuid(), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('address', sa.String(255), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('postal_code', sa.String(20), nullable=True),
        sa.Column('province', sa.String(50), nullable=True),
        sa.Column('document_key', sa.String(500), nullable=True),
    ]


def _record_constraints(table: str) -> list:
    return [
        sa.PrimaryKeyConstraint('id', name=f'pk_{table}'),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='SET NULL', name=f'fk_{table}_owner_id_users'),
        sa.ForeignKeyConstraint(['managed_by_id'], ['users.id'], ondelete='SET NULL', name=f'fk_{table}_managed_by_id_users'),
        sa.ForeignKeyConstraint(['approved_by_id'], ['users.id'], ondelete='SET NULL', name=f'fk_{table}_approved_by_id_users'),
        sa.CheckConstraint('NOT (is_approved AND pending_approval)', name=f'ck_{table}_approval_state'),
    ]


def _record_indexes(table: str) -> None:
    op.create_index(f'ix_{table}_owner_id', table, ['owner_id'])
    op.create_index(f'ix_{table}_managed_by_id', table, ['managed_by_id'])


def upgrade() -> None:
    """Create users, record, and notification tables."""

    # ==========================================================================
    # Users
    # ==========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('organization', sa.String(255), nullable=True),
        sa.Column('managed_by_id', sa.Uuid(), nullable=True),
        sa.Column('token_version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_approval_columns(),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('username', name='uq_users_username'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sa.ForeignKeyConstraint(['managed_by_id'], ['users.id'], ondelete='SET NULL', name='fk_users_managed_by_id_users'),
        sa.ForeignKeyConstraint(['approved_by_id'], ['users.id'], ondelete='SET NULL', name='fk_users_approved_by_id_users'),
        sa.CheckConstraint('NOT (is_approved AND pending_approval)', name='ck_users_approval_state'),
    )
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_managed_by_id', 'users', ['managed_by_id'])

    # ==========================================================================
    # Business records (companies, territorial agents, job desks)
    # ==========================================================================
    for table in RECORD_TABLES:
        op.create_table(
            table,
            *_record_columns(),
            sa.Column('business_name', sa.String(255), nullable=False),
            sa.Column('vat_number', sa.String(32), nullable=False),
            *_approval_columns(),
            *_record_constraints(table),
            sa.UniqueConstraint('vat_number', name=f'uq_{table}_vat_number'),
        )
        _record_indexes(table)

    # ==========================================================================
    # Reporters
    # ==========================================================================
    op.create_table(
        'reporters',
        *_record_columns(),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('tax_code', sa.String(32), nullable=False),
        *_approval_columns(),
        *_record_constraints('reporters'),
        sa.UniqueConstraint('tax_code', name='uq_reporters_tax_code'),
    )
    _record_indexes('reporters')

    # ==========================================================================
    # Notifications
    # ==========================================================================
    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('entity_name', sa.String(255), nullable=False),
        sa.Column('created_by_id', sa.Uuid(), nullable=True),
        sa.Column('created_by_name', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_notifications'),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], ondelete='SET NULL', name='fk_notifications_created_by_id_users'),
    )
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])
    op.create_index('idx_notif_type_created', 'notifications', ['type', 'created_at'])

    op.create_table(
        'notification_recipients',
        sa.Column('notification_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.PrimaryKeyConstraint('notification_id', 'user_id', name='pk_notification_recipients'),
        sa.ForeignKeyConstraint(['notification_id'], ['notifications.id'], ondelete='CASCADE', name='fk_notification_recipients_notification_id_notifications'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE', name='fk_notification_recipients_user_id_users'),
    )
    op.create_index('ix_notification_recipients_user_id', 'notification_recipients', ['user_id'])

    op.create_table(
        'notification_reads',
        sa.Column('notification_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('notification_id', 'user_id', name='pk_notification_reads'),
        sa.ForeignKeyConstraint(['notification_id'], ['notifications.id'], ondelete='CASCADE', name='fk_notification_reads_notification_id_notifications'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE', name='fk_notification_reads_user_id_users'),
    )
    op.create_index('ix_notification_reads_user_id', 'notification_reads', ['user_id'])


def downgrade() -> None:
    op.drop_table('notification_reads')
    op.drop_table('notification_recipients')
    op.drop_table('notifications')
    op.drop_table('reporters')
    for table in reversed(RECORD_TABLES):
        op.drop_table(table)
    op.drop_table('users')
