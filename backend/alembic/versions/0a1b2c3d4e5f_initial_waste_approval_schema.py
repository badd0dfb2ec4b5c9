"""initial_waste_approval_schema

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-03-02 09:00:00.000000

Users, production lines, the approval ladder (levels + assignments),
waste entries with their per-level ledger, and the audit log.

waste_approvals.approval_level_id deliberately has no foreign key: a
deleted level leaves its ledger history in place.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0a1b2c3d4e5f'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False)


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False)


def _updated_at() -> sa.Column:
    return sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False)


def upgrade() -> None:
    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('language', sa.String(10), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'lines',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('line_type', sa.String(20), nullable=False),
        sa.Column('form_approver_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(['form_approver_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )

    op.create_table(
        'approval_levels',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('name_localized', sa.String(255), nullable=True),
        sa.Column('level_order', sa.Integer(), nullable=False),
        sa.Column('approval_type', sa.String(20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('level_order'),
    )

    op.create_table(
        'approval_level_assignments',
        _id(),
        sa.Column('approval_level_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(['approval_level_id'], ['approval_levels.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('approval_level_id', 'user_id', name='uq_level_assignment'),
    )
    op.create_index('ix_approval_level_assignments_approval_level_id', 'approval_level_assignments', ['approval_level_id'])
    op.create_index('ix_approval_level_assignments_user_id', 'approval_level_assignments', ['user_id'])

    op.create_table(
        'waste_entries',
        _id(),
        sa.Column('line_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('product_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('unit_of_measure', sa.String(50), nullable=False),
        sa.Column('batch_number', sa.String(100), nullable=True),
        sa.Column('reason_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('app_approved', sa.Boolean(), nullable=False),
        sa.Column('form_approved', sa.Boolean(), nullable=False),
        sa.Column('current_approval_level', sa.Integer(), nullable=False),
        sa.Column('approval_status', sa.String(20), nullable=False),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=False),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(['line_id'], ['lines.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_waste_entries_line_id', 'waste_entries', ['line_id'])
    op.create_index('ix_waste_entries_approval_status', 'waste_entries', ['approval_status'])
    op.create_index('ix_waste_entries_created_by', 'waste_entries', ['created_by'])

    op.create_table(
        'waste_approvals',
        _id(),
        sa.Column('waste_entry_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('approval_level_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('approved_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('decided_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(['waste_entry_id'], ['waste_entries.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['approved_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('waste_entry_id', 'approval_level_id', name='uq_waste_approval_level'),
    )
    op.create_index('ix_waste_approvals_waste_entry_id', 'waste_approvals', ['waste_entry_id'])
    op.create_index('ix_waste_approvals_approval_level_id', 'waste_approvals', ['approval_level_id'])

    op.create_table(
        'audit_logs',
        _id(),
        sa.Column('actor_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('entity_type', sa.String(100), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('before_state', sa.Text(), nullable=True),
        sa.Column('after_state', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['actor_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])

    # Append-only at the DB level.
    op.execute("REVOKE UPDATE, DELETE ON audit_logs FROM PUBLIC;")
    op.execute("GRANT SELECT, INSERT ON audit_logs TO PUBLIC;")


def downgrade() -> None:
    op.drop_index('ix_audit_logs_entity_id', table_name='audit_logs')
    op.drop_index('ix_audit_logs_entity_type', table_name='audit_logs')
    op.drop_index('ix_audit_logs_action', table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_index('ix_waste_approvals_approval_level_id', table_name='waste_approvals')
    op.drop_index('ix_waste_approvals_waste_entry_id', table_name='waste_approvals')
    op.drop_table('waste_approvals')
    op.drop_index('ix_waste_entries_created_by', table_name='waste_entries')
    op.drop_index('ix_waste_entries_approval_status', table_name='waste_entries')
    op.drop_index('ix_waste_entries_line_id', table_name='waste_entries')
    op.drop_table('waste_entries')
    op.drop_index('ix_approval_level_assignments_user_id', table_name='approval_level_assignments')
    op.drop_index('ix_approval_level_assignments_approval_level_id', table_name='approval_level_assignments')
    op.drop_table('approval_level_assignments')
    op.drop_table('approval_levels')
    op.drop_table('lines')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
