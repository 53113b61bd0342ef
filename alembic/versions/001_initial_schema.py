"""Initial schema

Creates the complete cultivation tracking schema.

Tables:
    - locations: Operational sites
    - strains: Global strain registry
    - users: Employees, admins and super admins
    - locationAssignments: User/location membership
    - batches: Production batches, numbered per location
    - batchStrains: Strains processed in a batch
    - workEntries: Daily work per employee per batch strain
    - writeUps: Disciplinary records, numbered per employee
    - auditLogs: Append-only change log

Revision ID: 001
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ROLE_STATUSES = ('employee', 'admin', 'super_admin')
BATCH_STATUSES = ('planned', 'in_progress', 'published')
WRITEUP_SEVERITIES = ('verbal_warning', 'written_warning', 'final_warning', 'suspension', 'termination')


def _id_column() -> sa.Column:
    return sa.Column('id', sa.Uuid(), primary_key=True, server_default=sa.text('gen_random_uuid()'))


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column('createdAt', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updatedAt', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # ==========================================================================
    # LOCATIONS
    # ==========================================================================
    op.create_table(
        'locations',
        _id_column(),
        sa.Column('name', sa.Text(), nullable=False, unique=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamp_columns(),
    )

    # ==========================================================================
    # STRAINS
    # ==========================================================================
    op.create_table(
        'strains',
        _id_column(),
        sa.Column('name', sa.Text(), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('bucketWeight', sa.Numeric(6, 3), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
    )

    # ==========================================================================
    # USERS
    # ==========================================================================
    op.create_table(
        'users',
        _id_column(),
        sa.Column('employeeID', sa.Integer(), nullable=True, unique=True),
        sa.Column('firstName', sa.Text(), nullable=False),
        sa.Column('lastName', sa.Text(), nullable=False),
        sa.Column('role', sa.Enum(*ROLE_STATUSES, name='role_statuses'), nullable=False, server_default='employee'),
        sa.Column('email', sa.Text(), nullable=False, unique=True),
        *_timestamp_columns(),
    )

    # ==========================================================================
    # LOCATION ASSIGNMENTS
    # ==========================================================================
    op.create_table(
        'locationAssignments',
        _id_column(),
        sa.Column('userId', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('locationId', sa.Uuid(), sa.ForeignKey('locations.id', ondelete='RESTRICT'), nullable=False),
        sa.UniqueConstraint('userId', 'locationId', name='LocationAssignments_userId_locationId_unique'),
    )
    op.create_index('ix_locationAssignments_userId', 'locationAssignments', ['userId'])
    op.create_index('ix_locationAssignments_locationId', 'locationAssignments', ['locationId'])

    # ==========================================================================
    # BATCHES
    # ==========================================================================
    op.create_table(
        'batches',
        _id_column(),
        sa.Column('locationId', sa.Uuid(), sa.ForeignKey('locations.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('startDate', sa.Date(), nullable=False),
        sa.Column('endDate', sa.Date(), nullable=True),
        sa.Column('status', sa.Enum(*BATCH_STATUSES, name='batch_statuses'), nullable=False, server_default='in_progress'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamp_columns(),
        sa.UniqueConstraint('locationId', 'number', name='Batches_locationId_number_unique'),
    )
    op.create_index('ix_batches_locationId', 'batches', ['locationId'])

    # ==========================================================================
    # BATCH STRAINS
    # ==========================================================================
    op.create_table(
        'batchStrains',
        _id_column(),
        sa.Column('batchId', sa.Uuid(), sa.ForeignKey('batches.id', ondelete='CASCADE'), nullable=False),
        sa.Column('strainId', sa.Uuid(), sa.ForeignKey('strains.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('isCompleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.UniqueConstraint('batchId', 'strainId', name='BatchStrains_batchId_strainId_unique'),
    )
    op.create_index('ix_batchStrains_batchId', 'batchStrains', ['batchId'])
    op.create_index('ix_batchStrains_strainId', 'batchStrains', ['strainId'])

    # ==========================================================================
    # WORK ENTRIES
    # ==========================================================================
    op.create_table(
        'workEntries',
        _id_column(),
        sa.Column('userId', sa.Uuid(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('batchStrainsId', sa.Uuid(), sa.ForeignKey('batchStrains.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('amount', sa.Numeric(6, 2), nullable=False),
        sa.Column('hours', sa.Numeric(4, 2), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.UniqueConstraint('userId', 'batchStrainsId', 'date', name='WorkEntries_userId_batchStrainsId_date'),
    )
    op.create_index('ix_workEntries_userId', 'workEntries', ['userId'])
    op.create_index('ix_workEntries_batchStrainsId', 'workEntries', ['batchStrainsId'])
    op.create_index('ix_work_entries_date', 'workEntries', ['date'])

    # ==========================================================================
    # WRITE-UPS
    # ==========================================================================
    op.create_table(
        'writeUps',
        _id_column(),
        sa.Column('employeeId', sa.Uuid(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('issuedBy', sa.Uuid(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('writeUpNumber', sa.Integer(), nullable=False),
        sa.Column('severity', sa.Enum(*WRITEUP_SEVERITIES, name='writeup_severities'), nullable=False),
        sa.Column('issueDate', sa.Date(), nullable=False),
        sa.Column('incidentDate', sa.Date(), nullable=False),
        sa.Column('followUpDate', sa.Date(), nullable=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('correctiveAction', sa.Text(), nullable=True),
        sa.Column('employeeResponse', sa.Text(), nullable=True),
        sa.Column('witnessInformation', sa.Text(), nullable=True),
        sa.Column('resolvedDate', sa.Date(), nullable=True),
        sa.Column('resolvedBy', sa.Uuid(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('resolutionNotes', sa.Text(), nullable=True),
        *_timestamp_columns(),
        sa.UniqueConstraint('employeeId', 'writeUpNumber', name='WriteUps_employeeId_writeUpNumber_unique'),
    )
    op.create_index('ix_writeUps_employeeId', 'writeUps', ['employeeId'])
    op.create_index('WriteUps_severity_idx', 'writeUps', ['severity'])
    op.create_index('WriteUps_issueDate_idx', 'writeUps', ['issueDate'])

    # ==========================================================================
    # AUDIT LOGS
    # ==========================================================================
    op.create_table(
        'auditLogs',
        _id_column(),
        sa.Column('tableName', sa.Text(), nullable=False),
        sa.Column('recordId', sa.Uuid(), nullable=False),
        sa.Column('operation', sa.String(6), nullable=False),
        sa.Column('oldValues', postgresql.JSONB(), nullable=True),
        sa.Column('newValues', postgresql.JSONB(), nullable=True),
        sa.Column('userId', sa.Uuid(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('ipAddress', sa.Text(), nullable=True),
        sa.CheckConstraint("operation IN ('INSERT', 'UPDATE', 'DELETE')", name='AuditLogs_operation_check'),
    )
    op.create_index('ix_auditLogs_userId', 'auditLogs', ['userId'])
    op.create_index('ix_auditLogs_timestamp', 'auditLogs', ['timestamp'])
    op.create_index('ix_audit_logs_table_record', 'auditLogs', ['tableName', 'recordId'])


def downgrade() -> None:
    op.drop_index('ix_audit_logs_table_record', table_name='auditLogs')
    op.drop_index('ix_auditLogs_timestamp', table_name='auditLogs')
    op.drop_index('ix_auditLogs_userId', table_name='auditLogs')
    op.drop_table('auditLogs')
    op.drop_index('WriteUps_issueDate_idx', table_name='writeUps')
    op.drop_index('WriteUps_severity_idx', table_name='writeUps')
    op.drop_index('ix_writeUps_employeeId', table_name='writeUps')
    op.drop_table('writeUps')
    op.drop_index('ix_work_entries_date', table_name='workEntries')
    op.drop_index('ix_workEntries_batchStrainsId', table_name='workEntries')
    op.drop_index('ix_workEntries_userId', table_name='workEntries')
    op.drop_table('workEntries')
    op.drop_index('ix_batchStrains_strainId', table_name='batchStrains')
    op.drop_index('ix_batchStrains_batchId', table_name='batchStrains')
    op.drop_table('batchStrains')
    op.drop_index('ix_batches_locationId', table_name='batches')
    op.drop_table('batches')
    op.drop_index('ix_locationAssignments_locationId', table_name='locationAssignments')
    op.drop_index('ix_locationAssignments_userId', table_name='locationAssignments')
    op.drop_table('locationAssignments')
    op.drop_table('users')
    op.drop_table('strains')
    op.drop_table('locations')

    # Drop enums
    op.execute('DROP TYPE IF EXISTS writeup_severities')
    op.execute('DROP TYPE IF EXISTS batch_statuses')
    op.execute('DROP TYPE IF EXISTS role_statuses')
