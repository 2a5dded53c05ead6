"""Initial workflow core schema

Revision ID: 0001_initial_workflow_core
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_workflow_core'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _json() -> sa.types.TypeEngine:
    return sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _base_columns() -> list:
    return [
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """
    Create the workflow core tables.

    Includes the partial unique index that allows at most one non-deleted
    offer per application.
    """
    op.create_table(
        'accounts',
        *_base_columns(),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(200), nullable=True),
        sa.Column('is_platform_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.UniqueConstraint('email', name='uq_accounts_email'),
    )

    op.create_table(
        'organizations',
        *_base_columns(),
        sa.Column('name', sa.String(200), nullable=False),
    )

    op.create_table(
        'organization_members',
        *_base_columns(),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('account_id', sa.Uuid(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('role', sa.String(30), nullable=False, server_default='MEMBER'),
        sa.UniqueConstraint('organization_id', 'account_id', name='uq_org_member_account'),
    )
    op.create_index('ix_organization_members_organization_id', 'organization_members', ['organization_id'])
    op.create_index('ix_organization_members_account_id', 'organization_members', ['account_id'])

    op.create_table(
        'jobs',
        *_base_columns(),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('stages', _json(), nullable=True),
        sa.Column('recruiter_id', sa.Uuid(), sa.ForeignKey('organization_members.id'), nullable=True),
        sa.Column('hiring_manager_id', sa.Uuid(), sa.ForeignKey('organization_members.id'), nullable=True),
    )
    op.create_index('ix_jobs_organization_id', 'jobs', ['organization_id'])

    op.create_table(
        'job_assignments',
        *_base_columns(),
        sa.Column('job_id', sa.Uuid(), sa.ForeignKey('jobs.id'), nullable=False),
        sa.Column('member_id', sa.Uuid(), sa.ForeignKey('organization_members.id'), nullable=False),
        sa.UniqueConstraint('job_id', 'member_id', name='uq_job_assignment_member'),
    )
    op.create_index('ix_job_assignments_job_id', 'job_assignments', ['job_id'])
    op.create_index('ix_job_assignments_member_id', 'job_assignments', ['member_id'])

    op.create_table(
        'applications',
        *_base_columns(),
        sa.Column('job_id', sa.Uuid(), sa.ForeignKey('jobs.id'), nullable=False),
        sa.Column('candidate_account_id', sa.Uuid(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('stage', sa.String(100), nullable=False, server_default='applied'),
        sa.Column('offered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('hired_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_applications_job_id', 'applications', ['job_id'])
    op.create_index('ix_applications_candidate_account_id', 'applications', ['candidate_account_id'])
    op.create_index('ix_applications_job_stage', 'applications', ['job_id', 'stage'])

    op.create_table(
        'offers',
        *_base_columns(),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('application_id', sa.Uuid(), sa.ForeignKey('applications.id'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='DRAFT'),
        sa.Column('previous_stage', sa.String(100), nullable=True),
        sa.Column('created_by_member_id', sa.Uuid(), sa.ForeignKey('organization_members.id'), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('viewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('signed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('withdrawn_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('withdrawal_reason', sa.Text(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_offers_organization_id', 'offers', ['organization_id'])
    op.create_index('ix_offers_application_id', 'offers', ['application_id'])
    op.create_index(
        'uq_offers_application_active',
        'offers',
        ['application_id'],
        unique=True,
        postgresql_where=sa.text('deleted_at IS NULL'),
        sqlite_where=sa.text('deleted_at IS NULL'),
    )

    op.create_table(
        'approval_requests',
        *_base_columns(),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('approval_type', sa.String(50), nullable=False),
        sa.Column('requester_id', sa.Uuid(), sa.ForeignKey('organization_members.id'), nullable=False),
        sa.Column('approver_id', sa.Uuid(), sa.ForeignKey('organization_members.id'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('consumed_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_approval_requests_organization_id', 'approval_requests', ['organization_id'])
    op.create_index('ix_approval_requests_approver_id', 'approval_requests', ['approver_id'])
    op.create_index('ix_approval_requests_key', 'approval_requests', ['entity_type', 'entity_id', 'approval_type'])

    op.create_table(
        'coach_profiles',
        *_base_columns(),
        sa.Column('account_id', sa.Uuid(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('rating', sa.Float(), nullable=True),
        sa.Column('review_count', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('account_id', name='uq_coach_profiles_account_id'),
    )

    op.create_table(
        'mentor_profiles',
        *_base_columns(),
        sa.Column('account_id', sa.Uuid(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('mentor_rating', sa.Float(), nullable=True),
        sa.Column('mentor_review_count', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('account_id', name='uq_mentor_profiles_account_id'),
    )

    op.create_table(
        'scores',
        *_base_columns(),
        sa.Column('target_type', sa.String(30), nullable=False),
        sa.Column('target_id', sa.Uuid(), nullable=False),
        sa.Column('rater_account_id', sa.Uuid(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.UniqueConstraint('target_type', 'target_id', 'rater_account_id', name='uq_scores_target_rater'),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_scores_rating_range'),
    )
    op.create_index('ix_scores_target', 'scores', ['target_type', 'target_id'])

    op.create_table(
        'scorecards',
        *_base_columns(),
        sa.Column('application_id', sa.Uuid(), sa.ForeignKey('applications.id'), nullable=False),
        sa.Column('stage_id', sa.String(100), nullable=False),
        sa.Column('scorer_member_id', sa.Uuid(), sa.ForeignKey('organization_members.id'), nullable=False),
        sa.Column('overall_rating', sa.Integer(), nullable=False),
        sa.Column('recommendation', sa.String(20), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
    )
    op.create_index('ix_scorecards_application_stage', 'scorecards', ['application_id', 'stage_id'])

    op.create_table(
        'interviews',
        *_base_columns(),
        sa.Column('application_id', sa.Uuid(), sa.ForeignKey('applications.id'), nullable=False),
        sa.Column('stage_id', sa.String(100), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='SCHEDULED'),
    )
    op.create_index('ix_interviews_application_stage', 'interviews', ['application_id', 'stage_id'])

    op.create_table(
        'audit_logs',
        *_base_columns(),
        sa.Column('organization_id', sa.Uuid(), nullable=True),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('actor_account_id', sa.Uuid(), nullable=True),
        sa.Column('changes', _json(), nullable=True),
        sa.Column('details', _json(), nullable=True),
    )
    op.create_index('ix_audit_logs_organization_id', 'audit_logs', ['organization_id'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])

    op.create_table(
        'notifications',
        *_base_columns(),
        sa.Column('account_id', sa.Uuid(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('data', _json(), nullable=True),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_notifications_account_id', 'notifications', ['account_id'])

    op.create_table(
        'notification_jobs',
        *_base_columns(),
        sa.Column('account_id', sa.Uuid(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('data', _json(), nullable=True),
        sa.Column('send_email', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('available_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_notification_jobs_status_available', 'notification_jobs', ['status', 'available_at'])


def downgrade() -> None:
    op.drop_table('notification_jobs')
    op.drop_table('notifications')
    op.drop_table('audit_logs')
    op.drop_table('interviews')
    op.drop_table('scorecards')
    op.drop_table('scores')
    op.drop_table('mentor_profiles')
    op.drop_table('coach_profiles')
    op.drop_table('approval_requests')
    op.drop_index('uq_offers_application_active', table_name='offers')
    op.drop_table('offers')
    op.drop_table('applications')
    op.drop_table('job_assignments')
    op.drop_table('jobs')
    op.drop_table('organization_members')
    op.drop_table('organizations')
    op.drop_table('accounts')
