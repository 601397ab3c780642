"""create_jobboard_schema

Initial schema: users with session state, the skill catalogue, jobs,
applications, documents, notifications and saved jobs.

Revision ID: 5d2e8c41a7b3
Revises:
Create Date: 2026-10-19 09:12:40.318205

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5d2e8c41a7b3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


user_role = sa.Enum('DEVELOPER', 'RECRUITER', 'ADMIN', name='userrole')
job_type = sa.Enum('FULL_TIME', 'PART_TIME', 'CONTRACT', 'INTERNSHIP', 'FREELANCE', name='jobtype')
skill_level = sa.Enum('BEGINNER', 'INTERMEDIATE', 'EXPERT', name='skilllevel')
application_status = sa.Enum(
    'PENDING', 'UNDER_REVIEW', 'INTERVIEW', 'ACCEPTED', 'REJECTED', name='applicationstatus'
)
interview_status = sa.Enum('SCHEDULED', 'COMPLETED', 'CANCELLED', name='interviewstatus')

ENUM_TYPES = ('interviewstatus', 'applicationstatus', 'skilllevel', 'jobtype', 'userrole')


def upgrade() -> None:
    """Create every table of the job board."""

    # 1. Users (indexes auto-created from index=True columns)
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False, index=True),
        sa.Column('email', sa.String(), nullable=False, unique=True, index=True),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('token_version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_active_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('preferred_job_type', job_type, nullable=True),
        sa.Column('reset_token', sa.String(), nullable=True, index=True),
        sa.Column('reset_token_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )

    # 2. Skill catalogue and user skills
    op.create_table(
        'skills',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
    )
    op.create_table(
        'user_skills',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False, index=True),
        sa.Column('user_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('skill_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('level', skill_level, nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['skill_id'], ['skills.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'skill_id', name='uq_user_skills_user_skill'),
    )

    # 3. Jobs and their required skills
    op.create_table(
        'jobs',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False, index=True),
        sa.Column('user_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('title', sa.String(), nullable=False, index=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('type', job_type, nullable=False),
        sa.Column('salary_min', sa.Float(), nullable=True),
        sa.Column('salary_max', sa.Float(), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
    )
    op.create_table(
        'job_skills',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False, index=True),
        sa.Column('job_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('skill_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('level', skill_level, nullable=False),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['skill_id'], ['skills.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('job_id', 'skill_id', name='uq_job_skills_job_skill'),
    )

    # 4. Applications (recruiter_id is the interviewer assigned to the application)
    op.create_table(
        'applications',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False, index=True),
        sa.Column('user_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('job_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('status', application_status, nullable=False),
        sa.Column('recruiter_id', sa.Uuid(), nullable=True, index=True),
        sa.Column('interview_status', interview_status, nullable=True),
        sa.Column('interview_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('skill_match_score', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id']),
        sa.ForeignKeyConstraint(['recruiter_id'], ['users.id']),
    )

    # 5. Per-user records
    op.create_table(
        'documents',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False, index=True),
        sa.Column('user_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('file_path', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
    )
    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False, index=True),
        sa.Column('user_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('message', sa.String(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
    )
    op.create_table(
        'saved_jobs',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False, index=True),
        sa.Column('user_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('job_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'job_id', name='uq_saved_jobs_user_job'),
    )


def downgrade() -> None:
    """Drop every table of the job board."""

    # Reverse dependency order
    op.drop_table('saved_jobs')
    op.drop_table('notifications')
    op.drop_table('documents')
    op.drop_table('applications')
    op.drop_table('job_skills')
    op.drop_table('jobs')
    op.drop_table('user_skills')
    op.drop_table('skills')
    op.drop_table('users')

    # Named enum types only exist on PostgreSQL
    if op.get_bind().dialect.name == 'postgresql':
        for type_name in ENUM_TYPES:
            op.execute(f'DROP TYPE IF EXISTS {type_name}')
