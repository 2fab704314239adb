"""workflow schema

Revision ID: 0001_workflow_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_workflow_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ENUMS = {
    'userrole': (
        'ADMIN', 'PROJECT_MANAGER', 'PROJECT_COORDINATOR', 'DESIGNER',
        'DEVELOPER', 'QA_TESTER', 'CLIENT',
    ),
    'department': (
        'PMO', 'DESIGN', 'HTML', 'PHP', 'REACT', 'WORDPRESS', 'QA', 'DELIVERY', 'MANAGER',
    ),
    'workstatus': (
        'NOT_STARTED', 'IN_PROGRESS', 'ON_HOLD', 'CORRECTIONS_NEEDED',
        'PENDING_CLIENT_APPROVAL', 'CLIENT_REJECTED', 'QA_TESTING', 'QA_REJECTED',
        'BUGFIX_IN_PROGRESS', 'BEFORE_LIVE_QA', 'READY_FOR_DELIVERY', 'COMPLETED',
    ),
    'approvaltype': ('CLIENT_APPROVAL', 'QA_APPROVAL', 'BEFORE_LIVE_QA', 'MANAGER_REVIEW'),
    'approvalstatus': ('PENDING', 'APPROVED', 'REJECTED', 'CANCELLED'),
    'qatype': ('HTML_QA', 'DEV_QA', 'BEFORE_LIVE_QA'),
    'qastatus': ('IN_PROGRESS', 'PASSED', 'FAILED', 'CANCELLED'),
    'bugseverity': ('LOW', 'MEDIUM', 'HIGH', 'CRITICAL'),
    'bugstatus': ('OPEN', 'IN_PROGRESS', 'FIXED', 'VERIFIED', 'CLOSED'),
}


def _is_postgres() -> bool:
    return op.get_bind().dialect.name == 'postgresql'


def _enum(name: str):
    # PostgreSQL types are created once up front and shared between columns
    if _is_postgres():
        return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)
    return sa.Enum(*ENUMS[name], name=name)


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    if _is_postgres():
        for name, values in ENUMS.items():
            postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('full_name', sa.String(length=256), nullable=False),
        sa.Column('email', sa.String(length=256), nullable=False),
        sa.Column('password_hash', sa.String(length=512), nullable=False),
        sa.Column('role', _enum('userrole'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'project_categories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_project_categories_id', 'project_categories', ['id'])

    op.create_table(
        'category_department_mappings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('project_categories.id'), nullable=False),
        sa.Column('department', _enum('department'), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('is_required', sa.Boolean(), nullable=False),
        sa.Column('estimated_days', sa.Integer(), nullable=True),
        sa.UniqueConstraint('category_id', 'sequence', name='unique_category_sequence'),
        sa.UniqueConstraint('category_id', 'department', name='unique_category_department'),
    )
    op.create_index('ix_category_department_mappings_id', 'category_department_mappings', ['id'])

    op.create_table(
        'projects',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=256), nullable=False),
        sa.Column('client_name', sa.String(length=256), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('project_categories.id'), nullable=True),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('current_department', _enum('department'), nullable=False),
        sa.Column('next_department', _enum('department'), nullable=True),
        sa.Column('project_code', sa.String(length=64), nullable=False),
        sa.Column('workflow_version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_projects_id', 'projects', ['id'])

    op.create_table(
        'project_department_history',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id'), nullable=False),
        sa.Column('from_department', _enum('department'), nullable=True),
        sa.Column('to_department', _enum('department'), nullable=False),
        sa.Column('work_status', _enum('workstatus'), nullable=False),
        sa.Column('work_start_date', sa.DateTime(), nullable=True),
        sa.Column('work_end_date', sa.DateTime(), nullable=True),
        sa.Column('estimated_days', sa.Integer(), nullable=True),
        sa.Column('actual_days', sa.Integer(), nullable=True),
        sa.Column('moved_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('updated_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_project_department_history_id', 'project_department_history', ['id'])
    op.create_index(
        'ix_department_history_project_created',
        'project_department_history',
        ['project_id', 'created_at'],
    )

    op.create_table(
        'workflow_approvals',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('history_id', sa.Integer(), sa.ForeignKey('project_department_history.id'), nullable=False),
        sa.Column('approval_type', _enum('approvaltype'), nullable=False),
        sa.Column('status', _enum('approvalstatus'), nullable=False),
        sa.Column('requested_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('reviewed_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('requested_at', sa.DateTime(), nullable=False),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
    )
    op.create_index('ix_workflow_approvals_id', 'workflow_approvals', ['id'])
    op.create_index('ix_workflow_approvals_history_id', 'workflow_approvals', ['history_id'])

    op.create_table(
        'qa_testing_rounds',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('history_id', sa.Integer(), sa.ForeignKey('project_department_history.id'), nullable=False),
        sa.Column('qa_type', _enum('qatype'), nullable=False),
        sa.Column('round_number', sa.Integer(), nullable=False),
        sa.Column('status', _enum('qastatus'), nullable=False),
        sa.Column('tested_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('bugs_found', sa.Integer(), nullable=False),
        sa.Column('critical_bugs', sa.Integer(), nullable=False),
        sa.Column('test_results', sa.Text(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('history_id', 'round_number', name='unique_history_round'),
    )
    op.create_index('ix_qa_testing_rounds_id', 'qa_testing_rounds', ['id'])
    op.create_index('ix_qa_testing_rounds_history_id', 'qa_testing_rounds', ['history_id'])

    op.create_table(
        'qa_bugs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('qa_round_id', sa.Integer(), sa.ForeignKey('qa_testing_rounds.id'), nullable=False),
        sa.Column('title', sa.String(length=256), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('severity', _enum('bugseverity'), nullable=False),
        sa.Column('status', _enum('bugstatus'), nullable=False),
        sa.Column('assigned_to', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('steps', sa.Text(), nullable=True),
        sa.Column('found_at', sa.DateTime(), nullable=False),
        sa.Column('fixed_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_qa_bugs_id', 'qa_bugs', ['id'])
    op.create_index('ix_qa_bugs_qa_round_id', 'qa_bugs', ['qa_round_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('qa_bugs')
    op.drop_table('qa_testing_rounds')
    op.drop_table('workflow_approvals')
    op.drop_table('project_department_history')
    op.drop_table('projects')
    op.drop_table('category_department_mappings')
    op.drop_table('project_categories')
    op.drop_table('users')

    if _is_postgres():
        bind = op.get_bind()
        for name, values in ENUMS.items():
            postgresql.ENUM(*values, name=name).drop(bind, checkfirst=True)
