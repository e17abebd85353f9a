"""Initial schema: users, goals, tasks, goal_tasks, progress.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


goal_type = sa.Enum('TOTAL_TARGET', 'FREQUENCY', 'HABIT', name='goaltype')
goal_scope = sa.Enum('YEARLY', 'MONTHLY', 'WEEKLY', 'DAILY', 'STANDALONE', name='goalscope')
progress_mode = sa.Enum('MANUAL_TOTAL', 'TASK_BASED', 'HABIT', name='progressmode')
frequency_type = sa.Enum('DAILY', 'WEEKLY', 'MONTHLY', name='frequencytype')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('sub', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(200), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_users_sub', 'users', ['sub'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'goals',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('parent_id', UUID(as_uuid=True), sa.ForeignKey('goals.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', goal_type, nullable=False, server_default='TOTAL_TARGET'),
        sa.Column('scope', goal_scope, nullable=False, server_default='STANDALONE'),
        sa.Column('progress_mode', progress_mode, nullable=False, server_default='TASK_BASED'),
        sa.Column('target_value', sa.Float(), nullable=True),
        sa.Column('current_value', sa.Float(), nullable=False, server_default='0'),
        sa.Column('frequency_target', sa.Integer(), nullable=True),
        sa.Column('frequency_type', frequency_type, nullable=True),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('step_size', sa.Float(), nullable=False, server_default='1'),
        sa.Column('custom_data_label', sa.String(100), nullable=True),
        sa.Column('is_marked_complete', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_goals_user_id', 'goals', ['user_id'])
    op.create_index('ix_goals_parent_id', 'goals', ['parent_id'])
    # Calendar range queries filter on both ends of the goal span
    op.create_index('ix_goals_user_start_end', 'goals', ['user_id', 'start_date', 'end_date'])

    op.create_table(
        'tasks',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('parent_task_id', UUID(as_uuid=True), sa.ForeignKey('tasks.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('size', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('scheduled_date', sa.Date(), nullable=True),
        sa.Column('custom_data', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_tasks_user_id', 'tasks', ['user_id'])
    op.create_index('ix_tasks_scheduled_date', 'tasks', ['scheduled_date'])

    op.create_table(
        'goal_tasks',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('goal_id', UUID(as_uuid=True), sa.ForeignKey('goals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('task_id', UUID(as_uuid=True), sa.ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('goal_id', 'task_id', name='uq_goal_tasks_goal_task'),
    )
    op.create_index('ix_goal_tasks_goal_id', 'goal_tasks', ['goal_id'])
    op.create_index('ix_goal_tasks_task_id', 'goal_tasks', ['task_id'])

    op.create_table(
        'progress',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('goal_id', UUID(as_uuid=True), sa.ForeignKey('goals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('custom_data', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_progress_goal_id', 'progress', ['goal_id'])


def downgrade() -> None:
    op.drop_table('progress')
    op.drop_table('goal_tasks')
    op.drop_table('tasks')
    op.drop_table('goals')
    op.drop_table('users')

    frequency_type.drop(op.get_bind(), checkfirst=True)
    progress_mode.drop(op.get_bind(), checkfirst=True)
    goal_scope.drop(op.get_bind(), checkfirst=True)
    goal_type.drop(op.get_bind(), checkfirst=True)
