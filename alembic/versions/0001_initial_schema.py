"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

Creates the identity tables (accounts, auth_sessions) and the document
collections: users, admins, categories, courses, exams, questions, results
and routines.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
    ]


def upgrade() -> None:
    """Create all tables."""
    print("🗄️  Creating identity tables...")

    op.create_table(
        'accounts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_accounts_email', 'accounts', ['email'], unique=True)
    op.create_index('ix_accounts_created_at', 'accounts', ['created_at'])

    op.create_table(
        'auth_sessions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('account_id', sa.String(length=36), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ip_address', sa.String(length=50), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_auth_sessions_account_id', 'auth_sessions', ['account_id'])
    op.create_index('ix_auth_sessions_created_at', 'auth_sessions', ['created_at'])

    print("📚 Creating catalogue tables...")

    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('roll', sa.String(length=50), nullable=True),
        sa.Column('institution', sa.String(length=200), nullable=True),
        sa.Column('enrolled_courses', postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_user_id', 'users', ['user_id'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_created_at', 'users', ['created_at'])

    op.create_table(
        'admins',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )
    op.create_index('ix_admins_created_at', 'admins', ['created_at'])

    op.create_table(
        'categories',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
    )
    op.create_index('ix_categories_created_at', 'categories', ['created_at'])

    op.create_table(
        'courses',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=True),
        sa.Column('price', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('image', sa.String(length=500), nullable=True),
        sa.Column('features', postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('category_id', sa.String(length=36), nullable=True),
        sa.Column('disabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('start_date', sa.String(length=100), nullable=True),
        sa.Column('enroll_button_text', sa.String(length=50), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_courses_slug', 'courses', ['slug'])
    op.create_index('ix_courses_category_id', 'courses', ['category_id'])
    op.create_index('ix_courses_created_at', 'courses', ['created_at'])

    print("📝 Creating exam tables...")

    op.create_table(
        'exams',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('course_id', sa.String(length=36), nullable=False),
        sa.Column('course_name', sa.String(length=255), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('negative_mark', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_questions', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.CheckConstraint('end_time >= start_time', name='ck_exam_window'),
        sa.CheckConstraint('negative_mark >= 0', name='ck_exam_negative_mark'),
        sa.CheckConstraint('duration_minutes >= 1', name='ck_exam_duration'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_exams_course_id', 'exams', ['course_id'])
    op.create_index('ix_exams_created_at', 'exams', ['created_at'])

    op.create_table(
        'questions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('exam_id', sa.String(length=36), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('option_1', sa.String(length=500), nullable=False),
        sa.Column('option_2', sa.String(length=500), nullable=False),
        sa.Column('option_3', sa.String(length=500), nullable=False),
        sa.Column('option_4', sa.String(length=500), nullable=False),
        sa.Column('correct_option', sa.Integer(), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('correct_option BETWEEN 1 AND 4', name='ck_question_correct_option'),
        sa.ForeignKeyConstraint(['exam_id'], ['exams.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_questions_exam_id', 'questions', ['exam_id'])
    op.create_index('ix_questions_created_at', 'questions', ['created_at'])

    op.create_table(
        'results',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('student_id', sa.String(length=36), nullable=False),
        sa.Column('student_name', sa.String(length=255), nullable=True),
        sa.Column('exam_id', sa.String(length=36), nullable=False),
        sa.Column('exam_title', sa.String(length=255), nullable=False),
        sa.Column('course_id', sa.String(length=36), nullable=True),
        sa.Column('total_questions', sa.Integer(), nullable=False),
        sa.Column('correct_answers', sa.Integer(), nullable=False),
        sa.Column('wrong_answers', sa.Integer(), nullable=False),
        sa.Column('unanswered', sa.Integer(), nullable=False),
        sa.Column('net_mark', sa.Float(), nullable=False),
        sa.Column('answer_snapshot', postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_results_student_id', 'results', ['student_id'])
    op.create_index('ix_results_exam_id', 'results', ['exam_id'])
    op.create_index('ix_results_course_id', 'results', ['course_id'])
    op.create_index('ix_results_submitted_at', 'results', ['submitted_at'])
    op.create_index('ix_results_created_at', 'results', ['created_at'])

    op.create_table(
        'routines',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('course_id', sa.String(length=36), nullable=False),
        sa.Column('course_name', sa.String(length=255), nullable=False),
        sa.Column('date', sa.String(length=100), nullable=False),
        sa.Column('topic', sa.String(length=255), nullable=False),
        sa.Column('time', sa.String(length=100), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_routines_course_id', 'routines', ['course_id'])
    op.create_index('ix_routines_created_at', 'routines', ['created_at'])

    print("✅ Schema created")


def downgrade() -> None:
    """Drop all tables."""
    for table in (
        'routines',
        'results',
        'questions',
        'exams',
        'courses',
        'categories',
        'admins',
        'users',
        'auth_sessions',
        'accounts',
    ):
        op.drop_table(table)
