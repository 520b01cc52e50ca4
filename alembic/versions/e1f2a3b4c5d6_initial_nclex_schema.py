"""initial nclex schema

Revision ID: e1f2a3b4c5d6
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = 'e1f2a3b4c5d6'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

QUESTION_TYPES = (
    'multiple_choice', 'sata', 'hot_spot', 'fill_in_the_blank', 'drag_and_drop',
    'chart_or_graphic', 'graphic_answer', 'audio_question', 'extended_multiple_response',
    'extended_drag_and_drop', 'cloze_dropdown', 'matrix_grid', 'bow_tie', 'enhanced_hot_spot',
)


def _uuid_pk():
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()'))


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        _uuid_pk(),
        sa.Column('email', sa.String(255), nullable=True, unique=True, index=True),
        sa.Column('full_name', sa.String(100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'topics',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(200), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'subtopics',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('topic_id', sa.Integer(), sa.ForeignKey('topics.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('topic_id', 'name', name='uq_subtopic_topic_name'),
    )

    op.create_table(
        'questions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('topic_id', sa.Integer(), sa.ForeignKey('topics.id'), nullable=False, index=True),
        sa.Column('sub_topic_id', sa.Integer(), sa.ForeignKey('subtopics.id'), nullable=False, index=True),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('question_type', sa.Enum(*QUESTION_TYPES, name='question_type'), nullable=False, server_default='multiple_choice'),
        sa.Column('difficulty', sa.Enum('easy', 'medium', 'hard', name='question_difficulty'), nullable=False, server_default='medium'),
        sa.Column('ngn', sa.Boolean(), nullable=False, server_default=sa.text('false'), index=True),
        sa.Column('explanation', sa.Text(), nullable=True),
        sa.Column('ref_sources', postgresql.JSONB(), nullable=True),
        sa.Column('use_partial_scoring', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        *_timestamps(),
    )

    op.create_table(
        'answers',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('question_id', sa.Integer(), sa.ForeignKey('questions.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('option_number', sa.Integer(), nullable=False),
        sa.Column('answer_text', sa.Text(), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('partial_credit', sa.Numeric(3, 2), nullable=False, server_default='0'),
        sa.Column('penalty_value', sa.Numeric(3, 2), nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('question_id', 'option_number', name='uq_answer_question_option'),
        sa.CheckConstraint('partial_credit >= 0 AND partial_credit <= 1', name='ck_answer_partial_credit'),
        sa.CheckConstraint('penalty_value >= 0 AND penalty_value <= 1', name='ck_answer_penalty_value'),
    )

    op.create_table(
        'question_status',
        _uuid_pk(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('question_id', sa.Integer(), sa.ForeignKey('questions.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='unused', index=True),
        sa.Column('attempts_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('correct_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_attempt_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'question_id', name='uq_question_status_user_question'),
        sa.CheckConstraint(
            "status IN ('unused', 'correct', 'incorrect', 'marked', 'skipped')",
            name='ck_question_status_status',
        ),
    )

    op.create_table(
        'tests',
        _uuid_pk(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('test_type', sa.Enum('practice', 'quick_start', 'custom', name='test_type'), nullable=False, server_default='custom'),
        sa.Column('settings', postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('question_ids', postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('total_questions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total_time_seconds', sa.Integer(), nullable=True),
        sa.Column('status', sa.Enum('in_progress', 'completed', 'abandoned', name='test_status'), nullable=False, server_default='in_progress', index=True),
        *_timestamps(),
    )

    op.create_table(
        'test_results',
        _uuid_pk(),
        sa.Column('test_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tests.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('question_id', sa.Integer(), sa.ForeignKey('questions.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('question_order', sa.Integer(), nullable=False),
        sa.Column('selected_answers', postgresql.JSONB(), nullable=True),
        sa.Column('is_correct', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('is_partially_correct', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('is_skipped', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('is_marked', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('time_spent_seconds', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('score', sa.Numeric(5, 2), nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('test_id', 'question_id', name='uq_test_results_test_question'),
        sa.CheckConstraint('score >= 0 AND score <= 100', name='ck_test_results_score'),
    )

    op.create_table(
        'test_statistics',
        _uuid_pk(),
        sa.Column('test_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tests.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('total_questions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('correct_answers', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('partially_correct', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('incorrect_answers', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('skipped_questions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('marked_questions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('average_time_per_question', sa.Float(), nullable=False, server_default='0'),
        sa.Column('overall_score', sa.Float(), nullable=False, server_default='0'),
        *_timestamps(),
    )

    op.create_table(
        'topic_performance',
        _uuid_pk(),
        sa.Column('test_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tests.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('topic_id', sa.Integer(), sa.ForeignKey('topics.id'), nullable=False, index=True),
        sa.Column('subtopic_id', sa.Integer(), sa.ForeignKey('subtopics.id'), nullable=False),
        sa.Column('total_questions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('correct_answers', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('incorrect_answers', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('ngn_questions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('score_percentage', sa.Float(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('test_id', 'topic_id', 'subtopic_id', name='uq_topic_performance_test_topic_sub'),
    )

    op.create_table(
        'user_topic_mastery',
        _uuid_pk(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('topic_id', sa.Integer(), sa.ForeignKey('topics.id'), nullable=False),
        sa.Column('questions_attempted', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('questions_correct', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('mastery_level', sa.String(20), nullable=False, server_default='not_started'),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'topic_id', name='uq_user_topic_mastery_user_topic'),
    )

    op.create_table(
        'user_progress',
        _uuid_pk(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('total_tests_taken', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_questions_completed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_study_time_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('average_score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('current_streak_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('longest_streak_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_study_date', sa.Date(), nullable=True),
        *_timestamps(),
    )


def downgrade() -> None:
    for table in (
        'user_progress',
        'user_topic_mastery',
        'topic_performance',
        'test_statistics',
        'test_results',
        'tests',
        'question_status',
        'answers',
        'questions',
        'subtopics',
        'topics',
        'users',
    ):
        op.drop_table(table)

    for enum_name in ('test_status', 'test_type', 'question_difficulty', 'question_type'):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
