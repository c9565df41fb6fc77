"""Lesson content - lessons, segments, quizzes

Revision ID: 0001
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Lessons table
    op.create_table(
        'lessons',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('phase', sa.String(20), nullable=False, index=True),
        sa.Column('phase_number', sa.Integer(), nullable=False),
        sa.Column('day_number', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('subtitle', sa.String(500), nullable=True),
        sa.Column('short_description', sa.Text(), nullable=False, server_default=''),
        sa.Column('estimated_minutes', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('is_booster', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('prerequisites', sa.JSON(), nullable=False),
        sa.Column('background_color', sa.String(16), nullable=False, server_default='#E4E4FF'),
        sa.Column('ellipse77_color', sa.String(16), nullable=False, server_default='#9BD4DF'),
        sa.Column('ellipse78_color', sa.String(16), nullable=False, server_default='#A6E0CB'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('phase_number', 'day_number', name='uq_lessons_phase_number_day_number'),
    )
    op.create_index('ix_lessons_phase_day_number', 'lessons', ['phase', 'day_number'])

    # Lesson segments table
    op.create_table(
        'lesson_segments',
        sa.Column('id', sa.String(96), primary_key=True),
        sa.Column('lesson_id', sa.String(64), sa.ForeignKey('lessons.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('section_title', sa.String(500), nullable=True),
        sa.Column('content_type', sa.String(20), nullable=False, server_default='TEXT'),
        sa.Column('body_text', sa.Text(), nullable=False),
        sa.Column('ideal_answer', sa.Text(), nullable=True),
        sa.Column('ai_check_mode', sa.String(20), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('lesson_id', 'order', name='uq_lesson_segments_lesson_order'),
    )

    # Quizzes table
    op.create_table(
        'quizzes',
        sa.Column('id', sa.String(96), primary_key=True),
        sa.Column('lesson_id', sa.String(64), sa.ForeignKey('lessons.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('correct_answer', sa.String(128), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Quiz options table
    op.create_table(
        'quiz_options',
        sa.Column('id', sa.String(128), primary_key=True),
        sa.Column('quiz_id', sa.String(96), sa.ForeignKey('quizzes.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('option_label', sa.String(1), nullable=False),
        sa.Column('option_text', sa.Text(), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('quiz_options')
    op.drop_table('quizzes')
    op.drop_table('lesson_segments')
    op.drop_index('ix_lessons_phase_day_number', table_name='lessons')
    op.drop_table('lessons')
