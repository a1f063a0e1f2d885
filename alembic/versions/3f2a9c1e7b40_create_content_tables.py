"""create_content_tables

Revision ID: 3f2a9c1e7b40
Revises:
Create Date: 2026-09-02 10:14:22.418903

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1e7b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('tests',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('teacher_id', sa.String(36), nullable=False),
        sa.Column('time_minutes', sa.Integer(), nullable=True),
        sa.Column('file_url', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_tests_teacher_id', 'tests', ['teacher_id'])

    op.create_table('test_questions',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('test_id', sa.String(36), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['test_id'], ['tests.id'], ondelete='CASCADE')
    )
    op.create_index('ix_test_questions_test_id', 'test_questions', ['test_id'])

    op.create_table('test_question_variants',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('question_id', sa.String(36), nullable=False),
        sa.Column('variant_text', sa.Text(), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['question_id'], ['test_questions.id'], ondelete='CASCADE')
    )
    op.create_index('ix_test_question_variants_question_id', 'test_question_variants', ['question_id'])

    op.create_table('courses',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('teacher_id', sa.String(36), nullable=False),
        sa.Column('video_url', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_courses_teacher_id', 'courses', ['teacher_id'])

    op.create_table('test_ratings',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('test_id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['test_id'], ['tests.id'], ondelete='CASCADE'),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_test_rating_range')
    )
    op.create_index('ix_test_ratings_test_id', 'test_ratings', ['test_id'])
    op.create_index('ix_test_ratings_user_id', 'test_ratings', ['user_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_test_ratings_user_id', table_name='test_ratings')
    op.drop_index('ix_test_ratings_test_id', table_name='test_ratings')
    op.drop_table('test_ratings')
    op.drop_index('ix_courses_teacher_id', table_name='courses')
    op.drop_table('courses')
    op.drop_index('ix_test_question_variants_question_id', table_name='test_question_variants')
    op.drop_table('test_question_variants')
    op.drop_index('ix_test_questions_test_id', table_name='test_questions')
    op.drop_table('test_questions')
    op.drop_index('ix_tests_teacher_id', table_name='tests')
    op.drop_table('tests')
