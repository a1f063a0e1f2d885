"""create_playlists

Revision ID: 8d41e6b2c5a7
Revises: 3f2a9c1e7b40
Create Date: 2026-09-09 16:42:05.771230

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8d41e6b2c5a7'
down_revision: Union[str, Sequence[str], None] = '3f2a9c1e7b40'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('playlists',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('teacher_id', sa.String(36), nullable=False),
        sa.Column('access_mode', sa.String(20), nullable=False, server_default='sequential'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("access_mode IN ('any', 'sequential')", name='ck_playlist_access_mode')
    )
    op.create_index('ix_playlists_teacher_id', 'playlists', ['teacher_id'])

    op.create_table('playlist_tests',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('playlist_id', sa.String(36), nullable=False),
        sa.Column('test_id', sa.String(36), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['playlist_id'], ['playlists.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['test_id'], ['tests.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('playlist_id', 'test_id', name='uq_playlist_test')
    )
    op.create_index('ix_playlist_tests_playlist_id', 'playlist_tests', ['playlist_id'])

    op.create_table('course_playlists',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('course_id', sa.String(36), nullable=False),
        sa.Column('playlist_id', sa.String(36), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['playlist_id'], ['playlists.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('course_id', 'playlist_id', name='uq_course_playlist')
    )
    op.create_index('ix_course_playlists_course_id', 'course_playlists', ['course_id'])
    op.create_index('ix_course_playlists_playlist_id', 'course_playlists', ['playlist_id'])

    op.create_table('playlist_student_progress',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('playlist_id', sa.String(36), nullable=False),
        sa.Column('student_id', sa.String(36), nullable=False),
        sa.Column('current_item_id', sa.String(36), nullable=True),
        sa.Column('completed_item_ids_json', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['playlist_id'], ['playlists.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('playlist_id', 'student_id', name='uq_playlist_student')
    )
    op.create_index('ix_playlist_student_progress_playlist_id', 'playlist_student_progress', ['playlist_id'])
    op.create_index('ix_playlist_student_progress_student_id', 'playlist_student_progress', ['student_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_playlist_student_progress_student_id', table_name='playlist_student_progress')
    op.drop_index('ix_playlist_student_progress_playlist_id', table_name='playlist_student_progress')
    op.drop_table('playlist_student_progress')
    op.drop_index('ix_course_playlists_playlist_id', table_name='course_playlists')
    op.drop_index('ix_course_playlists_course_id', table_name='course_playlists')
    op.drop_table('course_playlists')
    op.drop_index('ix_playlist_tests_playlist_id', table_name='playlist_tests')
    op.drop_table('playlist_tests')
    op.drop_index('ix_playlists_teacher_id', table_name='playlists')
    op.drop_table('playlists')
