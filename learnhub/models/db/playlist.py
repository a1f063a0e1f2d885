"""
Playlist, its two item junction tables and per-student progress.
"""

from __future__ import annotations

import enum
import json
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy import CheckConstraint, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnhub.database import Base
from learnhub.models.db.content import new_id


class AccessMode(str, enum.Enum):
    """How playlist items unlock for students."""

    ANY = "any"  # Every item is always available
    SEQUENTIAL = "sequential"  # Item N unlocks once item N-1 is completed


class Playlist(Base):
    """
    Ordered container of tests or courses, never both.
    The kind is inferred from which junction table has rows.
    """

    __tablename__ = "playlists"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    teacher_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    access_mode: Mapped[str] = mapped_column(
        String(20), default=AccessMode.SEQUENTIAL.value, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "access_mode IN ('any', 'sequential')", name="ck_playlist_access_mode"
        ),
    )

    tests: Mapped[list["PlaylistTest"]] = relationship(
        "PlaylistTest", back_populates="playlist", cascade="all, delete-orphan"
    )
    courses: Mapped[list["CoursePlaylist"]] = relationship(
        "CoursePlaylist", back_populates="playlist", cascade="all, delete-orphan"
    )


class PlaylistTest(Base):
    """Test membership in a playlist."""

    __tablename__ = "playlist_tests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    playlist_id: Mapped[str] = mapped_column(
        ForeignKey("playlists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    test_id: Mapped[str] = mapped_column(
        ForeignKey("tests.id", ondelete="CASCADE"), nullable=False
    )
    order_index: Mapped[int] = mapped_column(default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("playlist_id", "test_id", name="uq_playlist_test"),
    )

    playlist: Mapped["Playlist"] = relationship("Playlist", back_populates="tests")


class CoursePlaylist(Base):
    """Course (lesson) membership in a playlist."""

    __tablename__ = "course_playlists"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    course_id: Mapped[str] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    playlist_id: Mapped[str] = mapped_column(
        ForeignKey("playlists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    order_index: Mapped[int] = mapped_column(default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("course_id", "playlist_id", name="uq_course_playlist"),
    )

    playlist: Mapped["Playlist"] = relationship("Playlist", back_populates="courses")


class PlaylistProgress(Base):
    """
    Per-student progress through one playlist.
    ``completed_item_ids`` holds test ids or course ids depending on the
    playlist kind and only ever grows.
    """

    __tablename__ = "playlist_student_progress"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    playlist_id: Mapped[str] = mapped_column(
        ForeignKey("playlists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    current_item_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    completed_item_ids_json: Mapped[str] = mapped_column(
        Text, default="[]", nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("playlist_id", "student_id", name="uq_playlist_student"),
    )

    @property
    def completed_item_ids(self) -> list[str]:
        """Parse completed ids from JSON."""
        if not self.completed_item_ids_json:
            return []
        try:
            value = json.loads(self.completed_item_ids_json)
        except (json.JSONDecodeError, TypeError):
            return []
        return [str(item) for item in value] if isinstance(value, list) else []

    @completed_item_ids.setter
    def completed_item_ids(self, value: list[str]) -> None:
        """Serialize completed ids to JSON."""
        self.completed_item_ids_json = json.dumps(list(value or []))
