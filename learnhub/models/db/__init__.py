"""Database models."""
from learnhub.models.db.content import Course, Question, Test, Variant
from learnhub.models.db.playlist import (
    AccessMode,
    CoursePlaylist,
    Playlist,
    PlaylistProgress,
    PlaylistTest,
)
from learnhub.models.db.rating import TestRating

__all__ = [
    "Course",
    "Question",
    "Test",
    "Variant",
    "AccessMode",
    "CoursePlaylist",
    "Playlist",
    "PlaylistProgress",
    "PlaylistTest",
    "TestRating",
]
