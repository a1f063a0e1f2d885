"""Playlist and progress Pydantic models."""
from pydantic import BaseModel

from learnhub.models.db.playlist import AccessMode
from learnhub.models.entities import PlaylistKind


class PlaylistItemOut(BaseModel):
    id: str
    title: str
    description: str | None = None
    orderIndex: int
    isAvailable: bool
    isCompleted: bool


class PlaylistViewResponse(BaseModel):
    """Playlist with per-item availability for the requesting viewer."""

    id: str
    title: str
    description: str | None = None
    accessMode: AccessMode
    kind: PlaylistKind
    isOwner: bool
    items: list[PlaylistItemOut]


class LessonCompletionResponse(BaseModel):
    courseId: str
    playlistIds: list[str]
    completedPlaylistIds: list[str]
    isCompleted: bool
