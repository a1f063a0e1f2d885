"""
Plain records exchanged between the persistence gateway and the services.

They carry no ORM state, so services can be exercised against any gateway.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field

from learnhub.models.db.playlist import AccessMode


class PlaylistKind(str, enum.Enum):
    """What a playlist contains."""

    TEST = "test"
    LESSON = "lesson"


class Role(str, enum.Enum):
    STUDENT = "student"
    TEACHER = "teacher"


@dataclass(frozen=True)
class Viewer:
    """Explicit user context passed into every operation."""

    user_id: str
    role: Role = Role.STUDENT

    @property
    def is_student(self) -> bool:
        return self.role == Role.STUDENT


@dataclass
class TestRecord:
    __test__ = False

    id: str
    title: str
    teacher_id: str
    time_limit_minutes: int | None = None
    description: str | None = None
    source_document_ref: str | None = None


@dataclass
class VariantRecord:
    id: str
    question_id: str
    text: str
    is_correct: bool = False
    order_index: int = 0


@dataclass
class QuestionRecord:
    id: str
    test_id: str
    text: str
    order_index: int = 0
    variants: list[VariantRecord] = field(default_factory=list)


@dataclass
class PlaylistRecord:
    id: str
    title: str
    teacher_id: str
    access_mode: AccessMode = AccessMode.SEQUENTIAL
    description: str | None = None


@dataclass
class PlaylistItemRecord:
    item_id: str
    order_index: int = 0
    title: str = ""
    description: str | None = None


@dataclass
class ProgressRecord:
    playlist_id: str
    student_id: str
    completed_item_ids: list[str] = field(default_factory=list)
    current_item_id: str | None = None


@dataclass(frozen=True)
class ScoreResult:
    """Outcome of one finished test attempt. ``time_taken`` is in seconds."""

    total: int
    correct: int
    wrong: int
    time_taken: int


@dataclass(frozen=True)
class ItemAvailability:
    id: str
    is_available: bool
    is_completed: bool


@dataclass
class PlaylistView:
    """Availability of every item of a playlist, as seen by one viewer."""

    playlist: PlaylistRecord
    kind: PlaylistKind
    items: list[PlaylistItemRecord]
    availability: list[ItemAvailability]
    viewer_is_owner: bool = False

    def find(self, item_id: str) -> ItemAvailability | None:
        for entry in self.availability:
            if entry.id == item_id:
                return entry
        return None


@dataclass(frozen=True)
class CompletionEvent:
    """Signal payload: a student completed an item of a playlist."""

    playlist_id: str
    student_id: str
    item_id: str
    kind: PlaylistKind
    completed_item_ids: frozenset[str] = frozenset()


@dataclass
class LessonCompletion:
    course_id: str
    playlist_ids: list[str]
    completed_playlist_ids: list[str]

    @property
    def is_completed(self) -> bool:
        return bool(self.playlist_ids) and len(self.completed_playlist_ids) == len(
            self.playlist_ids
        )
