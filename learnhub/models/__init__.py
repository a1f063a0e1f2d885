"""Pydantic models."""
from learnhub.models.playlists import (
    LessonCompletionResponse,
    PlaylistItemOut,
    PlaylistViewResponse,
)
from learnhub.models.ratings import MessageResponse, RatingRequest
from learnhub.models.sessions import (
    AnswerRequest,
    QuestionOut,
    ResumeRequest,
    ScoreOut,
    SessionResponse,
    SessionStartRequest,
    VariantOut,
)

__all__ = [
    "AnswerRequest",
    "LessonCompletionResponse",
    "MessageResponse",
    "PlaylistItemOut",
    "PlaylistViewResponse",
    "QuestionOut",
    "RatingRequest",
    "ResumeRequest",
    "ScoreOut",
    "SessionResponse",
    "SessionStartRequest",
    "VariantOut",
]
