"""Test session Pydantic models."""
from pydantic import BaseModel, Field


class SessionStartRequest(BaseModel):
    """Model for starting a test session."""

    testId: str = Field(..., min_length=1)
    playlistId: str | None = None


class AnswerRequest(BaseModel):
    """Model for answering one question by position."""

    variantPosition: int = Field(..., ge=0)


class ResumeRequest(BaseModel):
    """Answer map carried over from the document view (question -> variant)."""

    testId: str = Field(..., min_length=1)
    answers: dict[str, object] = Field(default_factory=dict)


class VariantOut(BaseModel):
    id: str
    label: str
    text: str


class QuestionOut(BaseModel):
    """Question as presented to the student; correctness is not exposed."""

    id: str
    position: int
    text: str
    variants: list[VariantOut]


class ScoreOut(BaseModel):
    total: int
    correct: int
    wrong: int
    timeTaken: int
    timeTakenDisplay: str


class SessionResponse(BaseModel):
    """Model for test session state."""

    sessionId: str
    testId: str
    title: str
    playlistId: str | None = None
    status: str
    remainingSeconds: int
    remainingDisplay: str
    questions: list[QuestionOut]
    answers: dict[int, int]
    result: ScoreOut | None = None
    recordError: str | None = None
    recordPending: bool = False
