"""Rating Pydantic models."""
from pydantic import BaseModel, Field

from learnhub.config import RATING_MAX, RATING_MIN


class RatingRequest(BaseModel):
    """Model for rating a test after taking it."""

    rating: int = Field(..., ge=RATING_MIN, le=RATING_MAX)
    comment: str | None = Field(default=None, max_length=2000)


class MessageResponse(BaseModel):
    message: str
