"""Test rating model."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from learnhub.database import Base
from learnhub.models.db.content import new_id


class TestRating(Base):
    """Star rating (1-5) with optional comment left after taking a test."""

    __test__ = False

    __tablename__ = "test_ratings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    test_id: Mapped[str] = mapped_column(
        ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    rating: Mapped[int] = mapped_column(nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_test_rating_range"),
    )

    def __repr__(self) -> str:
        return f"<TestRating(test_id='{self.test_id}', user_id='{self.user_id}', rating={self.rating})>"
