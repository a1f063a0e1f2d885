"""Service layer for test ratings."""
from learnhub.config import RATING_MAX, RATING_MIN
from learnhub.errors import NotFoundError
from learnhub.gateway.base import PersistenceGateway


async def submit_rating(
    gateway: PersistenceGateway,
    test_id: str,
    user_id: str,
    rating: int,
    comment: str | None = None,
) -> None:
    """Store a 1-5 rating with an optional comment (blank comments are dropped)."""
    if not RATING_MIN <= rating <= RATING_MAX:
        raise ValueError(f"rating must be between {RATING_MIN} and {RATING_MAX}")
    if await gateway.get_test(test_id) is None:
        raise NotFoundError(f"Test {test_id} not found")

    cleaned = comment.strip() if comment else ""
    await gateway.insert_rating(test_id, user_id, rating, cleaned or None)
