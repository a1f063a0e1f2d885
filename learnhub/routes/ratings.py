"""Test rating endpoints."""
from fastapi import APIRouter, Depends

from learnhub.dependencies import get_gateway, get_viewer
from learnhub.gateway.base import PersistenceGateway
from learnhub.models import MessageResponse, RatingRequest
from learnhub.models.entities import Viewer
from learnhub.services.rating_service import submit_rating
from learnhub.utils import validate_id

router = APIRouter(prefix="/api/tests/{test_id}/ratings", tags=["ratings"])


@router.post("", response_model=MessageResponse, status_code=201)
async def rate_test(
    test_id: str,
    payload: RatingRequest,
    viewer: Viewer = Depends(get_viewer),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> MessageResponse:
    """Rate a test (1-5) with an optional comment."""
    await submit_rating(
        gateway, validate_id("testId", test_id), viewer.user_id, payload.rating, payload.comment
    )
    return MessageResponse(message="Rating saved")
