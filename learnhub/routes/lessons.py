"""Lesson completion endpoints."""
from fastapi import APIRouter, Depends, HTTPException

from learnhub.dependencies import get_recorder, get_viewer
from learnhub.models import LessonCompletionResponse
from learnhub.models.entities import LessonCompletion, Viewer
from learnhub.services.progress_service import ProgressRecorder
from learnhub.utils import validate_id

router = APIRouter(prefix="/api/lessons", tags=["lessons"])


def completion_response(status: LessonCompletion) -> LessonCompletionResponse:
    return LessonCompletionResponse(
        courseId=status.course_id,
        playlistIds=status.playlist_ids,
        completedPlaylistIds=status.completed_playlist_ids,
        isCompleted=status.is_completed,
    )


@router.post("/{course_id}/complete", response_model=LessonCompletionResponse)
async def complete_lesson(
    course_id: str,
    viewer: Viewer = Depends(get_viewer),
    recorder: ProgressRecorder = Depends(get_recorder),
) -> LessonCompletionResponse:
    """Mark the lesson completed in every playlist that contains it."""
    if not viewer.is_student:
        raise HTTPException(status_code=403, detail="Only students complete lessons")
    course_id = validate_id("courseId", course_id)
    await recorder.complete_lesson(course_id, viewer.user_id)
    return completion_response(await recorder.lesson_completion(course_id, viewer.user_id))


@router.get("/{course_id}/completion", response_model=LessonCompletionResponse)
async def get_lesson_completion(
    course_id: str,
    viewer: Viewer = Depends(get_viewer),
    recorder: ProgressRecorder = Depends(get_recorder),
) -> LessonCompletionResponse:
    """Playlists containing the lesson and those where it is completed."""
    status = await recorder.lesson_completion(validate_id("courseId", course_id), viewer.user_id)
    return completion_response(status)
