"""Test session endpoints."""
from fastapi import APIRouter, Depends, HTTPException

from learnhub import config
from learnhub.dependencies import get_sessions, get_viewer
from learnhub.models import (
    AnswerRequest,
    QuestionOut,
    ResumeRequest,
    ScoreOut,
    SessionResponse,
    SessionStartRequest,
    VariantOut,
)
from learnhub.models.entities import Viewer
from learnhub.services.session_service import SessionManager, TestSession
from learnhub.utils import format_time_taken, validate_id, variant_label

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


def session_response(session: TestSession) -> SessionResponse:
    """Serialize a session; correctness flags never leave the server."""
    result = None
    if session.result is not None:
        result = ScoreOut(
            total=session.result.total,
            correct=session.result.correct,
            wrong=session.result.wrong,
            timeTaken=session.result.time_taken,
            timeTakenDisplay=format_time_taken(session.result.time_taken),
        )
    return SessionResponse(
        sessionId=session.id,
        testId=session.test.id,
        title=session.test.title,
        playlistId=session.playlist_id,
        status=session.state.value,
        remainingSeconds=session.remaining_seconds,
        remainingDisplay=session.remaining_display,
        questions=[
            QuestionOut(
                id=question.id,
                position=position,
                text=question.text,
                variants=[
                    VariantOut(id=variant.id, label=variant_label(index), text=variant.text)
                    for index, variant in enumerate(question.variants)
                ],
            )
            for position, question in enumerate(session.questions)
        ],
        answers=dict(session.answers),
        result=result,
        recordError=str(session.record_error) if session.record_error else None,
        recordPending=session.record_pending,
    )


def get_own_session(sessions: SessionManager, session_id: str, viewer: Viewer) -> TestSession:
    session = sessions.get(validate_id("sessionId", session_id))
    if session is None or session.viewer.user_id != viewer.user_id:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.post("", response_model=SessionResponse, status_code=201)
async def start_session(
    payload: SessionStartRequest,
    viewer: Viewer = Depends(get_viewer),
    sessions: SessionManager = Depends(get_sessions),
) -> SessionResponse:
    """Load a test and start its countdown."""
    test_id = validate_id("testId", payload.testId)
    playlist_id = validate_id("playlistId", payload.playlistId) if payload.playlistId else None
    session = await sessions.start(test_id, viewer, playlist_id=playlist_id)
    return session_response(session)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    viewer: Viewer = Depends(get_viewer),
    sessions: SessionManager = Depends(get_sessions),
) -> SessionResponse:
    """Current state of a session."""
    return session_response(get_own_session(sessions, session_id, viewer))


@router.put("/{session_id}/answers/{question_position}", response_model=SessionResponse)
async def answer_question(
    session_id: str,
    question_position: int,
    payload: AnswerRequest,
    viewer: Viewer = Depends(get_viewer),
    sessions: SessionManager = Depends(get_sessions),
) -> SessionResponse:
    """Choose a variant for the question at a position."""
    if question_position < 0:
        raise HTTPException(status_code=400, detail="Invalid question position")
    session = get_own_session(sessions, session_id, viewer)
    session.set_answer(question_position, payload.variantPosition)
    return session_response(session)


@router.post("/{session_id}/resume", response_model=SessionResponse)
async def resume_session(
    session_id: str,
    payload: ResumeRequest,
    viewer: Viewer = Depends(get_viewer),
    sessions: SessionManager = Depends(get_sessions),
) -> SessionResponse:
    """Continue an attempt with answers picked in the document view."""
    session = get_own_session(sessions, session_id, viewer)
    await session.resume(validate_id("testId", payload.testId), payload.answers)
    return session_response(session)


@router.post("/{session_id}/finish", response_model=SessionResponse)
async def finish_session(
    session_id: str,
    viewer: Viewer = Depends(get_viewer),
    sessions: SessionManager = Depends(get_sessions),
) -> SessionResponse:
    """
    Score the attempt. The progress write gets a short head start; if it is
    still running the response says so and a later GET reports its outcome.
    """
    session = get_own_session(sessions, session_id, viewer)
    session.finish()
    await session.wait_recorded(timeout=config.FINISH_RECORD_WAIT_SECONDS)
    return session_response(session)


@router.delete("/{session_id}", status_code=204)
async def discard_session(
    session_id: str,
    viewer: Viewer = Depends(get_viewer),
    sessions: SessionManager = Depends(get_sessions),
) -> None:
    """Leave the attempt: stop its timer without recording anything."""
    session = get_own_session(sessions, session_id, viewer)
    sessions.discard(session.id)
