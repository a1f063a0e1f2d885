"""Main FastAPI application with modularized routes."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from learnhub.config import LOG_LEVEL
from learnhub.core.logging_setup import setup_console_logging
from learnhub.database import init_db
from learnhub.errors import (
    InvalidAnswerMapError,
    ItemLockedError,
    LearnHubError,
    LoadError,
    NotFoundError,
    RecordError,
    SessionStateError,
)
from learnhub.events import CompletionBus
from learnhub.gateway import PersistenceGateway, SqlGateway
from learnhub.models.entities import CompletionEvent
from learnhub.routes import lessons, playlists, ratings, sessions
from learnhub.services.progress_service import ProgressRecorder
from learnhub.services.session_service import SessionManager
from learnhub.services.timer import IntervalTimer, TimerFactory

logger = logging.getLogger(__name__)

# Checked in order, so subclasses come before their bases.
ERROR_STATUS = {
    NotFoundError: 404,
    LoadError: 503,
    ItemLockedError: 403,
    SessionStateError: 409,
    InvalidAnswerMapError: 422,
    RecordError: 502,
}


async def handle_service_error(request: Request, exc: LearnHubError) -> JSONResponse:
    status_code = 500
    for error_type, code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            status_code = code
            break
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def log_completion(sender: object, event: CompletionEvent) -> None:
    logger.info(
        "Completion: %s %s in playlist %s by %s",
        event.kind.value,
        event.item_id,
        event.playlist_id,
        event.student_id,
    )


def create_app(
    gateway: PersistenceGateway | None = None,
    timer_factory: TimerFactory = IntervalTimer,
    create_tables: bool = True,
) -> FastAPI:
    """Build the application; tests pass their own gateway and timer."""
    setup_console_logging(LOG_LEVEL)

    app = FastAPI(title="LearnHub Playlists API")

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    bus = CompletionBus()
    bus.subscribe(log_completion)
    app.state.bus = bus
    app.state.gateway = gateway or SqlGateway()
    app.state.recorder = ProgressRecorder(app.state.gateway, bus)
    app.state.sessions = SessionManager(
        app.state.gateway, app.state.recorder, timer_factory=timer_factory
    )

    # Startup/shutdown events
    @app.on_event("startup")
    def startup_events() -> None:
        """Create tables when running against the default database."""
        if create_tables and gateway is None:
            init_db()

    @app.on_event("shutdown")
    def shutdown_events() -> None:
        """Stop the timers of sessions still open."""
        app.state.sessions.close_all()

    app.add_exception_handler(LearnHubError, handle_service_error)

    # Include routers
    app.include_router(sessions.router)
    app.include_router(playlists.router)
    app.include_router(lessons.router)
    app.include_router(ratings.router)

    return app


app = create_app()
