"""Dependencies exposing the application's long-lived services."""
from fastapi import Request

from learnhub.gateway.base import PersistenceGateway
from learnhub.services.progress_service import ProgressRecorder
from learnhub.services.session_service import SessionManager


def get_gateway(request: Request) -> PersistenceGateway:
    return request.app.state.gateway


def get_recorder(request: Request) -> ProgressRecorder:
    return request.app.state.recorder


def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions
