"""FastAPI dependencies."""
from learnhub.dependencies.auth import get_viewer
from learnhub.dependencies.services import get_gateway, get_recorder, get_sessions

__all__ = ["get_viewer", "get_gateway", "get_recorder", "get_sessions"]
