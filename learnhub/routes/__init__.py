"""API route modules."""
from learnhub.routes import lessons, playlists, ratings, sessions

__all__ = ["lessons", "playlists", "ratings", "sessions"]
