"""Typed errors raised by the playlist and test-session services."""


class LearnHubError(Exception):
    """Base class for service errors."""


class GatewayError(LearnHubError):
    """The persistence backend failed or was unreachable."""


class LoadError(LearnHubError):
    """A flow could not start because its data could not be loaded."""


class NotFoundError(LoadError):
    """A test, playlist or lesson id did not resolve."""


class RecordError(LearnHubError):
    """Writing student progress failed."""


class SessionStateError(LearnHubError):
    """Operation not permitted in the current test session state."""


class InvalidAnswerMapError(LearnHubError, ValueError):
    """An externally supplied answer map is not position -> position pairs."""


class ItemLockedError(LearnHubError):
    """A student tried to open a playlist item that is not yet unlocked."""
