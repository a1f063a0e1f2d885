"""Time and label formatting utilities."""


def format_clock(seconds: int) -> str:
    """Format remaining seconds as ``M:SS`` (e.g. ``4:05``)."""
    seconds = max(0, int(seconds))
    mins, secs = divmod(seconds, 60)
    return f"{mins}:{secs:02d}"


def format_time_taken(seconds: int) -> str:
    """Format elapsed seconds as ``Xm Ys``."""
    seconds = max(0, int(seconds))
    mins, secs = divmod(seconds, 60)
    return f"{mins}m {secs}s"


def variant_label(index: int) -> str:
    """Letter shown next to a variant: 0 -> A, 1 -> B, ..."""
    return chr(ord("A") + index)
