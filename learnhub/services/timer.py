"""Repeating timer driven by the asyncio event loop."""
import asyncio
from collections.abc import Callable
from typing import Protocol


class Timer(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...

    @property
    def active(self) -> bool: ...


TimerFactory = Callable[[float, Callable[[], None]], Timer]


class IntervalTimer:
    """
    Calls ``callback`` every ``interval`` seconds via ``loop.call_later``
    until cancelled. The callback may cancel the timer itself.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], None],
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self._interval = interval
        self._callback = callback
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        if self._active:
            return
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._active = True
        self._schedule()

    def _schedule(self) -> None:
        self._handle = self._loop.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        self._handle = None
        if not self._active:
            return
        self._callback()
        if self._active:
            self._schedule()

    def cancel(self) -> None:
        self._active = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
