"""
In-process publish/subscribe for completion events.

A ``CompletionBus`` is created once per application and injected into the
progress recorder (publisher) and live playlist views (subscribers).

Usage:
    bus = CompletionBus()

    async def on_completed(sender, event):
        ...

    bus.subscribe(on_completed)
    await bus.publish(CompletionEvent(...))
"""
import inspect
import logging
from collections.abc import Callable

from blinker import Signal

from learnhub.models.entities import CompletionEvent

logger = logging.getLogger(__name__)

CompletionHandler = Callable[..., object]


class CompletionBus:
    """Typed wrapper around a private blinker signal."""

    def __init__(self) -> None:
        self._signal = Signal("item_completed")
        self._delivery: dict[CompletionHandler, CompletionHandler] = {}

    def subscribe(self, handler: CompletionHandler) -> None:
        """
        Register a handler called as ``handler(sender, event=...)``. It may be
        a plain function or a coroutine function. A failing handler is logged
        and does not stop delivery to the others.
        """
        if handler in self._delivery:
            return

        async def deliver(sender: object, event: CompletionEvent) -> None:
            try:
                result = handler(sender, event=event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Completion handler %r failed", handler)

        self._delivery[handler] = deliver
        # Strong reference: bound methods of live views must not vanish.
        self._signal.connect(deliver, weak=False)

    def unsubscribe(self, handler: CompletionHandler) -> None:
        deliver = self._delivery.pop(handler, None)
        if deliver is not None:
            self._signal.disconnect(deliver)

    @property
    def has_subscribers(self) -> bool:
        return bool(self._signal.receivers)

    async def publish(self, event: CompletionEvent) -> None:
        """Deliver the event to every subscriber in turn."""
        await self._signal.send_async(self, event=event)
