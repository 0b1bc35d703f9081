"""Event addon owned by every registered service.

Each ``ServiceWrapper`` holds one ``EventEmitter``. Listeners subscribe per
event name, optionally tagged with a ``connection`` (for example one client
of a real-time transport). Filters registered with ``add_filter`` decide, per
listener, whether an event is delivered and what data it carries.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

Listener = Callable[[Any], Any]
# predicate(data, connection) -> falsy to drop, True to keep, anything else replaces data
FilterPredicate = Callable[[Any, Any], Any]


@dataclass
class Subscription:
    """A listener bound to an event name."""

    event: str
    listener: Listener
    connection: Any = None
    once: bool = False


class EventEmitter:
    """Listener registry with per-listener filtering.

    Delivery order is listener-registration order. Listener and filter
    failures are logged and do not reach the emitter's caller.
    """

    def __init__(self, name: str = "service"):
        self.name = name
        self._subscriptions: Dict[str, List[Subscription]] = {}
        self._filters: List[Tuple[Optional[str], FilterPredicate]] = []
        self._pending: set = set()

    def on(self, event: str, listener: Listener, connection: Any = None) -> 'EventEmitter':
        """Subscribe ``listener`` to ``event``."""
        return self._subscribe(Subscription(event, listener, connection))

    def once(self, event: str, listener: Listener, connection: Any = None) -> 'EventEmitter':
        """Subscribe ``listener`` for the next delivery of ``event`` only."""
        return self._subscribe(Subscription(event, listener, connection, once=True))

    def _subscribe(self, subscription: Subscription) -> 'EventEmitter':
        if not callable(subscription.listener):
            raise TypeError(f"Listener for '{subscription.event}' must be callable")
        self._subscriptions.setdefault(subscription.event, []).append(subscription)
        return self

    def off(self, event: Optional[str] = None, listener: Optional[Listener] = None) -> 'EventEmitter':
        """Unsubscribe listeners.

        With no arguments every listener is removed; with only ``event`` all
        listeners of that event; with both, that one listener.
        """
        if event is None:
            self._subscriptions.clear()
        elif listener is None:
            self._subscriptions.pop(event, None)
        else:
            remaining = [s for s in self._subscriptions.get(event, []) if s.listener is not listener]
            if remaining:
                self._subscriptions[event] = remaining
            else:
                self._subscriptions.pop(event, None)
        return self

    def _unsubscribe(self, subscription: Subscription) -> None:
        remaining = [s for s in self._subscriptions.get(subscription.event, []) if s is not subscription]
        if remaining:
            self._subscriptions[subscription.event] = remaining
        else:
            self._subscriptions.pop(subscription.event, None)

    def listeners(self, event: str) -> List[Listener]:
        return [s.listener for s in self._subscriptions.get(event, [])]

    def listener_count(self, event: str) -> int:
        return len(self._subscriptions.get(event, []))

    def add_filter(self, predicate: FilterPredicate, event: Optional[str] = None) -> None:
        """Add a delivery filter, for one event or (``event=None``) for all."""
        if not callable(predicate):
            raise TypeError("Filter predicate must be callable")
        self._filters.append((event, predicate))

    def _apply_filters(self, event: str, data: Any, connection: Any) -> Tuple[bool, Any]:
        for filter_event, predicate in self._filters:
            if filter_event is not None and filter_event != event:
                continue
            result = predicate(data, connection)
            if not result:
                return False, None
            if result is not True:
                data = result
        return True, data

    def emit(self, event: str, data: Any) -> int:
        """Deliver ``event`` to its listeners now.

        Coroutine listeners are scheduled as tasks on the running loop.

        Returns:
            Number of listeners the event was delivered to
        """
        subscriptions = list(self._subscriptions.get(event, []))
        delivered = 0

        for subscription in subscriptions:
            try:
                keep, payload = self._apply_filters(event, data, subscription.connection)
            except Exception:
                logger.exception(f"Filter for '{self.name}' {event} failed, skipping listener")
                continue
            if not keep:
                continue

            if subscription.once:
                self._unsubscribe(subscription)

            delivered += 1
            try:
                result = subscription.listener(payload)
            except Exception:
                logger.exception(f"Listener for '{self.name}' {event} raised")
                continue

            if inspect.isawaitable(result):
                self._track(asyncio.ensure_future(result), event)

        logger.debug(f"Delivered '{self.name}' {event} to {delivered}/{len(subscriptions)} listeners")
        return delivered

    def emit_soon(self, event: str, data: Any) -> None:
        """Schedule delivery of ``event`` on the next loop iteration.

        Without a running loop the event is delivered immediately.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.emit(event, data)
            return
        loop.call_soon(self.emit, event, data)

    def _track(self, future: 'asyncio.Future[Any]', event: str) -> None:
        self._pending.add(future)

        def done(fut: 'asyncio.Future[Any]') -> None:
            self._pending.discard(fut)
            if not fut.cancelled() and fut.exception() is not None:
                logger.error(
                    f"Async listener for '{self.name}' {event} failed: {fut.exception()}",
                    exc_info=fut.exception(),
                )

        future.add_done_callback(done)
