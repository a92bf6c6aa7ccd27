"""Event routing for EmitterListener.

The tailer calls its listener synchronously, so every handler registered
here runs on the tailer thread. How a failing handler is treated decides
whether it can stop the tailer: see EventEmitter.
"""

import logging
from collections import defaultdict
from typing import Callable, Dict, List, Literal, Optional, Tuple, Union, get_args

from .events import TailEventType


logger = logging.getLogger(__name__)


# Event types that can be subscribed to
EventType = Literal[
    "line",
    "rotated",
    "file_not_found",
    "error",
    "stop",
]
EVENT_TYPES: Tuple[str, ...] = get_args(EventType)

# Emitted after the loop has ended; nothing downstream could handle a failure.
_TERMINAL_TYPES = frozenset({"error", "stop"})

EventHandler = Callable[[TailEventType], None]


class EventEmitter:
    """Routes tailer events to handlers by event type.

    Handlers for the event's own type run first, then wildcard handlers,
    each group in registration order.

    A handler that raises is logged and skipped by default. With
    ``strict=True`` the exception propagates out of emit() for line, rotated
    and file_not_found events, and the tailer ends through handle_error()
    as it does for any other listener failure. Error and stop handlers are
    always isolated.

    Example:
        >>> emitter = EventEmitter(strict=True)
        >>>
        >>> @emitter.on("line")
        ... def ship(event):
        ...     sink.write(event.line)
    """

    def __init__(self, strict: bool = False):
        """Initialize the emitter.

        Args:
            strict: Let handler exceptions stop the tailer
        """
        self._strict = strict
        # None holds wildcard handlers
        self._handlers: Dict[Optional[str], List[EventHandler]] = defaultdict(list)

    @property
    def strict(self) -> bool:
        """Whether handler exceptions propagate to the tailer."""
        return self._strict

    def on(
        self, event_type: EventType, handler: Optional[EventHandler] = None
    ) -> Union[EventHandler, Callable[[EventHandler], EventHandler]]:
        """Register a handler for one event type, directly or as a decorator.

        Raises:
            ValueError: If event_type is not one of EVENT_TYPES
        """
        if event_type not in EVENT_TYPES:
            raise ValueError(
                f"Unknown event type {event_type!r}, expected one of {', '.join(EVENT_TYPES)}"
            )

        def register(fn: EventHandler) -> EventHandler:
            self._handlers[event_type].append(fn)
            return fn

        return register if handler is None else register(handler)

    def on_any(self, handler: EventHandler) -> EventHandler:
        """Register a handler for every event type."""
        self._handlers[None].append(handler)
        return handler

    def off(self, handler: EventHandler, event_type: Optional[EventType] = None) -> int:
        """Unregister a handler.

        Args:
            handler: Handler to remove
            event_type: Only remove it from this type (all registrations,
                wildcard included, if None)

        Returns:
            Number of registrations removed
        """
        keys = list(self._handlers) if event_type is None else [event_type]
        removed = 0
        for key in keys:
            handlers = self._handlers.get(key, [])
            while handler in handlers:
                handlers.remove(handler)
                removed += 1
        return removed

    def handlers_for(self, event_type: EventType) -> List[EventHandler]:
        """Handlers an event of this type would be dispatched to, in order."""
        return self._handlers.get(event_type, []) + self._handlers.get(None, [])

    def emit(self, event: TailEventType) -> int:
        """Dispatch an event.

        Returns:
            Number of handlers that completed without raising
        """
        isolate = not self._strict or event.event_type in _TERMINAL_TYPES
        delivered = 0
        for handler in self.handlers_for(event.event_type):
            try:
                handler(event)
            except Exception:
                if not isolate:
                    raise
                logger.exception(
                    "%s handler %s failed for %s",
                    event.event_type,
                    getattr(handler, "__qualname__", repr(handler)),
                    event.path,
                )
                continue
            delivered += 1
        return delivered
