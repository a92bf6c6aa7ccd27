"""Listener contract for the tailer.

Every callback runs on the tailer's own thread, so a slow listener stalls
tailing. TailerListener implements each callback as a no-op; subclasses
override the ones they care about. EmitterListener turns the callbacks into
events and dispatches them through an EventEmitter.
"""

from datetime import datetime, timezone
from typing import Callable, Optional, TYPE_CHECKING

from .emitter import EventEmitter, EventHandler, EventType
from .events import (
    ErrorEvent,
    FileNotFoundEvent,
    LineEvent,
    RotatedEvent,
    StopEvent,
)

if TYPE_CHECKING:
    from .tailer import Tailer


class TailerListener:
    """Receives notifications from a Tailer.

    Call order guarantees:
    - init() once, from the Tailer constructor
    - handle() once per line, in file offset order
    - every line of a rotated file before its file_rotated()
    - exactly one of stop() or handle_error() at the end
    """

    def init(self, tailer: "Tailer") -> None:
        """Called once with the tailer, before it runs."""

    def file_not_found(self) -> None:
        """Called whenever the tailed path does not resolve. May repeat."""

    def file_rotated(self) -> None:
        """Called once per detected rotation, before the file is reopened."""

    def handle(self, line: str, position: int, mtime: float) -> None:
        """Called for each complete line.

        Args:
            line: Line text without its terminator
            position: Byte offset just past the terminator
            mtime: Modification time of the file when the line was read
        """

    def handle_error(self, error: BaseException) -> None:
        """Called at most once, when an unrecoverable error stops the tailer."""

    def stop(self) -> None:
        """Called once when the tailer shuts down gracefully."""


class EmitterListener(TailerListener):
    """Listener that publishes tailer callbacks as events.

    Example:
        >>> listener = EmitterListener()
        >>>
        >>> @listener.on("line")
        ... def on_line(event):
        ...     print(event.line)
        >>>
        >>> tailer = create_tailer("/var/log/app.log", listener)
    """

    def __init__(self, emitter: Optional[EventEmitter] = None):
        """Initialize the listener.

        Args:
            emitter: Emitter to publish on (a new, non-strict one if None)
        """
        self.emitter = emitter or EventEmitter()
        self._tailer: Optional["Tailer"] = None

    @property
    def tailer(self) -> Optional["Tailer"]:
        """The tailer this listener was initialized with."""
        return self._tailer

    def on(
        self, event_type: EventType, handler: Optional[EventHandler] = None
    ) -> Callable:
        """Register an event handler (decorator or direct call)."""
        return self.emitter.on(event_type, handler)

    def on_any(self, handler: EventHandler) -> EventHandler:
        """Register a handler for all events."""
        return self.emitter.on_any(handler)

    def off(self, handler: EventHandler, event_type: Optional[EventType] = None) -> int:
        """Unregister a handler (see EventEmitter.off)."""
        return self.emitter.off(handler, event_type)

    @property
    def _path(self) -> str:
        return self._tailer.path if self._tailer is not None else ""

    def init(self, tailer: "Tailer") -> None:
        self._tailer = tailer

    def file_not_found(self) -> None:
        self.emitter.emit(FileNotFoundEvent(timestamp=_now(), path=self._path))

    def file_rotated(self) -> None:
        self.emitter.emit(RotatedEvent(timestamp=_now(), path=self._path))

    def handle(self, line: str, position: int, mtime: float) -> None:
        self.emitter.emit(
            LineEvent(
                timestamp=_now(),
                path=self._path,
                line=line,
                position=position,
                mtime=mtime,
            )
        )

    def handle_error(self, error: BaseException) -> None:
        self.emitter.emit(ErrorEvent(timestamp=_now(), path=self._path, error=error))

    def stop(self) -> None:
        position = self._tailer.position if self._tailer is not None else None
        self.emitter.emit(StopEvent(timestamp=_now(), path=self._path, position=position))


def _now() -> datetime:
    return datetime.now(timezone.utc)
