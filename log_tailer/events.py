"""Event types for tailer notifications.

This module defines the event dataclasses that EmitterListener builds from
tailer callbacks. All events are immutable (frozen dataclasses) and share a
common protocol for type checking.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol, Union


class TailEvent(Protocol):
    """Protocol for all tailer events.

    All concrete event types must have these attributes for consistent
    handling by event emitters and handlers.
    """

    timestamp: datetime
    path: str
    event_type: str


@dataclass(frozen=True)
class LineEvent:
    """Emitted for every complete line read from the file.

    Attributes:
        timestamp: When the line was delivered
        path: Path of the tailed file
        line: Line text without its terminator
        position: Byte offset just past the terminator, usable as the
            restart position
        mtime: Modification time of the file when the line was read
        event_type: Always "line"
    """

    timestamp: datetime
    path: str
    line: str
    position: int
    mtime: float
    event_type: str = field(default="line", repr=False)


@dataclass(frozen=True)
class RotatedEvent:
    """Emitted when the tailer detects that the file was rotated."""

    timestamp: datetime
    path: str
    event_type: str = field(default="rotated", repr=False)


@dataclass(frozen=True)
class FileNotFoundEvent:
    """Emitted each time the tailed path does not resolve."""

    timestamp: datetime
    path: str
    event_type: str = field(default="file_not_found", repr=False)


@dataclass(frozen=True)
class ErrorEvent:
    """Emitted when the tailer stops because of an unrecoverable error.

    Attributes:
        timestamp: When the error was reported
        path: Path of the tailed file
        error: The exception that terminated the tailer
        event_type: Always "error"
    """

    timestamp: datetime
    path: str
    error: BaseException
    event_type: str = field(default="error", repr=False)

    @property
    def message(self) -> str:
        """Human readable error description."""
        return f"{type(self.error).__name__}: {self.error}"


@dataclass(frozen=True)
class StopEvent:
    """Emitted once when the tailer shuts down gracefully.

    Attributes:
        timestamp: When the tailer stopped
        path: Path of the tailed file
        position: Last delivered position, None if the file was never opened
        event_type: Always "stop"
    """

    timestamp: datetime
    path: str
    position: Optional[int] = None
    event_type: str = field(default="stop", repr=False)


# Union type for all events
TailEventType = Union[
    LineEvent,
    RotatedEvent,
    FileNotFoundEvent,
    ErrorEvent,
    StopEvent,
]
