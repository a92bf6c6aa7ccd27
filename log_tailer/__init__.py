"""
Log Tailer - Follow a growing log file across rotations.

Usage:
    from log_tailer import EmitterListener, create_tailer

    listener = EmitterListener()

    @listener.on("line")
    def on_line(event):
        print(f"{event.position}: {event.line}")

    @listener.on("rotated")
    def on_rotated(event):
        print(f"{event.path} was rotated")

    tailer = create_tailer("/var/log/app.log", listener)
    tailer.start_background()
    ...
    tailer.stop()
    tailer.join()

Resuming from a stored offset:
    from log_tailer import Checkpoint

    checkpoint = Checkpoint.from_dict(saved)
    tailer = create_tailer(checkpoint.file_path, listener, checkpoint.resume_position())
"""

from .detector import Observation, Verdict, classify
from .emitter import EventEmitter
from .errors import InvalidConfig, ProbeFailed, TailerError
from .events import (
    ErrorEvent,
    FileNotFoundEvent,
    LineEvent,
    RotatedEvent,
    StopEvent,
    TailEvent,
    TailEventType,
)
from .framer import LineFramer
from .helper import create_tailer
from .inode import handle_inode, inode
from .listener import EmitterListener, TailerListener
from .state import Checkpoint
from .tailer import (
    DEFAULT_BUFFER_SIZE,
    DEFAULT_DELAY,
    Tailer,
    TailerConfig,
    TailerState,
)


__version__ = "0.1.0"

__all__ = [
    # Tailer
    "Tailer",
    "TailerConfig",
    "TailerState",
    "create_tailer",
    "DEFAULT_DELAY",
    "DEFAULT_BUFFER_SIZE",
    # Listener contract
    "TailerListener",
    "EmitterListener",
    "EventEmitter",
    # Events
    "TailEvent",
    "TailEventType",
    "LineEvent",
    "RotatedEvent",
    "FileNotFoundEvent",
    "ErrorEvent",
    "StopEvent",
    # Building blocks
    "LineFramer",
    "Observation",
    "Verdict",
    "classify",
    "inode",
    "handle_inode",
    # Checkpoints
    "Checkpoint",
    # Errors
    "TailerError",
    "ProbeFailed",
    "InvalidConfig",
]
