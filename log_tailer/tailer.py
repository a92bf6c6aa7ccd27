"""Rotation-aware tailing of a single log file.

This module provides the Tailer class, which follows a file from a given
byte offset and hands every appended line to a TailerListener. The file may
be rotated underneath it (rename and recreate, truncate and reuse, or a
symlink swap); the tailer drains whatever is left of the old file, signals
the rotation, and continues with the successor from offset 0.

Example usage:
    from log_tailer import Tailer, TailerListener

    class PrintListener(TailerListener):
        def handle(self, line, position, mtime):
            print(position, line)

    tailer = Tailer("/var/log/app.log", PrintListener())
    tailer.start_background()
    ...
    tailer.stop()
    tailer.join()
"""

import logging
import os
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, BinaryIO, Optional, Union

from .detector import Observation, Verdict, classify
from .errors import InvalidConfig
from .framer import LineFramer
from .inode import handle_inode, stat_identity
from .listener import TailerListener

logger = logging.getLogger(__name__)

DEFAULT_DELAY = 0.1
DEFAULT_BUFFER_SIZE = 4096
MIN_DELAY = 0.001
MIN_BUFFER_SIZE = 16


@dataclass
class TailerConfig:
    """Configuration for Tailer.

    Attributes:
        delay: Seconds to wait between polls
        buffer_size: Size of the read buffer in bytes
        reopen: Close and reopen the file after every poll sleep
        track_inode: Detect rotation by file identity. When False, rotation
            is inferred from size and mtime alone.
    """

    delay: float = DEFAULT_DELAY
    buffer_size: int = DEFAULT_BUFFER_SIZE
    reopen: bool = False
    track_inode: bool = True

    def validate(self) -> None:
        """Check the configuration.

        Raises:
            InvalidConfig: If delay or buffer_size is below its minimum
        """
        if self.buffer_size < MIN_BUFFER_SIZE:
            raise InvalidConfig(
                f"buffer_size must be at least {MIN_BUFFER_SIZE} bytes, got {self.buffer_size}"
            )
        if self.delay < MIN_DELAY:
            raise InvalidConfig(
                f"delay must be at least {MIN_DELAY}s, got {self.delay}"
            )


class TailerState(Enum):
    """Lifecycle state of a Tailer."""

    CREATED = "created"
    OPENING = "opening"
    POLLING = "polling"
    PAUSED = "paused"
    REOPENING = "reopening"
    STOPPED = "stopped"


class Tailer:
    """Follows one file and delivers appended lines to a listener.

    The tailer runs on a single thread: either the caller's, through run(),
    or a daemon thread started by start_background(). stop(), pause() and
    resume() may be called from any thread; they flip flags the loop checks
    at its boundaries and during its sleeps. Everything else belongs to the
    loop thread.

    Each poll samples the path and the open handle and classifies the result
    (see log_tailer.detector.classify):
    - growth is read and delivered line by line
    - a rotation first drains the old handle, then calls file_rotated(),
      waits for the successor to have content and reopens it at offset 0
    - a missing path calls file_not_found() and keeps the old handle

    The listener's handle() receives the offset just past each line, which
    callers can persist and later pass back as ``position`` to resume.
    """

    def __init__(
        self,
        path: Union[str, "os.PathLike[str]"],
        listener: TailerListener,
        position: int = 0,
        config: Optional[TailerConfig] = None,
        last_modified: Optional[float] = None,
    ):
        """Initialize the tailer and its listener.

        Args:
            path: File to follow
            listener: Receives lines and lifecycle notifications
            position: Byte offset to start reading from
            config: Polling options (uses defaults if None)
            last_modified: Initial mtime marker in epoch seconds
                (defaults to the current time)

        Raises:
            InvalidConfig: If the configuration is invalid
        """
        self._config = config or TailerConfig()
        self._config.validate()
        if position < 0:
            raise InvalidConfig(f"position must not be negative, got {position}")

        self._path = os.path.abspath(os.fspath(path))
        self._listener = listener
        self._framer = LineFramer(self._config.buffer_size)

        self._handle: Optional[BinaryIO] = None
        self._position = position
        self._inode: Optional[int] = None
        self._last_modified = time.time() if last_modified is None else last_modified

        # Control flags, written by other threads
        self._stop_event = threading.Event()
        self._pause_event = threading.Event()

        self._state = TailerState.CREATED
        self._thread: Optional[threading.Thread] = None

        self._listener.init(self)

    # --- Public API ---

    def run(self) -> None:
        """Follow the file until stop() is called or an error occurs (blocking).

        Raises:
            RuntimeError: If the tailer has already been run
        """
        if self._state is not TailerState.CREATED:
            raise RuntimeError(f"Tailer for {self._path} has already been run")

        try:
            self._open()
            while self.running:
                if self._pause_event.is_set():
                    self._state = TailerState.PAUSED
                    self._stop_event.wait(self._config.delay)
                    continue

                self._state = TailerState.POLLING
                if self._poll():
                    self._stop_event.wait(self._config.delay)
                    if self._config.reopen:
                        self._reopen_in_place()

            logger.debug("Tailer for %s stopped at position %d", self._path, self._position)
            self._listener.stop()
        except Exception as e:
            logger.exception("Tailer for %s failed: %s", self._path, e)
            self._listener.handle_error(e)
        finally:
            self._close(self._handle)
            self._handle = None
            self._state = TailerState.STOPPED

    def start_background(self, name: Optional[str] = None) -> threading.Thread:
        """Run the tailer in a daemon thread.

        Returns immediately. Use stop() and join() to terminate.

        Returns:
            The started thread
        """
        if self._thread is not None:
            raise RuntimeError(f"Tailer for {self._path} is already running")
        self._thread = threading.Thread(
            target=self.run,
            name=name or f"tailer:{os.path.basename(self._path)}",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the background thread started by start_background().

        Returns:
            True if the thread has finished (or was never started)
        """
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def stop(self) -> None:
        """Ask the loop to finish. Takes effect within one poll interval."""
        self._stop_event.set()

    def pause(self) -> None:
        """Suspend polling without closing the file."""
        self._pause_event.set()

    def resume(self) -> None:
        """Continue polling after pause()."""
        self._pause_event.clear()

    @property
    def path(self) -> str:
        """Absolute path of the followed file."""
        return self._path

    @property
    def position(self) -> int:
        """Offset up to which lines have been delivered for the current file."""
        return self._position

    @property
    def inode(self) -> Optional[int]:
        """Identity of the currently open file, None before the first open."""
        return self._inode

    @property
    def delay(self) -> float:
        """Seconds between polls."""
        return self._config.delay

    @property
    def config(self) -> TailerConfig:
        """Get the tailer configuration."""
        return self._config

    @property
    def state(self) -> TailerState:
        """Current lifecycle state."""
        return self._state

    @property
    def running(self) -> bool:
        """False once stop() has been called."""
        return not self._stop_event.is_set()

    @property
    def paused(self) -> bool:
        """Whether pause() is in effect."""
        return self._pause_event.is_set()

    # --- Context Manager ---

    def __enter__(self) -> "Tailer":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        self.stop()
        self.join()
        return False

    def __repr__(self) -> str:
        return f"Tailer({self._path!r}, position={self._position}, state={self._state.value})"

    # --- Internal Methods ---

    def _open(self) -> None:
        """Open the file, retrying every delay while it does not exist."""
        self._state = TailerState.OPENING
        while self.running and self._handle is None:
            try:
                handle = open(self._path, "rb", buffering=0)
            except FileNotFoundError:
                self._listener.file_not_found()
                self._stop_event.wait(self._config.delay)
                continue

            self._handle = handle
            handle.seek(self._position)
            self._inode = handle_inode(handle)
            logger.debug(
                "Opened %s at position %d (inode %d)", self._path, self._position, self._inode
            )

    def _poll(self) -> bool:
        """Run one detection cycle.

        Returns:
            True if the loop should sleep before the next poll
        """
        observation = Observation.sample(self._path, self._handle)
        verdict = classify(
            observation,
            self._position,
            self._inode,
            self._last_modified,
            track_inode=self._config.track_inode,
        )

        if verdict is Verdict.SAME_GREW:
            self._position = self._read_lines()
            self._last_modified = time.time()
        elif verdict is Verdict.AMBIGUOUS_SAME_SIZE:
            self._last_modified = time.time()
        elif verdict is Verdict.DIVERGED:
            logger.debug(
                "%s diverged from open handle (%d != %d), draining",
                self._path,
                observation.path_length,
                observation.channel_size,
            )
            before = self._position
            self._position = self._read_lines()
            settled = Observation.sample(self._path, self._handle)
            if settled.path_length == settled.channel_size:
                # Sizes only differed because a write landed while sampling.
                if settled.channel_size == self._position:
                    self._last_modified = time.time()
                return False
            if self._position != before:
                return False
            # Only an unterminated tail is left and the path still disagrees.
            if self._config.track_inode or settled.inode is None:
                return True
            logger.debug(
                "Abandoning %d unterminated bytes of %s",
                settled.channel_size - self._position,
                self._path,
            )
            self._rotate()
            return False
        elif verdict is Verdict.ROTATED_WITH_RESIDUAL:
            # The old file is abandoned after this, so its cursor is not kept.
            self._read_lines()
            self._rotate()
            return False
        elif verdict in (Verdict.ROTATED, Verdict.TRUNCATED):
            self._rotate()
            return False
        elif verdict is Verdict.NOT_FOUND:
            self._listener.file_not_found()

        return True

    def _read_lines(self) -> int:
        return self._framer.read_lines(
            self._handle, self._listener.handle, running=lambda: self.running
        )

    def _rotate(self) -> None:
        """Signal the rotation, then reopen the path once it has content.

        The old handle is closed only after the successor has been opened.
        If the successor disappears before it can be opened, the old handle,
        position and inode are kept.
        """
        if not self.running:
            return
        self._state = TailerState.REOPENING
        logger.info("Detected rotation of %s at position %d", self._path, self._position)
        self._listener.file_rotated()

        while self.running and _path_length(self._path) == 0:
            self._stop_event.wait(self._config.delay)
        if not self.running:
            return

        try:
            handle = open(self._path, "rb", buffering=0)
        except FileNotFoundError:
            logger.warning("%s vanished before it could be reopened", self._path)
            self._listener.file_not_found()
            return

        previous = self._handle
        self._handle = handle
        self._position = 0
        self._inode = handle_inode(handle)
        self._close(previous)
        logger.debug("Reopened %s (inode %d)", self._path, self._inode)

    def _reopen_in_place(self) -> None:
        """Swap the handle for a fresh one on the same file at the same offset."""
        if not self.running:
            return
        try:
            if stat_identity(os.stat(self._path)) != self._inode:
                # Leave the old handle for the detector to see the rotation.
                return
            handle = open(self._path, "rb", buffering=0)
        except FileNotFoundError:
            return

        if handle_inode(handle) != self._inode:
            self._close(handle)
            return

        previous = self._handle
        self._handle = handle
        handle.seek(self._position)
        self._close(previous)

    def _close(self, handle: Optional[BinaryIO]) -> None:
        if handle is None:
            return
        try:
            handle.close()
        except OSError as e:
            logger.warning("Error closing %s: %s", self._path, e)


def _path_length(path: str) -> int:
    """Size of the file a path names, 0 if it does not exist."""
    try:
        return os.stat(path).st_size
    except FileNotFoundError:
        return 0
