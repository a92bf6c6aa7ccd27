"""Line framing over a positioned byte handle.

This module provides the LineFramer class, which drains the bytes that are
currently available from an open file, splits them into lines and reports
the offset a caller can safely resume from.
"""

import io
import os
import re
from typing import BinaryIO, Callable, Optional

# Receives (line, position_after_line, mtime)
LineCallback = Callable[[str, int, float], None]

_TERMINATOR = re.compile(rb"[\r\n]")
_LF = 0x0A


def _handle_mtime(handle: BinaryIO) -> float:
    """Modification time of the file behind a handle, or 0.0 if it has none."""
    try:
        return os.fstat(handle.fileno()).st_mtime
    except (AttributeError, io.UnsupportedOperation):
        return 0.0


class LineFramer:
    """Splits bytes read from a file handle into LF/CR terminated lines.

    The framer owns a single read buffer that is reused across calls. It
    tracks two cursors while reading: the file offset at the start of the
    current buffer, and the re-read cursor just past the most recent
    terminator. Before returning it seeks the handle back to the re-read
    cursor, so an unterminated tail is read again in full on the next call.

    Terminator handling:
    - ``\\n`` always emits the accumulated line, which may be empty
    - ``\\r`` emits only if the accumulated line is non-empty
    - ``\\n\\r`` therefore produces a single line, while ``\\r\\n`` emits the
      line on ``\\r`` and then an empty line on ``\\n``

    Lines are decoded as latin-1, one code point per byte, so arbitrary
    binary content round-trips without decoding errors.

    Example:
        >>> framer = LineFramer(4096)
        >>> with open("app.log", "rb", buffering=0) as f:
        ...     position = framer.read_lines(f, lambda line, pos, mtime: print(line))
    """

    def __init__(self, buffer_size: int = 4096):
        """Initialize the framer.

        Args:
            buffer_size: Size of the reusable read buffer in bytes
        """
        if buffer_size <= 0:
            raise ValueError(f"buffer_size must be positive, got {buffer_size}")
        self._buffer = bytearray(buffer_size)
        self._view = memoryview(self._buffer)

    @property
    def buffer_size(self) -> int:
        """Size of the read buffer in bytes."""
        return len(self._buffer)

    def read_lines(
        self,
        handle: BinaryIO,
        emit: LineCallback,
        running: Optional[Callable[[], bool]] = None,
    ) -> int:
        """Read every complete line currently available from the handle.

        The handle must already be positioned at the last emitted offset.
        Reading stops at end of file, or before the next buffer read once
        ``running`` returns False.

        Args:
            handle: Seekable binary handle supporting readinto()
            emit: Called once per complete line, in file order
            running: Optional predicate checked before every buffer read

        Returns:
            The re-read cursor: offset just past the last terminator seen,
            which is where the handle is left positioned

        Raises:
            OSError: On read or seek failure. Lines already passed to
                ``emit`` are not rolled back.
        """
        pos = handle.tell()
        re_read = pos
        line = bytearray()

        while running is None or running():
            num = handle.readinto(self._buffer)
            if not num:
                break
            mtime = _handle_mtime(handle)
            chunk = self._view[:num]

            start = 0
            for match in _TERMINATOR.finditer(self._buffer, 0, num):
                end = match.start()
                line += chunk[start:end]
                after = pos + end + 1
                if self._buffer[end] == _LF or line:
                    emit(line.decode("latin-1"), after, mtime)
                    line.clear()
                re_read = after
                start = end + 1
            line += chunk[start:num]

            pos += num

        handle.seek(re_read)
        return re_read
