"""Factory for tailers with default settings."""

import os
from typing import Optional, Union

from .listener import TailerListener
from .tailer import DEFAULT_BUFFER_SIZE, DEFAULT_DELAY, Tailer, TailerConfig


def create_tailer(
    path: Union[str, "os.PathLike[str]"],
    listener: TailerListener,
    position: int = 0,
    delay: float = DEFAULT_DELAY,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    reopen: bool = False,
    track_inode: bool = True,
    last_modified: Optional[float] = None,
) -> Tailer:
    """Create a Tailer for the given file.

    The tailer is not started; call run() on a dedicated thread or use
    start_background().

    Args:
        path: File to follow
        listener: Receives lines and lifecycle notifications
        position: Byte offset to start from (0 reads the whole file)
        delay: Seconds between polls, at least 0.001
        buffer_size: Read buffer size in bytes, at least 16
        reopen: Close and reopen the file after every poll sleep
        track_inode: Detect rotation by file identity rather than size and
            mtime alone
        last_modified: Initial mtime marker in epoch seconds

    Returns:
        A new Tailer whose listener has already been initialized

    Raises:
        InvalidConfig: If delay or buffer_size is out of range
    """
    config = TailerConfig(
        delay=delay,
        buffer_size=buffer_size,
        reopen=reopen,
        track_inode=track_inode,
    )
    config.validate()
    return Tailer(path, listener, position=position, config=config, last_modified=last_modified)
