"""Rotation detection for a tailed file.

At every poll the tailer samples the path and its open handle into an
Observation and asks classify() what happened since the previous poll.
classify() is a pure function of its inputs so each rule can be tested
without touching the filesystem.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Optional

from .inode import stat_identity

logger = logging.getLogger(__name__)


class Verdict(Enum):
    """Outcome of one rotation check."""

    SAME_GREW = "same_grew"
    SAME_UNCHANGED = "same_unchanged"
    ROTATED = "rotated"
    ROTATED_WITH_RESIDUAL = "rotated_with_residual"
    DIVERGED = "diverged"
    AMBIGUOUS_SAME_SIZE = "ambiguous_same_size"
    TRUNCATED = "truncated"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Observation:
    """Detector inputs sampled at one poll.

    Attributes:
        inode: Identity of the file the path names, None if it cannot be stat'd
        channel_size: Bytes reachable through the held handle
        path_length: Size reported by a fresh stat of the path
        path_mtime: Modification time reported by the same stat
    """

    inode: Optional[int]
    channel_size: int
    path_length: int = 0
    path_mtime: float = 0.0

    @classmethod
    def sample(cls, path: str, handle: BinaryIO) -> "Observation":
        """Sample the path and the held handle.

        The path is stat'd once, before the handle, so inode, length and mtime
        are consistent with each other and a write landing between the two
        calls shows up as growth. A path that cannot be stat'd yields inode None.
        """
        try:
            st = os.stat(path)
        except OSError:
            st = None
        channel_size = os.fstat(handle.fileno()).st_size
        if st is None:
            return cls(inode=None, channel_size=channel_size)
        return cls(
            inode=stat_identity(st),
            channel_size=channel_size,
            path_length=st.st_size,
            path_mtime=st.st_mtime,
        )


def classify(
    observation: Observation,
    last_position: int,
    last_inode: Optional[int],
    last_modified: float,
    track_inode: bool = True,
) -> Verdict:
    """Decide whether the tracked file grew, stayed put or was replaced.

    Rules, first match wins:

    1. Path cannot be stat'd: NOT_FOUND.
    2. Identity changed (inode tracking only): ROTATED_WITH_RESIDUAL when the
       old handle still has unread bytes, else ROTATED.
    3. Handle grew past last_position: DIVERGED when the path length no
       longer matches the handle (another file took the name, drain the
       handle first), else SAME_GREW.
    4. Handle shrank below last_position: TRUNCATED.
    5. No growth but the path mtime is newer than last_modified: with inode
       tracking the identity is unchanged so this is AMBIGUOUS_SAME_SIZE;
       without it, a successor file is assumed and the verdict is ROTATED.
    6. Otherwise SAME_UNCHANGED.

    A successor that has exactly the size of the drained predecessor and is
    never modified afterwards is not noticed when identity is not tracked.

    Args:
        observation: Sample taken for this poll
        last_position: Offset up to which lines have been delivered
        last_inode: Identity recorded when the handle was opened
        last_modified: Stored mtime marker
        track_inode: Whether identity changes signal rotation

    Returns:
        The verdict for this poll
    """
    if observation.inode is None:
        return Verdict.NOT_FOUND

    channel_size = observation.channel_size

    if track_inode and observation.inode != last_inode:
        if channel_size > last_position:
            return Verdict.ROTATED_WITH_RESIDUAL
        return Verdict.ROTATED

    if channel_size > last_position:
        if observation.path_length != channel_size:
            return Verdict.DIVERGED
        return Verdict.SAME_GREW

    if channel_size < last_position:
        return Verdict.TRUNCATED

    if observation.path_mtime > last_modified:
        if track_inode:
            logger.debug(
                "mtime advanced without growth (inode %s, size %d)",
                observation.inode,
                channel_size,
            )
            return Verdict.AMBIGUOUS_SAME_SIZE
        return Verdict.ROTATED

    return Verdict.SAME_UNCHANGED
