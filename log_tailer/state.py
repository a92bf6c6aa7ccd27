"""Restart checkpoints for tailers.

A tailer reports the offset after every line but never stores it. This
module provides the Checkpoint record callers can persist, and the check
that decides whether a stored offset is still valid when tailing resumes.

Example usage:
    from log_tailer import Checkpoint, TailerListener, create_tailer

    class CheckpointingListener(TailerListener):
        def init(self, tailer):
            self.tailer = tailer

        def handle(self, line, position, mtime):
            ship(line)
            store.save(Checkpoint.from_tailer(self.tailer, position).to_dict())

    checkpoint = Checkpoint.from_dict(store.load())
    tailer = create_tailer(checkpoint.file_path, listener, checkpoint.resume_position())
"""

import logging
import os
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TYPE_CHECKING

from .inode import stat_identity

if TYPE_CHECKING:
    from .tailer import Tailer

logger = logging.getLogger(__name__)


@dataclass
class Checkpoint:
    """Serializable tail position.

    Attributes:
        file_path: Absolute path to the file
        position: Byte offset to resume from
        inode: Identity of the file the position refers to
        last_modified: When this checkpoint was taken (ISO format)
    """

    file_path: str
    position: int
    inode: int
    last_modified: str

    @classmethod
    def from_tailer(cls, tailer: "Tailer", position: Optional[int] = None) -> "Checkpoint":
        """Capture a tailer's current file and offset.

        Intended to be called from the tailer's own listener callbacks,
        where position and inode are consistent with each other.

        Args:
            tailer: The tailer to capture
            position: Offset to record (defaults to tailer.position); pass
                the position given to handle() to checkpoint mid-batch

        Returns:
            Checkpoint for the tailer's current file
        """
        if tailer.inode is None:
            raise ValueError(f"Tailer for {tailer.path} has not opened its file yet")
        return cls(
            file_path=tailer.path,
            position=tailer.position if position is None else position,
            inode=tailer.inode,
            last_modified=datetime.now(timezone.utc).isoformat(),
        )

    def resume_position(self) -> int:
        """Offset a new tailer should start from.

        The stored position is only trusted if the path still names the
        same file and that file is at least as long as the position.

        Returns:
            The stored position, or 0 if the file was rotated, truncated
            or is missing
        """
        try:
            st = os.stat(self.file_path)
        except OSError as e:
            logger.debug("Cannot stat %s (%s), starting from 0", self.file_path, e)
            return 0

        current = stat_identity(st)
        if current != self.inode:
            logger.debug(
                "File %s was rotated (inode %d -> %d), starting from 0",
                self.file_path,
                self.inode,
                current,
            )
            return 0

        if st.st_size < self.position:
            logger.debug(
                "File %s was truncated (%d < %d), starting from 0",
                self.file_path,
                st.st_size,
                self.position,
            )
            return 0

        return self.position

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Checkpoint":
        """Create from dict (e.g., loaded from JSON)."""
        return cls(
            file_path=data["file_path"],
            position=data["position"],
            inode=data["inode"],
            last_modified=data.get("last_modified", datetime.now(timezone.utc).isoformat()),
        )
