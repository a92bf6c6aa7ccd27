"""File identity probe.

The rotation detector only ever compares identities for equality, so the
value returned here is an opaque integer. On POSIX it is the inode number;
on Windows, where ``st_ino`` is only unique per volume, the volume serial
is packed above it.
"""

import os
from typing import IO, Union

from .errors import ProbeFailed

PathLike = Union[str, "os.PathLike[str]"]

_PACK_DEVICE = os.name == "nt"


def stat_identity(st: os.stat_result) -> int:
    """Return the identity token for a stat result."""
    if _PACK_DEVICE:
        return (st.st_dev << 64) | st.st_ino
    return st.st_ino


def inode(path: PathLike) -> int:
    """Return the identity of the file a path currently names.

    Symlinks are followed, so swapping a link to a new target changes the
    identity. Relative paths are resolved against the working directory.

    Args:
        path: Path to probe (absolute paths are expected)

    Returns:
        Opaque integer identity of the file

    Raises:
        ProbeFailed: If the path cannot be stat'd
    """
    try:
        st = os.stat(path)
    except OSError as e:
        raise ProbeFailed(f"cannot stat {os.fspath(path)!r}: {e}") from e
    return stat_identity(st)


def handle_inode(handle: IO[bytes]) -> int:
    """Return the identity of the file behind an open handle."""
    return stat_identity(os.fstat(handle.fileno()))
