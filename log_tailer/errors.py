"""Exception types raised by the log tailer.

Missing files are reported with the builtin FileNotFoundError and recovered
inside the tailer loop; the types here cover the remaining error kinds.
"""


class TailerError(Exception):
    """Base class for log tailer errors."""


class ProbeFailed(TailerError):
    """The file identity of a path could not be determined.

    Raised by the inode probe when the path cannot be stat'd. The rotation
    detector treats it the same as a missing file.
    """


class InvalidConfig(TailerError, ValueError):
    """A tailer was configured with an invalid delay or buffer size."""
