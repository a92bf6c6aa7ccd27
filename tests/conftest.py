"""Shared pytest fixtures for log-tailer tests."""

import threading
import time
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest

from log_tailer import Tailer, TailerConfig, TailerListener


# Fast polling for tests
TEST_DELAY = 0.01


class RecordingListener(TailerListener):
    """Listener that records every callback in arrival order.

    ``events`` holds tuples such as ("line", text, position, mtime),
    ("rotated",), ("not_found",), ("error", exc), ("stop",), ("init", tailer).
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.events: List[Tuple] = []
        self.tailer: Optional[Tailer] = None

    def _record(self, *event) -> None:
        with self._lock:
            self.events.append(event)

    def init(self, tailer):
        self.tailer = tailer
        self._record("init", tailer)

    def file_not_found(self):
        self._record("not_found")

    def file_rotated(self):
        self._record("rotated")

    def handle(self, line, position, mtime):
        self._record("line", line, position, mtime)

    def handle_error(self, error):
        self._record("error", error)

    def stop(self):
        self._record("stop")

    def snapshot(self) -> List[Tuple]:
        with self._lock:
            return list(self.events)

    @property
    def lines(self) -> List[str]:
        return [e[1] for e in self.snapshot() if e[0] == "line"]

    @property
    def positions(self) -> List[int]:
        return [e[2] for e in self.snapshot() if e[0] == "line"]

    def count(self, kind: str) -> int:
        return sum(1 for e in self.snapshot() if e[0] == kind)

    def kinds(self) -> List[str]:
        """Event kinds with consecutive lines collapsed to a single "line"."""
        result: List[str] = []
        for event in self.snapshot():
            if event[0] == "line" and result and result[-1] == "line":
                continue
            result.append(event[0])
        return result


def write_lines(path: Path, prefix: str, start: int, count: int, mode: str = "a") -> None:
    """Append ``count`` lines ``prefix{start}..`` to a file, one write each."""
    with open(path, mode) as f:
        for i in range(start, start + count):
            f.write(f"{prefix}{i}\n")
            f.flush()


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.fixture
def recorder() -> RecordingListener:
    """Create a fresh RecordingListener."""
    return RecordingListener()


@pytest.fixture
def log_file(tmp_path) -> Path:
    """Path of a (not yet created) log file."""
    return tmp_path / "tailer_target"


@pytest.fixture
def start_tailer():
    """Build tailers running in background threads, stopped on teardown."""
    tailers: List[Tailer] = []

    def _start(path, listener, position=0, **options) -> Tailer:
        options.setdefault("delay", TEST_DELAY)
        last_modified = options.pop("last_modified", None)
        tailer = Tailer(
            path,
            listener,
            position=position,
            config=TailerConfig(**options),
            last_modified=last_modified,
        )
        tailer.start_background()
        tailers.append(tailer)
        return tailer

    yield _start

    for tailer in tailers:
        tailer.stop()
        tailer.join(timeout=5.0)
