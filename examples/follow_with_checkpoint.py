#!/usr/bin/env python3
"""Example: Follow a log file and resume after a restart.

Every line is printed as a JSON object together with the offset after it.
The offset and file identity are written to a checkpoint file, so running
the script again continues where the previous run stopped, or starts over
if the file was rotated in the meantime.

Usage:
    # Follow a log, checkpointing next to it
    python follow_with_checkpoint.py /var/log/app.log

    # Custom checkpoint location and poll interval
    python follow_with_checkpoint.py /var/log/app.log --state /tmp/app.pos --delay 0.5

    # Show tailer diagnostics
    python follow_with_checkpoint.py /var/log/app.log -v

Output format:
    {"line": "GET /health 200", "position": 1834, "mtime": 1705314600.0}
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path

# Add parent directory for development
sys.path.insert(0, str(Path(__file__).parent.parent))

from log_tailer import Checkpoint, EmitterListener, TailerState, create_tailer


def load_position(state_path: Path) -> int:
    """Return the offset to start from, 0 if there is no usable checkpoint."""
    if not state_path.exists():
        return 0
    try:
        checkpoint = Checkpoint.from_dict(json.loads(state_path.read_text()))
    except (ValueError, KeyError) as e:
        logging.warning("Ignoring unreadable checkpoint %s: %s", state_path, e)
        return 0
    return checkpoint.resume_position()


def save_checkpoint(state_path: Path, checkpoint: Checkpoint) -> None:
    """Write the checkpoint atomically (write to temp, then rename)."""
    temp_path = state_path.with_suffix(".tmp")
    temp_path.write_text(json.dumps(checkpoint.to_dict()))
    temp_path.replace(state_path)


def main():
    parser = argparse.ArgumentParser(
        description="Follow a log file, resuming from a saved offset"
    )
    parser.add_argument("path", type=Path, help="Log file to follow")
    parser.add_argument(
        "--state",
        type=Path,
        default=None,
        help="Checkpoint file (default: <path>.pos)",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=0.1,
        help="Seconds between polls (default: 0.1)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    state_path = args.state or args.path.with_name(args.path.name + ".pos")
    position = load_position(state_path)

    listener = EmitterListener()

    @listener.on("line")
    def on_line(event):
        print(json.dumps({"line": event.line, "position": event.position, "mtime": event.mtime}))
        save_checkpoint(state_path, Checkpoint.from_tailer(listener.tailer, event.position))

    @listener.on("rotated")
    def on_rotated(event):
        print(f"--- {event.path} rotated ---", file=sys.stderr)

    @listener.on("error")
    def on_error(event):
        print(f"Tailer stopped: {event.message}", file=sys.stderr)

    tailer = create_tailer(args.path, listener, position, delay=args.delay)
    print(f"Following {tailer.path} from offset {position}", file=sys.stderr)
    tailer.start_background()

    try:
        while tailer.state is not TailerState.STOPPED:
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass
    finally:
        tailer.stop()
        tailer.join(timeout=5.0)


if __name__ == "__main__":
    main()
