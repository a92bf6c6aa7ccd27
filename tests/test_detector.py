"""Tests for log_tailer.detector module."""

import os

import pytest

from log_tailer.detector import Observation, Verdict, classify
from log_tailer.inode import inode


def observe(inode=7, channel_size=100, path_length=None, path_mtime=50.0):
    """Build an Observation; path_length defaults to channel_size."""
    return Observation(
        inode=inode,
        channel_size=channel_size,
        path_length=channel_size if path_length is None else path_length,
        path_mtime=path_mtime,
    )


class TestClassifyWithInode:
    """Test classify() with identity tracking (the default)."""

    def test_not_found(self):
        """A path that cannot be stat'd should be NOT_FOUND."""
        obs = Observation(inode=None, channel_size=100)
        assert classify(obs, 50, 7, 0.0) is Verdict.NOT_FOUND

    def test_same_grew(self):
        """Growth of the same file should be SAME_GREW."""
        assert classify(observe(channel_size=120), 100, 7, 100.0) is Verdict.SAME_GREW

    def test_same_unchanged(self):
        """No growth and no newer mtime should be SAME_UNCHANGED."""
        assert classify(observe(), 100, 7, 100.0) is Verdict.SAME_UNCHANGED

    def test_rotated(self):
        """A new identity with nothing left on the old handle should be ROTATED."""
        assert classify(observe(inode=8), 100, 7, 100.0) is Verdict.ROTATED

    def test_rotated_with_residual(self):
        """A new identity with unread old bytes should be ROTATED_WITH_RESIDUAL."""
        obs = observe(inode=8, channel_size=150, path_length=10)
        assert classify(obs, 100, 7, 100.0) is Verdict.ROTATED_WITH_RESIDUAL

    def test_identity_checked_before_growth(self):
        """Identity change should win over growth of the old handle."""
        obs = observe(inode=8, channel_size=150)
        assert classify(obs, 100, 7, 100.0) is Verdict.ROTATED_WITH_RESIDUAL

    def test_diverged(self):
        """Growth with a path length unlike the handle's should be DIVERGED."""
        obs = observe(channel_size=150, path_length=40)
        assert classify(obs, 100, 7, 100.0) is Verdict.DIVERGED

    def test_truncated(self):
        """A handle shorter than the last position should be TRUNCATED."""
        assert classify(observe(channel_size=10), 100, 7, 100.0) is Verdict.TRUNCATED

    def test_ambiguous_same_size(self):
        """A newer mtime without growth on the same inode should be ambiguous."""
        obs = observe(path_mtime=200.0)
        assert classify(obs, 100, 7, 100.0) is Verdict.AMBIGUOUS_SAME_SIZE

    def test_mtime_equal_is_unchanged(self):
        """An mtime equal to the marker should not count as newer."""
        obs = observe(path_mtime=100.0)
        assert classify(obs, 100, 7, 100.0) is Verdict.SAME_UNCHANGED


class TestClassifyWithoutInode:
    """Test classify() in size and mtime mode."""

    def test_identity_change_ignored(self):
        """A different inode alone should not signal rotation."""
        obs = observe(inode=8)
        assert classify(obs, 100, 7, 100.0, track_inode=False) is Verdict.SAME_UNCHANGED

    def test_newer_mtime_without_growth_is_rotation(self):
        """A newer mtime without growth should be ROTATED."""
        obs = observe(path_mtime=200.0)
        assert classify(obs, 100, 7, 100.0, track_inode=False) is Verdict.ROTATED

    def test_growth_still_read(self):
        """Growth should still be SAME_GREW."""
        obs = observe(channel_size=120, path_mtime=200.0)
        assert classify(obs, 100, 7, 100.0, track_inode=False) is Verdict.SAME_GREW

    def test_equal_size_successor_looks_like_growth(self):
        """A successor matching the old handle's size is indistinguishable."""
        obs = observe(inode=8, channel_size=200, path_length=200, path_mtime=200.0)
        assert classify(obs, 100, 7, 100.0, track_inode=False) is Verdict.SAME_GREW

    def test_not_found(self):
        """A missing path should still be NOT_FOUND."""
        obs = Observation(inode=None, channel_size=100)
        assert classify(obs, 100, 7, 100.0, track_inode=False) is Verdict.NOT_FOUND


class TestObservationSample:
    """Test Observation.sample() against real files."""

    def test_sample_existing_file(self, tmp_path):
        """sample() should report inode, sizes and mtime of the path."""
        path = tmp_path / "app.log"
        path.write_bytes(b"hello\n")

        with open(path, "rb", buffering=0) as handle:
            obs = Observation.sample(str(path), handle)

        assert obs.inode == inode(path)
        assert obs.channel_size == 6
        assert obs.path_length == 6
        assert obs.path_mtime == pytest.approx(path.stat().st_mtime)

    def test_sample_after_rename(self, tmp_path):
        """Handle and path should diverge once another file takes the name."""
        path = tmp_path / "app.log"
        path.write_bytes(b"old content\n")

        with open(path, "rb", buffering=0) as handle:
            old_inode = inode(path)
            os.rename(path, tmp_path / "app.log.1")
            path.write_bytes(b"new\n")
            obs = Observation.sample(str(path), handle)

        assert obs.inode != old_inode
        assert obs.channel_size == 12
        assert obs.path_length == 4

    def test_sample_missing_path(self, tmp_path):
        """sample() should report inode None when the path is gone."""
        path = tmp_path / "app.log"
        path.write_bytes(b"data\n")

        with open(path, "rb", buffering=0) as handle:
            path.unlink()
            obs = Observation.sample(str(path), handle)

        assert obs.inode is None
        assert obs.channel_size == 5
