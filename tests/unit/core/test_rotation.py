"""Tests for rotating file storage."""
import gzip
import logging
import os
from datetime import datetime, timedelta

from redactlog.core.logging.config import RotationOptions
from redactlog.core.logging.rotation import DailyRotatingFileHandler, compress_file, prune_files


class FakeClock:
    """Controllable replacement for datetime.now."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def emit(handler, message):
    record = logging.LogRecord("test", logging.INFO, __file__, 1, message, None, None)
    handler.handle(record)


class TestDailyRotatingFileHandler:
    """Test rotation by date and by size."""

    def test_writes_dated_file(self, tmp_path):
        """Test the file name uses the date pattern."""
        clock = FakeClock(datetime(2024, 3, 1, 12, 0))
        handler = DailyRotatingFileHandler(tmp_path, "app", RotationOptions(), clock=clock)

        emit(handler, "first")
        handler.close()

        assert (tmp_path / "app-2024-03-01.log").read_text() == "first\n"

    def test_rotates_when_date_changes(self, tmp_path):
        """Test a new file is started on a new day and the old one archived."""
        clock = FakeClock(datetime(2024, 3, 1, 23, 59))
        handler = DailyRotatingFileHandler(
            tmp_path, "app", RotationOptions(zipped_archive=True), clock=clock
        )

        emit(handler, "day one")
        clock.now += timedelta(minutes=2)
        emit(handler, "day two")
        handler.close()

        assert (tmp_path / "app-2024-03-02.log").read_text() == "day two\n"
        assert not (tmp_path / "app-2024-03-01.log").exists()
        with gzip.open(tmp_path / "app-2024-03-01.log.gz", "rt") as archived:
            assert archived.read() == "day one\n"

    def test_rotates_by_size(self, tmp_path):
        """Test that a full file is rolled to a numbered file."""
        clock = FakeClock(datetime(2024, 3, 1))
        options = RotationOptions(max_size=20, zipped_archive=False)
        handler = DailyRotatingFileHandler(tmp_path, "app", options, clock=clock)

        emit(handler, "a" * 15)
        emit(handler, "b" * 15)
        emit(handler, "c" * 15)
        handler.close()

        assert (tmp_path / "app-2024-03-01.log.1").read_text() == "a" * 15 + "\n"
        assert (tmp_path / "app-2024-03-01.log.2").read_text() == "b" * 15 + "\n"
        assert (tmp_path / "app-2024-03-01.log").read_text() == "c" * 15 + "\n"

    def test_max_files_prunes_oldest(self, tmp_path):
        """Test that retention keeps only the newest files."""
        clock = FakeClock(datetime(2024, 3, 1))
        options = RotationOptions(max_size=10, zipped_archive=False, max_files=2)
        handler = DailyRotatingFileHandler(tmp_path, "app", options, clock=clock)

        for n in range(4):
            emit(handler, f"message-{n}")
            # Distinct modification times for ordering
            for f in tmp_path.iterdir():
                os.utime(f, (f.stat().st_atime, f.stat().st_mtime - 10))
        handler.close()

        remaining = sorted(f.name for f in tmp_path.iterdir())
        assert len(remaining) == 2
        assert "app-2024-03-01.log" in remaining


class TestRetentionHelpers:
    """Test compression and pruning helpers."""

    def test_compress_file(self, tmp_path):
        """Test gzip compression replaces the original."""
        source = tmp_path / "app-2024-01-01.log"
        source.write_text("payload")

        target = compress_file(source)

        assert target.name == "app-2024-01-01.log.gz"
        assert not source.exists()
        with gzip.open(target, "rt") as f:
            assert f.read() == "payload"

    def test_prune_by_age(self, tmp_path):
        """Test that files older than the age limit are removed."""
        old = tmp_path / "app-2024-01-01.log.gz"
        new = tmp_path / "app-2024-01-20.log.gz"
        other = tmp_path / "other-2024-01-01.log"
        for f in (old, new, other):
            f.write_text("x")
        old_time = (datetime.now() - timedelta(days=10)).timestamp()
        os.utime(old, (old_time, old_time))
        os.utime(other, (old_time, old_time))

        removed = prune_files(tmp_path, "app", max_age_days=7)

        assert removed == [old]
        assert new.exists()
        assert other.exists()

    def test_prune_never_removes_active_file(self, tmp_path):
        """Test that the active file survives a count limit of one."""
        active = tmp_path / "app-2024-01-02.log"
        archived = tmp_path / "app-2024-01-01.log"
        active.write_text("a")
        archived.write_text("b")

        prune_files(tmp_path, "app", max_files=1, keep=active)

        assert active.exists()
        assert not archived.exists()

    def test_prune_without_limits_is_noop(self, tmp_path):
        """Test that no limits means no deletions."""
        f = tmp_path / "app-2024-01-01.log"
        f.write_text("x")

        assert prune_files(tmp_path, "app") == []
        assert f.exists()
