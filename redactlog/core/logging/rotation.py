"""File handlers for the file sink.

Plain mode appends to ``<app_name>.log``. Daily mode writes
``<app_name>-<date>.log``, starts a new file when the date changes or the
current file reaches ``max_size``, optionally gzips the files it rotates out,
and prunes old files by count or age.
"""

import gzip
import logging
import logging.handlers
import os
import shutil
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path

import structlog

from .config import FileConfig, RotationOptions

logger = structlog.get_logger(__name__)


def build_file_handler(config: FileConfig, app_name: str) -> logging.Handler:
    """Create the handler for a file sink, creating the directory if needed."""
    log_dir = Path(config.log_file_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    if config.log_daily_rotation:
        return DailyRotatingFileHandler(
            directory=log_dir,
            prefix=app_name,
            options=config.log_daily_rotation_options,
        )

    return logging.FileHandler(
        filename=str(log_dir / f"{app_name}.log"),
        encoding="utf-8",
        delay=True,
    )


def compress_file(path: Path) -> Path:
    """Gzip ``path`` next to itself and remove the original."""
    target = path.with_name(f"{path.name}.gz")
    with open(path, "rb") as f_in, gzip.open(target, "wb") as f_out:
        shutil.copyfileobj(f_in, f_out)
    path.unlink()
    return target


class DailyRotatingFileHandler(logging.handlers.BaseRotatingHandler):
    """Rotate by calendar date and by size.

    Files rotated out because of size are renamed ``<file>.<n>``. When
    ``zipped_archive`` is set every rotated-out file is gzipped.
    """

    def __init__(
        self,
        directory: Path,
        prefix: str,
        options: RotationOptions | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.directory = Path(directory)
        self.prefix = prefix
        self.options = options or RotationOptions()
        self._clock = clock or datetime.now
        self._current_date = self._date_stamp()
        super().__init__(
            str(self._path_for(self._current_date)),
            mode="a",
            encoding="utf-8",
            delay=True,
        )

    @property
    def current_path(self) -> Path:
        return Path(self.baseFilename)

    def _date_stamp(self) -> str:
        return self._clock().strftime(self.options.date_pattern)

    def _path_for(self, stamp: str) -> Path:
        return self.directory / f"{self.prefix}-{stamp}.log"

    def shouldRollover(self, record: logging.LogRecord) -> bool:
        if self._date_stamp() != self._current_date:
            return True

        max_size = self.options.max_size
        if not max_size:
            return False

        if self.stream is None:
            self.stream = self._open()
        self.stream.seek(0, 2)
        pos = self.stream.tell()
        if not pos:
            return False
        msg = f"{self.format(record)}\n"
        return pos + len(msg.encode(self.encoding or "utf-8")) > max_size

    def doRollover(self) -> None:
        if self.stream:
            self.stream.close()
            self.stream = None

        previous = self.current_path
        stamp = self._date_stamp()

        if stamp == self._current_date:
            rolled = self._next_archive_path(previous)
            if previous.exists():
                self.rotate(str(previous), str(rolled))
                self._archive(rolled)
        else:
            self._current_date = stamp
            self.baseFilename = os.path.abspath(self._path_for(stamp))
            if previous.exists():
                self._archive(previous)

        prune_files(
            self.directory,
            self.prefix,
            max_files=self.options.max_files,
            max_age_days=self.options.max_age_days,
            keep=self.current_path,
        )

    def _next_archive_path(self, path: Path) -> Path:
        n = 1
        while True:
            candidate = path.with_name(f"{path.name}.{n}")
            if not candidate.exists() and not candidate.with_name(f"{candidate.name}.gz").exists():
                return candidate
            n += 1

    def _archive(self, path: Path) -> None:
        if not self.options.zipped_archive:
            return
        try:
            compress_file(path)
        except OSError as e:
            logger.error("Log file compression failed", file=str(path), error=str(e))


def prune_files(
    directory: Path,
    prefix: str,
    max_files: int | None = None,
    max_age_days: int | None = None,
    keep: Path | None = None,
) -> list[Path]:
    """Delete rotated log files beyond the retention limits.

    Args:
        directory: Directory containing the log files
        prefix: File name prefix of this sink's files
        max_files: Keep at most this many files (including the active one)
        max_age_days: Remove files last modified more than this many days ago
        keep: File that must never be removed (the active file)

    Returns:
        The files that were removed
    """
    if max_files is None and max_age_days is None:
        return []

    files = [
        f for f in directory.glob(f"{prefix}-*.log*")
        if f.is_file() and (keep is None or f.resolve() != keep.resolve())
    ]
    # Newest first
    files.sort(key=lambda f: f.stat().st_mtime, reverse=True)

    doomed: list[Path] = []
    if max_files is not None:
        # The active file counts towards the limit
        allowed = max(max_files - 1, 0) if keep is not None else max_files
        doomed.extend(files[allowed:])

    if max_age_days is not None:
        cutoff = datetime.now() - timedelta(days=max_age_days)
        for file_path in files:
            if file_path in doomed:
                continue
            if datetime.fromtimestamp(file_path.stat().st_mtime) < cutoff:
                doomed.append(file_path)

    removed = []
    for file_path in doomed:
        try:
            file_path.unlink()
            removed.append(file_path)
            logger.debug("Deleted old log file", file=str(file_path))
        except OSError as e:
            logger.error("File deletion failed", file=str(file_path), error=str(e))

    return removed
