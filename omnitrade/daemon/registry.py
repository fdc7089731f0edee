"""PID file management for the OmniTrade daemon."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import psutil

from omnitrade.models import DaemonProcessRecord

logger = logging.getLogger(__name__)


class ProcessRegistry:
    """File-backed record of the running daemon.

    Two small text files hold the PID and the ISO-8601 start time. A
    record whose process is gone is stale; callers must remove it.
    """

    def __init__(self, pid_file: Path, started_file: Path):
        self.pid_file = pid_file
        self.started_file = started_file

    def write(self, pid: int, started_at: Optional[datetime] = None) -> DaemonProcessRecord:
        """Persist the record, replacing any previous one."""
        record = DaemonProcessRecord(pid=pid, started_at=started_at or datetime.now())
        self.pid_file.parent.mkdir(parents=True, exist_ok=True)
        self.started_file.parent.mkdir(parents=True, exist_ok=True)
        self.pid_file.write_text(str(record.pid), encoding="utf-8")
        self.started_file.write_text(record.started_at.isoformat(), encoding="utf-8")
        return record

    def read(self) -> Optional[DaemonProcessRecord]:
        """Read the record, or None if it is absent or corrupt."""
        if not self.pid_file.exists():
            return None

        try:
            pid = int(self.pid_file.read_text(encoding="utf-8").strip())
        except (OSError, ValueError):
            return None

        try:
            started_at = datetime.fromisoformat(
                self.started_file.read_text(encoding="utf-8").strip()
            )
        except (OSError, ValueError):
            # PID without a usable start time still identifies the process
            started_at = datetime.now()

        try:
            return DaemonProcessRecord(pid=pid, started_at=started_at)
        except ValueError:
            return None

    def remove(self) -> None:
        """Delete the record. Safe to call when nothing is there."""
        for path in (self.pid_file, self.started_file):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.debug("Could not remove %s: %s", path, e)

    @staticmethod
    def is_alive(pid: int) -> bool:
        """Check whether a process exists without signalling it."""
        if pid <= 0:
            return False
        try:
            return psutil.pid_exists(pid)
        except (OSError, psutil.Error):
            return False

    @staticmethod
    def uptime_seconds(record: DaemonProcessRecord, now: Optional[datetime] = None) -> float:
        """Seconds since the recorded start, never negative."""
        return record.uptime_seconds(now)


def format_uptime(seconds: float) -> str:
    """Format seconds as e.g. '1h 2m 3s'."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
