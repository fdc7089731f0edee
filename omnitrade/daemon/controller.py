"""Start, stop and inspect the background daemon."""

import logging
import os
import signal
import subprocess
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field

from omnitrade.daemon.registry import ProcessRegistry
from omnitrade.models import DaemonProcessRecord

logger = logging.getLogger(__name__)

DaemonState = Literal["running", "not_running", "stale"]

# SIGKILL does not exist on Windows
FORCE_KILL_SIGNAL = getattr(signal, "SIGKILL", signal.SIGTERM)


class ControlResult(BaseModel):
    """Outcome of a start or stop request."""

    success: bool = Field(..., description="Whether the request did what was asked")
    state: DaemonState = Field(..., description="Daemon state after the request")
    message: str = Field(..., description="Human-readable summary")
    pid: Optional[int] = Field(default=None, description="Daemon PID, if known")
    forced: bool = Field(default=False, description="Whether SIGKILL was needed")

    model_config = {"frozen": True}


class DaemonStatus(BaseModel):
    """Snapshot of the daemon for ``omnitrade daemon status``."""

    state: DaemonState
    pid: Optional[int] = None
    started_at: Optional[datetime] = None
    uptime_seconds: Optional[float] = None
    log_tail: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


def default_daemon_command() -> list[str]:
    """Command line for the spawned daemon process."""
    return [sys.executable, "-m", "omnitrade", "daemon", "run"]


def tail_lines(path: Path, count: int) -> list[str]:
    """Last ``count`` non-empty lines of a text file; empty if unreadable."""
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            lines = [line.rstrip("\n") for line in f if line.strip()]
    except OSError:
        return []
    return lines[-count:] if count > 0 else []


class DaemonController:
    """Lifecycle operations for the daemon process.

    Every operation reports one of three states: running, not running, or
    stale (a registry record whose process is gone). Stale records are
    removed whenever they are seen.
    """

    def __init__(
        self,
        registry: ProcessRegistry,
        log_file: Path,
        command: Optional[list[str]] = None,
        startup_wait: float = 1.0,
        stop_timeout: float = 5.0,
        poll_interval: float = 0.1,
        tail_count: int = 10,
    ):
        """Initialize the controller.

        Args:
            registry: Process registry shared with the daemon.
            log_file: File receiving the daemon's output.
            command: Command line of the daemon process.
            startup_wait: Seconds to wait after spawning before checking the registry.
            stop_timeout: Seconds to wait for a graceful exit before SIGKILL.
            poll_interval: Seconds between liveness checks while stopping.
            tail_count: Number of log lines included in status.
        """
        self.registry = registry
        self.log_file = log_file
        self.command = command or default_daemon_command()
        self.startup_wait = startup_wait
        self.stop_timeout = stop_timeout
        self.poll_interval = poll_interval
        self.tail_count = tail_count

    def _read_record(self) -> Optional[DaemonProcessRecord]:
        try:
            return self.registry.read()
        except Exception as e:
            logger.debug("Treating unreadable registry as empty: %s", e)
            return None

    def _running_record(self) -> Optional[DaemonProcessRecord]:
        record = self._read_record()
        if record is not None and self.registry.is_alive(record.pid):
            return record
        return None

    def _spawn(self) -> subprocess.Popen:
        """Launch the daemon detached from this process."""
        self.log_file.parent.mkdir(parents=True, exist_ok=True)

        kwargs: dict = {}
        if sys.platform == "win32":
            kwargs["creationflags"] = (
                subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
            )
        else:
            kwargs["start_new_session"] = True

        with open(self.log_file, "a", encoding="utf-8") as log:
            return subprocess.Popen(
                self.command,
                stdin=subprocess.DEVNULL,
                stdout=log,
                stderr=subprocess.STDOUT,
                close_fds=True,
                **kwargs,
            )

    def start(self) -> ControlResult:
        """Spawn the daemon unless one is already running.

        Readiness is checked by re-reading the registry after a fixed
        wait, so a slow start can be misreported as a failure.
        """
        record = self._read_record()
        if record is not None:
            if self.registry.is_alive(record.pid):
                return ControlResult(
                    success=False,
                    state="running",
                    message=f"Daemon already running (PID: {record.pid})",
                    pid=record.pid,
                )
            logger.info("Removing stale PID file for %d", record.pid)
            self.registry.remove()

        try:
            process = self._spawn()
        except OSError as e:
            return ControlResult(
                success=False,
                state="not_running",
                message=f"Failed to start daemon: {e}",
            )

        time.sleep(self.startup_wait)

        record = self._running_record()
        if record is not None:
            return ControlResult(
                success=True,
                state="running",
                message=f"Daemon started (PID: {record.pid})",
                pid=record.pid,
            )
        return ControlResult(
            success=False,
            state="not_running",
            message=f"Daemon failed to start. Check the log: {self.log_file}",
            pid=process.pid,
        )

    def _wait_for_exit(self, pid: int, timeout: float) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if not self.registry.is_alive(pid):
                return True
            time.sleep(self.poll_interval)
        return not self.registry.is_alive(pid)

    @staticmethod
    def _signal(pid: int, sig: int) -> None:
        try:
            os.kill(pid, sig)
        except ProcessLookupError:
            pass

    def stop(self) -> ControlResult:
        """Stop the daemon with SIGTERM, escalating to SIGKILL on timeout."""
        record = self._read_record()
        if record is None:
            return ControlResult(
                success=False,
                state="not_running",
                message="Daemon is not running",
            )

        pid = record.pid
        if not self.registry.is_alive(pid):
            self.registry.remove()
            return ControlResult(
                success=True,
                state="stale",
                message=f"Daemon was not running (stale PID {pid}). Cleaned up.",
                pid=pid,
            )

        try:
            self._signal(pid, signal.SIGTERM)
        except PermissionError as e:
            return ControlResult(
                success=False,
                state="running",
                message=f"Not allowed to stop daemon (PID: {pid}): {e}",
                pid=pid,
            )

        forced = False
        if not self._wait_for_exit(pid, self.stop_timeout):
            logger.warning("Daemon %d ignored SIGTERM, sending SIGKILL", pid)
            self._signal(pid, FORCE_KILL_SIGNAL)
            forced = True

        self.registry.remove()

        message = f"Daemon stopped (PID: {pid})"
        if forced:
            message += " — force killed after timeout"
        return ControlResult(
            success=True,
            state="not_running",
            message=message,
            pid=pid,
            forced=forced,
        )

    def status(self) -> DaemonStatus:
        """Report whether the daemon runs, with uptime and recent log lines."""
        record = self._read_record()
        if record is None:
            return DaemonStatus(state="not_running")

        if not self.registry.is_alive(record.pid):
            self.registry.remove()
            return DaemonStatus(state="stale", pid=record.pid)

        return DaemonStatus(
            state="running",
            pid=record.pid,
            started_at=record.started_at,
            uptime_seconds=self.registry.uptime_seconds(record),
            log_tail=tail_lines(self.log_file, self.tail_count),
        )
