"""Entry point of the detached daemon process.

Started as ``python -m omnitrade daemon run`` by :class:`DaemonController`.
It records its PID, builds exchange clients once, then polls alerts until
it receives SIGTERM or SIGINT.
"""

import logging
import os
import signal
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from omnitrade import paths
from omnitrade.config import ConfigError, load_config
from omnitrade.daemon.registry import ProcessRegistry
from omnitrade.daemon.scheduler import PollScheduler
from omnitrade.db.store import AlertStore
from omnitrade.exchanges import create_exchanges
from omnitrade.notifications import enabled_channels

logger = logging.getLogger("omnitrade.daemon")


class IsoFormatter(logging.Formatter):
    """Formats records as ``[<ISO-8601 UTC>] message``."""

    def __init__(self):
        super().__init__("[%(asctime)s] %(message)s")

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        return datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
            timespec="milliseconds"
        )


def setup_logging(log_file: Path) -> None:
    """Send OmniTrade log records to the daemon log.

    When detached, stderr is already redirected to the log file by the
    controller. When run from a terminal, records go to stderr and are
    also appended to the log file.
    """
    package_logger = logging.getLogger("omnitrade")
    package_logger.setLevel(logging.INFO)
    package_logger.propagate = False
    formatter = IsoFormatter()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    package_logger.addHandler(stream_handler)

    if sys.stderr.isatty():
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)


def run_daemon(config_path: Optional[Path] = None) -> int:
    """Run the daemon until signalled.

    Returns:
        Process exit code. Only returns on fatal startup errors; a signal
        ends the process through ``sys.exit(0)``.
    """
    registry = ProcessRegistry(paths.pid_file(), paths.started_file())

    config = None
    config_error = None
    try:
        config = load_config(config_path)
    except ConfigError as e:
        config_error = e

    setup_logging(config.daemon.resolved_log_file() if config else paths.log_file())

    try:
        registry.write(os.getpid())
    except OSError as e:
        logger.error("FATAL: Could not write PID file: %s", e)
        return 1

    logger.info("OmniTrade daemon started (PID: %d)", os.getpid())

    if config is None:
        logger.error("FATAL: Failed to load config: %s", config_error)
        registry.remove()
        return 1

    logger.info("Config loaded — exchanges: %s", ", ".join(config.exchanges) or "none")

    exchanges = create_exchanges(config.exchanges)
    if not exchanges:
        logger.error("FATAL: No exchanges could be initialized")
        registry.remove()
        return 1

    poll_interval = config.daemon.poll_interval
    logger.info("Poll interval: %ds", poll_interval)

    channels = enabled_channels(config.notifications)
    logger.info("Notification channels: %s", ", ".join(channels) if channels else "none")

    scheduler = PollScheduler(
        store=AlertStore(paths.alerts_file()),
        exchanges=exchanges,
        notifications=config.notifications,
        poll_interval=poll_interval,
    )

    def _shutdown(signum: int, _frame: object) -> None:
        logger.info("Received %s — shutting down gracefully", signal.Signals(signum).name)
        registry.remove()
        sys.exit(0)

    signal.signal(signal.SIGTERM, _shutdown)
    signal.signal(signal.SIGINT, _shutdown)

    logger.info("Daemon running — polling every %ds", poll_interval)
    try:
        scheduler.run_forever()
    finally:
        registry.remove()
    return 0
