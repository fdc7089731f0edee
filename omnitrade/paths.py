"""Well-known file locations for OmniTrade state."""

import os
from pathlib import Path

HOME_ENV_VAR = "OMNITRADE_HOME"


def get_home() -> Path:
    """Return the OmniTrade state directory.

    ``$OMNITRADE_HOME`` wins when set, otherwise ``~/.config/omnitrade``.
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "omnitrade"


def config_file() -> Path:
    return get_home() / "config.toml"


def alerts_file() -> Path:
    return get_home() / "alerts.json"


def pid_file() -> Path:
    return get_home() / "daemon.pid"


def started_file() -> Path:
    return get_home() / "daemon-started.txt"


def log_file() -> Path:
    return get_home() / "daemon.log"
