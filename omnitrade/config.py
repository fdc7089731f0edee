"""Configuration loading for OmniTrade.

Configuration lives in a TOML file (``~/.config/omnitrade/config.toml`` by
default) and is validated with pydantic models. Loading failures raise
:class:`ConfigError` with a readable description of what is wrong.
"""

from pathlib import Path
from typing import Optional

import toml
from pydantic import BaseModel, Field, ValidationError

from omnitrade import paths


class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""


class ExchangeConfig(BaseModel):
    """Credentials for one exchange.

    Credentials are optional because price polling only needs public data.
    """

    api_key: str = Field(default="", description="Exchange API key")
    secret: str = Field(default="", description="Exchange API secret")
    password: Optional[str] = Field(default=None, description="Passphrase, if required")
    testnet: bool = Field(default=True, description="Use the exchange sandbox")


class TelegramConfig(BaseModel):
    enabled: bool = False
    bot_token: str = ""
    chat_id: str = ""

    @property
    def is_configured(self) -> bool:
        return self.enabled and bool(self.bot_token) and bool(self.chat_id)


class DiscordConfig(BaseModel):
    enabled: bool = False
    webhook_url: str = ""

    @property
    def is_configured(self) -> bool:
        return self.enabled and bool(self.webhook_url)


class NativeConfig(BaseModel):
    enabled: bool = False

    @property
    def is_configured(self) -> bool:
        return self.enabled


class NotificationConfig(BaseModel):
    """Per-channel notification settings."""

    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    native: NativeConfig = Field(default_factory=NativeConfig)


class DaemonConfig(BaseModel):
    """Background daemon settings."""

    poll_interval: int = Field(default=60, gt=0, description="Seconds between price checks")
    log_file: Optional[str] = Field(default=None, description="Custom daemon log path")

    def resolved_log_file(self) -> Path:
        if self.log_file:
            return Path(self.log_file).expanduser()
        return paths.log_file()


class OmniTradeConfig(BaseModel):
    """Top-level configuration document."""

    exchanges: dict[str, ExchangeConfig] = Field(default_factory=dict)
    default_exchange: Optional[str] = None
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    daemon: DaemonConfig = Field(default_factory=DaemonConfig)


def load_config(config_path: Optional[Path] = None) -> OmniTradeConfig:
    """Load and validate the configuration file.

    Args:
        config_path: Path to the TOML file. Defaults to the standard location.

    Returns:
        Validated configuration.

    Raises:
        ConfigError: If the file is missing, is not valid TOML, or fails validation.
    """
    config_path = config_path or paths.config_file()

    if not config_path.exists():
        raise ConfigError(
            f"Config file not found: {config_path}\n"
            "Run 'omnitrade init' to create a template."
        )

    try:
        raw = toml.load(config_path)
    except (toml.TomlDecodeError, OSError) as e:
        raise ConfigError(f"Invalid TOML in config file {config_path}: {e}") from e

    try:
        return OmniTradeConfig.model_validate(raw)
    except ValidationError as e:
        errors = "\n".join(
            f"  - {'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(f"Invalid config at {config_path}:\n{errors}") from e


def load_config_or_default(config_path: Optional[Path] = None) -> OmniTradeConfig:
    """Load the configuration, falling back to defaults when unavailable."""
    try:
        return load_config(config_path)
    except ConfigError:
        return OmniTradeConfig()


def write_template_config(config_path: Optional[Path] = None) -> Path:
    """Write a template configuration file.

    Returns:
        Path of the written file.
    """
    config_path = config_path or paths.config_file()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    template = {
        "exchanges": {
            "binance": {
                "api_key": "",
                "secret": "",
                "testnet": True,
            },
        },
        "notifications": {
            "telegram": {"enabled": False, "bot_token": "", "chat_id": ""},
            "discord": {"enabled": False, "webhook_url": ""},
            "native": {"enabled": True},
        },
        "daemon": {
            "poll_interval": 60,
        },
    }

    with open(config_path, "w") as f:
        toml.dump(template, f)

    return config_path
