"""
Relay configuration.

Values come from an optional YAML file, then the environment. The Trello
credential pair is mandatory: the server refuses to start without it.
"""
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Mapping, Optional

import yaml

CONFIG_PATH = Path("relay.yaml")

TRELLO_API_BASE = "https://api.trello.com/1"

# env var -> config field
ENV_OVERRIDES = {
    "TRELLO_KEY": "trello_key",
    "TRELLO_TOKEN": "trello_token",
    "TRELLO_API_BASE": "api_base",
    "HOST": "host",
    "PORT": "port",
}


class ConfigError(Exception):
    """Raised when configuration is invalid or incomplete."""
    pass


@dataclass
class RelayConfig:
    """Runtime configuration for the relay server."""

    # Trello credentials (required)
    trello_key: str = ""
    trello_token: str = ""
    api_base: str = TRELLO_API_BASE

    # HTTP / Socket.IO server
    host: str = "127.0.0.1"
    port: int = 5000
    cors_origins: str = "*"
    async_mode: Optional[str] = None  # None = let Flask-SocketIO pick

    # Outbound calls; None keeps the transport default
    request_timeout: Optional[float] = None

    webhook_description: str = "Trello Board Webhook"
    log_level: str = "INFO"

    @classmethod
    def load(cls, path: Optional[str] = None,
             env: Optional[Mapping[str, str]] = None) -> "RelayConfig":
        """Load config from YAML (if present), then apply env overrides."""
        cfg_path = Path(path) if path else CONFIG_PATH
        data = {}
        if cfg_path.exists():
            with open(cfg_path, "r") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ConfigError(f"{cfg_path} must contain a YAML mapping")

        known = {f.name for f in fields(cls)}
        cfg = cls(**{k: v for k, v in data.items() if k in known})

        env = os.environ if env is None else env
        for var, attr in ENV_OVERRIDES.items():
            value = env.get(var)
            if value:
                setattr(cfg, attr, value.strip())

        try:
            cfg.port = int(cfg.port)
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid port: {cfg.port!r}")
        return cfg

    def validate(self) -> "RelayConfig":
        """Raise ConfigError unless both Trello credentials are set."""
        missing = []
        if not self.trello_key:
            missing.append("TRELLO_KEY")
        if not self.trello_token:
            missing.append("TRELLO_TOKEN")
        if missing:
            raise ConfigError(
                f"Missing {' and '.join(missing)}.\n"
                f"Set them in the environment or a .env file, e.g.\n"
                f"  export TRELLO_KEY=your_api_key\n"
                f"  export TRELLO_TOKEN=your_api_token"
            )
        return self
