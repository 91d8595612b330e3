"""Configuration loading for hub's own settings.

Repository facts (users, tokens, hosts, protocol) live in git config and are
read through the Context. This file only covers tool-level policy.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

import tomli


class ConfigError(Exception):
    """Raised when the settings file cannot be parsed."""


@dataclass
class ApiConfig:
    """Hosting API transport policy."""

    # Fall back to plain HTTP when the interpreter lacks TLS support
    allow_insecure_http: bool = False


@dataclass
class BrowserConfig:
    """Browser launcher used when $BROWSER is not set."""

    launcher: Optional[str] = None


@dataclass
class HubConfig:
    """hub settings."""

    api: ApiConfig = field(default_factory=ApiConfig)
    browser: BrowserConfig = field(default_factory=BrowserConfig)

    @staticmethod
    def default_path(env: Optional[Mapping[str, str]] = None) -> Path:
        env = os.environ if env is None else env
        if env.get("HUB_CONFIG"):
            return Path(env["HUB_CONFIG"]).expanduser()
        return Path.home() / ".config" / "hub" / "config.toml"

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "HubConfig":
        """Load settings from the config file, or defaults if it is missing."""
        config_file = path or cls.default_path()
        if not config_file.exists():
            return cls()
        try:
            with open(config_file, "rb") as f:
                data = tomli.load(f)
        except (OSError, tomli.TOMLDecodeError) as e:
            raise ConfigError(f"Cannot read {config_file}: {e}") from e
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "HubConfig":
        api_data = data.get("api", {})
        browser_data = data.get("browser", {})
        return cls(
            api=ApiConfig(
                allow_insecure_http=bool(api_data.get("allow_insecure_http", False)),
            ),
            browser=BrowserConfig(launcher=browser_data.get("launcher")),
        )
