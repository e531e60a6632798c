"""Configuration management for filechat."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import FilechatConfig
from .resolver import flatten_for_env, parse_env, resolve_with_precedence, set_path

DEFAULT_CONFIG_PATH = Path("~/.filechat/config.yaml")
_CONFIG_HEADER = textwrap.dedent(
    """\
    # filechat configuration file
    # Manage with `filechat config set KEY --value VALUE` or edit by hand.
    # Environment variables such as FILECHAT__LLM__MODEL override these values.
    """
)


class ConfigManager:
    """Read, write, and resolve the YAML configuration file."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
    ) -> FilechatConfig:
        """Return the effective configuration after applying precedence rules.

        Args:
            cli_overrides: Dotted-key overrides supplied on the command line.
            include_env: Whether ``FILECHAT__`` environment variables are honored.
            ensure_file: Whether to write a default file when none exists.

        Raises:
            ConfigError: If the file or any override is invalid.
        """
        if ensure_file:
            self.ensure_exists()

        env_data = parse_env(self._env) if include_env else None
        return resolve_with_precedence(
            defaults=FilechatConfig(),
            file_overrides=self.read_overrides(),
            env_overrides=env_data or None,
            cli_overrides=cli_overrides,
        )

    def ensure_exists(self) -> Path:
        """Create the configuration file with defaults if it is missing."""
        if not self._config_path.exists():
            self._write(FilechatConfig().model_dump(mode="python"))
        return self._config_path

    def read_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored on disk (empty when no file exists).

        Raises:
            ConfigError: If the file is not valid YAML or not a mapping.
        """
        if not self._config_path.exists():
            return {}
        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def set_value(self, key: str, value: Any) -> FilechatConfig:
        """Persist ``value`` at dotted ``key`` after validating the merged result.

        Raises:
            ConfigError: If the key is empty or the value is invalid.
        """
        segments = [segment.strip() for segment in key.split(".") if segment.strip()]
        if not segments:
            raise ConfigError("KEY must be a dotted path such as 'llm.temperature'.")
        data = self.read_overrides()
        set_path(data, segments, value)
        resolved = resolve_with_precedence(defaults=FilechatConfig(), file_overrides=data)
        self._write(data)
        return resolved

    def read_text(self) -> str:
        """Return the current configuration file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    def _write(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(dict(data), sort_keys=False)
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{body}", encoding="utf-8"
        )


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "FilechatConfig",
    "resolve_with_precedence",
    "flatten_for_env",
    "ConfigError",
]
