"""Configuration loading utilities."""

from __future__ import annotations

import json
import os
from typing import Any

from pydantic import ValidationError

from ..constants import CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE
from ..errors.internal import ConfigurationError
from ..logs.logger import logger
from .model import RelayConfig


def config_path_from_env() -> str:
    """Return the configuration file path, honoring the environment override."""
    return os.environ.get(CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE)


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ())) or "<root>"
        parts.append(f"{location}: {item.get('msg', 'invalid')}")
    return "; ".join(parts)


class ConfigLoader:
    """Loads and validates the relay configuration from a JSON file."""

    def __init__(self, path: str | os.PathLike[str] | None = None) -> None:
        self.path = str(path) if path is not None else config_path_from_env()

    def load_raw(self) -> dict[str, Any]:
        """Read the raw JSON document.

        Raises:
            ConfigurationError: If the file is missing, unreadable or not a JSON object.
        """
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ConfigurationError(
                f"Configuration file not found: {self.path}", data={"path": self.path}
            ) from e
        except (OSError, ValueError) as e:
            raise ConfigurationError(
                f"Cannot read configuration file {self.path}: {e}",
                data={"path": self.path},
            ) from e
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Configuration root must be a JSON object", data={"path": self.path}
            )
        return data

    def load(self) -> RelayConfig:
        """Load and validate the configuration.

        Returns:
            The validated, immutable configuration.

        Raises:
            ConfigurationError: On any missing or invalid field.
        """
        raw = self.load_raw()
        try:
            config = RelayConfig.from_dict(raw)
        except ValidationError as e:
            raise ConfigurationError(
                _format_validation_error(e), data={"path": self.path}
            ) from e
        logger.log_event(
            "app",
            "config_loaded",
            path=self.path,
            networks=",".join(config.networks),
        )
        return config


def get_configuration(path: str | os.PathLike[str] | None = None) -> RelayConfig:
    """Convenience wrapper: load the configuration from ``path`` or the environment."""
    return ConfigLoader(path).load()
