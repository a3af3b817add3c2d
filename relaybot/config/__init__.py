"""Configuration package exports."""

from .loader import ConfigLoader, config_path_from_env, get_configuration
from .model import EndpointConfig, NetworkConfig, RelayConfig, normalize_channel

__all__ = [
    "ConfigLoader",
    "EndpointConfig",
    "NetworkConfig",
    "RelayConfig",
    "config_path_from_env",
    "get_configuration",
    "normalize_channel",
]
