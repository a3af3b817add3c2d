"""
Configuration constants for the IRC relay bot

This module contains all tunable constants used throughout the application.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is not None and value != "":
        return value
    return default


def _get_env_set(name: str, default: str) -> frozenset[str]:
    """Parse a comma separated environment variable into a lowercase set."""
    raw = _get_env_str(name, default)
    return frozenset(part.strip().lower() for part in raw.split(",") if part.strip())


# Reconnect backoff (seconds). Doubles per consecutive failure, capped.
RECONNECT_BACKOFF_BASE = _get_env_float("RECONNECT_BACKOFF_BASE", 1.0)
RECONNECT_BACKOFF_MAX = _get_env_float(
    "RECONNECT_BACKOFF_MAX", 300.0
)  # 300x the base interval

# IRC transport timeouts
IRC_CONNECT_TIMEOUT = _get_env_float(
    "IRC_CONNECT_TIMEOUT", 30.0
)  # TCP/TLS connect timeout
IRC_REGISTRATION_TIMEOUT = _get_env_float(
    "IRC_REGISTRATION_TIMEOUT", 120.0
)  # Max wait for the 001 welcome after connecting
SERVER_ACTIVITY_TIMEOUT = _get_env_float(
    "SERVER_ACTIVITY_TIMEOUT", 300.0
)  # Silence before a PING probe is sent; twice this means a dead link
IRC_READ_LIMIT = _get_env_int(
    "IRC_READ_LIMIT", 65536
)  # StreamReader buffer limit (bytes per line)

# Protocol behavior
NICK_COLLISION_SUFFIX = _get_env_str("NICK_COLLISION_SUFFIX", "_")
COMMAND_PREFIX = _get_env_str("COMMAND_PREFIX", ".")
CHANNEL_PREFIXES = "#&+!"
DEFAULT_CHANNEL_PREFIX = "#"
RELAY_ARTIFACT_PREFIX = "*"  # Lines starting with this never yield links

# Other automated participants whose lines are never classified (anti-loop)
IGNORED_SENDERS = _get_env_set("IGNORED_SENDERS", "pyfibot")

# CTCP queries answered automatically
CTCP_QUERIES = frozenset({"VERSION", "TIME", "PING"})

# Reply formatting
TITLE_REPLY_PREFIX = "Title: "
QUOTE_COMMAND = "rexpl"

# Manager loop
MANAGER_LOOP_SLEEP_SECONDS = _get_env_float("MANAGER_LOOP_SLEEP_SECONDS", 1.0)

# Configuration file
DEFAULT_CONFIG_FILE = "relaybot.conf"
CONFIG_FILE_ENV = "RELAYBOT_CONF_FILE"
