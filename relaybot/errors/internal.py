"""Relay error types.

Raw aiohttp, socket and JSON failures are wrapped into one of these at the
layer that sees them, so callers only branch on the categories below:

  TransportError       connect, send or read failed; the session reconnects.
  BackendError         the backend answered with an ``errorMessage``.
  SerializationError   a request body could not be built.
  DecodeError          a response body could not be parsed.
  ConfigurationError   bad or missing configuration; fatal before startup.
"""

from __future__ import annotations

from collections.abc import Mapping


class InternalError(Exception):
    """Root of the relay errors.

    ``data`` carries structured details (status, url, network ...) that
    ``log_error`` merges into the log context.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        self.data = dict(data) if data else {}


class TransportError(InternalError):
    """IRC socket or backend HTTP failure: refused, timed out, TLS, dropped."""


class BackendError(InternalError):
    pass


class SerializationError(InternalError):
    pass


class DecodeError(InternalError):
    """Unparseable response; ``data["status"]`` holds the HTTP status if known."""


class ConfigurationError(InternalError):
    pass


__all__ = [
    "InternalError",
    "TransportError",
    "BackendError",
    "SerializationError",
    "DecodeError",
    "ConfigurationError",
]
