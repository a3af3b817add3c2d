"""Error hierarchy and error logging helpers."""

from .handling import classify_error, handle_api_error, log_error  # noqa: F401
from .internal import (  # noqa: F401
    BackendError,
    ConfigurationError,
    DecodeError,
    InternalError,
    SerializationError,
    TransportError,
)
