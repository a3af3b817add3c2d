from __future__ import annotations

import json
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import aiohttp

from ..logging_config import log_structured_error
from .internal import (
    BackendError,
    ConfigurationError,
    DecodeError,
    InternalError,
    SerializationError,
    TransportError,
)


def classify_error(error: BaseException) -> str:
    """Return the aggregation category for an exception."""
    if isinstance(error, TransportError | OSError | ConnectionError | TimeoutError):
        return "transport"
    if isinstance(error, BackendError):
        return "backend"
    if isinstance(error, DecodeError | SerializationError):
        return "parsing"
    if isinstance(error, ConfigurationError):
        return "config"
    if isinstance(error, InternalError):
        return "internal"
    return "unknown"


def log_error(
    message: str, error: Exception, context: dict[str, Any] | None = None
) -> None:
    """Logs an error message with the associated exception details.

    The error is categorized and routed through structured logging so the
    aggregator can report per-category counts.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
    """
    merged: dict[str, Any] = dict(getattr(error, "data", None) or {})
    if context:
        merged.update(context)
    log_structured_error(
        error_type=classify_error(error),
        message=f"{message}: {str(error)}",
        exception=error,
        context=merged or None,
    )


T = TypeVar("T")


async def handle_api_error(operation: Callable[[], Awaitable[T]], context: str) -> T:
    """Run an HTTP operation and map raw failures to the internal hierarchy.

    Internal errors raised by the operation pass through untouched. Raw
    aiohttp, socket and timeout failures become ``TransportError``; JSON
    or text decoding failures become ``DecodeError``.

    Args:
        operation: The async operation to execute.
        context: Descriptive context for the operation (e.g., "command backend").

    Returns:
        The result of the operation if successful.

    Raises:
        TransportError: Connection refused, reset, timeout or TLS failure.
        DecodeError: The response body could not be decoded.
    """
    try:
        return await operation()
    except InternalError:
        raise
    except (json.JSONDecodeError, UnicodeDecodeError, aiohttp.ContentTypeError) as e:
        raise DecodeError(
            f"Malformed response body from {context}: {str(e)}",
            data={"operation": context, "timestamp": time.time()},
        ) from e
    except (aiohttp.ClientError, TimeoutError, OSError) as e:
        error_context: dict[str, object] = {
            "operation": context,
            "timestamp": time.time(),
        }
        if hasattr(e, "status"):
            error_context["http_status"] = e.status
        raise TransportError(
            f"Transport failure calling {context}: {type(e).__name__}: {str(e)}",
            data=error_context,
        ) from e
