"""Asynchronous client for the command/title processing backend.

Each call is one POST of a JSON request, tagged with the endpoint's
pre-shared key, answered by a JSON document carrying either a result or an
``errorMessage``. No retry, caching or rate limiting happens here: a failed
call raises and the caller decides what to do.
"""

from __future__ import annotations

import json
import logging
from abc import abstractmethod

import aiohttp
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_core import PydanticSerializationError

from ..config.model import EndpointConfig
from ..errors.handling import handle_api_error
from ..errors.internal import BackendError, DecodeError, SerializationError
from ..logs.logger import logger


class CommandRequest(BaseModel):
    command: str
    args: str = ""
    channel: str
    user: str


class LinkRequest(BaseModel):
    url: str
    channel: str
    user: str


class BackendResponse(BaseModel):
    """Common response shape: a result field plus an error message."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    error_message: str | None = Field(default="", alias="errorMessage")

    @property
    @abstractmethod
    def text(self) -> str:
        """The result field as reply text; empty means no reply."""


class CommandResponse(BackendResponse):
    result: str | None = ""

    @property
    def text(self) -> str:
        return self.result or ""


class LinkResponse(BackendResponse):
    title: str | None = ""

    @property
    def text(self) -> str:
        return self.title or ""


class BackendGateway:
    """Request/response adapter over a shared aiohttp session."""

    def __init__(self, session: aiohttp.ClientSession):
        if session is None:
            raise ValueError("aiohttp session required")
        self._session = session

    async def call(
        self,
        endpoint: EndpointConfig,
        request: BaseModel,
        response_model: type[BackendResponse],
    ) -> str:
        """Perform one backend call and return the result text.

        Returns:
            The result field verbatim; an empty string means "no reply".

        Raises:
            SerializationError: The request could not be encoded.
            TransportError: Connection refused, timeout or TLS failure.
            DecodeError: The response body is not the expected JSON document.
            BackendError: The backend reported ``errorMessage``.
        """
        body = self._serialize(request)
        headers = {
            "Content-Type": "application/json",
            "x-api-key": endpoint.api_key,
        }
        url = endpoint.endpoint

        async def operation() -> tuple[int, bytes]:
            logger.log_event("gateway", "request", level=logging.DEBUG, url=url)
            async with self._session.post(url, data=body, headers=headers) as resp:
                return resp.status, await resp.read()

        status, raw = await handle_api_error(operation, f"backend {url}")
        logger.log_event("gateway", "response", level=logging.DEBUG, status=status)
        response = self._decode(raw, status, response_model)
        if response.error_message:
            logger.log_event(
                "gateway",
                "backend_error",
                level=logging.DEBUG,
                error=response.error_message,
            )
            raise BackendError(
                response.error_message, data={"status": status, "url": url}
            )
        return response.text

    async def run_command(self, endpoint: EndpointConfig, request: CommandRequest) -> str:
        return await self.call(endpoint, request, CommandResponse)

    async def fetch_title(self, endpoint: EndpointConfig, request: LinkRequest) -> str:
        return await self.call(endpoint, request, LinkResponse)

    @staticmethod
    def _serialize(request: BaseModel) -> str:
        try:
            return request.model_dump_json()
        except PydanticSerializationError as e:
            raise SerializationError(f"Cannot encode request: {e}") from e

    @staticmethod
    def _decode(
        raw: bytes, status: int, response_model: type[BackendResponse]
    ) -> BackendResponse:
        try:
            payload = json.loads(raw)
        except ValueError as e:
            raise DecodeError(
                f"Backend returned non-JSON body (HTTP {status})",
                data={"status": status},
            ) from e
        if not isinstance(payload, dict):
            raise DecodeError(
                f"Backend returned {type(payload).__name__}, expected object (HTTP {status})",
                data={"status": status},
            )
        try:
            return response_model.model_validate(payload)
        except ValidationError as e:
            raise DecodeError(
                f"Backend response has unexpected shape (HTTP {status}): {e.error_count()} error(s)",
                data={"status": status},
            ) from e
