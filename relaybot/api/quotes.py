"""Client for the quote archive answering the ``rexpl`` command."""

from __future__ import annotations

import logging

import aiohttp
from pydantic import BaseModel, ConfigDict, ValidationError

from ..config.model import EndpointConfig
from ..errors.handling import handle_api_error
from ..errors.internal import BackendError, DecodeError
from ..logs.logger import logger


class Quote(BaseModel):
    model_config = ConfigDict(extra="ignore")

    time_added: str | None = None
    topic: str | None = ""
    handle: str | None = ""
    content: str | None = ""

    def format(self) -> str:
        if not self.content:
            return ""
        return f"'{self.topic or ''}': {self.content}"


class QuoteClient:
    """Fetches a random quote, optionally restricted to a topic."""

    def __init__(self, session: aiohttp.ClientSession, endpoint: EndpointConfig):
        self._session = session
        self.endpoint = endpoint

    def _url(self) -> str:
        return f"{self.endpoint.endpoint.rstrip('/')}/rexpl/"

    async def random_quote(self, topic: str = "") -> Quote:
        """Return a random quote, searching ``topic`` when given.

        Raises:
            TransportError: The archive could not be reached.
            BackendError: The archive answered with a non-200 status.
            DecodeError: The body is not a quote document.
        """
        url = self._url()
        params = {"q": topic} if topic else None
        headers = {"Authorization": f"Token {self.endpoint.api_key}"}

        async def operation() -> Quote:
            logger.log_event("gateway", "request", level=logging.DEBUG, url=url)
            async with self._session.get(url, params=params, headers=headers) as resp:
                if resp.status != 200:
                    raise BackendError(
                        f"Quote archive returned HTTP {resp.status}",
                        data={"status": resp.status, "url": url},
                    )
                payload = await resp.json(content_type=None)
            try:
                return Quote.model_validate(payload)
            except ValidationError as e:
                raise DecodeError(
                    f"Quote archive returned unexpected shape: {e.error_count()} error(s)",
                    data={"url": url},
                ) from e

        return await handle_api_error(operation, f"quote archive {url}")
