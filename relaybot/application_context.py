"""Central application context for shared async resources."""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from .api.gateway import BackendGateway
from .api.quotes import QuoteClient
from .config.model import RelayConfig
from .logs.logger import logger


class ApplicationContext:
    """Holds the shared HTTP session and the backend clients built on it."""

    session: aiohttp.ClientSession | None
    gateway: BackendGateway | None
    quotes: QuoteClient | None
    _lock: asyncio.Lock

    def __init__(self, config: RelayConfig) -> None:
        self.config = config
        self.session = None
        self.gateway = None
        self.quotes = None
        self._lock = asyncio.Lock()

    @classmethod
    async def create(cls, config: RelayConfig) -> ApplicationContext:
        """Create the context with its HTTP session and backend clients.

        The session uses aiohttp's default timeouts; backend calls carry no
        timeout of their own.
        """
        ctx = cls(config)
        ctx.session = aiohttp.ClientSession()
        ctx.gateway = BackendGateway(ctx.session)
        if config.quotes is not None:
            ctx.quotes = QuoteClient(ctx.session, config.quotes)
        logger.log_event("app", "context_created", level=logging.DEBUG)
        return ctx

    async def shutdown(self) -> None:
        """Close the HTTP session. Safe to call more than once."""
        async with self._lock:
            if self.session is not None and not self.session.closed:
                try:
                    await self.session.close()
                except (aiohttp.ClientError, OSError) as e:
                    logging.warning(f"Error closing HTTP session: {e}")
            self.session = None
            logger.log_event("app", "context_closed", level=logging.DEBUG)
