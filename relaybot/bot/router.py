"""Dispatch of classified intents to connection primitives and the backend."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from email.utils import format_datetime
from typing import Protocol

from ..api.gateway import BackendGateway, CommandRequest, LinkRequest
from ..api.quotes import QuoteClient
from ..config.model import RelayConfig
from ..constants import QUOTE_COMMAND, TITLE_REPLY_PREFIX
from ..errors.handling import log_error
from ..errors.internal import InternalError
from ..logs.logger import logger
from .classifier import ClassifiedIntent, Command, CtcpQuery, Ignored, Link, Ping


class ReplyChannel(Protocol):
    """The subset of ``IRCConnection`` the router writes through."""

    name: str

    async def pong(self, payload: str) -> None: ...

    async def ctcp_reply(self, target: str, kind: str, value: str) -> None: ...

    async def privmsg(self, target: str, text: str) -> int: ...


def ctcp_time() -> str:
    """Current UTC time in RFC 1123 form."""
    return format_datetime(datetime.now(UTC), usegmt=True)


class DispatchRouter:
    """Turns one intent into at most one outbound action.

    Keepalive and CTCP replies are awaited inline by the caller's task.
    Commands and links run as detached tasks so a slow backend never stalls
    the connection's event loop. There is no ceiling on concurrently running
    dispatch tasks and no ordering between their replies.
    """

    def __init__(
        self,
        gateway: BackendGateway,
        config: RelayConfig,
        quotes: QuoteClient | None = None,
        clock: Callable[[], str] = ctcp_time,
    ) -> None:
        self.gateway = gateway
        self.config = config
        self.quotes = quotes
        self._clock = clock
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait for every dispatch task started so far to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_pending(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    async def dispatch(self, intent: ClassifiedIntent, connection: ReplyChannel) -> None:
        match intent:
            case Ping(payload=payload):
                await connection.pong(payload)
            case CtcpQuery():
                await self._reply_ctcp(intent, connection)
            case Command():
                self._spawn(self._run_command(intent, connection), connection)
            case Link():
                self._spawn(self._run_link(intent, connection), connection)
            case Ignored():
                return

    async def _reply_ctcp(self, query: CtcpQuery, connection: ReplyChannel) -> None:
        logger.log_event(
            "dispatch",
            "ctcp",
            level=logging.DEBUG,
            network=connection.name,
            kind=query.kind,
            nick=query.responder,
        )
        if query.kind == "VERSION":
            value = self.config.version
        elif query.kind == "TIME":
            value = self._clock()
        else:
            value = query.argument
        await connection.ctcp_reply(query.responder, query.kind, value)

    def _spawn(self, work: Awaitable[None], connection: ReplyChannel) -> None:
        task = asyncio.create_task(work)  # type: ignore[arg-type]
        self._tasks.add(task)

        def _done(t: asyncio.Task[None]) -> None:
            self._tasks.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                logger.log_event(
                    "dispatch",
                    "task_crashed",
                    level=logging.ERROR,
                    network=connection.name,
                    error=f"{type(exc).__name__}: {exc}",
                )

        task.add_done_callback(_done)

    async def _run_command(self, command: Command, connection: ReplyChannel) -> None:
        logger.log_event(
            "dispatch",
            "command",
            network=connection.name,
            channel=command.channel,
            command=command.name,
            nick=command.user.split("!", 1)[0],
        )
        if command.name == QUOTE_COMMAND and self.quotes is not None:
            call = self._fetch_quote(self.quotes, command.args)
            kind = "quote"
        else:
            request = CommandRequest(
                command=command.name,
                args=command.args,
                channel=command.channel,
                user=command.user,
            )
            call = self.gateway.run_command(self.config.command, request)
            kind = "command"
        await self._relay(kind, call, command.channel, connection)

    async def _run_link(self, link: Link, connection: ReplyChannel) -> None:
        logger.log_event(
            "dispatch",
            "link",
            network=connection.name,
            channel=link.channel,
            url=link.url,
            nick=link.user.split("!", 1)[0],
        )
        request = LinkRequest(url=link.url, channel=link.channel, user=link.user)
        await self._relay(
            "title",
            self.gateway.fetch_title(self.config.title, request),
            link.channel,
            connection,
            prefix=TITLE_REPLY_PREFIX,
        )

    @staticmethod
    async def _fetch_quote(quotes: QuoteClient, topic: str) -> str:
        quote = await quotes.random_quote(topic)
        return quote.format()

    async def _relay(
        self,
        kind: str,
        call: Awaitable[str],
        target: str,
        connection: ReplyChannel,
        prefix: str = "",
    ) -> None:
        """Await a backend call and post a non-empty result; failures stay silent in chat."""
        try:
            text = await call
            if not text:
                logger.log_event(
                    "dispatch",
                    "no_reply",
                    level=logging.DEBUG,
                    network=connection.name,
                    channel=target,
                    kind=kind,
                )
                return
            lines = await connection.privmsg(target, f"{prefix}{text}")
        except InternalError as e:
            log_error(
                f"{kind} dispatch failed",
                e,
                context={"network": connection.name, "channel": target},
            )
            return
        logger.log_event(
            "dispatch",
            "reply",
            level=logging.DEBUG,
            network=connection.name,
            channel=target,
            lines=lines,
        )
