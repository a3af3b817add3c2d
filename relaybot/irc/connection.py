"""Asyncio IRC transport: one TCP/TLS session delivering parsed events on a queue."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import ssl

from ..config.model import NetworkConfig, normalize_channel
from ..constants import IRC_CONNECT_TIMEOUT, IRC_READ_LIMIT
from ..errors.internal import TransportError
from ..logs.logger import logger
from .parser import IRCMessage, parse_irc_message

_CLOSED = object()


def build_ssl_context(network: NetworkConfig) -> ssl.SSLContext | None:
    if not network.use_tls:
        return None
    context = ssl.create_default_context()
    if not network.verify_tls:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def sanitize(text: str) -> str:
    """Drop CR/LF so a payload can never terminate the protocol line early."""
    return text.replace("\r", " ").replace("\n", " ")


def split_lines(text: str) -> list[str]:
    return [line for line in text.replace("\r", "\n").split("\n") if line.strip()]


class IRCConnection:  # pylint: disable=too-many-instance-attributes
    """Live transport handle for one network.

    A reader task parses every received frame and puts the resulting
    ``IRCMessage`` on ``events``; end of stream is signalled to consumers of
    :meth:`next_event` as a ``TransportError``. Outbound writes are serialized
    by a lock so independent dispatch tasks can send concurrently.
    """

    def __init__(self, name: str, network: NetworkConfig) -> None:
        self.name = name
        self.network = network
        self.nickname: str | None = None
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None
        self.events: asyncio.Queue[IRCMessage | object] = asyncio.Queue()
        self._reader_task: asyncio.Task[None] | None = None
        self._send_lock = asyncio.Lock()
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self.writer is not None and not self._closed

    async def open(self) -> None:
        """Open the TCP (optionally TLS) session and start the reader task.

        Raises:
            TransportError: Connection refused, DNS, TLS or timeout failure.
        """
        network = self.network
        try:
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(
                    network.server,
                    network.port,
                    ssl=build_ssl_context(network),
                    limit=IRC_READ_LIMIT,
                ),
                timeout=IRC_CONNECT_TIMEOUT,
            )
        except TimeoutError as e:
            raise TransportError(
                f"Timed out connecting to {network.server}:{network.port}",
                data={"timeout": IRC_CONNECT_TIMEOUT},
            ) from e
        except (OSError, ssl.SSLError) as e:
            raise TransportError(
                f"Cannot connect to {network.server}:{network.port}: {e}"
            ) from e
        self._closed = False
        self._reader_task = asyncio.create_task(
            self._read_loop(), name=f"irc-reader-{self.name}"
        )
        logger.log_event(
            "irc",
            "open",
            level=logging.DEBUG,
            network=self.name,
            server=network.server,
            port=network.port,
        )

    async def _read_loop(self) -> None:
        assert self.reader is not None
        try:
            while True:
                raw = await self.reader.readline()
                if not raw:
                    break
                line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                if not line.strip():
                    continue
                logger.log_event(
                    "irc", "raw", level=logging.DEBUG, network=self.name, raw=line
                )
                await self.events.put(parse_irc_message(line))
        except (OSError, ValueError) as e:
            # ValueError: line exceeded the reader limit
            logger.log_event(
                "irc",
                "read_error",
                level=logging.WARNING,
                network=self.name,
                error=str(e),
            )
        finally:
            self.events.put_nowait(_CLOSED)

    async def next_event(self, timeout: float | None = None) -> IRCMessage:
        """Return the next parsed event.

        Raises:
            TimeoutError: Nothing arrived within ``timeout`` seconds.
            TransportError: The connection has been closed.
        """
        item = await asyncio.wait_for(self.events.get(), timeout=timeout)
        if item is _CLOSED:
            # Keep the marker so later callers see the closed state too
            self.events.put_nowait(_CLOSED)
            raise TransportError("Connection closed by server")
        assert isinstance(item, IRCMessage)
        return item

    async def send_line(self, line: str) -> None:
        if not self.is_open:
            raise TransportError("Connection is not open")
        data = f"{sanitize(line)}\r\n".encode()
        async with self._send_lock:
            try:
                self.writer.write(data)  # type: ignore[union-attr]
                await self.writer.drain()  # type: ignore[union-attr]
            except (OSError, RuntimeError) as e:
                raise TransportError(f"Send failed: {e}") from e

    # ---- protocol primitives ----
    async def register(self, nickname: str) -> None:
        self.nickname = nickname
        await self.send_line(f"NICK {nickname}")
        await self.send_line(f"USER {nickname} 0 * :{nickname}")

    async def set_nick(self, nickname: str) -> None:
        await self.send_line(f"NICK {nickname}")

    async def join(self, channel: str) -> None:
        await self.send_line(f"JOIN {normalize_channel(channel)}")

    async def privmsg(self, target: str, text: str) -> int:
        """Send ``text`` to ``target``, one message per line; returns lines sent."""
        lines = split_lines(text)
        for line in lines:
            await self.send_line(f"PRIVMSG {target} :{line}")
        return len(lines)

    async def notice(self, target: str, text: str) -> None:
        await self.send_line(f"NOTICE {target} :{text}")

    async def ctcp_reply(self, target: str, kind: str, value: str) -> None:
        body = f"{kind} {value}" if value else kind
        await self.notice(target, f"\x01{body}\x01")

    async def pong(self, payload: str) -> None:
        await self.send_line(f"PONG :{payload}")

    async def ping(self, payload: str) -> None:
        await self.send_line(f"PING :{payload}")

    async def close(self) -> None:
        self._closed = True
        if self._reader_task and not self._reader_task.done():
            self._reader_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reader_task
        if self.writer:
            try:
                self.writer.close()
                await self.writer.wait_closed()
            except (OSError, ssl.SSLError) as e:
                logger.log_event(
                    "irc",
                    "read_error",
                    level=logging.DEBUG,
                    network=self.name,
                    error=str(e),
                )
            finally:
                self.writer = None
                self.reader = None
        logger.log_event("irc", "closed", level=logging.DEBUG, network=self.name)
