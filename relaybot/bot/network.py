"""Per-network connection lifecycle: connect, register, join, serve, reconnect."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_never,
    wait_exponential,
)

from ..config.model import NetworkConfig, RelayConfig, normalize_channel
from ..constants import (
    IRC_REGISTRATION_TIMEOUT,
    NICK_COLLISION_SUFFIX,
    RECONNECT_BACKOFF_BASE,
    RECONNECT_BACKOFF_MAX,
    SERVER_ACTIVITY_TIMEOUT,
)
from ..errors.internal import TransportError
from ..irc.connection import IRCConnection
from ..irc.models import ConnectionState, IncomingLine
from ..irc.parser import IRCMessage
from ..logs.logger import logger
from .classifier import classify
from .router import DispatchRouter

ConnectionFactory = Callable[[str, NetworkConfig], IRCConnection]


def reconnect_wait(
    base: float = RECONNECT_BACKOFF_BASE, ceiling: float = RECONNECT_BACKOFF_MAX
) -> wait_exponential:
    """Backoff between connection attempts: base, 2*base, 4*base ... capped at ceiling."""
    return wait_exponential(multiplier=base, exp_base=2, min=0, max=ceiling)


class NetworkSession:  # pylint: disable=too-many-instance-attributes
    """Owns the connection to one network for the lifetime of the process.

    ``run`` never returns on its own: every transport failure, before or
    after registration, leads back to the connect loop. Events are handled
    one at a time on the session task; backend work fans out through the
    router's detached tasks.
    """

    def __init__(
        self,
        name: str,
        network: NetworkConfig,
        config: RelayConfig,
        router: DispatchRouter,
        connection_factory: ConnectionFactory = IRCConnection,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        wait: wait_exponential | None = None,
    ) -> None:
        self.name = name
        self.network = network
        self.config = config
        self.router = router
        self.connection_factory = connection_factory
        self.state = ConnectionState.IDLE
        self.connection: IRCConnection | None = None
        self.current_nick = config.nickname
        self.attempts = 0
        self._sleep = sleep
        self._wait = wait or reconnect_wait()
        self._running = False

    def _set_state(self, new_state: ConnectionState) -> None:
        if self.state != new_state:
            logger.log_event(
                "network",
                "state_change",
                level=logging.DEBUG,
                network=self.name,
                old_state=self.state.name,
                new_state=new_state.name,
            )
            self.state = new_state

    @property
    def desired_nick(self) -> str:
        return self.config.nickname

    # ------------------------------------------------------------------ #
    async def run(self) -> None:
        self._running = True
        try:
            while self._running:
                connection = await self.connect()
                try:
                    await self.serve(connection)
                except TransportError as e:
                    logger.log_event(
                        "network",
                        "connection_lost",
                        level=logging.WARNING,
                        network=self.name,
                        error=str(e),
                    )
                finally:
                    await connection.close()
                    self.connection = None
                if self._running:
                    self._set_state(ConnectionState.RECONNECTING)
        finally:
            self._set_state(ConnectionState.IDLE)
            logger.log_event("network", "stopped", level=logging.DEBUG, network=self.name)

    def stop(self) -> None:
        """Stop after the current connection ends; cancel the task for an immediate stop."""
        self._running = False

    async def connect(self) -> IRCConnection:
        """Connect and register, retrying forever with exponential backoff.

        Each call starts from a fresh backoff state.
        """
        self.attempts = 0
        retrying = AsyncRetrying(
            stop=stop_never,
            wait=self._wait,
            retry=retry_if_exception_type(TransportError),
            before_sleep=self._log_backoff,
            sleep=self._sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                self.attempts = attempt.retry_state.attempt_number
                connection = await self._attempt()
        return connection

    async def _attempt(self) -> IRCConnection:
        network = self.network
        logger.log_event(
            "network",
            "connect_start",
            network=self.name,
            server=network.server,
            port=network.port,
            tls=network.use_tls,
        )
        self._set_state(ConnectionState.CONNECTING)
        connection = self.connection_factory(self.name, network)
        try:
            await connection.open()
            self.current_nick = self.desired_nick
            await connection.register(self.desired_nick)
            await self._await_welcome(connection)
        except TransportError as e:
            logger.log_event(
                "network",
                "connect_failed",
                level=logging.WARNING,
                network=self.name,
                attempt=self.attempts,
                error=str(e),
            )
            await connection.close()
            raise
        return connection

    def _log_backoff(self, retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.log_event(
            "network",
            "backoff_wait",
            level=logging.INFO,
            network=self.name,
            delay=delay,
            attempt=retry_state.attempt_number + 1,
        )

    async def _await_welcome(self, connection: IRCConnection) -> None:
        self.connection = connection
        loop = asyncio.get_running_loop()
        deadline = loop.time() + IRC_REGISTRATION_TIMEOUT
        while self.state not in (ConnectionState.REGISTERED, ConnectionState.JOINED):
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise TransportError(
                    "No welcome from server",
                    data={"timeout": IRC_REGISTRATION_TIMEOUT},
                )
            try:
                event = await connection.next_event(timeout=remaining)
            except TimeoutError as e:
                raise TransportError(
                    "No welcome from server",
                    data={"timeout": IRC_REGISTRATION_TIMEOUT},
                ) from e
            await self.handle_event(connection, event)

    async def serve(self, connection: IRCConnection) -> None:
        """Consume events until the transport fails.

        After ``SERVER_ACTIVITY_TIMEOUT`` seconds of silence one PING probe
        is sent; a second silent interval is treated as a dead link.
        """
        self.connection = connection
        probe_sent = False
        while True:
            try:
                event = await connection.next_event(timeout=SERVER_ACTIVITY_TIMEOUT)
            except TimeoutError as e:
                if probe_sent:
                    raise TransportError(
                        "No server activity",
                        data={"timeout": SERVER_ACTIVITY_TIMEOUT * 2},
                    ) from e
                logger.log_event(
                    "network",
                    "ping_probe",
                    level=logging.DEBUG,
                    network=self.name,
                    timeout=SERVER_ACTIVITY_TIMEOUT,
                )
                await connection.ping(self.network.server)
                probe_sent = True
                continue
            probe_sent = False
            await self.handle_event(connection, event)

    # ------------------------------------------------------------------ #
    async def handle_event(self, connection: IRCConnection, event: IRCMessage) -> None:
        handler = self._handlers.get(event.command)
        if handler is None:
            return
        try:
            await handler(self, connection, event)
        except TransportError:
            raise
        except Exception as e:  # noqa: BLE001
            logger.log_event(
                "network",
                "handler_error",
                level=logging.ERROR,
                network=self.name,
                command=event.command,
                error=str(e),
                error_type=type(e).__name__,
            )

    async def _on_welcome(self, connection: IRCConnection, event: IRCMessage) -> None:
        self.current_nick = event.param(0, self.current_nick)
        connection.nickname = self.current_nick
        self._set_state(ConnectionState.REGISTERED)
        logger.log_event("network", "registered", network=self.name, nick=self.current_nick)
        for channel in self.network.channels:
            channel = normalize_channel(channel)
            logger.log_event("network", "join", level=logging.DEBUG, network=self.name, channel=channel)
            await connection.join(channel)
        self._set_state(ConnectionState.JOINED)

    async def _on_nick_in_use(self, connection: IRCConnection, event: IRCMessage) -> None:
        # One fixed suffix, no further collision loop
        new_nick = f"{self.desired_nick}{NICK_COLLISION_SUFFIX}"
        logger.log_event(
            "network",
            "nick_in_use",
            level=logging.WARNING,
            network=self.name,
            nick=event.param(1, self.current_nick),
            new_nick=new_nick,
        )
        self.current_nick = new_nick
        connection.nickname = new_nick
        await connection.set_nick(new_nick)

    async def _on_kick(self, connection: IRCConnection, event: IRCMessage) -> None:
        channel, kicked = event.param(0), event.param(1)
        if kicked.lower() != self.current_nick.lower():
            return
        logger.log_event(
            "network",
            "kicked",
            level=logging.WARNING,
            network=self.name,
            channel=channel,
            kicker=event.nick,
            reason=event.param(2) or "no reason",
        )
        await connection.join(channel)

    async def _on_invite(self, connection: IRCConnection, event: IRCMessage) -> None:
        logger.log_event(
            "network",
            "invited",
            network=self.name,
            target=event.param(1),
            inviter=event.nick,
        )

    async def _on_nick(self, connection: IRCConnection, event: IRCMessage) -> None:
        if event.nick.lower() != self.current_nick.lower():
            return
        self.current_nick = event.trailing
        connection.nickname = self.current_nick
        logger.log_event("network", "nick_changed", network=self.name, nick=self.current_nick)

    async def _on_join(self, connection: IRCConnection, event: IRCMessage) -> None:
        if event.nick.lower() == self.current_nick.lower():
            logger.log_event(
                "network", "join_confirmed", network=self.name, channel=event.param(0)
            )

    async def _on_error(self, connection: IRCConnection, event: IRCMessage) -> None:
        logger.log_event(
            "network",
            "server_error",
            level=logging.WARNING,
            network=self.name,
            reason=event.trailing,
        )

    async def _on_line(self, connection: IRCConnection, event: IRCMessage) -> None:
        line = IncomingLine.from_message(event)
        if line is None:
            return
        if line.command == "PRIVMSG":
            logger.log_event(
                "irc",
                "privmsg",
                level=logging.DEBUG,
                network=self.name,
                channel=line.target,
                nick=line.nick,
                text=line.text,
            )
        await self.router.dispatch(classify(line), connection)

    _handlers: dict[
        str, Callable[[NetworkSession, IRCConnection, IRCMessage], Awaitable[None]]
    ] = {
        "001": _on_welcome,
        "433": _on_nick_in_use,
        "KICK": _on_kick,
        "INVITE": _on_invite,
        "NICK": _on_nick,
        "JOIN": _on_join,
        "ERROR": _on_error,
        "PING": _on_line,
        "PRIVMSG": _on_line,
    }
