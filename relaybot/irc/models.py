"""Shared IRC data models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from ..constants import CHANNEL_PREFIXES
from .parser import IRCMessage


class ConnectionState(Enum):
    IDLE = auto()
    CONNECTING = auto()
    REGISTERED = auto()
    JOINED = auto()
    RECONNECTING = auto()


@dataclass(frozen=True, slots=True)
class IncomingLine:
    """One chat line or keepalive handed to the classifier.

    ``source`` is the full ``nick!user@host`` identity (empty for server
    keepalives) and ``target`` the channel, or our own nick for a direct
    message.
    """

    command: str
    source: str
    target: str
    text: str

    @property
    def nick(self) -> str:
        return self.source.split("!", 1)[0]

    @property
    def is_private(self) -> bool:
        return not self.target or self.target[0] not in CHANNEL_PREFIXES

    @property
    def reply_target(self) -> str:
        """Where replies go: the channel, or the sender for direct messages."""
        return self.nick if self.is_private else self.target

    @classmethod
    def from_message(cls, message: IRCMessage) -> IncomingLine | None:
        """Build a line from a ``PRIVMSG`` or ``PING`` event; None otherwise."""
        if message.command == "PING":
            return cls(
                command="PING",
                source=message.prefix or "",
                target="",
                text=message.trailing,
            )
        if message.command == "PRIVMSG" and len(message.params) >= 2:
            return cls(
                command="PRIVMSG",
                source=message.prefix or "",
                target=message.params[0],
                text=message.params[-1],
            )
        return None
