"""IRC subsystem package.

Contains the line parser, shared models and the asyncio transport
connection used by the per-network sessions.
"""

from .connection import IRCConnection  # noqa: F401
from .models import ConnectionState, IncomingLine  # noqa: F401
from .parser import IRCMessage, parse_irc_message  # noqa: F401

__all__ = [
    "ConnectionState",
    "IRCConnection",
    "IRCMessage",
    "IncomingLine",
    "parse_irc_message",
]
