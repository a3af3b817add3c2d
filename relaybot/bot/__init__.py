"""Relay bot runtime: classification, dispatch and per-network sessions."""

from .classifier import (
    ClassifiedIntent,
    Command,
    CtcpQuery,
    Ignored,
    Link,
    Ping,
    classify,
)
from .manager import RelayManager, run_relay
from .network import NetworkSession, reconnect_wait
from .router import DispatchRouter

__all__ = [
    "ClassifiedIntent",
    "Command",
    "CtcpQuery",
    "DispatchRouter",
    "Ignored",
    "Link",
    "NetworkSession",
    "Ping",
    "RelayManager",
    "classify",
    "reconnect_wait",
    "run_relay",
]
