"""Event logger: catalogued ``(domain, action)`` events rendered to text."""

from __future__ import annotations

import logging
import os

from . import event_catalog

PREFIX_WIDTH = 24
EVENT_NAME_WIDTH = 32
RESERVED_KEYS = ("network", "channel")


def _debug_mode() -> bool:
    return os.environ.get("DEBUG", "false").lower() in ("true", "1", "yes")


def render_prefix(network: object = None, channel: object = None) -> str:
    """``[libera#python           ]``; ``system`` when no network is given."""
    label = network if isinstance(network, str) and network else "system"
    if isinstance(channel, str) and channel:
        label = f"{label}{channel}"
    return f"[{label[:PREFIX_WIDTH].ljust(PREFIX_WIDTH)}]"


def render_text(domain: str, action: str, context: dict[str, object]) -> tuple[str, bool]:
    """Return the human text for an event and whether it had to be derived.

    A template with placeholders the context cannot fill is returned
    unformatted rather than failing the log call.
    """
    template = event_catalog.EVENT_TEMPLATES.get((domain, action))
    if template is None:
        return f"{domain.replace('_', ' ')}: {action.replace('_', ' ')}", True
    try:
        return template.format(**context), False
    except (KeyError, IndexError, ValueError):
        return template, False


class EventLogger:
    """Formats catalogued events onto a stdlib logger.

    Handlers and colors belong to the root logger (see
    ``relaybot.logging_config``); records propagate there. With ``DEBUG``
    set, each line also carries the event name and its full context.
    """

    def __init__(self, name: str = "relaybot") -> None:
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG if _debug_mode() else logging.INFO)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    def log_event(
        self,
        domain: str,
        action: str,
        level: int = logging.INFO,
        human: str | None = None,
        *,
        exc_info: bool = False,
        **context: object,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        if human is None:
            human, derived = render_text(domain, action, context)
            if derived:
                context.setdefault("derived", True)
        prefix = render_prefix(*(context.pop(key, None) for key in RESERVED_KEYS))
        if _debug_mode():
            event = f"{domain}_{action}".lower()
            if len(event) > EVENT_NAME_WIDTH:
                event = event[: EVENT_NAME_WIDTH - 1] + "…"
            line = f"{event.ljust(EVENT_NAME_WIDTH)} {prefix} {human}"
            if context:
                line += " (" + ", ".join(f"{k}={v}" for k, v in context.items()) + ")"
        else:
            line = f"{prefix} {human}"
        self.logger.log(level, line, exc_info=exc_info)


logger = EventLogger()
