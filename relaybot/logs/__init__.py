"""Structured event logging: the template catalog and the event logger."""

from .event_catalog import EVENT_TEMPLATES, reload_event_templates  # noqa: F401
from .logger import EventLogger, logger  # noqa: F401

__all__ = ["EventLogger", "logger", "EVENT_TEMPLATES", "reload_event_templates"]
