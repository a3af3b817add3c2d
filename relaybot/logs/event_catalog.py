"""Event template catalog.

``event_templates.json`` maps ``domain -> action -> template``; it is read
once at import and flattened to ``{(domain, action): template}``.
"""

from __future__ import annotations

import json
from pathlib import Path

TEMPLATES_FILE = Path(__file__).with_name("event_templates.json")

EVENT_TEMPLATES: dict[tuple[str, str], str] = {}


def _flatten(raw: object) -> dict[tuple[str, str], str]:
    if not isinstance(raw, dict):
        return {}
    return {
        (domain, action): template
        for domain, actions in raw.items()
        if isinstance(domain, str) and isinstance(actions, dict)
        for action, template in actions.items()
        if isinstance(action, str) and isinstance(template, str)
    }


def _load_event_templates(path: Path | None = None) -> dict[tuple[str, str], str]:
    """Read and flatten the catalog.

    Never raises: an unreadable catalog yields a single ``app/load_error``
    entry so logging keeps working with derived texts.
    """
    try:
        raw = json.loads((path or TEMPLATES_FILE).read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {("app", "load_error"): "Event templates file missing"}
    except (OSError, ValueError) as e:
        return {("app", "load_error"): f"Failed to load event templates: {e}"[:200]}
    return _flatten(raw)


def reload_event_templates(path: Path | None = None) -> None:
    global EVENT_TEMPLATES  # noqa: PLW0603
    EVENT_TEMPLATES = _load_event_templates(path)


reload_event_templates()

__all__ = ["EVENT_TEMPLATES", "reload_event_templates"]
