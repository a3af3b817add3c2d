"""Classification of incoming lines into dispatch intents.

``classify`` is a pure function: the same line (text and sender) always
yields the same intent, and every line yields exactly one.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from ..constants import (
    COMMAND_PREFIX,
    CTCP_QUERIES,
    IGNORED_SENDERS,
    RELAY_ARTIFACT_PREFIX,
)
from ..irc.models import IncomingLine
from ..logs.logger import logger

_CTCP_PATTERN = re.compile(r"^\x01(?P<verb>[A-Za-z]+)(?: (?P<arg>[^\x01]*))?\x01?$")


@dataclass(frozen=True, slots=True)
class Ping:
    payload: str


@dataclass(frozen=True, slots=True)
class CtcpQuery:
    kind: str
    responder: str
    argument: str = ""


@dataclass(frozen=True, slots=True)
class Command:
    name: str
    args: str
    channel: str
    user: str


@dataclass(frozen=True, slots=True)
class Link:
    url: str
    channel: str
    user: str


@dataclass(frozen=True, slots=True)
class Ignored:
    pass


ClassifiedIntent = Ping | CtcpQuery | Command | Link | Ignored


def parse_ctcp(text: str) -> tuple[str, str] | None:
    """Return ``(VERB, argument)`` for a CTCP-framed text, else None.

    The argument is kept verbatim so a PING echo matches what was sent.
    """
    if not text.startswith("\x01"):
        return None
    match = _CTCP_PATTERN.match(text)
    if not match:
        return None
    return match.group("verb").upper(), match.group("arg") or ""


def find_link(words: list[str]) -> str | None:
    """Return the first word that is an absolute ``http``-prefixed URL.

    Only the first qualifying word counts; later words are not inspected.
    """
    for word in words:
        if not word.startswith("http"):
            continue
        try:
            parts = urlsplit(word)
            _ = parts.port  # raises on a non-numeric or out of range port
        except ValueError:
            logger.log_event("dispatch", "ignored_link", level=logging.DEBUG, word=word)
            continue
        if parts.scheme and parts.netloc:
            return word
    return None


def classify(
    line: IncomingLine,
    *,
    ignored_senders: frozenset[str] = IGNORED_SENDERS,
    command_prefix: str = COMMAND_PREFIX,
) -> ClassifiedIntent:
    """Classify one incoming line.

    Order of precedence: keepalive, excluded sender, CTCP introspection
    query, empty line, command, link. An excluded sender is ignored whatever
    it says, CTCP queries included. Lines starting with ``*`` never yield a
    link (a chat bridge re-posts links in that form).
    """
    if line.command == "PING":
        return Ping(payload=line.text)

    if line.nick.lower() in ignored_senders:
        return Ignored()

    text = line.text
    ctcp = parse_ctcp(text)
    if ctcp is not None:
        verb, argument = ctcp
        if verb in CTCP_QUERIES:
            return CtcpQuery(kind=verb, responder=line.nick, argument=argument)
        return Ignored()

    words = text.split()
    if not words:
        return Ignored()

    if text.startswith(command_prefix) and len(text) > len(command_prefix):
        tokens = text[len(command_prefix) :].split()
        if not tokens:
            return Ignored()
        return Command(
            name=tokens[0],
            args=" ".join(tokens[1:]),
            channel=line.reply_target,
            user=line.source,
        )

    if text.startswith(RELAY_ARTIFACT_PREFIX):
        return Ignored()

    url = find_link(words)
    if url is not None:
        return Link(url=url, channel=line.reply_target, user=line.source)

    return Ignored()
