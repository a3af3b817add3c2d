"""IRC message parsing utilities."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class IRCMessage:
    raw: str
    prefix: str | None
    command: str
    params: list[str] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)

    @property
    def nick(self) -> str:
        """Nickname part of the prefix (``nick!user@host``), or the server name."""
        return (self.prefix or "").split("!", 1)[0]

    @property
    def trailing(self) -> str:
        return self.params[-1] if self.params else ""

    def param(self, index: int, default: str = "") -> str:
        try:
            return self.params[index]
        except IndexError:
            return default


def parse_irc_message(raw_line: str) -> IRCMessage:
    tags: dict[str, str] = {}
    prefix: str | None = None
    params: list[str] = []

    original = raw_line
    line = raw_line.rstrip("\r\n")

    if line.startswith("@"):
        tags_part, _, line = line.partition(" ")
        tags = _parse_tags(tags_part[1:])

    if line.startswith(":"):
        # Malformed lines may omit the space after the prefix
        prefix, _, line = line[1:].partition(" ")

    if " :" in line:
        line, trailing = line.split(" :", 1)
        middle = line.split()
        middle.append(trailing)
    elif line.startswith(":"):
        middle = [line[1:]]
    else:
        middle = line.split()

    command = middle.pop(0).upper() if middle else ""
    params = middle

    return IRCMessage(
        raw=original, prefix=prefix, command=command, params=params, tags=tags
    )


def _parse_tags(raw_tags: str) -> dict[str, str]:
    tags: dict[str, str] = {}
    for tag in raw_tags.split(";"):
        if not tag:
            continue
        if "=" in tag:
            k, v = tag.split("=", 1)
        else:
            k, v = tag, ""
        tags[k] = v
    return tags
