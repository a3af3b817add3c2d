from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .. import __version__
from ..constants import CHANNEL_PREFIXES, DEFAULT_CHANNEL_PREFIX


def normalize_channel(name: str) -> str:
    """Return ``name`` stripped and carrying a channel prefix.

    Names that already start with one of the IRC channel prefixes are kept
    as-is; anything else gains the default ``#``.
    """
    stripped = name.strip()
    if not stripped:
        return ""
    if stripped[0] in CHANNEL_PREFIXES:
        return stripped
    return f"{DEFAULT_CHANNEL_PREFIX}{stripped}"


class EndpointConfig(BaseModel):
    """An HTTP backend endpoint and its pre-shared key.

    Attributes:
        endpoint: Absolute URL of the backend.
        api_key: Key sent with every request; may be empty.
    """

    model_config = ConfigDict(frozen=True)

    endpoint: str
    api_key: str = ""

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("endpoint URL must not be empty")
        return v


class NetworkConfig(BaseModel):
    """Connection settings and channel set for one IRC network.

    Attributes:
        server: Hostname of the IRC server.
        port: TCP port.
        use_tls: Whether to wrap the connection in TLS.
        verify_tls: Whether to verify the server certificate and hostname.
        channels: Channels to join, prefix-normalized and deduplicated.
    """

    model_config = ConfigDict(frozen=True)

    server: str
    port: int = Field(default=6667, ge=1, le=65535)
    use_tls: bool = False
    verify_tls: bool = True
    channels: tuple[str, ...]

    @field_validator("server")
    @classmethod
    def validate_server(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("server must not be empty")
        return v

    @field_validator("channels", mode="before")
    @classmethod
    def validate_channels(cls, v: Any) -> tuple[str, ...]:
        """Normalize channel names, keeping the configured order.

        Blank entries are dropped and duplicates removed; at least one
        channel must remain.
        """
        if isinstance(v, str) or not isinstance(v, list | tuple):
            raise ValueError("channels must be a list")
        normalized = [normalize_channel(c) for c in v if isinstance(c, str)]
        channels = tuple(dict.fromkeys(c for c in normalized if c))
        if not channels:
            raise ValueError("at least one channel is required")
        return channels


class RelayConfig(BaseModel):
    """Process-wide configuration, immutable after load.

    Attributes:
        nickname: Desired IRC nickname on every network.
        networks: Network name to settings.
        command: Backend answering dot-prefixed commands.
        title: Backend resolving link titles.
        quotes: Optional quote archive answering the quote command.
        version: CTCP VERSION reply.
    """

    model_config = ConfigDict(frozen=True)

    nickname: str
    networks: dict[str, NetworkConfig]
    command: EndpointConfig
    title: EndpointConfig
    quotes: EndpointConfig | None = None
    version: str = f"relaybot {__version__}"

    @field_validator("nickname")
    @classmethod
    def validate_nickname(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("nickname must not be empty")
        if any(ch in v for ch in " \r\n"):
            raise ValueError("nickname must not contain whitespace")
        return v

    @model_validator(mode="after")
    def validate_networks(self) -> RelayConfig:
        if not self.networks:
            raise ValueError("at least one network is required")
        return self

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RelayConfig:
        return cls.model_validate(dict(data))
