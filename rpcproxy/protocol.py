"""Request protocol detection and the health check message."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from rpcproxy.errors import InvalidScheme


@dataclass(frozen=True)
class Protocol:
    """The protocol of a request: HTTP, WebSocket, or some other scheme."""

    kind: str
    scheme: str | None = None

    HTTP: ClassVar[Protocol]
    WEBSOCKET: ClassVar[Protocol]

    @property
    def is_http(self) -> bool:
        return self.kind == "http"

    @property
    def is_websocket(self) -> bool:
        return self.kind == "websocket"


Protocol.HTTP = Protocol("http")
Protocol.WEBSOCKET = Protocol("websocket")


def protocol_from_scheme(scheme: str | None) -> Protocol:
    """Classify a URI scheme; raise InvalidScheme when there is none."""
    if not scheme:
        raise InvalidScheme()
    lowered = scheme.lower()
    if lowered in ("http", "https"):
        return Protocol.HTTP
    if lowered in ("ws", "wss"):
        return Protocol.WEBSOCKET
    return Protocol("other", lowered)


def health_message(version: str, commit_hash: str, features: str, uptime_secs: float) -> str:
    """The body of the health check response."""
    return (
        f"OK v{version}, commit hash: {commit_hash}, features: {features}, "
        f"uptime: {int(uptime_secs)} seconds"
    )