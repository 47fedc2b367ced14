"""Shared request data types."""

from dataclasses import dataclass

from core.backends import BackendDescriptor


@dataclass(frozen=True)
class InboundRequest:
    """Read-only view of a request received by the gateway."""

    method: str
    url: str
    headers: tuple[tuple[str, str], ...] = ()
    body: bytes | None = None


@dataclass(frozen=True)
class TargetDescriptor:
    """Validated origin taken from the ``url`` query parameter."""

    raw: str
    scheme: str
    hostname: str
    port: int
    path: str
    query: str | None = None


@dataclass(frozen=True)
class OutboundRequest:
    """Request sent to the origin."""

    method: str
    path: str
    headers: tuple[tuple[str, str], ...]
    body: bytes | None = None
    cache_bypass: bool = True


@dataclass(frozen=True)
class PreparedForward:
    """Everything the dispatcher needs for one forwarded request."""

    target: TargetDescriptor
    backend: BackendDescriptor
    outbound: OutboundRequest
