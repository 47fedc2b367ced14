"""Shared protocol definitions."""

from collections.abc import Sequence
from typing import Any, Protocol

from core.request_types import PreparedForward


class IncomingRequest(Protocol):
    """Readable request as seen by the pipeline."""

    method: str
    url: str
    headers: Sequence[tuple[str, str]]
    body: bytes | None


class Transport(Protocol):
    """Sends a prepared request to its origin and returns the caller response."""

    async def send(self, prepared: PreparedForward) -> Any: ...


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard)."""

    def log_forward(
        self,
        method: str,
        target: str,
        backend: str,
        status: int,
        *,
        path: str,
    ) -> None: ...
    def log_rejection(self, kind: str, status: int, message: str) -> None: ...
    def log_error(self, target: str, status: int, message: str) -> None: ...
