"""Outbound request construction."""

from core.backends import BackendDescriptor
from core.headers import HeaderBuilder
from core.protocols import IncomingRequest
from core.request_types import OutboundRequest, TargetDescriptor

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class RequestTransformer:
    """Rewrite an inbound request into the request sent to the origin."""

    def __init__(self, header_builder: HeaderBuilder | None = None) -> None:
        self._headers = header_builder or HeaderBuilder()

    def build_outbound(
        self,
        request: IncomingRequest,
        target: TargetDescriptor,
        backend: BackendDescriptor,
    ) -> OutboundRequest:
        """Build the outbound request for ``target``."""
        path = target.path
        if target.query:
            path = f"{path}?{target.query}"

        method = request.method.upper()
        body = request.body if method in BODY_METHODS else None

        return OutboundRequest(
            method=request.method,
            path=path,
            headers=self._headers.build_outbound_headers(request.headers, backend.host_override),
            body=body,
            cache_bypass=True,
        )
