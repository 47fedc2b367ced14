"""Forwarding pipeline orchestration."""

from typing import Any

from core.backends import BackendProvisioner
from core.protocols import IncomingRequest, Transport
from core.request_types import PreparedForward
from core.ssrf import SsrfGuard
from core.transform import RequestTransformer
from core.validator import RequestValidator


class ForwardingService:
    """Validate, guard, provision and transform, then dispatch.

    Every stage raises a GatewayError to stop the pipeline; nothing after a
    failed stage runs, so rejected requests never reach the transport.
    """

    def __init__(
        self,
        validator: RequestValidator,
        guard: SsrfGuard,
        provisioner: BackendProvisioner,
        transformer: RequestTransformer,
        transport: Transport,
    ) -> None:
        self._validator = validator
        self._guard = guard
        self._provisioner = provisioner
        self._transformer = transformer
        self._transport = transport

    def prepare(self, request: IncomingRequest) -> PreparedForward:
        """Run every stage up to, but not including, dispatch."""
        target = self._validator.validate(request)
        self._guard.check(target.hostname)
        backend = self._provisioner.provision(target.hostname, target.port, target=target.raw)
        outbound = self._transformer.build_outbound(request, target, backend)
        return PreparedForward(target=target, backend=backend, outbound=outbound)

    async def forward(self, request: IncomingRequest) -> Any:
        """Prepare the request and send it through the transport."""
        prepared = self.prepare(request)
        return await self._transport.send(prepared)
