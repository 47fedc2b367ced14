"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from api.handlers import handle_forward
from core.backends import BackendCache, BackendProvisioner
from core.config import Config
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.ssrf import SsrfGuard
from core.transform import RequestTransformer
from core.validator import RequestValidator
from services.forwarding_service import ForwardingService
from services.upstream import UpstreamClient, build_ssl_context

FORWARD_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``transport`` replaces httpx's network transport for every outbound
    request; tests use it to stand in for origins.
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        backend = config.backend
        # SNI and certificate hostname come from each request URL
        ssl_context = build_ssl_context(backend.tls_min_version, backend.tls_max_version)
        cache = BackendCache(backend.cache_max_entries) if backend.cache_descriptors else None
        app.state.forwarding_service = ForwardingService(
            validator=RequestValidator(config.auth.shared_secret, backend.default_port),
            guard=SsrfGuard(),
            provisioner=BackendProvisioner(backend, cache),
            transformer=RequestTransformer(HeaderBuilder()),
            transport=UpstreamClient(ssl_context, logger, transport),
        )
        yield

    app = FastAPI(title="Dynserv Gateway", version="0.1.0", lifespan=lifespan)

    @app.api_route("/{path:path}", methods=FORWARD_METHODS)
    async def forward(request: Request):
        return await handle_forward(request, config, logger)

    return app
