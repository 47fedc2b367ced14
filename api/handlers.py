"""FastAPI route handlers."""

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from core.config import Config
from core.exceptions import GatewayError, UpstreamTransportFailure
from core.protocols import RequestLogger
from core.request_types import InboundRequest
from core.transform import BODY_METHODS
from ui.log_utils import write_incoming_log


async def to_inbound_request(request: Request) -> InboundRequest:
    """Adapt a Starlette request to the pipeline's readable request."""
    body = await request.body() if request.method.upper() in BODY_METHODS else None
    # raw header list keeps duplicates and order
    headers = tuple(
        (name.decode("latin-1"), value.decode("latin-1"))
        for name, value in request.headers.raw
    )
    return InboundRequest(
        method=request.method,
        url=str(request.url),
        headers=headers,
        body=body,
    )


def error_response(error: GatewayError) -> JSONResponse:
    """Render a gateway error as its JSON response."""
    return JSONResponse(content=error.to_body(), status_code=error.status_code)


async def handle_forward(
    request: Request,
    config: Config,
    logger: RequestLogger,
) -> Response:
    """Handle any inbound request by forwarding it to its ``url`` target."""
    inbound = await to_inbound_request(request)
    if config.proxy.debug:
        write_incoming_log(inbound.method, inbound.url, dict(inbound.headers), len(inbound.body or b""))

    forwarding_service = request.app.state.forwarding_service
    try:
        return await forwarding_service.forward(inbound)
    except UpstreamTransportFailure as e:
        # Already reported by the upstream client
        return error_response(e)
    except GatewayError as e:
        logger.log_rejection(e.kind.value, e.status_code, str(e))
        return error_response(e)
