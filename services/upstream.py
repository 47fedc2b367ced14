"""HTTP forwarding to dynamically provisioned origins."""

import ssl
from collections.abc import AsyncIterator

import httpx
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from core.backends import Timeouts
from core.exceptions import ConfigurationError, UpstreamTransportFailure
from core.protocols import RequestLogger
from core.request_types import PreparedForward

# Connection-level headers; httpx and uvicorn frame each hop themselves
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-connection",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)
# Request framing is recomputed from the forwarded body
REQUEST_FRAMING_HEADERS = HOP_BY_HOP_HEADERS | {"content-length"}

_TLS_VERSIONS = {
    "1.2": ssl.TLSVersion.TLSv1_2,
    "1.3": ssl.TLSVersion.TLSv1_3,
}


def build_ssl_context(min_version: str = "1.2", max_version: str = "1.3") -> ssl.SSLContext:
    """SSL context enforcing certificate checks and the TLS version range."""
    try:
        minimum = _TLS_VERSIONS[min_version]
        maximum = _TLS_VERSIONS[max_version]
    except KeyError as e:
        raise ConfigurationError(f"unsupported TLS version {e.args[0]!r}") from e
    context = ssl.create_default_context()
    context.minimum_version = minimum
    context.maximum_version = maximum
    return context


def encode_header(name: str, value: str) -> tuple[bytes, bytes]:
    """Header pair as bytes; obs-text values keep their original bytes."""
    if name.lower() == "host":
        # Internationalized hostnames go out in their ASCII form
        return name.encode("latin-1"), value.encode("idna")
    return name.encode("latin-1"), value.encode("latin-1")


def build_timeout(timeouts: Timeouts) -> httpx.Timeout:
    """Map connect / first-byte / between-bytes onto httpx timeouts."""
    # httpx has a single read timeout covering both first byte and later reads
    read = max(timeouts.first_byte, timeouts.between_bytes)
    return httpx.Timeout(
        connect=timeouts.connect,
        read=read,
        write=timeouts.between_bytes,
        pool=timeouts.connect,
    )


class UpstreamClient:
    """Send prepared requests to their origin and stream the reply back."""

    def __init__(
        self,
        ssl_context: ssl.SSLContext,
        logger: RequestLogger,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._ssl_context = ssl_context
        self._logger = logger
        self._transport = transport

    async def send(self, prepared: PreparedForward) -> StreamingResponse:
        """Forward the request; raise UpstreamTransportFailure on transport errors."""
        backend = prepared.backend
        outbound = prepared.outbound

        client = httpx.AsyncClient(
            verify=self._ssl_context if backend.tls.verify_certificate else False,
            timeout=build_timeout(backend.timeouts),
            follow_redirects=False,
            trust_env=False,
            transport=self._transport,
        )
        headers = [
            encode_header(name, value)
            for name, value in outbound.headers
            if name.lower() not in REQUEST_FRAMING_HEADERS
        ]
        try:
            request = client.build_request(
                outbound.method,
                backend.origin_url(outbound.path),
                headers=headers,
                content=outbound.body,
                extensions={"sni_hostname": backend.tls.sni_hostname},
            )
            response = await client.send(request, stream=True)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            await client.aclose()
            details = str(e) or type(e).__name__
            self._logger.log_error(prepared.target.raw, 502, details)
            raise UpstreamTransportFailure(details, prepared.target.raw) from e
        except BaseException:
            await client.aclose()
            raise

        self._logger.log_forward(
            outbound.method,
            prepared.target.raw,
            backend.name,
            response.status_code,
            path=outbound.path,
        )
        streaming = StreamingResponse(
            self._relay(response, client),
            status_code=response.status_code,
            background=BackgroundTask(self._cleanup_streaming, response, client),
        )
        streaming.raw_headers = [
            (name.lower(), value)
            for name, value in response.headers.raw
            if name.decode("latin-1").lower() not in HOP_BY_HOP_HEADERS
        ]
        return streaming

    async def _relay(self, response: httpx.Response, client: httpx.AsyncClient) -> AsyncIterator[bytes]:
        """Yield the raw origin body, closing upstream resources however streaming ends."""
        try:
            async for chunk in response.aiter_raw():
                yield chunk
        finally:
            await self._cleanup_streaming(response, client)

    async def _cleanup_streaming(self, response: httpx.Response, client: httpx.AsyncClient) -> None:
        """Clean up streaming resources."""
        await response.aclose()
        await client.aclose()
