"""Caller authorization and target URL validation."""

import hmac
import ipaddress
from dataclasses import dataclass
from urllib.parse import parse_qsl, urlsplit

from core.exceptions import InvalidUrl, MissingHost, MissingParameter, Unauthorized, UnsupportedScheme
from core.protocols import IncomingRequest
from core.request_types import TargetDescriptor

ALLOWED_SCHEME = "https"
DEFAULT_PORT = 443

# Characters that cannot appear in a host name (":" only inside IPv6 literals)
FORBIDDEN_HOST_CHARS = frozenset("#/:<>?@[\\]^|%\"{}`")


@dataclass(frozen=True)
class AuthContext:
    """Result of the shared-secret check."""

    key_present: bool
    authorized: bool


def query_params(url: str) -> dict[str, str]:
    """Parse the query of ``url`` keeping the first value of each name."""
    params: dict[str, str] = {}
    for name, value in parse_qsl(urlsplit(url).query, keep_blank_values=True):
        params.setdefault(name, value)
    return params


def authorize(params: dict[str, str], secret: str) -> AuthContext:
    """Compare the ``key`` parameter with the shared secret."""
    key = params.get("key")
    if key is None:
        return AuthContext(key_present=False, authorized=False)
    matches = bool(secret) and hmac.compare_digest(key.encode("utf-8"), secret.encode("utf-8"))
    return AuthContext(key_present=True, authorized=matches)


def check_hostname(hostname: str) -> None:
    """Raise InvalidUrl when ``hostname`` is not a legal URL host."""
    if ":" in hostname:
        try:
            ipaddress.IPv6Address(hostname)
        except ValueError as e:
            raise InvalidUrl(f"invalid IPv6 host {hostname!r}: {e}") from e
        return
    for char in hostname:
        if char in FORBIDDEN_HOST_CHARS or char.isspace() or not char.isprintable():
            raise InvalidUrl(f"invalid character {char!r} in host name")


def parse_target(raw: str, default_port: int = DEFAULT_PORT) -> TargetDescriptor:
    """Parse an absolute https URL into a TargetDescriptor."""
    try:
        parts = urlsplit(raw)
        port = parts.port
    except ValueError as e:
        raise InvalidUrl(str(e)) from e

    if not parts.scheme:
        raise InvalidUrl(f"relative URL without a base: {raw!r}")
    if parts.scheme.lower() != ALLOWED_SCHEME:
        raise UnsupportedScheme(parts.scheme)

    hostname = parts.hostname
    if not hostname:
        raise MissingHost()
    check_hostname(hostname)

    return TargetDescriptor(
        raw=raw,
        scheme=ALLOWED_SCHEME,
        hostname=hostname,
        port=port if port is not None else default_port,
        path=parts.path or "/",
        query=parts.query or None,
    )


class RequestValidator:
    """Authorize the caller and extract the target from the query string."""

    def __init__(self, secret: str, default_port: int = DEFAULT_PORT) -> None:
        self._secret = secret
        self._default_port = default_port

    def validate(self, request: IncomingRequest) -> TargetDescriptor:
        """Return the validated target or raise a GatewayError."""
        params = query_params(request.url)

        # The url parameter is not looked at until the caller is authorized
        if not authorize(params, self._secret).authorized:
            raise Unauthorized()

        raw = params.get("url")
        if not raw:
            raise MissingParameter()

        return parse_target(raw, self._default_port)
