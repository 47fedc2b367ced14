"""Custom exception hierarchy for the forwarding gateway."""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Terminal rejection kinds, one per pipeline stage check."""

    UNAUTHORIZED = "Unauthorized"
    MISSING_PARAMETER = "MissingParameter"
    INVALID_URL = "InvalidUrl"
    UNSUPPORTED_SCHEME = "UnsupportedScheme"
    MISSING_HOST = "MissingHost"
    FORBIDDEN_HOST = "ForbiddenHost"
    BACKEND_PROVISION_FAILURE = "BackendProvisionFailure"
    UPSTREAM_TRANSPORT_FAILURE = "UpstreamTransportFailure"


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid."""


class GatewayError(Exception):
    """Base exception for all caller-visible gateway errors.

    Attributes:
        kind: Which check rejected the request
        status_code: HTTP status returned to the caller
        error: Value of the ``error`` field in the JSON body
    """

    kind: ErrorKind
    status_code: int = 400
    error: str = ""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.error)

    def to_body(self) -> dict[str, Any]:
        """JSON body sent to the caller."""
        return {"error": self.error}


class Unauthorized(GatewayError):
    kind = ErrorKind.UNAUTHORIZED
    status_code = 403
    error = "Unauthorized"
    message = "Invalid or missing API key"

    def to_body(self) -> dict[str, Any]:
        return {"error": self.error, "message": self.message}


class MissingParameter(GatewayError):
    kind = ErrorKind.MISSING_PARAMETER
    error = "Missing 'url' query parameter"
    usage = "Add ?url=https://example.com/path to your request"

    def to_body(self) -> dict[str, Any]:
        return {"error": self.error, "usage": self.usage}


class InvalidUrl(GatewayError):
    kind = ErrorKind.INVALID_URL
    error = "Invalid URL provided"

    def __init__(self, details: str) -> None:
        super().__init__(details)
        self.details = details

    def to_body(self) -> dict[str, Any]:
        return {"error": self.error, "details": self.details}


class UnsupportedScheme(GatewayError):
    kind = ErrorKind.UNSUPPORTED_SCHEME
    error = "Only https URLs are supported"
    usage = "Use https:// URLs (e.g., ?url=https://example.com/path)"

    def __init__(self, scheme: str = "") -> None:
        super().__init__(f"scheme {scheme!r} rejected" if scheme else "")
        self.scheme = scheme

    def to_body(self) -> dict[str, Any]:
        return {"error": self.error, "usage": self.usage}


class MissingHost(GatewayError):
    kind = ErrorKind.MISSING_HOST
    error = "Invalid URL: missing hostname"


class ForbiddenHost(GatewayError):
    kind = ErrorKind.FORBIDDEN_HOST
    status_code = 403
    error = "Forbidden"
    message = "Requests to private or internal hosts are not allowed"

    def __init__(self, hostname: str) -> None:
        super().__init__(f"{hostname} is private or internal")
        self.hostname = hostname

    def to_body(self) -> dict[str, Any]:
        return {"error": self.error, "message": self.message}


class _TargetedError(GatewayError):
    """Error raised after validation, echoing the original target back."""

    status_code = 502

    def __init__(self, details: str, target: str) -> None:
        super().__init__(details)
        self.details = details
        self.target = target

    def to_body(self) -> dict[str, Any]:
        return {"error": self.error, "details": self.details, "target": self.target}


class BackendProvisionFailure(_TargetedError):
    kind = ErrorKind.BACKEND_PROVISION_FAILURE
    error = "Failed to create backend"


class UpstreamTransportFailure(_TargetedError):
    kind = ErrorKind.UPSTREAM_TRANSPORT_FAILURE
    error = "Failed to fetch from origin"
