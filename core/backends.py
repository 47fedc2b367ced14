"""Backend descriptors for dynamically provisioned origins."""

import re
from dataclasses import dataclass

from core.config import BackendSettings
from core.exceptions import BackendProvisionFailure

BACKEND_PREFIX = "dyn_"
FILLER = "_"
MAX_NAME_LENGTH = 255
DEFAULT_CACHE_ENTRIES = 1024

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9]")
_SAFE_NAME = re.compile(r"^[a-zA-Z0-9_]+$")


@dataclass(frozen=True)
class Timeouts:
    """Transport timeouts in seconds."""

    connect: float = 10.0
    first_byte: float = 30.0
    between_bytes: float = 30.0


@dataclass(frozen=True)
class TlsSettings:
    """TLS parameters for the origin connection."""

    sni_hostname: str
    cert_hostname: str
    verify_certificate: bool = True
    min_version: str = "1.2"
    max_version: str = "1.3"


@dataclass(frozen=True)
class BackendDescriptor:
    """Everything needed to open a connection to one origin."""

    name: str
    hostname: str
    port: int
    host_override: str
    tls: TlsSettings
    timeouts: Timeouts

    @property
    def target(self) -> str:
        return f"{self.hostname}:{self.port}"

    def origin_url(self, path: str) -> str:
        """Absolute URL for ``path`` on this backend."""
        host = f"[{self.hostname}]" if ":" in self.hostname else self.hostname
        return f"https://{host}:{self.port}{path}"


def sanitize_hostname(hostname: str) -> str:
    """Replace every non-alphanumeric character with the filler."""
    return _UNSAFE_CHARS.sub(FILLER, hostname)


def backend_name(hostname: str, port: int) -> str:
    """Stable backend identifier for a host and port."""
    return f"{BACKEND_PREFIX}{sanitize_hostname(hostname)}_{port}"


def build_backend(
    hostname: str,
    port: int,
    settings: BackendSettings | None = None,
    *,
    target: str = "",
) -> BackendDescriptor:
    """Build the descriptor for ``hostname:port``.

    Raises BackendProvisionFailure when the parameters cannot describe a
    usable connection; ``target`` is echoed back in that error.
    """
    settings = settings or BackendSettings()
    target = target or f"{hostname}:{port}"
    name = backend_name(hostname, port)

    if not 0 < port < 65536:
        raise BackendProvisionFailure(f"invalid port {port} for backend {name}", target)
    if len(name) > MAX_NAME_LENGTH or not _SAFE_NAME.match(name):
        raise BackendProvisionFailure(f"invalid backend name {name!r}", target)
    try:
        hostname.encode("idna")
    except UnicodeError as e:
        raise BackendProvisionFailure(f"hostname {hostname!r} is not encodable: {e}", target) from e

    return BackendDescriptor(
        name=name,
        hostname=hostname,
        port=port,
        host_override=hostname,
        tls=TlsSettings(
            sni_hostname=hostname,
            cert_hostname=hostname,
            min_version=settings.tls_min_version,
            max_version=settings.tls_max_version,
        ),
        timeouts=Timeouts(
            connect=settings.connect_timeout,
            first_byte=settings.first_byte_timeout,
            between_bytes=settings.between_bytes_timeout,
        ),
    )


class BackendCache:
    """Process-local get-or-create store for backend descriptors.

    No lock is taken: two requests racing on the same key may both build a
    descriptor, and whichever is stored first is kept. Once ``max_entries``
    descriptors are stored, new hosts get a fresh, uncached descriptor.
    """

    def __init__(self, max_entries: int = DEFAULT_CACHE_ENTRIES) -> None:
        self._descriptors: dict[str, BackendDescriptor] = {}
        self._max_entries = max_entries

    def __len__(self) -> int:
        return len(self._descriptors)

    def get_or_create(
        self,
        hostname: str,
        port: int,
        settings: BackendSettings | None = None,
        *,
        target: str = "",
    ) -> BackendDescriptor:
        key = backend_name(hostname, port)
        cached = self._descriptors.get(key)
        if cached is not None and cached.hostname == hostname:
            return cached

        descriptor = build_backend(hostname, port, settings, target=target)
        if cached is None and len(self._descriptors) >= self._max_entries:
            return descriptor
        stored = self._descriptors.setdefault(key, descriptor)
        # Sanitized names can collide (a-b.com vs a.b.com); never hand out another host's descriptor
        return stored if stored.hostname == hostname else descriptor


class BackendProvisioner:
    """Provision backend descriptors, optionally through a shared cache."""

    def __init__(self, settings: BackendSettings, cache: BackendCache | None = None) -> None:
        self._settings = settings
        self._cache = cache

    def provision(self, hostname: str, port: int, *, target: str = "") -> BackendDescriptor:
        if self._cache is not None:
            return self._cache.get_or_create(hostname, port, self._settings, target=target)
        return build_backend(hostname, port, self._settings, target=target)
