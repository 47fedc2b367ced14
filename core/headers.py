"""Header construction for outbound requests."""

from collections.abc import Iterable

# Never forwarded; Host is rewritten to the target instead
STRIPPED_HEADERS = frozenset({"x-forwarded-for", "x-forwarded-host", "x-forwarded-proto", "host"})


class HeaderBuilder:
    """Build outbound headers from the inbound request's headers."""

    def build_outbound_headers(
        self,
        headers: Iterable[tuple[str, str]],
        hostname: str,
    ) -> tuple[tuple[str, str], ...]:
        """Drop forwarding and Host headers, then set Host to the target."""
        outbound = [(name, value) for name, value in headers if name.lower() not in STRIPPED_HEADERS]
        outbound.append(("Host", hostname))
        return tuple(outbound)
