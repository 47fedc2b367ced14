"""SSRF protection: reject private and internal target hosts.

The rules are a blocklist applied to the hostname string as written in the
target URL. No DNS resolution happens here, so a public name that resolves
to a private address is not caught.
"""

from core.exceptions import ForbiddenHost

LOCALHOST_NAMES = frozenset({"localhost", "localhost.localdomain"})
IPV6_LOOPBACK = frozenset({"::1", "[::1]"})
INTERNAL_PREFIXES = ("internal.", "intranet.", "private.", "corp.", "lan.")
INTERNAL_SUFFIXES = (".internal", ".local", ".localhost")


def parse_ipv4(hostname: str) -> tuple[int, int, int, int] | None:
    """Return the four octets of a dotted-decimal address, or None."""
    parts = hostname.split(".")
    if len(parts) != 4:
        return None
    octets = []
    for part in parts:
        if not part.isascii() or not part.isdigit():
            return None
        value = int(part)
        if value > 255:
            return None
        octets.append(value)
    return octets[0], octets[1], octets[2], octets[3]


def _is_private_ipv4(octets: tuple[int, int, int, int]) -> bool:
    a, b = octets[0], octets[1]
    return (
        a == 127  # loopback
        or a == 10
        or (a == 172 and 16 <= b <= 31)
        or (a == 192 and b == 168)
        or (a == 169 and b == 254)  # link-local, cloud metadata
        or a == 0  # current network
    )


def is_private_host(hostname: str) -> bool:
    """Check whether ``hostname`` names a private or internal host."""
    host = hostname.lower()

    if host in LOCALHOST_NAMES or host in IPV6_LOOPBACK:
        return True

    octets = parse_ipv4(host)
    if octets is not None and _is_private_ipv4(octets):
        return True

    if host.startswith(INTERNAL_PREFIXES):
        return True
    return host.endswith(INTERNAL_SUFFIXES)


class SsrfGuard:
    """Reject targets that point at private or internal hosts."""

    def check(self, hostname: str) -> str:
        """Return ``hostname`` unchanged, or raise ForbiddenHost."""
        if is_private_host(hostname):
            raise ForbiddenHost(hostname)
        return hostname
