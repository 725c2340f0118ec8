import ipaddress
import logging
import socket
from typing import Callable, NamedTuple, Optional
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")
LOCAL_HOSTNAMES = frozenset({"localhost", "127.0.0.1", "0.0.0.0", "::1"})

PRIVATE_NETWORKS = tuple(
    ipaddress.ip_network(net)
    for net in (
        "10.0.0.0/8",
        "127.0.0.0/8",
        "169.254.0.0/16",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "::1/128",
        "fc00::/7",
        "fe80::/10",
    )
)


class SafetyVerdict(NamedTuple):
    safe: bool
    reason: str


def is_private_address(address: str) -> bool:
    """True if `address` falls in a loopback, private or link-local range."""
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return False
    mapped = getattr(ip, "ipv4_mapped", None)
    if mapped is not None:
        ip = mapped
    return any(ip.version == net.version and ip in net for net in PRIVATE_NETWORKS)


class UrlSafetyValidator:
    """Decides whether a URL may be fetched (SSRF guard).

    DNS resolution goes through `resolver` (``socket.getaddrinfo`` signature)
    so tests can supply canned answers. Resolution failures reject the URL.
    """

    def __init__(self, resolver: Optional[Callable] = None):
        self._resolver = resolver or socket.getaddrinfo

    def validate(self, url: str) -> SafetyVerdict:
        try:
            parsed = urlsplit(str(url or "").strip())
            scheme = parsed.scheme.lower()
            hostname = parsed.hostname
            parsed.port  # raises ValueError for an out-of-range or non-numeric port
        except ValueError:
            return SafetyVerdict(False, "invalid_url")

        if not scheme or (scheme in ALLOWED_SCHEMES and not parsed.netloc):
            return SafetyVerdict(False, "invalid_url")
        if scheme not in ALLOWED_SCHEMES:
            return SafetyVerdict(False, "unsupported_protocol")
        if not hostname:
            return SafetyVerdict(False, "invalid_url")

        hostname = hostname.lower().rstrip(".")
        if hostname in LOCAL_HOSTNAMES or hostname.endswith(".local"):
            return SafetyVerdict(False, "local_address_blocked")

        try:
            answers = self._resolver(hostname, None)
        except (OSError, UnicodeError) as e:
            logger.debug("DNS resolution failed for %s: %s", url, e)
            return SafetyVerdict(False, "dns_resolution_failed")

        addresses = [entry[4][0] for entry in answers or [] if entry and len(entry) > 4 and entry[4]]
        if not addresses:
            logger.debug("DNS resolution returned no addresses for %s", url)
            return SafetyVerdict(False, "dns_resolution_failed")

        for address in addresses:
            if is_private_address(str(address)):
                logger.info("Blocked %s: %s resolves to private address %s", url, hostname, address)
                return SafetyVerdict(False, "private_network_blocked")

        return SafetyVerdict(True, "ok")
