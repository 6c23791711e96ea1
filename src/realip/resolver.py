"""Resolution of the originating client address behind trusted proxies."""

import ipaddress
import logging
from collections.abc import Iterable, Sequence

from realip.forwarded import parse_forwarded_for
from realip.networks import IPAddress, ProxySpec, TrustedProxySet, normalize_address

logger = logging.getLogger(__name__)


def forwarded_chain(values: Iterable[str]) -> list[str]:
    """
    Flatten X-Forwarded-For values into a single chain of tokens.

    Repeated headers are concatenated in the order received. Blank header
    values contribute nothing; empty tokens inside a list are kept so the
    walk can reject them.
    """
    chain = []
    for value in values:
        if not value.strip():
            continue
        chain.extend(token.strip() for token in value.split(","))
    return chain


def parse_address(token: str) -> IPAddress | None:
    try:
        return normalize_address(ipaddress.ip_address(token.strip()))
    except ValueError:
        return None


class RealIpResolver:
    """
    Infers the client address from the socket peer and forwarding headers.

    Headers are only honored when the peer is a trusted proxy, and each hop
    is validated on its own, walking from the server outward. Instances
    hold no per-request state and may be shared between threads and tasks.
    """

    __slots__ = ("_trusted",)

    def __init__(self, trusted: TrustedProxySet | Iterable[ProxySpec] = ()):
        if not isinstance(trusted, TrustedProxySet):
            trusted = TrustedProxySet.parse(trusted)
        self._trusted = trusted

    @property
    def trusted(self) -> TrustedProxySet:
        return self._trusted

    def is_trusted(self, addr: IPAddress) -> bool:
        return self._trusted.contains(addr)

    def resolve(
        self,
        peer: IPAddress | str,
        forwarded_for_values: Sequence[str] = (),
        real_ip_value: str | None = None,
        forwarded_values: Sequence[str] = (),
    ) -> IPAddress | None:
        """
        Resolve the client address for one request.

        Args:
            peer: Address of the directly connected socket peer.
            forwarded_for_values: Every X-Forwarded-For value, in header order.
            real_ip_value: The X-Real-IP value, if present.
            forwarded_values: Every RFC 7239 Forwarded value, consulted only
                when no X-Forwarded-For tokens are present.

        Returns:
            The client address, or None when every hop is a trusted proxy
            (and X-Real-IP gives nothing usable) or a hop is malformed.
        """
        if isinstance(peer, str):
            peer = ipaddress.ip_address(peer)
        peer = normalize_address(peer)

        if not self._trusted.contains(peer):
            return peer

        chain = forwarded_chain(forwarded_for_values)
        if not chain and forwarded_values:
            chain = parse_forwarded_for(forwarded_values)

        # The trusted peer is the implicit rightmost hop.
        for token in reversed(chain):
            hop = parse_address(token)
            if hop is None:
                logger.debug("Malformed forwarded hop %r via %s", token, peer)
                return None
            if not self._trusted.contains(hop):
                return hop

        if real_ip_value is not None:
            real_ip = parse_address(real_ip_value)
            if real_ip is not None:
                logger.debug("All hops trusted, using X-Real-IP %s", real_ip)
                return real_ip

        logger.debug("All %d hops via %s are trusted proxies", len(chain) + 1, peer)
        return None

    def __repr__(self) -> str:
        return f"RealIpResolver(trusted=[{', '.join(str(m) for m in self._trusted)}])"
