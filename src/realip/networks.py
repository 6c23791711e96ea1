"""Trusted proxy addresses and ranges."""

import ipaddress
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address
IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network
ProxySpec = str | IPAddress | IPNetwork


class InvalidProxySpec(ValueError):
    """Raised when a trusted proxy entry is not an IP or CIDR literal."""

    def __init__(self, spec: object, reason: str | None = None):
        self.spec = spec
        message = f"Invalid trusted proxy: {spec!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


def normalize_address(addr: IPAddress) -> IPAddress:
    """Collapse IPv4-mapped IPv6 addresses (``::ffff:a.b.c.d``) to IPv4."""
    if addr.version == 6 and addr.ipv4_mapped is not None:
        return addr.ipv4_mapped
    return addr


_IPV4_MAPPED = ipaddress.IPv6Network("::ffff:0:0/96")


def normalize_network(network: IPNetwork) -> IPNetwork:
    """Collapse networks inside ``::ffff:0:0/96`` to the IPv4 network they map."""
    if network.version == 6 and network.subnet_of(_IPV4_MAPPED):
        return ipaddress.IPv4Network(
            (network.network_address.ipv4_mapped, network.prefixlen - 96)
        )
    return network


class MatcherKind(str, Enum):
    ADDRESS = "address"
    NETWORK = "network"


@dataclass(frozen=True, slots=True)
class ProxyMatcher:
    kind: MatcherKind
    network: IPNetwork

    @classmethod
    def for_address(cls, addr: IPAddress) -> "ProxyMatcher":
        addr = normalize_address(addr)
        return cls(MatcherKind.ADDRESS, ipaddress.ip_network(addr))

    @classmethod
    def for_network(cls, network: IPNetwork) -> "ProxyMatcher":
        return cls(MatcherKind.NETWORK, normalize_network(network))

    @classmethod
    def parse(cls, spec: ProxySpec) -> "ProxyMatcher":
        """
        Build a matcher from an IP literal, a CIDR literal, or an ipaddress object.

        CIDR literals with host bits set are accepted and reduced to their
        network, so ``10.1.2.3/8`` matches all of ``10.0.0.0/8``.
        """
        if isinstance(spec, ipaddress.IPv4Address | ipaddress.IPv6Address):
            return cls.for_address(spec)
        if isinstance(spec, ipaddress.IPv4Network | ipaddress.IPv6Network):
            return cls.for_network(spec)
        if not isinstance(spec, str):
            raise InvalidProxySpec(spec, "expected an IP or CIDR literal")

        text = spec.strip()
        if not text:
            raise InvalidProxySpec(spec, "empty")
        try:
            if "/" in text:
                return cls.for_network(ipaddress.ip_network(text, strict=False))
            return cls.for_address(ipaddress.ip_address(text))
        except ValueError as e:
            raise InvalidProxySpec(spec, str(e)) from e

    def contains(self, addr: IPAddress) -> bool:
        if self.kind is MatcherKind.ADDRESS:
            return addr == self.network.network_address
        return addr in self.network

    def __str__(self) -> str:
        if self.kind is MatcherKind.ADDRESS:
            return str(self.network.network_address)
        return str(self.network)


@dataclass(frozen=True, slots=True)
class TrustedProxySet:
    """
    Immutable set of trusted proxy matchers.

    Built once at startup and shared read-only between requests.
    """

    matchers: tuple[ProxyMatcher, ...] = ()

    @classmethod
    def parse(cls, specs: Iterable[ProxySpec]) -> "TrustedProxySet":
        """
        Parse IP and CIDR specs into a trusted set.

        Raises:
            InvalidProxySpec: if any entry is malformed.
        """
        if isinstance(specs, str):
            specs = [specs]
        return cls(tuple(ProxyMatcher.parse(spec) for spec in specs))

    @classmethod
    def from_addresses(cls, addrs: Iterable[IPAddress]) -> "TrustedProxySet":
        return cls(tuple(ProxyMatcher.for_address(addr) for addr in addrs))

    def contains(self, addr: IPAddress) -> bool:
        addr = normalize_address(addr)
        return any(matcher.contains(addr) for matcher in self.matchers)

    def __contains__(self, addr: object) -> bool:
        if not isinstance(addr, ipaddress.IPv4Address | ipaddress.IPv6Address):
            return False
        return self.contains(addr)

    def __iter__(self) -> Iterator[ProxyMatcher]:
        return iter(self.matchers)

    def __len__(self) -> int:
        return len(self.matchers)
