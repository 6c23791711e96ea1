from realip.forwarded import parse_forwarded_for
from realip.networks import (
    InvalidProxySpec,
    IPAddress,
    MatcherKind,
    ProxyMatcher,
    TrustedProxySet,
)
from realip.resolver import RealIpResolver, forwarded_chain

__all__ = [
    "IPAddress",
    "InvalidProxySpec",
    "MatcherKind",
    "ProxyMatcher",
    "RealIpResolver",
    "TrustedProxySet",
    "forwarded_chain",
    "parse_forwarded_for",
]
