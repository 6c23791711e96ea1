from collections.abc import Callable

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from realip.config import get_resolver
from realip.middleware import resolve_connection
from realip.resolver import RealIpResolver


def client_ip_key(resolver: RealIpResolver) -> Callable[[Request], str]:
    """Build a slowapi key function bound to an already-configured resolver."""

    def get_client_ip(request: Request) -> str:
        """Get client IP address, honoring X-Forwarded-For only through trusted proxies."""
        client_ip = resolve_connection(resolver, request)
        if client_ip is None:
            # Unresolved requests share a bucket with their proxy
            return get_remote_address(request)
        return str(client_ip)

    return get_client_ip


def build_limiter(resolver: RealIpResolver | None = None, **kwargs) -> Limiter:
    """
    Create a Limiter keyed by the resolved client address.

    The resolver is built here, so a malformed REALIP_TRUSTED_PROXIES fails
    when the limiter is set up rather than on the first request.
    """
    if resolver is None:
        resolver = get_resolver()
    return Limiter(key_func=client_ip_key(resolver), **kwargs)


limiter = build_limiter()
