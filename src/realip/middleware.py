"""Starlette/FastAPI integration for the real IP resolver."""

import ipaddress
import logging

from starlette.requests import HTTPConnection, Request
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Receive, Scope, Send
from starlette.websockets import WebSocketClose

from realip.networks import IPAddress
from realip.resolver import RealIpResolver

logger = logging.getLogger(__name__)

STATE_KEY = "real_ip"


def resolve_connection(resolver: RealIpResolver, conn: HTTPConnection) -> IPAddress | None:
    """Resolve the client address of an HTTP request or WebSocket connection."""
    if conn.client is None:
        return None
    try:
        peer = ipaddress.ip_address(conn.client.host)
    except ValueError:
        logger.debug("Peer host %r is not an IP address", conn.client.host)
        return None

    headers = conn.headers
    return resolver.resolve(
        peer,
        forwarded_for_values=headers.getlist("x-forwarded-for"),
        real_ip_value=headers.get("x-real-ip"),
        forwarded_values=headers.getlist("forwarded"),
    )


class RealIpMiddleware:
    """
    ASGI middleware storing the resolved client address on ``request.state``.

    Unresolved connections get ``None`` unless ``reject_unresolved`` is set,
    in which case HTTP requests are answered with 400 and WebSocket
    handshakes are closed with a policy violation.
    """

    def __init__(self, app: ASGIApp, resolver: RealIpResolver, reject_unresolved: bool = False):
        self.app = app
        self.resolver = resolver
        self.reject_unresolved = reject_unresolved

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        real_ip = resolve_connection(self.resolver, HTTPConnection(scope))
        scope.setdefault("state", {})[STATE_KEY] = real_ip

        if real_ip is None and self.reject_unresolved:
            logger.info("Rejecting %s %s: client address unresolved", scope["type"], scope["path"])
            if scope["type"] == "http":
                response = PlainTextResponse("Could not determine client address", status_code=400)
            else:
                response = WebSocketClose(code=1008)
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)


def get_real_ip(request: Request) -> IPAddress | None:
    """Dependency returning the address resolved by RealIpMiddleware."""
    try:
        return getattr(request.state, STATE_KEY)
    except AttributeError:
        raise RuntimeError("RealIpMiddleware is not installed") from None
