from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from ipaddress import ip_address

import pytest
from fastapi import Depends, FastAPI, WebSocket
from httpx import ASGITransport, AsyncClient
from starlette.requests import Request

from realip.config import get_resolver, get_settings
from realip.middleware import RealIpMiddleware, get_real_ip
from realip.resolver import RealIpResolver

PROXY = "127.10.0.1"
INTERNAL_RANGE = "10.0.0.0/8"


def ip(value: str):
    """Shorthand for ipaddress.ip_address in assertions."""
    return ip_address(value)


def make_request(client=(PROXY, 1234), headers=()) -> Request:
    """Build a bare Starlette request from raw header pairs."""
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers],
        "client": client,
    }
    return Request(scope)


@pytest.fixture
def resolver() -> RealIpResolver:
    """Resolver trusting a single proxy and an internal range."""
    return RealIpResolver([PROXY, INTERNAL_RANGE, "2001:db8:cafe::/48"])


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings and resolver are cached per process; reset them around each test."""
    get_settings.cache_clear()
    get_resolver.cache_clear()
    yield
    get_settings.cache_clear()
    get_resolver.cache_clear()


def create_app(resolver: RealIpResolver, reject_unresolved: bool = False) -> FastAPI:
    """Build a FastAPI app echoing the resolved client address."""
    app = FastAPI()
    app.add_middleware(RealIpMiddleware, resolver=resolver, reject_unresolved=reject_unresolved)

    @app.get("/whoami")
    async def whoami(real_ip=Depends(get_real_ip)):
        return {"ip": str(real_ip) if real_ip is not None else None}

    @app.websocket("/ws")
    async def ws(websocket: WebSocket):
        await websocket.accept()
        real_ip = websocket.state.real_ip
        await websocket.send_json({"ip": str(real_ip) if real_ip is not None else None})
        await websocket.close()

    return app


@pytest.fixture
def app(resolver) -> FastAPI:
    return create_app(resolver)


@pytest.fixture
def make_client(app) -> Callable:
    """Return a factory for clients connecting from a given peer address."""

    @asynccontextmanager
    async def _make(peer: str = PROXY, target=None) -> AsyncGenerator[AsyncClient, None]:
        transport = ASGITransport(app=target or app, client=(peer, 51234))
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac

    return _make
