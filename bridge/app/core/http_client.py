"""Outbound HTTP client for talking to the backend.

One ``httpx.AsyncClient`` is created per running application in the
FastAPI lifespan and shared by every forwarded request for connection
reuse.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx

from bridge.app.core.config import Settings


def build_timeout(config: Settings) -> httpx.Timeout:
    # - connect: Time to establish socket connection
    # - read: Time between response bytes
    # - write: Time to send request data
    # - pool: Time to acquire connection from pool
    return httpx.Timeout(
        connect=config.httpx_connect_timeout,
        read=config.httpx_read_timeout,
        write=config.httpx_write_timeout,
        pool=config.httpx_pool_timeout,
    )


def build_limits(config: Settings) -> httpx.Limits:
    return httpx.Limits(
        max_connections=config.httpx_max_connections,
        max_keepalive_connections=config.httpx_max_keepalive_connections,
        keepalive_expiry=config.httpx_keepalive_expiry,
    )


@asynccontextmanager
async def init_http_client(config: Settings) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Create the shared HTTP client and close it on exit.

    This context manager should be used in the FastAPI lifespan:

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            async with init_http_client(settings) as client:
                yield
    """
    # Redirects are relayed to the caller rather than followed here.
    client = httpx.AsyncClient(
        timeout=build_timeout(config),
        limits=build_limits(config),
        follow_redirects=False,
    )
    try:
        yield client
    finally:
        await client.aclose()
