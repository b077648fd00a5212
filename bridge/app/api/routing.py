"""Routes that answer every HTTP method."""

from typing import Awaitable, Callable

from fastapi import APIRouter
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

Handler = Callable[[Request], Awaitable[Response]]


class AnyMethodEndpoint:
    """ASGI endpoint wrapping ``handler(request) -> Response``.

    Starlette gives function endpoints a GET-only default, while a class
    endpoint with no method list matches any method, extension methods
    included.
    """

    def __init__(self, handler: Handler):
        self.handler = handler

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        response = await self.handler(request)
        await response(scope, receive, send)


def add_any_method_route(router: APIRouter, path: str, handler: Handler, name: str) -> None:
    router.routes.append(
        Route(path, AnyMethodEndpoint(handler), name=name, include_in_schema=False)
    )
