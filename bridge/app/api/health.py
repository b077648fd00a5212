"""Health check route."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from bridge.app.api.routing import add_any_method_route
from bridge.app.core.clock import utc_timestamp


async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "timestamp": utc_timestamp()})


def create_health_router(path: str = "/health") -> APIRouter:
    """Router answering the health path for every method.

    The health check never touches the backend and is exempt from rate
    limiting.
    """
    router = APIRouter(tags=["health"])
    add_any_method_route(router, path, health, name="health")
    return router
