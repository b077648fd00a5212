from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bridge.app.api.health import create_health_router
from bridge.app.api.proxy import router as proxy_router
from bridge.app.core.clock import Clock
from bridge.app.core.config import Settings, settings as default_settings
from bridge.app.core.http_client import init_http_client
from bridge.app.core.logging import get_log_context, get_logger, setup_logging
from bridge.app.exceptions import ForwardError
from bridge.app.middleware.cors import CorsMiddleware
from bridge.app.middleware.rate_limit import (
    FixedWindowRateLimiter,
    InMemoryRateLimitStore,
    RateLimitMiddleware,
)
from bridge.app.middleware.rate_limit.sweeper import RateLimitSweeper
from bridge.app.middleware.request_id import RequestIdMiddleware, get_request_id
from bridge.app.services.cors_policy import compute_cors_headers
from bridge.app.services.forwarder import UpstreamForwarder


def create_app(config: Optional[Settings] = None, clock: Optional[Clock] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Settings to use (defaults to the environment-loaded settings)
        clock: Time source for the rate limiter (defaults to the system clock)

    Returns:
        Configured FastAPI application instance
    """
    config = config or default_settings

    # Setup logging
    setup_logging()
    logger = get_logger(__name__)

    # One limiter per process, shared by the middleware and the sweeper
    limiter = FixedWindowRateLimiter(
        store=InMemoryRateLimitStore(max_entries=config.rate_limit_max_entries),
        clock=clock,
        window_seconds=config.rate_limit_window_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan context manager.

        Creates the shared HTTP client and forwarder and runs the rate limit
        sweeper; tears both down on shutdown.
        """
        async with init_http_client(config) as http_client:
            app.state.forwarder = UpstreamForwarder(
                http_client,
                base_url=config.backend_base_url,
                anon_key=config.backend_anon_key,
                strip_prefix=config.proxy_strip_prefix,
            )

            sweeper = RateLimitSweeper(limiter, config.rate_limit_sweep_interval_seconds)
            await sweeper.start()

            if not config.backend_base_url:
                logger.warning("BACKEND_BASE_URL is not set; proxied requests will fail")

            logger.info(
                "Application startup complete",
                extra={
                    "rate_limit_per_min": config.rate_limit_per_min,
                    "allowed_origins": config.allowed_origins,
                    "debug_mode": config.debug,
                }
            )

            try:
                yield
            finally:
                await sweeper.stop()

        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Bridge Proxy",
        description="Rate-limited reverse proxy with credential injection and CORS for a backend data API",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.rate_limiter = limiter

    # Add middleware (order matters: last added = first executed)
    # Rate limit middleware (innermost - only proxied requests reach the limiter)
    app.add_middleware(
        RateLimitMiddleware,
        limiter=limiter,
        limit=config.rate_limit_per_min,
        identity_header=config.client_ip_header,
        exempt_paths=(config.health_path,),
    )

    # Request ID middleware for tracing and access logs
    app.add_middleware(RequestIdMiddleware)

    # CORS middleware (outermost - answers preflight and stamps every response)
    app.add_middleware(CorsMiddleware, allowed_origins=config.allowed_origins)

    # Health first so the catch-all proxy route never shadows it
    app.include_router(create_health_router(config.health_path))
    app.include_router(proxy_router)

    @app.exception_handler(ForwardError)
    async def forward_error_handler(request: Request, exc: ForwardError) -> JSONResponse:
        """Handle ForwardError and return HTTP 500 response."""
        logger.error(
            f"Proxy error: {exc.message}",
            extra=get_log_context(
                request_id=get_request_id(request),
                client_id=getattr(request.state, "client_id", None),
                method=request.method,
                path=request.url.path,
                error_kind=exc.kind,
            ),
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled exceptions.

        Runs outside the middleware stack, so CORS headers are computed here.
        Never returns a traceback to the client.
        """
        request_id = get_request_id(request)
        logger.exception(
            f"Unhandled exception [request_id={request_id}]",
            extra=get_log_context(
                request_id=request_id,
                exception_type=type(exc).__name__,
            ),
        )

        content = {"error": "Proxy error", "message": "Internal server error"}
        if config.debug:
            content["message"] = str(exc) or type(exc).__name__
            content["exception_type"] = type(exc).__name__

        return JSONResponse(
            status_code=500,
            content=content,
            headers=compute_cors_headers(request.headers.get("origin"), config.allowed_origins),
        )

    return app


# Create the application instance
app = create_app()
