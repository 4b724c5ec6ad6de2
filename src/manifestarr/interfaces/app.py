"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from starlette.responses import Response

from manifestarr.infrastructure.config import AppConfig
from manifestarr.interfaces.app_state import AppState
from manifestarr.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create the FastAPI app: configuration only, no resource initialization.

    Resources (HTTP client, resolver) are created in lifespan().
    """
    app = FastAPI(
        title="Manifestarr",
        description="Resolves TMDB ids to HLS manifest URLs via vidsrc mirrors",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from manifestarr.interfaces.api.vidsrc import router as vidsrc_router

    app.include_router(vidsrc_router, prefix="/api")

    @app.get("/api/healthz")
    async def healthz() -> dict[str, str | int]:
        """Liveness probe: returns 200 as long as the process is running."""
        return {
            "status": "ok",
            "embed_hosts": len(app.state.config.resolver.embed_hosts),
        }

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                query=str(request.url.query),
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
