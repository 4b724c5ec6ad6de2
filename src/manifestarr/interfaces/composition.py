"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import structlog
from fastapi import FastAPI

from manifestarr.infrastructure.resolution import (
    HttpxPageFetcher,
    VidsrcResolver,
    build_http_client,
)
from manifestarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the shared HTTP client and resolver; close the client on shutdown."""
    state = cast(AppState, app.state)
    config = state.config

    state.http_client = build_http_client(timeout=config.http_timeout_seconds)
    fetcher = HttpxPageFetcher(
        state.http_client,
        user_agent=config.http_user_agent,
        default_timeout=config.http_timeout_seconds,
    )
    state.stream_resolver = VidsrcResolver(fetcher, config.resolver)

    log.info(
        "app_startup",
        environment=config.environment,
        embed_hosts=len(config.resolver.embed_hosts),
        redirect_domain=config.resolver.redirect_domain,
    )
    try:
        yield
    finally:
        await state.http_client.aclose()
        log.info("app_shutdown")
