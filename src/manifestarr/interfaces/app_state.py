"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

import httpx
from starlette.datastructures import State

from manifestarr.domain.ports.stream_resolver import StreamResolverPort
from manifestarr.infrastructure.config import AppConfig


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure (connection pool only; nothing request-specific is kept)
    http_client: httpx.AsyncClient

    # Resolution pipeline
    stream_resolver: StreamResolverPort
