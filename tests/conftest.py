"""Shared test fixtures for Manifestarr test suite."""

from __future__ import annotations

import pytest

from manifestarr.domain.entities.resolution import ResolutionRequest
from manifestarr.infrastructure.config.schema import ResolverConfig


@pytest.fixture()
def resolver_config() -> ResolverConfig:
    """Resolver config with stub mirrors and CDN candidates."""
    return ResolverConfig(
        embed_hosts=("https://mirror-a.example", "https://mirror-b.example"),
        redirect_domain="https://cloudnestra.com",
        cdn_candidates=("cdn1.example", "cdn2.example"),
        probe_timeout_seconds=10.0,
        stage_timeout_seconds=10.0,
    )


@pytest.fixture()
def movie_request() -> ResolutionRequest:
    return ResolutionRequest(media_id="550")
