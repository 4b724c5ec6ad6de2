"""Vidsrc manifest resolution pipeline."""

from __future__ import annotations

from .fetcher import HttpxPageFetcher, build_http_client
from .host_prober import HostProber
from .vidsrc import VidsrcResolver

__all__ = [
    "HostProber",
    "HttpxPageFetcher",
    "VidsrcResolver",
    "build_http_client",
]
