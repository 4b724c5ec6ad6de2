"""Port for single-shot page fetches."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from manifestarr.domain.entities.resolution import FetchError, FetchOutcome


@runtime_checkable
class PageFetcherPort(Protocol):
    """Performs one bounded GET with browser-like headers.

    Implementations never raise on timeouts or transport failures; they
    return a ``FetchError`` instead. Non-2xx responses are returned as a
    regular ``FetchOutcome`` with ``ok=False``.
    """

    async def fetch(
        self,
        url: str,
        *,
        referer: str | None = None,
        timeout: float | None = None,
    ) -> FetchOutcome | FetchError:
        """Fetch *url*, sending *referer* when given."""
        ...
