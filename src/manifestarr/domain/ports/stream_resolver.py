"""Port for resolving a media id to a playable manifest URL."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from manifestarr.domain.entities.resolution import (
    ResolutionRequest,
    ResolvedStream,
    StageError,
)


@runtime_checkable
class StreamResolverPort(Protocol):
    """Resolves a media request through a chain of embed/redirect pages.

    Implementations handle site-specific extraction logic (host fallback,
    iframe lookup, inline script fields, placeholder CDN domains).
    """

    @property
    def name(self) -> str:
        """Short resolver name used in logs (e.g. 'vidsrc')."""
        ...

    async def resolve(self, request: ResolutionRequest) -> ResolvedStream | StageError:
        """Resolve *request* to a manifest URL.

        Returns a ``StageError`` describing the first stage that failed.
        """
        ...
