"""Domain entities for manifest resolution.

Pure value objects: no framework dependencies, no I/O.

Every pipeline stage returns one of a closed set of variants:
``TerminalResult`` (done, a manifest URL was found), ``StageInput`` (feed the
next stage), ``ExtractedFile`` (raw player ``file`` value for placeholder
expansion) or ``StageError`` (resolution aborted).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union


class MediaKind(str, enum.Enum):
    """Content type as accepted on the ``type`` query parameter."""

    MOVIE = "movie"
    TV = "tv"


class ResolutionErrorKind(enum.Enum):
    """Terminal failure modes, each mapped to exactly one HTTP status."""

    MISSING_PARAMETER = "missing_parameter"
    NO_EMBED_FOUND = "no_embed_found"
    IFRAME_NOT_FOUND = "iframe_not_found"
    REDIRECT_FETCH_FAILED = "redirect_fetch_failed"
    PROTECTION_DETECTED = "protection_detected"
    PATH_NOT_FOUND = "path_not_found"
    ENDPOINT_FETCH_FAILED = "endpoint_fetch_failed"
    FILE_FIELD_NOT_FOUND = "file_field_not_found"
    NO_RESOLVED_URLS = "no_resolved_urls"

    @property
    def http_status(self) -> int:
        if self is ResolutionErrorKind.MISSING_PARAMETER:
            return 400
        if self is ResolutionErrorKind.PROTECTION_DETECTED:
            return 503
        return 502


@dataclass(frozen=True)
class ResolutionRequest:
    """A single resolution call.

    ``season``/``episode`` only take effect when both are set and
    ``kind`` is ``tv``; otherwise the movie page is requested.
    """

    media_id: str
    kind: MediaKind = MediaKind.MOVIE
    season: int | None = None
    episode: int | None = None

    @property
    def is_episode(self) -> bool:
        return (
            self.kind is MediaKind.TV
            and self.season is not None
            and self.episode is not None
        )


@dataclass(frozen=True)
class FetchOutcome:
    """Completed HTTP exchange (any status code)."""

    ok: bool  # True for 2xx
    status: int
    body: str
    final_url: str


@dataclass(frozen=True)
class FetchError:
    """Transport-level failure (timeout, DNS, connection reset, ...)."""

    url: str
    reason: str


@dataclass(frozen=True)
class StageInput:
    """Input for the next stage: HTML or a URL, plus the referer to send."""

    payload: str
    referer: str | None = None


@dataclass(frozen=True)
class TerminalResult:
    """A manifest URL found before the end of the chain."""

    url: str
    source: str | None = None  # embed URL the chain started from


@dataclass(frozen=True)
class ExtractedFile:
    """Raw player ``file:`` value, possibly ``" or "``-joined templates."""

    raw: str


@dataclass(frozen=True)
class StageError:
    kind: ResolutionErrorKind
    message: str


StageOutcome = Union[TerminalResult, StageInput, ExtractedFile, StageError]


@dataclass(frozen=True)
class ResolvedStream:
    """Final pipeline output.

    ``alternates`` keeps discovery order and always starts with ``primary``.
    """

    primary: str
    alternates: tuple[str, ...]
    source: str | None = None
