"""Vidsrc resolution endpoint (JSON envelope + CORS header)."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from manifestarr.domain.entities.resolution import (
    MediaKind,
    ResolutionErrorKind,
    ResolutionRequest,
    StageError,
)
from manifestarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["vidsrc"])

_CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}


def _json(payload: dict[str, Any], *, status_code: int) -> JSONResponse:
    body = {k: v for k, v in payload.items() if v is not None}
    return JSONResponse(content=body, status_code=status_code, headers=_CORS_HEADERS)


def _parse_int(value: str | None) -> int | None:
    """Parse a season/episode value; anything non-numeric counts as absent."""
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _build_request(
    tmdb_id: str, media_type: str, season: str | None, episode: str | None
) -> ResolutionRequest:
    is_tv = media_type.strip().lower() == MediaKind.TV.value
    kind = MediaKind.TV if is_tv else MediaKind.MOVIE
    return ResolutionRequest(
        media_id=tmdb_id.strip(),
        kind=kind,
        season=_parse_int(season),
        episode=_parse_int(episode),
    )


@router.get("/vidsrc")
async def resolve_vidsrc(
    request: Request,
    tmdb_id: str | None = Query(default=None, alias="tmdbId"),
    media_type: str = Query(default="movie", alias="type"),
    season: str | None = Query(default=None),
    episode: str | None = Query(default=None),
) -> JSONResponse:
    """Resolve a TMDB id (and optional season/episode) to an HLS manifest URL.

    Season and episode are parsed as integers before they reach the embed
    path, so ``season=01`` becomes ``/1/``. A value that is not an integer
    counts as absent and the movie path is used; the service this replaces
    copied the raw strings into an episode path instead.

    Status codes: 400 missing tmdbId, 502 any stage failure, 503 Turnstile
    protection, 500 unexpected error (message passed through as-is).
    """
    if not tmdb_id or not tmdb_id.strip():
        return _json(
            {"success": False, "error": "Missing tmdbId"},
            status_code=ResolutionErrorKind.MISSING_PARAMETER.http_status,
        )

    state = cast(AppState, request.app.state)
    resolution_request = _build_request(tmdb_id, media_type, season, episode)

    try:
        result = await state.stream_resolver.resolve(resolution_request)
    except Exception as exc:
        log.exception(
            "vidsrc_unhandled_error",
            media_id=resolution_request.media_id,
        )
        return _json(
            {"success": False, "error": str(exc) or type(exc).__name__},
            status_code=500,
        )

    if isinstance(result, StageError):
        return _json(
            {"success": False, "error": result.message},
            status_code=result.kind.http_status,
        )

    return _json(
        {
            "success": True,
            "url": result.primary,
            "all": list(result.alternates),
            "source": result.source,
        },
        status_code=200,
    )
