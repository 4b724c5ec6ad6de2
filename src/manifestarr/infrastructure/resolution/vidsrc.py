"""VidSrc resolver: media id -> playable HLS manifest URL.

Chain (one attempt per stage, mirror fallback only in stage 1):
  1. {mirror}/embed/movie/{id} or /embed/tv/{id}/{s}/{e}  (first usable mirror)
  2. <iframe src=".../rcp/{hash}">                          -> {redirect}/rcp/{hash}
  3. /rcp/ page, Turnstile check, src: '/prorcp/{path}'     -> {redirect}/prorcp/{path}
  4. /prorcp/ page, file: "https://tmstr.{v1}/...m3u8 or ..."
  5. {vN} replaced by each CDN candidate                    -> ranked manifest URLs

The resolver keeps no per-request state: two concurrent calls for the same
id run the whole chain independently.
"""

from __future__ import annotations

import structlog

from manifestarr.domain.entities.resolution import (
    ExtractedFile,
    ResolutionErrorKind,
    ResolutionRequest,
    ResolvedStream,
    StageError,
    StageInput,
    TerminalResult,
)
from manifestarr.domain.ports.page_fetcher import PageFetcherPort
from manifestarr.infrastructure.config.schema import ResolverConfig
from manifestarr.infrastructure.resolution.host_prober import HostProber
from manifestarr.infrastructure.resolution.placeholders import expand_placeholders
from manifestarr.infrastructure.resolution.stages import (
    embed_stage,
    endpoint_stage,
    locate_rcp_iframe,
    redirect_stage,
)

log = structlog.get_logger(__name__)


def _terminal(result: TerminalResult) -> ResolvedStream:
    return ResolvedStream(
        primary=result.url, alternates=(result.url,), source=result.source
    )


class VidsrcResolver:
    """Runs the vidsrc stage chain with a fixed, immutable configuration."""

    def __init__(self, fetcher: PageFetcherPort, config: ResolverConfig) -> None:
        self._fetcher = fetcher
        self._config = config
        self._prober = HostProber(
            fetcher,
            config.embed_hosts,
            redirect_host=config.redirect_host,
            timeout=config.probe_timeout_seconds,
        )

    @property
    def name(self) -> str:
        return "vidsrc"

    async def resolve(self, request: ResolutionRequest) -> ResolvedStream | StageError:
        """Resolve *request*; the first error or manifest URL ends the chain."""
        bound = log.bind(media_id=request.media_id, kind=request.kind.value)
        cfg = self._config

        embed = await embed_stage(request, self._prober)
        if not isinstance(embed, StageInput):
            return self._finish(embed, bound)
        source = embed.referer

        rcp = locate_rcp_iframe(
            embed,
            redirect_domain=cfg.redirect_domain,
            redirect_host=cfg.redirect_host,
        )
        if isinstance(rcp, StageError):
            return self._finish(rcp, bound)
        bound.debug("vidsrc_rcp_located", rcp_url=rcp.payload)

        endpoint = await redirect_stage(
            rcp,
            self._fetcher,
            redirect_domain=cfg.redirect_domain,
            timeout=cfg.stage_timeout_seconds,
        )
        if isinstance(endpoint, StageError):
            return self._finish(endpoint, bound)
        bound.debug("vidsrc_endpoint_located", endpoint_url=endpoint.payload)

        extracted = await endpoint_stage(
            endpoint,
            self._fetcher,
            timeout=cfg.stage_timeout_seconds,
            source=source,
        )
        if not isinstance(extracted, ExtractedFile):
            return self._finish(extracted, bound)

        urls = expand_placeholders(extracted.raw, cfg.cdn_candidates)
        if not urls:
            return self._finish(
                StageError(
                    ResolutionErrorKind.NO_RESOLVED_URLS,
                    "No resolved .m3u8 URLs found",
                ),
                bound,
            )
        return self._finish(
            ResolvedStream(primary=urls[0], alternates=tuple(urls), source=source),
            bound,
        )

    @staticmethod
    def _finish(
        result: TerminalResult | ResolvedStream | StageError,
        bound: structlog.stdlib.BoundLogger,
    ) -> ResolvedStream | StageError:
        if isinstance(result, StageError):
            bound.warning(
                "vidsrc_resolution_failed",
                error_kind=result.kind.value,
                error=result.message,
            )
            return result
        stream = _terminal(result) if isinstance(result, TerminalResult) else result
        bound.info(
            "vidsrc_resolved",
            url=stream.primary,
            alternates=len(stream.alternates),
            source=stream.source,
        )
        return stream
