"""Sequential embed-mirror probing.

Mirrors are tried one at a time in configured order. The first one that
answers 2xx with a body that points at the redirect domain (or already
contains a manifest) is used for the rest of the chain. Failures here are
never surfaced individually: a dead, blocked or empty mirror just means
"try the next one".
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from manifestarr.domain.entities.resolution import FetchError, ResolutionRequest
from manifestarr.domain.ports.page_fetcher import PageFetcherPort
from manifestarr.infrastructure.resolution.patterns import MANIFEST_MARKER_RE

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ProbedEmbed:
    """Accepted embed page and the URL it was fetched from."""

    html: str
    embed_url: str


def build_embed_url(host: str, request: ResolutionRequest) -> str:
    """Build the mirror page URL for *request*.

    Falls back to the movie path whenever season or episode is missing,
    even for ``tv`` requests.
    """
    if request.is_episode:
        return (
            f"{host}/embed/tv/{request.media_id}/{request.season}/{request.episode}"
        )
    return f"{host}/embed/movie/{request.media_id}"


def is_usable_embed(html: str, redirect_host: str) -> bool:
    """Cheap validity check: redirect-domain marker or any manifest marker."""
    return redirect_host in html or MANIFEST_MARKER_RE.search(html) is not None


class HostProber:
    """Finds the first usable embed mirror for a request.

    Args:
        fetcher: Page fetcher used for every mirror request.
        hosts: Mirror base URLs, highest priority first.
        redirect_host: Hostname whose presence marks a usable page.
        timeout: Per-mirror timeout in seconds.
    """

    def __init__(
        self,
        fetcher: PageFetcherPort,
        hosts: Sequence[str],
        *,
        redirect_host: str,
        timeout: float = 10.0,
    ) -> None:
        self._fetcher = fetcher
        self._hosts = tuple(hosts)
        self._redirect_host = redirect_host
        self._timeout = timeout

    async def probe(self, request: ResolutionRequest) -> ProbedEmbed | None:
        """Return the first accepted mirror page, or None if all fail."""
        for host in self._hosts:
            embed_url = build_embed_url(host, request)
            outcome = await self._fetcher.fetch(
                embed_url, referer=host, timeout=self._timeout
            )

            if isinstance(outcome, FetchError):
                log.info("embed_host_unreachable", host=host, reason=outcome.reason)
                continue
            if not outcome.ok:
                log.info("embed_host_http_error", host=host, status=outcome.status)
                continue
            if not is_usable_embed(outcome.body, self._redirect_host):
                log.info("embed_host_rejected", host=host, url=embed_url)
                continue

            log.debug("embed_host_accepted", host=host, url=embed_url)
            return ProbedEmbed(html=outcome.body, embed_url=embed_url)

        log.warning(
            "embed_hosts_exhausted",
            media_id=request.media_id,
            hosts=len(self._hosts),
        )
        return None
