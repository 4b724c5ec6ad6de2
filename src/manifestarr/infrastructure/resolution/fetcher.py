"""httpx-backed page fetcher with browser-like headers.

One GET per call, redirects followed, hard per-call timeout. Transport
failures are returned as ``FetchError`` values so that callers decide
whether a failure is fatal (later stages) or just means "try the next
mirror" (host probing).
"""

from __future__ import annotations

import http.cookiejar

import httpx
import structlog

from manifestarr.domain.entities.resolution import FetchError, FetchOutcome

log = structlog.get_logger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)
_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


def build_http_client(*, timeout: float) -> httpx.AsyncClient:
    """Create the client shared by all resolutions.

    The cookie jar refuses every cookie, so nothing a page sets (e.g.
    ``cf_clearance``) is sent on a later request.
    """
    jar = http.cookiejar.CookieJar(
        policy=http.cookiejar.DefaultCookiePolicy(allowed_domains=[])
    )
    return httpx.AsyncClient(timeout=timeout, follow_redirects=True, cookies=jar)


class HttpxPageFetcher:
    """Implements ``PageFetcherPort`` on top of a shared ``httpx.AsyncClient``.

    Args:
        http_client: Client owned by the caller (created in the app lifespan).
        user_agent: Browser User-Agent sent with every request.
        default_timeout: Timeout in seconds when the caller passes none.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        default_timeout: float = 15.0,
    ) -> None:
        self._http = http_client
        self._headers = {"User-Agent": user_agent, "Accept": _ACCEPT}
        self._default_timeout = default_timeout

    async def fetch(
        self,
        url: str,
        *,
        referer: str | None = None,
        timeout: float | None = None,
    ) -> FetchOutcome | FetchError:
        headers = dict(self._headers)
        if referer:
            headers["Referer"] = referer

        try:
            resp = await self._http.get(
                url,
                headers=headers,
                follow_redirects=True,
                timeout=timeout if timeout is not None else self._default_timeout,
            )
        except httpx.TimeoutException as exc:
            log.debug("fetch_timeout", url=url)
            return FetchError(url=url, reason=f"timeout ({type(exc).__name__})")
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            log.debug("fetch_failed", url=url, error=str(exc))
            return FetchError(url=url, reason=str(exc) or type(exc).__name__)

        return FetchOutcome(
            ok=resp.is_success,
            status=resp.status_code,
            body=resp.text,
            final_url=str(resp.url),
        )
