"""The four extraction stages of the vidsrc chain.

    embed page ──► rcp iframe ──► /rcp/ page ──► /prorcp/ or /srcrcp/ page
    (mirror)       (locator)      (anti-bot,      (player "file" field)
                                   endpoint path)

Every stage returns a result value instead of raising: ``TerminalResult``
when a manifest URL is already known, ``StageInput``/``ExtractedFile`` to
continue, or ``StageError`` to abort. The pure ``*_page``/``locate_*``
helpers take canned HTML and can be tested without any HTTP.
"""

from __future__ import annotations

import enum

import structlog

from manifestarr.domain.entities.resolution import (
    ExtractedFile,
    FetchError,
    ResolutionErrorKind,
    ResolutionRequest,
    StageError,
    StageInput,
    TerminalResult,
)
from manifestarr.domain.ports.page_fetcher import PageFetcherPort
from manifestarr.infrastructure.resolution.host_prober import HostProber
from manifestarr.infrastructure.resolution.patterns import (
    ENDPOINT_PATH_PATTERNS,
    FILE_FIELD_RE,
    MANIFEST_URL_RE,
    find_first_match,
    rcp_iframe_pattern,
)
from manifestarr.infrastructure.resolution.protection import is_turnstile_protected

log = structlog.get_logger(__name__)


class EndpointKind(str, enum.Enum):
    PRORCP = "prorcp"
    SRCRCP = "srcrcp"


def find_direct_manifest(html: str) -> str | None:
    """Return the first absolute manifest URL in *html*, if any."""
    match = MANIFEST_URL_RE.search(html)
    return match.group(0) if match else None


# ---------------------------------------------------------------------------
# Stage 1: embed page
# ---------------------------------------------------------------------------


async def embed_stage(
    request: ResolutionRequest, prober: HostProber
) -> TerminalResult | StageInput | StageError:
    """Probe mirrors; short-circuit if the embed page already has a manifest.

    On success the next input carries the embed HTML and, as referer,
    the embed URL it came from.
    """
    probed = await prober.probe(request)
    if probed is None:
        return StageError(
            ResolutionErrorKind.NO_EMBED_FOUND, "No usable embed page found"
        )

    direct = find_direct_manifest(probed.html)
    if direct:
        log.info("embed_direct_manifest", url=direct, source=probed.embed_url)
        return TerminalResult(url=direct, source=probed.embed_url)

    return StageInput(payload=probed.html, referer=probed.embed_url)


# ---------------------------------------------------------------------------
# Stage 2: iframe locator
# ---------------------------------------------------------------------------


def locate_rcp_iframe(
    embed: StageInput, *, redirect_domain: str, redirect_host: str
) -> StageInput | StageError:
    """Find the redirect iframe and build the absolute /rcp/ page URL."""
    match = rcp_iframe_pattern(redirect_host).search(embed.payload)
    if not match:
        return StageError(
            ResolutionErrorKind.IFRAME_NOT_FOUND, "Could not find RCP iframe"
        )
    return StageInput(
        payload=f"{redirect_domain}/rcp/{match.group(2)}",
        referer=embed.referer,
    )


# ---------------------------------------------------------------------------
# Stage 3: redirect page
# ---------------------------------------------------------------------------


def inspect_redirect_page(
    html: str, *, redirect_domain: str
) -> StageInput | StageError:
    """Check for Turnstile, then extract the endpoint path by pattern priority.

    The protection check runs first: a protected page is rejected even if
    it also carries a usable path.
    """
    if is_turnstile_protected(html):
        return StageError(
            ResolutionErrorKind.PROTECTION_DETECTED,
            "RCP page protected by Cloudflare Turnstile (no bypass configured)",
        )

    match = find_first_match(html, ENDPOINT_PATH_PATTERNS)
    if not match:
        return StageError(
            ResolutionErrorKind.PATH_NOT_FOUND, "Could not find prorcp/srcrcp path"
        )

    kind = (
        EndpointKind.PRORCP
        if EndpointKind.PRORCP.value in match.group(0).lower()
        else EndpointKind.SRCRCP
    )
    return StageInput(
        payload=f"{redirect_domain}/{kind.value}/{match.group(1)}",
        referer=f"{redirect_domain}/",
    )


async def redirect_stage(
    rcp: StageInput,
    fetcher: PageFetcherPort,
    *,
    redirect_domain: str,
    timeout: float,
) -> StageInput | StageError:
    """Fetch the /rcp/ page and hand its body to ``inspect_redirect_page``."""
    outcome = await fetcher.fetch(rcp.payload, referer=rcp.referer, timeout=timeout)
    if isinstance(outcome, FetchError):
        return StageError(
            ResolutionErrorKind.REDIRECT_FETCH_FAILED,
            f"RCP fetch failed: {outcome.reason}",
        )
    if not outcome.ok:
        return StageError(
            ResolutionErrorKind.REDIRECT_FETCH_FAILED,
            f"RCP fetch returned {outcome.status}",
        )
    return inspect_redirect_page(outcome.body, redirect_domain=redirect_domain)


# ---------------------------------------------------------------------------
# Stage 4: endpoint page
# ---------------------------------------------------------------------------


def extract_file_field(
    html: str, *, source: str | None = None
) -> ExtractedFile | TerminalResult | StageError:
    """Pull the player ``file:`` value, falling back to any bare manifest URL."""
    match = FILE_FIELD_RE.search(html)
    if match:
        return ExtractedFile(raw=match.group(1))

    direct = find_direct_manifest(html)
    if direct:
        return TerminalResult(url=direct, source=source)

    return StageError(
        ResolutionErrorKind.FILE_FIELD_NOT_FOUND,
        "Could not find file URL in endpoint",
    )


async def endpoint_stage(
    endpoint: StageInput,
    fetcher: PageFetcherPort,
    *,
    timeout: float,
    source: str | None = None,
) -> ExtractedFile | TerminalResult | StageError:
    """Fetch the /prorcp/ or /srcrcp/ page and extract the file field."""
    outcome = await fetcher.fetch(
        endpoint.payload, referer=endpoint.referer, timeout=timeout
    )
    if isinstance(outcome, FetchError):
        return StageError(
            ResolutionErrorKind.ENDPOINT_FETCH_FAILED,
            f"Endpoint fetch failed: {outcome.reason}",
        )
    if not outcome.ok:
        return StageError(
            ResolutionErrorKind.ENDPOINT_FETCH_FAILED,
            f"Endpoint fetch returned {outcome.status}",
        )
    return extract_file_field(outcome.body, source=source)
