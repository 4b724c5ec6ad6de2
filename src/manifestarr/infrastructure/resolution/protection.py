"""Anti-bot challenge detection for redirect pages.

The redirect pages are sometimes served behind Cloudflare Turnstile. A page
carrying the widget cannot be used without solving the challenge, which this
service never attempts.
"""

from __future__ import annotations

_TURNSTILE_MARKERS: tuple[str, ...] = (
    "cf-turnstile",
    "turnstile",
)


def is_turnstile_protected(html: str) -> bool:
    """Return *True* when *html* embeds a Turnstile challenge (case-insensitive).

    Unlike a JS challenge, Turnstile pages usually come back with status 200,
    so the status code is not consulted.
    """
    lowered = html.lower()
    return any(marker in lowered for marker in _TURNSTILE_MARKERS)
