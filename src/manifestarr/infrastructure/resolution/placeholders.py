"""Expansion of the player ``file`` value into concrete manifest URLs.

The endpoint page stores something like::

    https://tmstr.{v1}/pl/abc/master.m3u8 or https://{v2}/pl/abc/master.m3u8

Each alternative is tried with every CDN candidate substituted for the
``{vN}`` token; order is alternative-major, candidate-minor.
"""

from __future__ import annotations

from collections.abc import Sequence

from manifestarr.infrastructure.resolution.patterns import (
    ALTERNATIVE_SEPARATOR_RE,
    MANIFEST_EXTENSION,
    PLACEHOLDER_RE,
)


def split_alternatives(raw: str) -> list[str]:
    """Split *raw* on ``" or "`` (any case, any surrounding whitespace)."""
    return [part.strip() for part in ALTERNATIVE_SEPARATOR_RE.split(raw)]


def expand_placeholders(raw: str, cdn_candidates: Sequence[str]) -> list[str]:
    """Return every concrete manifest URL encoded in *raw*, in discovery order.

    Alternatives without a placeholder are kept as-is if they look like a
    manifest; substituted results are kept under the same condition.
    """
    resolved: list[str] = []
    for alternative in split_alternatives(raw):
        if PLACEHOLDER_RE.search(alternative):
            for domain in cdn_candidates:
                candidate = PLACEHOLDER_RE.sub(domain, alternative)
                if MANIFEST_EXTENSION in candidate:
                    resolved.append(candidate)
        elif MANIFEST_EXTENSION in alternative:
            resolved.append(alternative)
    return resolved
