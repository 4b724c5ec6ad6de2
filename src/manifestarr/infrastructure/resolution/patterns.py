"""Regex patterns and first-match extraction for the resolution chain.

Pattern tuples are ordered by priority: ``find_first_match`` returns the
match of the earliest pattern that hits, not the longest or earliest
position in the text.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

# Full manifest URL, up to the first quote or whitespace.
MANIFEST_URL_RE = re.compile(r"""https?:[^"'\s]+\.m3u8[^"'\s]*""", re.IGNORECASE)

# Cheap validity marker used while probing embed mirrors.
MANIFEST_MARKER_RE = re.compile(r"\.m3u8")

# Extension every expanded candidate must still contain.
MANIFEST_EXTENSION = ".m3u8"

# Endpoint path on the redirect page, highest priority first.
ENDPOINT_PATH_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"""src:\s*["']/prorcp/([^"']+)["']""", re.IGNORECASE),
    re.compile(r"""src:\s*["']/srcrcp/([^"']+)["']""", re.IGNORECASE),
    re.compile(r"""["']/prorcp/([A-Za-z0-9+/=\-_]+)["']""", re.IGNORECASE),
    re.compile(r"""["']/srcrcp/([A-Za-z0-9+/=\-_]+)["']""", re.IGNORECASE),
)

# PlayerJS configuration field on the endpoint page.
FILE_FIELD_RE = re.compile(r"""file:\s*["']([^"']+)["']""", re.IGNORECASE)

# Separator between alternative URL templates inside the file field.
ALTERNATIVE_SEPARATOR_RE = re.compile(r"\s+or\s+", re.IGNORECASE)

# CDN placeholder token, e.g. {v1}.
PLACEHOLDER_RE = re.compile(r"\{v\d+\}")


def find_first_match(
    text: str, patterns: Iterable[re.Pattern[str]]
) -> re.Match[str] | None:
    """Return the match of the first pattern in *patterns* that matches *text*."""
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match
    return None


def rcp_iframe_pattern(redirect_host: str) -> re.Pattern[str]:
    """Build the iframe pattern for *redirect_host*.

    Group 1 is the full ``src`` value, group 2 the path after ``/rcp/``.
    """
    return re.compile(
        r"""<iframe[^>]*src=["']([^"']*"""
        + re.escape(redirect_host)
        + r"""/rcp/([^"']+))["']""",
        re.IGNORECASE,
    )
