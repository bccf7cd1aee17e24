"""Outer ```markdown fence unwrapping.

Some models wrap an entire reply in a ```markdown (or ```md) fence, which a
markdown renderer then shows as a code block full of raw `**` and `|`
markers. Only a fence around the *whole* message is removed.
"""

from __future__ import annotations

import re

_OUTER_FENCE_RE = re.compile(
    r"^```\s*(?:markdown|md)\s*\r?\n([\s\S]*?)\r?\n```\s*$",
    re.IGNORECASE,
)


def unwrap_outer_fence(text: str) -> str:
    """Return the fenced body if the entire trimmed *text* is one markdown fence.

    Anything else (inner fences, several fences, other languages) comes back
    unchanged.
    """
    match = _OUTER_FENCE_RE.match(text.strip())
    if match is None:
        return text
    return match.group(1)
