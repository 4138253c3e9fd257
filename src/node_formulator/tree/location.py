"""Split npm tree locations (``/a/node_modules/b``) into branch segments."""

from __future__ import annotations

import re

_SEGMENT_RE = re.compile(r"/([^/]+)")


def tokenize_location(location: str | None) -> list[str]:
    """Return the non-empty segments of ``location`` in order.

    ``"/a/node_modules/b"`` becomes ``["a", "node_modules", "b"]``; an empty
    location yields an empty branch.
    """
    if not location:
        return []
    return _SEGMENT_RE.findall(location)
