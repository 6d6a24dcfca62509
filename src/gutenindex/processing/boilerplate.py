"""Removal of distributor header and footer around the literary text."""

from __future__ import annotations

import re

_START_MARKER_RE = re.compile(r"\*\*\*\s*START OF.*?\*\*\*", re.IGNORECASE)
_END_MARKER_RE = re.compile(r"\*\*\*\s*END OF.*?\*\*\*", re.IGNORECASE)


def strip_boilerplate(text: str) -> str:
    """Keep only the text between the START and END markers, trimmed.

    A missing marker leaves that side of the text untouched. The END marker
    is only looked for after the START marker.
    """

    start_match = _START_MARKER_RE.search(text)
    if start_match is not None:
        text = text[start_match.end() :]

    end_match = _END_MARKER_RE.search(text)
    if end_match is not None:
        text = text[: end_match.start()]

    return text.strip()
