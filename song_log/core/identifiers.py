from __future__ import annotations

import re
from urllib.parse import parse_qs, urlsplit


TRACK_QUERY_PARAM = "i"

_DIGITS_RE = re.compile(r"[0-9]+")
_TRAILING_ID_RE = re.compile(r"/([0-9]+)$")


def extract_track_id(url: str) -> str | None:
    """Return the numeric track id of a share URL, if it carries one.

    Album share links point at a single song with `?i=<id>`; song links end
    in `/<id>`. The query parameter wins when both are present.
    """
    try:
        parts = urlsplit(url.strip())
    except (AttributeError, ValueError):
        return None
    if not parts.scheme or not parts.netloc:
        return None

    for value in parse_qs(parts.query).get(TRACK_QUERY_PARAM, []):
        if _DIGITS_RE.fullmatch(value):
            return value

    m = _TRAILING_ID_RE.search(parts.path)
    return m.group(1) if m else None
