from __future__ import annotations

import re


_ENTITIES = {
    "&amp;": "&",
    "&quot;": '"',
    "&apos;": "'",
    "&#39;": "'",
    "&lt;": "<",
    "&gt;": ">",
}
_ENTITY_NAMES = "amp|quot|apos|#39|lt|gt"
# One pass. An "&amp;" that would only turn into another escape ("&amp;lt;")
# is left as is, so decoding twice never changes the result.
_ENTITY_RE = re.compile(rf"&amp;(?!(?:{_ENTITY_NAMES});)|&(?:quot|apos|#39|lt|gt);")

# Storefront suffixes such as "…をApple Musicで聴く" or "… - Apple Music".
_BOILERPLATE_RES = (
    re.compile(r"を\s*Apple\s+Musicで.*$", re.IGNORECASE | re.DOTALL),
    re.compile(r"\s*[-–—]\s*Apple\s+Music.*$", re.IGNORECASE | re.DOTALL),
    re.compile(r"\s+on\s+Apple\s+Music.*$", re.IGNORECASE | re.DOTALL),
)

QUOTE_CHARS = "「」『』｢｣“”‘’\"'"
_EDGE_QUOTES_RE = re.compile(
    rf"^[\s{re.escape(QUOTE_CHARS)}]+|[\s{re.escape(QUOTE_CHARS)}]+$"
)
_BIDI_MARKS_RE = re.compile("[\u200e\u200f\u202a-\u202e]")
_WS_RE = re.compile(r"\s+")


def decode_entities(text: str) -> str:
    return _ENTITY_RE.sub(lambda m: _ENTITIES[m.group(0)], text)


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def tidy_text(text: str | None) -> str:
    """Strip page boilerplate, edge quotes and extra whitespace. Entities are left alone."""
    if not text:
        return ""

    cleaned = _BIDI_MARKS_RE.sub("", text).strip()
    for pattern in _BOILERPLATE_RES:
        cleaned = pattern.sub("", cleaned)
    cleaned = _EDGE_QUOTES_RE.sub("", cleaned)
    return collapse_whitespace(cleaned)


def clean_text(text: str | None) -> str:
    """Decode entities, then `tidy_text`. Re-applying to the output is a no-op."""
    if not text:
        return ""
    return tidy_text(decode_entities(_BIDI_MARKS_RE.sub("", text)))
