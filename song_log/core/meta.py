"""
Best-effort `<meta>` lookup over raw page text.

Share pages are not a contracted format, so this is plain pattern matching
over the document rather than markup parsing: it walks each `<meta>` tag's
attributes and returns the `content` of the first tag whose `property` or
`name` equals the key, whichever order the attributes appear in and
whichever quote style is used.
"""

from __future__ import annotations

import re
from typing import Iterable, Iterator


_META_OPEN_RE = re.compile(r"<meta\b", re.IGNORECASE)
# One attribute, quoted values may hold newlines and ">".
_ATTR_RE = re.compile(
    r"""\s*([^\s=/>"']+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s>"']+)))?"""
)


def iter_meta_tags(html: str) -> Iterator[dict[str, str]]:
    """Yield the attributes of each `<meta>` tag, names lower-cased."""
    for m in _META_OPEN_RE.finditer(html):
        attrs: dict[str, str] = {}
        pos = m.end()
        while True:
            a = _ATTR_RE.match(html, pos)
            if not a or a.end() == pos:
                break
            value = next((g for g in a.group(2, 3, 4) if g is not None), "")
            attrs.setdefault(a.group(1).lower(), value)
            pos = a.end()
        yield attrs


def pick_meta(html: str, key: str) -> str | None:
    wanted = key.lower()
    for attrs in iter_meta_tags(html):
        if "content" not in attrs:
            continue
        if wanted in (attrs.get("property", "").lower(), attrs.get("name", "").lower()):
            return attrs["content"].strip()
    return None


def pick_first_meta(html: str, keys: Iterable[str]) -> str | None:
    """Return the first non-empty value among `keys`, tried in order."""
    for key in keys:
        value = pick_meta(html, key)
        if value:
            return value
    return None
