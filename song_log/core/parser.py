from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Callable

from .text import clean_text, tidy_text


_OPEN_QUOTES = "「『｢“\""
_CLOSE_QUOTES = "」』｣”\""
# 例: ODD Foot Worksの「時をBABE」 (the closing bracket may already be trimmed)
_POSSESSIVE_QUOTE_RE = re.compile(
    rf"^(.+?)の[{_OPEN_QUOTES}](.+?)[{_CLOSE_QUOTES}]?$", re.DOTALL
)
_POSSESSIVE_RE = re.compile(r"^(.+?)の(.+)$", re.DOTALL)
_SPLIT_RE = re.compile(r"\s+[–—-]\s+")
_DESCRIPTION_SEPARATOR = "·"


@dataclass(frozen=True)
class SplitResult:
    title: str
    artist: str | None
    strategy: str


Candidate = tuple[str, str]


@dataclass(frozen=True)
class SplitStrategy:
    name: str
    apply: Callable[[str], Candidate | None]


def _possessive_quote(text: str) -> Candidate | None:
    m = _POSSESSIVE_QUOTE_RE.match(text)
    if not m:
        return None
    return m.group(2), m.group(1)


def _possessive(text: str) -> Candidate | None:
    # Splits at the first "の"; "AのBのC" yields artist "A", title "BのC".
    m = _POSSESSIVE_RE.match(text)
    if not m:
        return None
    return m.group(2), m.group(1)


def _dash_separated(text: str) -> Candidate | None:
    parts = _SPLIT_RE.split(text)
    if len(parts) < 2:
        return None
    return parts[0], " - ".join(parts[1:])


SPLIT_STRATEGIES: tuple[SplitStrategy, ...] = (
    SplitStrategy("possessive_quote", _possessive_quote),
    SplitStrategy("possessive", _possessive),
    SplitStrategy("dash", _dash_separated),
)


def split_title_artist(
    text: str,
    strategies: tuple[SplitStrategy, ...] = SPLIT_STRATEGIES,
) -> SplitResult:
    """Split a page title into `(title, artist)` using the first strategy that fits.

    A strategy only counts when both halves survive cleanup; if none does,
    the whole text becomes the title and the artist is `None`.
    """
    cleaned = clean_text(text)
    for strategy in strategies:
        candidate = strategy.apply(cleaned)
        if candidate is None:
            continue
        title, artist = (tidy_text(part) for part in candidate)
        if title and artist:
            return SplitResult(title=title, artist=artist, strategy=strategy.name)
    return SplitResult(title=cleaned, artist=None, strategy="unsplit")


def artist_from_description(description: str | None) -> str | None:
    """Take the last "·"-separated segment of a page description as the artist."""
    segments = [
        seg.strip()
        for seg in clean_text(description).split(_DESCRIPTION_SEPARATOR)
    ]
    segments = [seg for seg in segments if seg]
    if len(segments) < 2:
        return None
    return tidy_text(segments[-1]) or None
