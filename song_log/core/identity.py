from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Protocol

from .text import collapse_whitespace


PLACEHOLDER_TITLE = "（取得できませんでした）"


class DuplicateStatus(str, Enum):
    NEW = "new"
    DUPLICATE = "duplicate"
    UNCERTAIN = "uncertain"


class Identified(Protocol):
    @property
    def track_id(self) -> str | None: ...
    @property
    def title(self) -> str | None: ...
    @property
    def artist(self) -> str | None: ...


@dataclass(frozen=True)
class KnownEntry:
    track_id: str | None = None
    title: str | None = None
    artist: str | None = None


def identity_key(artist: str | None, title: str | None) -> str:
    """Lower-cased, whitespace-collapsed `(artist, title)` used for text matching."""
    a = collapse_whitespace(artist or "").lower()
    t = collapse_whitespace(title or "").lower()
    # Neither half can contain a newline once whitespace is collapsed.
    return a + "\n" + t


def _is_unreliable(title: str | None, artist: str | None) -> bool:
    t = collapse_whitespace(title or "")
    a = collapse_whitespace(artist or "")
    return not a and (not t or t == PLACEHOLDER_TITLE)


def check_duplicate(candidate: Identified, known: Iterable[Identified]) -> DuplicateStatus:
    """Decide whether `candidate` is already in `known`.

    A track id is conclusive: with one, only track ids are compared. Without
    one, songs match on `identity_key`. A song with no artist and no usable
    title can't be matched reliably and comes back `UNCERTAIN`.
    """
    track_id = candidate.track_id
    if track_id:
        if any(entry.track_id == track_id for entry in known):
            return DuplicateStatus.DUPLICATE
        return DuplicateStatus.NEW

    if _is_unreliable(candidate.title, candidate.artist):
        return DuplicateStatus.UNCERTAIN

    key = identity_key(candidate.artist, candidate.title)
    if any(identity_key(entry.artist, entry.title) == key for entry in known):
        return DuplicateStatus.DUPLICATE
    return DuplicateStatus.NEW
