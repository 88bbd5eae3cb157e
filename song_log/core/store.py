from __future__ import annotations

from dataclasses import asdict, dataclass, field
import json
import logging
from pathlib import Path
import re
import shutil
import time
from typing import Iterable
import uuid

from .errors import StoreError
from .identity import KnownEntry


logger = logging.getLogger(__name__)

MAX_TAGS = 10
_TAG_SPLIT_RE = re.compile(r"[、,]")


@dataclass(frozen=True)
class LogEntry:
    id: str
    title: str
    artist: str
    note: str = ""
    tags: tuple[str, ...] = field(default_factory=tuple)
    rating: int = 3
    created_at: int = 0
    source_url: str | None = None
    track_id: str | None = None

    def to_json(self) -> dict:
        data = asdict(self)
        data["tags"] = list(self.tags)
        return data

    @classmethod
    def from_json(cls, data: dict) -> "LogEntry":
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            artist=str(data.get("artist") or ""),
            note=str(data.get("note") or ""),
            tags=tuple(str(t) for t in data.get("tags") or ()),
            rating=clamp_rating(data.get("rating", 3)),
            created_at=int(data.get("created_at") or 0),
            source_url=data.get("source_url") or None,
            track_id=data.get("track_id") or None,
        )


def parse_tags(raw: str | None) -> tuple[str, ...]:
    tags = (t.strip() for t in _TAG_SPLIT_RE.split(raw or ""))
    return tuple(t for t in tags if t)[:MAX_TAGS]


def clamp_rating(value: object) -> int:
    try:
        rating = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 3
    return max(0, min(5, rating))


def new_entry(
    *,
    title: str,
    artist: str,
    note: str = "",
    tags: str = "",
    rating: object = 3,
    source_url: str | None = None,
    track_id: str | None = None,
) -> LogEntry:
    return LogEntry(
        id=uuid.uuid4().hex,
        title=title.strip(),
        artist=artist.strip(),
        note=note.strip(),
        tags=parse_tags(tags),
        rating=clamp_rating(rating),
        created_at=int(time.time() * 1000),
        source_url=source_url,
        track_id=track_id,
    )


def newest_first(entries: Iterable[LogEntry]) -> list[LogEntry]:
    return sorted(entries, key=lambda e: e.created_at, reverse=True)


def known_entries(entries: Iterable[LogEntry]) -> list[KnownEntry]:
    return [KnownEntry(track_id=e.track_id, title=e.title, artist=e.artist) for e in entries]


class JsonLogStore:
    """The song log as one JSON file. Call `load()` before use and `save()` after changes."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        # Set when the last load() dropped data; save() keeps a copy first.
        self.damaged = False

    @property
    def backup_path(self) -> Path:
        return self.path.with_suffix(self.path.suffix + ".bak")

    def load(self) -> list[LogEntry]:
        self.damaged = False
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            # A damaged log must not stop the app from starting.
            logger.warning("Ignoring unreadable log file %s: %s", self.path, exc)
            self.damaged = True
            return []
        if not isinstance(raw, list):
            logger.warning("Ignoring log file %s: expected a list, got %s", self.path, type(raw).__name__)
            self.damaged = True
            return []

        entries: list[LogEntry] = []
        for index, item in enumerate(raw):
            try:
                entries.append(LogEntry.from_json(item))
            except (ValueError, TypeError, KeyError, AttributeError) as exc:
                logger.warning("Skipping bad record #%d in %s: %r", index, self.path, exc)
                self.damaged = True
        return entries

    def save(self, entries: Iterable[LogEntry]) -> None:
        payload = json.dumps([e.to_json() for e in entries], ensure_ascii=False, indent=2)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self.damaged and self.path.exists():
                shutil.copyfile(self.path, self.backup_path)
                logger.warning("Kept a copy of the damaged log at %s", self.backup_path)
                self.damaged = False
            tmp.write_text(payload, encoding="utf-8")
            tmp.replace(self.path)
        except OSError as exc:
            raise StoreError(f"Unable to write log file {self.path}: {exc}") from exc
