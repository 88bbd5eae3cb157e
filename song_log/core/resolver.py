"""
Share URL -> `ResolvedFact`.

`TrackResolver.resolve` is the error boundary: input problems, upstream
failures and unexpected exceptions all come back as a `ResolveFailure`
rather than propagating to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Union
from urllib.parse import urlsplit

from .config import Settings
from .errors import FetchError, InputError, ServerError, SongLogError, UpstreamError
from .fetch import Fetcher, RequestsFetcher
from .identifiers import extract_track_id
from .identity import PLACEHOLDER_TITLE
from .meta import pick_first_meta
from .parser import artist_from_description, split_title_artist
from .text import tidy_text


logger = logging.getLogger(__name__)

TITLE_KEYS = ("og:title", "twitter:title", "title")
DESCRIPTION_KEYS = ("og:description", "twitter:description", "description")


@dataclass(frozen=True)
class ResolvedFact:
    title: str
    artist: str
    track_id: str | None
    source_url: str

    def to_json(self) -> dict:
        return {
            "title": self.title,
            "artist": self.artist,
            "trackId": self.track_id,
            "sourceUrl": self.source_url,
        }


class FailureKind(str, Enum):
    INPUT = "input_error"
    UPSTREAM = "upstream_error"
    SERVER = "server_error"


_HTTP_STATUS = {
    FailureKind.INPUT: 400,
    FailureKind.UPSTREAM: 502,
    FailureKind.SERVER: 500,
}


@dataclass(frozen=True)
class ResolveFailure:
    kind: FailureKind
    code: str
    message: str
    status: int | None = None

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self.kind]

    @classmethod
    def from_error(cls, exc: SongLogError) -> "ResolveFailure":
        if isinstance(exc, InputError):
            return cls(FailureKind.INPUT, exc.code, str(exc))
        if isinstance(exc, UpstreamError):
            return cls(FailureKind.UPSTREAM, "fetch_failed", str(exc), exc.status)
        return cls(FailureKind.SERVER, "server_error", str(exc))

    def to_json(self) -> dict:
        body: dict = {"error": self.code}
        if self.kind is FailureKind.UPSTREAM:
            body["status"] = self.status
        elif self.kind is FailureKind.SERVER:
            body["message"] = self.message
        return body


Resolution = Union[ResolvedFact, ResolveFailure]


def is_accepted_url(url: str, accepted_hosts: tuple[str, ...]) -> bool:
    try:
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
    except ValueError:
        return False
    if parts.scheme not in {"http", "https"} or not host:
        return False
    return any(host == h or host.endswith("." + h) for h in accepted_hosts)


def fact_from_document(url: str, html: str) -> ResolvedFact:
    """Derive the fact for `url` from its fetched page text."""
    raw_title = pick_first_meta(html, TITLE_KEYS)
    title = ""
    artist = ""

    if raw_title:
        split = split_title_artist(raw_title)
        title = split.title
        artist = split.artist or ""

    if title and not artist:
        artist = artist_from_description(pick_first_meta(html, DESCRIPTION_KEYS)) or ""

    if not title:
        logger.info("No title metadata found for %s", url)
        title = PLACEHOLDER_TITLE
        artist = ""

    return ResolvedFact(
        title=tidy_text(title) or PLACEHOLDER_TITLE,
        artist=tidy_text(artist),
        track_id=extract_track_id(url),
        source_url=url,
    )


class TrackResolver:
    def __init__(self, settings: Settings | None = None, fetch: Fetcher | None = None) -> None:
        self.settings = settings or Settings()
        self.fetch = fetch or RequestsFetcher(
            timeout=self.settings.fetch_timeout,
            user_agent=self.settings.user_agent,
        )

    def resolve(self, url: str | None) -> Resolution:
        try:
            return self._resolve(url)
        except SongLogError as exc:
            return ResolveFailure.from_error(exc)
        except Exception as exc:
            logger.exception("Unexpected failure resolving %s", url)
            return ResolveFailure.from_error(ServerError(str(exc) or repr(exc)))

    def _resolve(self, url: str | None) -> ResolvedFact:
        url = (url or "").strip()
        if not url:
            raise InputError("missing_url", "A share URL is required.")
        if not is_accepted_url(url, self.settings.accepted_hosts):
            raise InputError(
                "unsupported_url",
                "Only links on " + ", ".join(self.settings.accepted_hosts) + " are supported.",
            )

        logger.debug("Resolving %s", url)
        try:
            resp = self.fetch(url)
        except FetchError as exc:
            logger.warning("Fetch failed for %s: %s", url, exc)
            raise UpstreamError(None, str(exc)) from exc

        if not resp.ok:
            logger.warning("Fetch for %s returned HTTP %s", url, resp.status)
            raise UpstreamError(resp.status, f"The share page returned HTTP {resp.status}.")

        if resp.url and not is_accepted_url(resp.url, self.settings.accepted_hosts):
            logger.warning("Fetch for %s was redirected to %s", url, resp.url)
            raise UpstreamError(None, f"The share page redirected to an unsupported host: {resp.url}")

        return fact_from_document(url, resp.text)
