import pytest

from song_log.core.config import Settings
from song_log.core.errors import FetchError
from song_log.core.fetch import FetchResponse
from song_log.core.identity import PLACEHOLDER_TITLE
from song_log.core.resolver import (
    FailureKind,
    ResolvedFact,
    ResolveFailure,
    TrackResolver,
    fact_from_document,
    is_accepted_url,
)


SHARE_URL = "https://music.apple.com/jp/album/x/1440857781?i=1440858207"

JP_PAGE = """
<html><head>
<meta property="og:title" content="ODD Foot Worksの「時をBABE」をApple Musicで聴く">
<meta property="og:description" content="曲 · 2019年 · ODD Foot Works">
</head></html>
"""


class FakeFetcher:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def __call__(self, url):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return self.response


def _resolver(fetcher):
    return TrackResolver(Settings(), fetch=fetcher)


def test_resolves_japanese_share_page():
    fetcher = FakeFetcher(FetchResponse(200, JP_PAGE))
    result = _resolver(fetcher).resolve(SHARE_URL)
    assert result == ResolvedFact(
        title="時をBABE",
        artist="ODD Foot Works",
        track_id="1440858207",
        source_url=SHARE_URL,
    )
    assert fetcher.calls == [SHARE_URL]


def test_description_fills_missing_artist():
    html = (
        "<meta name='twitter:title' content='Just A Title'>"
        "<meta name='description' content='Just A Title · Album · The Artist'>"
    )
    fact = fact_from_document(SHARE_URL, html)
    assert (fact.title, fact.artist) == ("Just A Title", "The Artist")


def test_description_is_ignored_when_artist_found():
    html = (
        '<meta property="og:title" content="Song Title - Some Artist">'
        '<meta property="og:description" content="Song · Other">'
    )
    fact = fact_from_document(SHARE_URL, html)
    assert (fact.title, fact.artist) == ("Song Title", "Some Artist")


def test_missing_title_uses_placeholder():
    result = _resolver(FakeFetcher(FetchResponse(200, "<html></html>"))).resolve(SHARE_URL)
    assert isinstance(result, ResolvedFact)
    assert result.title == PLACEHOLDER_TITLE
    assert result.artist == ""
    assert result.track_id == "1440858207"


def test_entities_are_decoded():
    html = '<meta property="og:title" content="Tom &amp; Jerry - &lt;Band&gt;">'
    fact = fact_from_document("https://music.apple.com/jp/song/x/123", html)
    assert (fact.title, fact.artist, fact.track_id) == ("Tom & Jerry", "<Band>", "123")


def test_double_encoded_entities_survive_resolution():
    html = '<meta property="og:title" content="I &amp;lt;3 U - Band">'
    fact = fact_from_document(SHARE_URL, html)
    assert (fact.title, fact.artist) == ("I &amp;lt;3 U", "Band")


def test_missing_title_on_a_large_page_uses_placeholder():
    html = "<html><head>" + '<meta name="x" content="y">' * 60 + "<script>{}</script>" * 30_000
    result = _resolver(FakeFetcher(FetchResponse(200, html))).resolve(SHARE_URL)
    assert isinstance(result, ResolvedFact)
    assert result.title == PLACEHOLDER_TITLE


@pytest.mark.parametrize("url", [None, "", "   "])
def test_missing_url_is_input_error(url):
    fetcher = FakeFetcher()
    result = _resolver(fetcher).resolve(url)
    assert isinstance(result, ResolveFailure)
    assert (result.kind, result.code, result.http_status) == (FailureKind.INPUT, "missing_url", 400)
    assert fetcher.calls == []


@pytest.mark.parametrize(
    "url",
    ["https://example.com/song/1", "ftp://music.apple.com/x", "https://evilmusic.apple.com.example/x"],
)
def test_unaccepted_host_is_input_error(url):
    result = _resolver(FakeFetcher()).resolve(url)
    assert isinstance(result, ResolveFailure)
    assert result.code == "unsupported_url"
    assert result.to_json() == {"error": "unsupported_url"}


def test_404_is_upstream_error_with_status():
    result = _resolver(FakeFetcher(FetchResponse(404, "not found"))).resolve(SHARE_URL)
    assert isinstance(result, ResolveFailure)
    assert result.kind is FailureKind.UPSTREAM
    assert result.status == 404
    assert result.http_status == 502
    assert result.to_json() == {"error": "fetch_failed", "status": 404}


def test_transport_failure_is_upstream_error_without_status():
    result = _resolver(FakeFetcher(error=FetchError("Timed out"))).resolve(SHARE_URL)
    assert isinstance(result, ResolveFailure)
    assert result.kind is FailureKind.UPSTREAM
    assert result.status is None


def test_unexpected_exception_is_server_error():
    result = _resolver(FakeFetcher(error=RuntimeError("boom"))).resolve(SHARE_URL)
    assert isinstance(result, ResolveFailure)
    assert result.kind is FailureKind.SERVER
    assert result.http_status == 500
    assert result.to_json() == {"error": "server_error", "message": "boom"}


def test_is_accepted_url_allows_subdomains():
    hosts = ("music.apple.com",)
    assert is_accepted_url("https://geo.music.apple.com/jp/album/x?i=1", hosts)
    assert is_accepted_url("HTTPS://MUSIC.APPLE.COM/jp/song/x/1", hosts)
    assert not is_accepted_url("https://notmusic.apple.com/x", hosts)


def test_to_json_shape():
    fact = ResolvedFact(title="T", artist="", track_id=None, source_url="u")
    assert fact.to_json() == {"title": "T", "artist": "", "trackId": None, "sourceUrl": "u"}


def test_redirect_to_unaccepted_host_is_upstream_error():
    response = FetchResponse(200, JP_PAGE, "https://evil.example/x")
    result = _resolver(FakeFetcher(response)).resolve(SHARE_URL)
    assert isinstance(result, ResolveFailure)
    assert result.kind is FailureKind.UPSTREAM
    assert result.to_json() == {"error": "fetch_failed", "status": None}


def test_redirect_within_accepted_hosts_is_followed():
    response = FetchResponse(200, JP_PAGE, "https://geo.music.apple.com/jp/album/x/1440857781?i=1440858207")
    result = _resolver(FakeFetcher(response)).resolve(SHARE_URL)
    assert isinstance(result, ResolvedFact)
    assert result.source_url == SHARE_URL
