import pytest
import requests

from song_log.core.errors import FetchError
from song_log.core.fetch import FetchResponse, RequestsFetcher


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.kwargs = None

    def get(self, url, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.response


def _response(status, text, url):
    resp = requests.Response()
    resp.status_code = status
    resp._content = text.encode("utf-8")
    resp.encoding = "utf-8"
    resp.url = url
    return resp


def test_fetch_returns_status_and_text():
    session = FakeSession(_response(200, "<html>時をBABE</html>", "https://music.apple.com/jp/song/x/1"))
    fetch = RequestsFetcher(timeout=3, user_agent="test-agent", session=session)

    result = fetch("https://music.apple.com/jp/song/x/1")

    assert result == FetchResponse(200, "<html>時をBABE</html>", "https://music.apple.com/jp/song/x/1")
    assert result.ok
    assert session.kwargs["timeout"] == 3
    assert session.kwargs["headers"]["User-Agent"] == "test-agent"
    assert session.kwargs["allow_redirects"] is True


def test_non_success_status_is_returned_not_raised():
    session = FakeSession(_response(404, "gone", "https://music.apple.com/x"))
    result = RequestsFetcher(session=session)("https://music.apple.com/x")
    assert result.status == 404
    assert not result.ok


@pytest.mark.parametrize("error", [requests.Timeout("slow"), requests.ConnectionError("down")])
def test_transport_errors_become_fetch_error(error):
    fetch = RequestsFetcher(session=FakeSession(error=error))
    with pytest.raises(FetchError):
        fetch("https://music.apple.com/x")
