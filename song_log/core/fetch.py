from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable

import requests

from .config import DEFAULT_FETCH_TIMEOUT, DEFAULT_USER_AGENT
from .errors import FetchError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResponse:
    status: int
    text: str
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


Fetcher = Callable[[str], FetchResponse]


class RequestsFetcher:
    """Single GET per call; redirects followed, no retries."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        session: requests.Session | None = None,
    ) -> None:
        self.timeout = timeout
        self.headers = {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml",
        }
        self.session = session or requests.Session()

    def __call__(self, url: str) -> FetchResponse:
        logger.debug("GET %s (timeout=%ss)", url, self.timeout)
        try:
            resp = self.session.get(
                url,
                headers=self.headers,
                timeout=self.timeout,
                allow_redirects=True,
            )
        except requests.Timeout as exc:
            raise FetchError(f"Timed out after {self.timeout}s fetching {url}") from exc
        except requests.RequestException as exc:
            raise FetchError(f"Could not fetch {url}: {exc}") from exc
        return FetchResponse(status=resp.status_code, text=resp.text, url=resp.url)
