from __future__ import annotations


class SongLogError(Exception):
    """Base exception for all song_log errors."""


class InputError(SongLogError):
    """The caller supplied a missing, malformed or unaccepted URL."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class UpstreamError(SongLogError):
    """The share page could not be fetched successfully."""

    def __init__(self, status: int | None, message: str) -> None:
        super().__init__(message)
        self.status = status


class ServerError(SongLogError):
    """Unexpected failure while processing a fetched page."""


class FetchError(SongLogError):
    """Transport-level failure (connection error, timeout, bad TLS...)."""


class ConfigError(SongLogError):
    pass


class StoreError(SongLogError):
    pass
