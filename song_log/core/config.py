from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError


APP_DIR = Path(__file__).resolve().parent.parent.parent

DEFAULT_ACCEPTED_HOSTS = ("music.apple.com", "itunes.apple.com")
DEFAULT_FETCH_TIMEOUT = 8.0
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome Safari"
)
DEFAULT_STORE_PATH = APP_DIR / "music_log.json"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    accepted_hosts: tuple[str, ...] = DEFAULT_ACCEPTED_HOSTS
    user_agent: str = DEFAULT_USER_AGENT
    store_path: Path = DEFAULT_STORE_PATH
    log_level: str = "INFO"
    secret_key: str = "dev-secret-key"


def _normalize_env_value(value: str) -> str:
    v = (value or "").strip()
    if len(v) >= 2 and ((v[0] == v[-1] == '"') or (v[0] == v[-1] == "'")):
        v = v[1:-1].strip()
    return v


def _env(name: str) -> str:
    return _normalize_env_value(os.getenv(name, ""))


def _parse_timeout(raw: str) -> float:
    try:
        timeout = float(raw)
    except ValueError:
        raise ConfigError(f"SONG_LOG_FETCH_TIMEOUT must be a number of seconds, got {raw!r}") from None
    if timeout <= 0:
        raise ConfigError(f"SONG_LOG_FETCH_TIMEOUT must be > 0, got {raw!r}")
    return timeout


def _parse_hosts(raw: str) -> tuple[str, ...]:
    hosts = tuple(h.strip().lower().lstrip(".") for h in raw.split(",") if h.strip())
    if not hosts:
        raise ConfigError("SONG_LOG_ACCEPTED_HOSTS must name at least one host")
    return hosts


def load_settings(env_file: Path | None = None) -> Settings:
    """Build settings from a `.env` file (if any) and the process environment."""
    load_dotenv(dotenv_path=env_file or APP_DIR / ".env")

    timeout_raw = _env("SONG_LOG_FETCH_TIMEOUT")
    hosts_raw = _env("SONG_LOG_ACCEPTED_HOSTS")
    store_raw = _env("SONG_LOG_STORE_PATH")
    level = (_env("SONG_LOG_LEVEL") or "INFO").upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"SONG_LOG_LEVEL is not a logging level: {level!r}")

    return Settings(
        fetch_timeout=_parse_timeout(timeout_raw) if timeout_raw else DEFAULT_FETCH_TIMEOUT,
        accepted_hosts=_parse_hosts(hosts_raw) if hosts_raw else DEFAULT_ACCEPTED_HOSTS,
        user_agent=_env("SONG_LOG_USER_AGENT") or DEFAULT_USER_AGENT,
        store_path=Path(store_raw).expanduser() if store_raw else DEFAULT_STORE_PATH,
        log_level=level,
        secret_key=_env("FLASK_SECRET_KEY") or "dev-secret-key",
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
