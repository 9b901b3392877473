from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_REGIONS: tuple[str, ...] = ("US", "IN", "GB", "CA", "AU", "DE", "FR", "JP", "BR", "MX")


def load_env(*, override: bool = False) -> Path | None:
    repo_root = Path(__file__).resolve().parents[1]
    candidates = [
        repo_root / ".env",
        Path.cwd() / ".env",
    ]
    for path in candidates:
        if path.is_file():
            load_dotenv(dotenv_path=path, override=override)
            return path
    return None


def _env_str(name: str, *aliases: str) -> str | None:
    for key in (name, *aliases):
        value = (os.getenv(key) or "").strip()
        if value:
            return value
    return None


def _env_float(name: str, default: float | None) -> float | None:
    raw = _env_str(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_regions(name: str) -> tuple[str, ...]:
    raw = _env_str(name)
    if raw is None:
        return DEFAULT_REGIONS
    regions = [part.strip().upper() for part in raw.split(",") if part.strip()]
    # Keep order, drop repeats.
    return tuple(dict.fromkeys(regions)) or DEFAULT_REGIONS


@dataclass(frozen=True)
class Settings:
    """
    Process configuration read from the environment.

    A missing credential disables only the provider that needs it.
    """

    tmdb_api_key: str | None = None
    omdb_api_key: str | None = None
    spotify_client_id: str | None = None
    spotify_client_secret: str | None = None
    google_books_api_key: str | None = None
    proxy_list_url: str | None = None
    regions: tuple[str, ...] = DEFAULT_REGIONS
    region_pacing_seconds: float = 1.0
    scrape_timeout_seconds: float = 15.0
    api_timeout_seconds: float | None = None
    cors_allow_origins: tuple[str, ...] = ()

    @classmethod
    def from_env(cls) -> Settings:
        origins = _env_str("CORS_ALLOW_ORIGINS") or ""
        return cls(
            tmdb_api_key=_env_str("TMDB_API_KEY"),
            omdb_api_key=_env_str("OMDB_API_KEY"),
            spotify_client_id=_env_str("SPOTIFY_CLIENT_ID"),
            spotify_client_secret=_env_str("SPOTIFY_CLIENT_SECRET"),
            google_books_api_key=_env_str("GOOGLE_BOOKS_API_KEY"),
            proxy_list_url=_env_str("PROXY_LIST_URL", "PROXYSCRAPE_API_URL"),
            regions=_env_regions("RESEARCH_REGIONS"),
            region_pacing_seconds=_env_float("REGION_PACING_SECONDS", 1.0) or 1.0,
            scrape_timeout_seconds=_env_float("SCRAPE_TIMEOUT_SECONDS", 15.0) or 15.0,
            api_timeout_seconds=_env_float("API_TIMEOUT_SECONDS", None),
            cors_allow_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        )

    @property
    def spotify_enabled(self) -> bool:
        return bool(self.spotify_client_id and self.spotify_client_secret)


@lru_cache
def get_settings() -> Settings:
    load_env()
    return Settings.from_env()
