# url_fetcher/config.py
from functools import lru_cache
from pathlib import Path
import os
from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]

# Load in ascending precedence; later overrides earlier
load_dotenv(ROOT / ".env")
load_dotenv(ROOT / ".env.local", override=True)


def _env_bool(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8080"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    VERSION: str = "1.0"

    # CORS
    ALLOWED_ORIGINS: list[str] = [
        s.strip() for s in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",") if s.strip()
    ]

    # Fetcher
    FETCH_TIMEOUT_S: float = float(os.getenv("FETCH_TIMEOUT_S", "30"))
    FETCH_MAX_WORKERS: int = int(os.getenv("FETCH_MAX_WORKERS", "16"))
    FETCH_USER_AGENT: str = os.getenv("FETCH_USER_AGENT", "url-fetcher/1.0")
    FETCH_ERROR_MAX_CHARS: int = max(1, int(os.getenv("FETCH_ERROR_MAX_CHARS", "500")))
    FETCH_DRAIN_ON_SHUTDOWN: bool = _env_bool("FETCH_DRAIN_ON_SHUTDOWN")


@lru_cache
def get_settings() -> Settings:
    return Settings()
