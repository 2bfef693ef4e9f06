# movie_catalog/config.py
import os
import logging
from functools import lru_cache
from typing import Optional
from dotenv import load_dotenv

logging.basicConfig(level=logging.INFO)

# --- Load .env from the project root ---
# config.py lives in movie_catalog/, one level below the project root
package_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(package_dir)
dotenv_path = os.path.join(project_root, '.env')

# Existing environment variables win, so tests and deployments can override .env
if not load_dotenv(dotenv_path=dotenv_path, override=False):
    logging.info(f"No .env file loaded from {dotenv_path}; using process environment only.")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Process-wide configuration read once from the environment."""

    def __init__(self):
        self.database_url: Optional[str] = os.getenv("DATABASE_URL")
        self.tmdb_bearer_token: Optional[str] = (os.getenv("TMDB_BEARER_TOKEN") or "").strip() or None
        self.tmdb_base_url: str = os.getenv("TMDB_BASE_URL", "https://api.themoviedb.org/3").rstrip("/")
        self.tmdb_language: str = os.getenv("TMDB_LANGUAGE", "en-US")
        self.http_timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "20"))
        self.recommender_url: str = os.getenv("RECOMMENDER_URL", "http://localhost:8000").rstrip("/")
        self.password_hash_method: str = os.getenv("PASSWORD_HASH_METHOD", "scrypt:32768:8:1")
        self.cors_origin: str = os.getenv("CORS_ORIGIN", "http://localhost:5173")
        self.rate_limit_enabled: bool = _env_flag("RATE_LIMIT_ENABLED", True)


@lru_cache
def get_settings() -> Settings:
    return Settings()
