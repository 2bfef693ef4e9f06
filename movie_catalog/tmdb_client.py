# movie_catalog/tmdb_client.py
import logging
from typing import Any, Dict, Mapping, Optional

import requests
from pydantic import ValidationError

from . import schemas

logging.basicConfig(level=logging.INFO)

TMDB_API_BASE_URL = "https://api.themoviedb.org/3"


class TmdbConfigurationError(RuntimeError):
    """Raised when the client is used without a bearer token."""


class TmdbClientError(RuntimeError):
    def __init__(self, message: str, *, status_code: Optional[int] = None, body_snippet: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet


def _parse(model, payload: Dict[str, Any]):
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise TmdbClientError(f"TMDB returned an unexpected {model.__name__} payload.") from exc


class TmdbClient:
    """
    Thin client for the four TMDB lookups the importer needs.

    The bearer token is supplied at construction. A missing token is only reported
    when a lookup is attempted, so the API can still serve read-only routes.
    A single failed request fails the call; there is no retry.
    """

    def __init__(
        self,
        bearer_token: Optional[str],
        *,
        base_url: str = TMDB_API_BASE_URL,
        language: str = "en-US",
        timeout_seconds: float = 20.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.bearer_token = bearer_token
        self.base_url = base_url.rstrip("/")
        self.language = language
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        if not self.bearer_token:
            raise TmdbConfigurationError("TMDB bearer token is not configured (set TMDB_BEARER_TOKEN).")
        return {
            "accept": "application/json",
            "Authorization": f"Bearer {self.bearer_token}",
        }

    def _request_json(self, path: str, *, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        headers = self._headers()
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, params=params, headers=headers, timeout=self.timeout_seconds)
        except requests.RequestException as exc:
            logging.error(f"TMDB request to {path} failed: {exc}")
            raise TmdbClientError(f"TMDB request failed: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            logging.error(f"TMDB request to {path} returned HTTP {resp.status_code}")
            raise TmdbClientError(
                f"TMDB API error: HTTP {resp.status_code}",
                status_code=resp.status_code,
                body_snippet=(resp.text or "")[:400],
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            raise TmdbClientError(
                "TMDB returned non-JSON response.",
                status_code=resp.status_code,
                body_snippet=(resp.text or "")[:400],
            ) from exc

        if not isinstance(payload, dict):
            raise TmdbClientError("TMDB returned unexpected JSON shape (not an object).")
        return payload

    def find_by_imdb_id(self, imdb_id: str) -> Optional[int]:
        """Resolve an IMDb id to the TMDB movie id, or None when TMDB has no match."""
        payload = self._request_json(f"/find/{imdb_id}", params={"external_source": "imdb_id"})
        results = payload.get("movie_results") or []
        if not results:
            return None
        first = results[0]
        if not isinstance(first, dict) or first.get("id") is None:
            raise TmdbClientError("TMDB find response is missing a movie id.")
        return int(first["id"])

    def fetch_movie_details(self, tmdb_id: int) -> schemas.TmdbMovieDetails:
        payload = self._request_json(f"/movie/{int(tmdb_id)}", params={"language": self.language})
        return _parse(schemas.TmdbMovieDetails, payload)

    def fetch_movie_credits(self, tmdb_id: int) -> schemas.TmdbCredits:
        payload = self._request_json(f"/movie/{int(tmdb_id)}/credits", params={"language": self.language})
        return _parse(schemas.TmdbCredits, payload)

    def fetch_movie_keywords(self, tmdb_id: int) -> schemas.TmdbKeywords:
        payload = self._request_json(f"/movie/{int(tmdb_id)}/keywords")
        return _parse(schemas.TmdbKeywords, payload)

    def close(self) -> None:
        self.session.close()
