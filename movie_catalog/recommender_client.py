# movie_catalog/recommender_client.py
import logging
from typing import Any, Optional

import requests

logging.basicConfig(level=logging.INFO)


class RecommenderError(RuntimeError):
    pass


class RecommenderClient:
    """Proxy to the external recommendation service; responses are passed through untouched."""

    def __init__(self, base_url: str, *, timeout_seconds: float = 20.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def recommend(self, user_id: int) -> Any:
        url = f"{self.base_url}/recommend/{user_id}"
        try:
            resp = self.session.get(url, headers={"Accept": "application/json"}, timeout=self.timeout_seconds)
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as e:
            raise RecommenderError(f"Recommendation service request failed: {e}") from e
        except ValueError as e:
            raise RecommenderError("Recommendation service returned non-JSON response") from e

    def close(self) -> None:
        self.session.close()
