"""
Shared fixtures: an in-memory SQLite catalog recreated per test and a TMDB
client double, so no test needs network access or a MySQL server.
"""

from __future__ import annotations

import os

# Must be set before any movie_catalog module reads the settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["PASSWORD_HASH_METHOD"] = "pbkdf2:sha256:1000"
os.environ["TMDB_BEARER_TOKEN"] = "test-token"

from datetime import date
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from movie_catalog import models, schemas
from movie_catalog.database import Base, SessionLocal, engine
from movie_catalog.main import app, get_recommender_client, get_tmdb_client
from movie_catalog.recommender_client import RecommenderClient
from movie_catalog.tmdb_client import TmdbClient


def tmdb_details(tmdb_id: int = 603, imdb_id: str = "tt0133093", **overrides) -> schemas.TmdbMovieDetails:
    payload = {
        "id": tmdb_id,
        "imdb_id": imdb_id,
        "title": "The Matrix",
        "original_title": "The Matrix",
        "adult": False,
        "tagline": "Welcome to the Real World.",
        "budget": 63000000,
        "revenue": 463517383,
        "runtime": 136,
        "release_date": "1999-03-31",
        "popularity": 83.5,
        "vote_average": 8.2,
        "vote_count": 26000,
        "genres": [{"id": 28, "name": "Action"}, {"id": 878, "name": "Science Fiction"}],
        "production_companies": [{"id": 79, "name": "Village Roadshow Pictures"}, {"id": 174, "name": "Warner Bros. Pictures"}],
        "production_countries": [{"iso_3166_1": "US", "name": "United States of America"}],
        "spoken_languages": [{"english_name": "English", "iso_639_1": "en", "name": "English"}],
    }
    payload.update(overrides)
    return schemas.TmdbMovieDetails.model_validate(payload)


def tmdb_credits(**overrides) -> schemas.TmdbCredits:
    payload = {
        "id": 603,
        "cast": [
            {"name": "Keanu Reeves", "character": "Neo", "gender": 2, "order": 0},
            {"name": "Carrie-Anne Moss", "character": "Trinity", "gender": 1, "order": 1},
        ],
        "crew": [
            {"name": "Lana Wachowski", "job": "Director", "department": "Directing", "gender": 1},
            {"name": "Lana Wachowski", "job": "Writer", "department": "Writing", "gender": 1},
            {"name": "Bill Pope", "job": "Director of Photography", "department": "Camera", "gender": 2},
        ],
    }
    payload.update(overrides)
    return schemas.TmdbCredits.model_validate(payload)


def tmdb_keywords(names=("artificial intelligence", "simulated reality", "dystopia")) -> schemas.TmdbKeywords:
    return schemas.TmdbKeywords.model_validate(
        {"id": 603, "keywords": [{"id": i, "name": name} for i, name in enumerate(names)]}
    )


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_tmdb():
    """TMDB client double that resolves tt0133093 to The Matrix."""
    tmdb = MagicMock(spec=TmdbClient)
    tmdb.find_by_imdb_id.return_value = 603
    tmdb.fetch_movie_details.return_value = tmdb_details()
    tmdb.fetch_movie_credits.return_value = tmdb_credits()
    tmdb.fetch_movie_keywords.return_value = tmdb_keywords()
    return tmdb


@pytest.fixture
def fake_recommender():
    return MagicMock(spec=RecommenderClient)


@pytest.fixture
def client(db, fake_tmdb, fake_recommender):
    app.dependency_overrides[get_tmdb_client] = lambda: fake_tmdb
    app.dependency_overrides[get_recommender_client] = lambda: fake_recommender
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_movie(db):
    """Insert a movie header (and optional genres) directly."""

    def _make(movie_id: int, title: str, *, imdb_id=None, vote_average=5.0, vote_count=100,
              popularity=10.0, release_date=date(2000, 1, 1), genres=()):
        movie = models.Movie(
            id=movie_id,
            imdb_id=imdb_id,
            title=title,
            original_title=title,
            vote_average=vote_average,
            vote_count=vote_count,
            popularity=popularity,
            release_date=release_date,
        )
        db.add(movie)
        db.add_all([models.Genre(movie_id=movie_id, genre=g) for g in genres])
        db.commit()
        return movie

    return _make


@pytest.fixture
def make_user(client):
    """Register a user through the API and return its id."""

    def _make(email: str = "a@b.com", password: str = "password123") -> int:
        response = client.post("/register", json={"email": email, "password": password})
        assert response.status_code == 201
        return response.json()["userId"]

    return _make
