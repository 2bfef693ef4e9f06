from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock

import pytest
import requests

from movie_catalog.tmdb_client import TmdbClient, TmdbClientError, TmdbConfigurationError


def _response(status_code: int = 200, payload=None, text: str = ""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    return resp


def _client(*responses, token: str | None = "secret-token"):
    session = MagicMock(spec=requests.Session)
    session.get.side_effect = list(responses)
    return TmdbClient(token, base_url="https://tmdb.test/3", session=session), session


def test_find_sends_bearer_token_and_external_source():
    client, session = _client(_response(payload={"movie_results": [{"id": 603}, {"id": 604}]}))

    assert client.find_by_imdb_id("tt0133093") == 603

    args, kwargs = session.get.call_args
    assert args[0] == "https://tmdb.test/3/find/tt0133093"
    assert kwargs["params"] == {"external_source": "imdb_id"}
    assert kwargs["headers"]["Authorization"] == "Bearer secret-token"
    assert kwargs["timeout"] == 20.0


def test_find_returns_none_when_no_movie_matches():
    client, _ = _client(_response(payload={"movie_results": [], "tv_results": [{"id": 1}]}))
    assert client.find_by_imdb_id("tt0000001") is None


def test_missing_token_is_a_configuration_error():
    client, session = _client(token=None)

    with pytest.raises(TmdbConfigurationError):
        client.find_by_imdb_id("tt0133093")
    with pytest.raises(TmdbConfigurationError):
        client.fetch_movie_keywords(603)
    session.get.assert_not_called()


def test_non_2xx_raises_client_error_without_retry():
    client, session = _client(_response(status_code=401, text='{"status_message":"Invalid API key"}'))

    with pytest.raises(TmdbClientError) as excinfo:
        client.fetch_movie_details(603)

    assert excinfo.value.status_code == 401
    assert "Invalid API key" in excinfo.value.body_snippet
    assert session.get.call_count == 1


def test_transport_error_is_wrapped():
    session = MagicMock(spec=requests.Session)
    session.get.side_effect = requests.ConnectionError("connection refused")
    client = TmdbClient("secret-token", session=session)

    with pytest.raises(TmdbClientError):
        client.fetch_movie_credits(603)


def test_non_json_body_is_a_client_error():
    client, _ = _client(_response(payload=ValueError("not json"), text="<html>"))

    with pytest.raises(TmdbClientError):
        client.fetch_movie_keywords(603)


def test_details_are_mapped_to_typed_record():
    payload = {
        "id": 603,
        "imdb_id": "tt0133093",
        "title": "The Matrix",
        "original_title": "The Matrix",
        "release_date": "1999-03-31",
        "tagline": "",
        "budget": 63000000,
        "genres": [{"id": 28, "name": "Action"}],
        "production_companies": None,
        "vote_average": 8.2,
        "vote_count": 26000,
    }
    client, session = _client(_response(payload=payload))

    details = client.fetch_movie_details(603)

    assert details.id == 603
    assert details.release_date == date(1999, 3, 31)
    assert details.tagline is None
    assert [g.name for g in details.genres] == ["Action"]
    assert details.production_companies == []
    assert session.get.call_args.kwargs["params"] == {"language": "en-US"}


def test_empty_release_date_becomes_none():
    client, _ = _client(_response(payload={"id": 1, "original_title": "Untitled", "release_date": ""}))
    assert client.fetch_movie_details(1).release_date is None


def test_details_without_id_is_rejected():
    client, _ = _client(_response(payload={"title": "No id"}))

    with pytest.raises(TmdbClientError):
        client.fetch_movie_details(1)


def test_credits_and_keywords():
    credits_payload = {
        "id": 603,
        "cast": [{"name": "Keanu Reeves", "character": "Neo", "gender": 2}],
        "crew": [{"name": "Bill Pope", "job": "Director of Photography", "department": "Camera", "gender": 0}],
    }
    keywords_payload = {"id": 603, "keywords": [{"id": 1, "name": "dystopia"}, {"id": 2, "name": ""}]}
    client, session = _client(_response(payload=credits_payload), _response(payload=keywords_payload))

    credits = client.fetch_movie_credits(603)
    keywords = client.fetch_movie_keywords(603)

    assert credits.cast[0].character == "Neo"
    assert credits.crew[0].gender == 0
    assert keywords.names() == ["dystopia"]
    assert session.get.call_args_list[0].args[0] == "https://tmdb.test/3/movie/603/credits"
    assert session.get.call_args_list[1].args[0] == "https://tmdb.test/3/movie/603/keywords"
