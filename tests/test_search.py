"""Tests for the Nominatim search client."""

from unittest.mock import patch

import pytest
import requests

from conftest import http_response
from livemap.config import CONFIG
from livemap.errors import SearchError
from livemap.models import Coordinate, PlaceResult
from livemap.search import NominatimClient, parse_places


class TestParsePlaces:
    def test_numeric_text_is_parsed(self):
        results = parse_places([{"lat": "23.81", "lon": "90.41", "display_name": "X"}])
        assert results == [PlaceResult("X", Coordinate(23.81, 90.41))]

    def test_missing_name_defaults_to_unknown(self):
        results = parse_places([{"lat": 1.5, "lon": 2.5}, {"lat": "3", "lon": "4", "display_name": ""}])
        assert [r.name for r in results] == ["Unknown", "Unknown"]

    def test_entries_without_coordinates_are_dropped(self):
        data = [
            {"display_name": "nothing"},
            {"lat": "23.8", "display_name": "no lon"},
            {"lat": "north", "lon": "90.4"},
            {"lat": "95.0", "lon": "90.4"},
            {"lat": "nan", "lon": "90.4"},
            "not an object",
            {"lat": "23.7", "lon": "90.3", "display_name": "kept"},
        ]
        assert [r.name for r in parse_places(data)] == ["kept"]

    def test_order_is_preserved(self):
        data = [{"lat": str(i), "lon": "90", "display_name": f"p{i}"} for i in range(5)]
        assert [r.name for r in parse_places(data)] == ["p0", "p1", "p2", "p3", "p4"]

    def test_non_list_response(self):
        assert parse_places({"error": "bad"}) == []
        assert parse_places(None) == []


class TestNominatimClient:
    def test_request_parameters_and_user_agent(self):
        with patch("livemap.search.requests.get", return_value=http_response(200, [])) as get:
            NominatimClient().search("Gulshan")

        args, kwargs = get.call_args
        assert args[0] == CONFIG["nominatim_url"]
        assert kwargs["params"] == {"q": "Gulshan", "format": "json", "limit": 5}
        assert kwargs["headers"]["User-Agent"] == CONFIG["user_agent"]
        assert kwargs["timeout"] == CONFIG["request_timeout"]

    def test_http_error(self):
        with patch("livemap.search.requests.get", return_value=http_response(429)):
            with pytest.raises(SearchError, match="HTTP 429"):
                NominatimClient().search("x")

    def test_network_error(self):
        with patch("livemap.search.requests.get", side_effect=requests.ConnectionError("offline")):
            with pytest.raises(SearchError, match="offline"):
                NominatimClient().search("x")

    def test_invalid_json(self):
        response = http_response(200)
        response.json.side_effect = ValueError("Expecting value")
        with patch("livemap.search.requests.get", return_value=response):
            with pytest.raises(SearchError, match="Invalid response"):
                NominatimClient().search("x")

    def test_empty_result_is_not_an_error(self):
        with patch("livemap.search.requests.get", return_value=http_response(200, [])):
            assert NominatimClient().search("x") == []
