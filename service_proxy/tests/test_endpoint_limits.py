"""
Unit tests for the endpoint rate limit table.
"""

import json
import pytest

from shared.errors import ConfigurationError
from service_proxy.app.ratelimit.endpoint_limits import EndpointRateLimit, EndpointRateLimitTable


@pytest.fixture
def limits_payload():
    return {
        "rateLimits": [
            {
                "method": "GET",
                "path": "/lol/summoner/v4/summoners/by-name/:summonerName",
                "burst": 1600,
                "interval": 60,
            },
            {
                "method": "GET",
                "path": "/lol/status/v4/platform-data",
                "burst": 20000,
                "interval": 10,
            },
        ]
    }


class TestEndpointRateLimit:
    """Test cases for EndpointRateLimit matching."""

    def test_placeholder_matches_any_segment(self):
        limit = EndpointRateLimit("GET", "/lol/summoner/v4/summoners/by-name/:summonerName", 10, 60)

        assert limit.matches("GET", "/lol/summoner/v4/summoners/by-name/Foo")
        assert limit.matches("get", "/lol/summoner/v4/summoners/by-name/Bar/")

    def test_method_must_match(self):
        limit = EndpointRateLimit("GET", "/lol/status/v4/platform-data", 10, 60)

        assert not limit.matches("POST", "/lol/status/v4/platform-data")

    def test_segment_count_must_match(self):
        limit = EndpointRateLimit("GET", "/lol/summoner/v4/summoners/by-name/:summonerName", 10, 60)

        assert not limit.matches("GET", "/lol/summoner/v4/summoners/by-name")
        assert not limit.matches("GET", "/lol/summoner/v4/summoners/by-name/Foo/extra")


class TestEndpointRateLimitTable:
    """Test cases for EndpointRateLimitTable."""

    def test_lookup_returns_matching_entry(self, limits_payload):
        table = EndpointRateLimitTable.from_dict(limits_payload)

        limit = table.lookup("GET", "/lol/summoner/v4/summoners/by-name/Foo")

        assert limit is not None
        assert limit.burst == 1600
        assert limit.interval == 60

    def test_lookup_unknown_endpoint(self, limits_payload):
        table = EndpointRateLimitTable.from_dict(limits_payload)

        assert table.lookup("GET", "/lol/unknown") is None

    def test_from_file(self, tmp_path, limits_payload):
        limits_file = tmp_path / "rate-limits.json"
        limits_file.write_text(json.dumps(limits_payload), encoding="utf-8")

        table = EndpointRateLimitTable.from_file(limits_file)

        assert len(table) == 2

    def test_missing_file_is_configuration_error(self, tmp_path):
        with pytest.raises(ConfigurationError):
            EndpointRateLimitTable.from_file(tmp_path / "missing.json")

    def test_invalid_json_is_configuration_error(self, tmp_path):
        limits_file = tmp_path / "rate-limits.json"
        limits_file.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            EndpointRateLimitTable.from_file(limits_file)

    def test_missing_array_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            EndpointRateLimitTable.from_dict({"limits": []})

    def test_incomplete_entry_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            EndpointRateLimitTable.from_dict({"rateLimits": [{"method": "GET", "path": "/x"}]})

    def test_non_positive_burst_is_configuration_error(self):
        payload = {"rateLimits": [{"method": "GET", "path": "/x", "burst": 0, "interval": 10}]}

        with pytest.raises(ConfigurationError):
            EndpointRateLimitTable.from_dict(payload)
