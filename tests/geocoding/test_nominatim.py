from __future__ import annotations

import http.client
import json
from typing import Any
from urllib import error, parse

import pytest

from gigmatch.errors import UpstreamUnavailableError
from gigmatch.geocoding import NominatimGeocoder, NullGeocoder
from gigmatch.geocoding import nominatim as nominatim_module
from gigmatch.schemas import Coordinates


class FakeResponse:
    def __init__(self, body: str | bytes):
        self._body = body if isinstance(body, bytes) else body.encode("utf-8")

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        return None


def install_urlopen(monkeypatch: pytest.MonkeyPatch, payload: Any = None, exc: Exception | None = None):
    calls: list[dict[str, Any]] = []

    def fake_urlopen(req, timeout=None):  # type: ignore[no-untyped-def]
        calls.append({"url": req.full_url, "timeout": timeout, "headers": dict(req.header_items())})
        if exc is not None:
            raise exc
        body = payload if isinstance(payload, (str, bytes)) else json.dumps(payload)
        return FakeResponse(body)

    monkeypatch.setattr(nominatim_module.request, "urlopen", fake_urlopen)
    return calls


def test_forward_returns_first_candidate(monkeypatch: pytest.MonkeyPatch):
    calls = install_urlopen(
        monkeypatch,
        [
            {"lat": "51.5074", "lon": "-0.1278", "display_name": "London"},
            {"lat": "42.98", "lon": "-81.24", "display_name": "London, Ontario"},
        ],
    )
    geocoder = NominatimGeocoder("https://geo.example.org/", timeout=2.5, user_agent="tests/1.0")

    result = geocoder.forward("London")

    assert result == Coordinates(lat=51.5074, lng=-0.1278)
    url = parse.urlsplit(calls[0]["url"])
    assert url.netloc == "geo.example.org"
    assert url.path == "/search"
    assert parse.parse_qs(url.query)["q"] == ["London"]
    assert calls[0]["timeout"] == 2.5
    assert calls[0]["headers"]["User-agent"] == "tests/1.0"


def test_forward_returns_none_when_nothing_matches(monkeypatch: pytest.MonkeyPatch):
    install_urlopen(monkeypatch, [])

    assert NominatimGeocoder().forward("Unresolvable Address") is None


def test_forward_skips_blank_queries(monkeypatch: pytest.MonkeyPatch):
    calls = install_urlopen(monkeypatch, [])

    assert NominatimGeocoder().forward("   ") is None
    assert calls == []


def test_network_failure_is_upstream_unavailable(monkeypatch: pytest.MonkeyPatch):
    install_urlopen(monkeypatch, exc=error.URLError("connection refused"))

    with pytest.raises(UpstreamUnavailableError):
        NominatimGeocoder().forward("London")


def test_timeout_is_upstream_unavailable(monkeypatch: pytest.MonkeyPatch):
    install_urlopen(monkeypatch, exc=TimeoutError("timed out"))

    with pytest.raises(UpstreamUnavailableError):
        NominatimGeocoder().forward("London")


def test_invalid_json_is_upstream_unavailable(monkeypatch: pytest.MonkeyPatch):
    install_urlopen(monkeypatch, "<html>rate limited</html>")

    with pytest.raises(UpstreamUnavailableError):
        NominatimGeocoder().forward("London")


def test_undecodable_body_is_upstream_unavailable(monkeypatch: pytest.MonkeyPatch):
    install_urlopen(monkeypatch, b"\xff\xfe[]")

    with pytest.raises(UpstreamUnavailableError):
        NominatimGeocoder().forward("London")


def test_truncated_response_is_upstream_unavailable(monkeypatch: pytest.MonkeyPatch):
    install_urlopen(monkeypatch, exc=http.client.IncompleteRead(b"[{"))

    with pytest.raises(UpstreamUnavailableError):
        NominatimGeocoder().reverse(Coordinates(lat=51.5, lng=-0.12))


def test_malformed_candidate_is_upstream_unavailable(monkeypatch: pytest.MonkeyPatch):
    install_urlopen(monkeypatch, [{"lat": "north", "lon": "0"}])

    with pytest.raises(UpstreamUnavailableError):
        NominatimGeocoder().forward("London")


def test_reverse_returns_display_name(monkeypatch: pytest.MonkeyPatch):
    calls = install_urlopen(monkeypatch, {"display_name": "Soho, London, England"})

    address = NominatimGeocoder().reverse(Coordinates(lat=51.5136, lng=-0.1365))

    assert address == "Soho, London, England"
    query = parse.parse_qs(parse.urlsplit(calls[0]["url"]).query)
    assert query["lat"] == ["51.5136"]
    assert query["lon"] == ["-0.1365"]


def test_reverse_without_match_returns_none(monkeypatch: pytest.MonkeyPatch):
    install_urlopen(monkeypatch, {"error": "Unable to geocode"})

    assert NominatimGeocoder().reverse(Coordinates(lat=0.0, lng=0.0)) is None


def test_null_geocoder_never_resolves():
    geocoder = NullGeocoder()
    assert geocoder.forward("London") is None
    assert geocoder.reverse(Coordinates(lat=0.0, lng=0.0)) is None
