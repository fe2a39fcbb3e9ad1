from __future__ import annotations

import pytest
import requests

from covid_ingest.common.http import HttpClient, HttpRequestError, RetryConfig, RetryableHttpError


class FakeResponse:
    def __init__(self, status_code: int, payload=None, raises_json: bool = False):
        self.status_code = status_code
        self._payload = payload
        self._raises_json = raises_json

    def json(self):
        if self._raises_json:
            raise ValueError("bad json")
        return self._payload


def test_http_get_json_success(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))

    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, {"ok": True}))
    payload = client.get_json("https://example.com")

    assert payload == {"ok": True}


def test_http_passes_query_params(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    seen = {}

    def fake_request(**kwargs):
        seen.update(kwargs)
        return FakeResponse(200, {"status": "OK"})

    monkeypatch.setattr(client.session, "request", fake_request)
    client.get_json("https://example.com/geocode", params={"components": "country:GE"})

    assert seen["method"] == "GET"
    assert seen["params"] == {"components": "country:GE"}
    assert seen["headers"]["User-Agent"].startswith("covid-ingest/")


def test_http_retryable_status_raises_retryable_error(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(503, {"x": 1}))

    with pytest.raises(RetryableHttpError):
        client.get_json("https://example.com")


def test_http_retries_until_success(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=3, multiplier=0.0, max_wait=0.0))
    responses = iter([FakeResponse(503), FakeResponse(200, {"ok": 2})])
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: next(responses))
    monkeypatch.setattr("time.sleep", lambda _seconds: None)

    assert client.get_json("https://example.com") == {"ok": 2}


def test_http_connection_failure_is_retryable(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))

    def refuse(**_kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(client.session, "request", refuse)

    with pytest.raises(RetryableHttpError):
        client.get_json("https://example.com")


def test_http_invalid_json_raises(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, raises_json=True))

    with pytest.raises(HttpRequestError):
        client.get_json("https://example.com")


def test_http_other_request_failures_are_not_retried(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=3, multiplier=0.0, max_wait=0.0))
    calls = []

    def redirect_loop(**_kwargs):
        calls.append(1)
        raise requests.TooManyRedirects("Exceeded 30 redirects.")

    monkeypatch.setattr(client.session, "request", redirect_loop)

    with pytest.raises(HttpRequestError) as excinfo:
        client.get_json("https://example.com")
    assert not isinstance(excinfo.value, RetryableHttpError)
    assert len(calls) == 1
