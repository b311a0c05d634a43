"""Tests for model catalog providers."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from urllib.error import HTTPError, URLError

from modelpick import catalog as catalog_module
from modelpick.catalog import HttpModelCatalog, StaticModelCatalog, build_catalog
from modelpick.configuration import ConfigurationBundle


class _FakeResponse:
    def __init__(self, body: bytes) -> None:
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> bool:
        return False


def _bundle(tmp_path: Path, catalog: dict, models: dict | None = None) -> ConfigurationBundle:
    return ConfigurationBundle(
        home_dir=tmp_path,
        status="ready",
        merged={"catalog": catalog, "models": models or {}},
    )


def test_static_catalog_returns_a_copy():
    catalog = StaticModelCatalog(["gpt-4o", "o3"], ["o3"])

    first = asyncio.run(catalog.fetch_available_models())
    first.append("mutated")

    assert asyncio.run(catalog.fetch_available_models()) == ["gpt-4o", "o3"]
    assert catalog.recommended_models == ("o3",)


def test_http_catalog_parses_model_ids(monkeypatch):
    requests = []

    def fake_urlopen(req, timeout):
        requests.append((req, timeout))
        payload = {"data": [{"id": "o3"}, {"id": "gpt-4o"}, {"object": "model"}]}
        return _FakeResponse(json.dumps(payload).encode("utf-8"))

    monkeypatch.setattr(catalog_module, "urlopen", fake_urlopen)
    catalog = HttpModelCatalog(base_url="https://example.test/v1/", api_key="sk-test", timeout=2.0)

    models = asyncio.run(catalog.fetch_available_models())

    assert models == ["gpt-4o", "o3"]
    req, timeout = requests[0]
    assert req.full_url == "https://example.test/v1/models"
    assert req.get_header("Authorization") == "Bearer sk-test"
    assert timeout == 2.0


def test_http_catalog_caches_first_result(monkeypatch):
    calls = []

    def fake_urlopen(req, timeout):
        calls.append(req)
        return _FakeResponse(b'{"data": [{"id": "o3"}]}')

    monkeypatch.setattr(catalog_module, "urlopen", fake_urlopen)
    catalog = HttpModelCatalog(api_key="sk-test")

    async def _fetch_twice():
        return await catalog.fetch_available_models(), await catalog.fetch_available_models()

    first, second = asyncio.run(_fetch_twice())

    assert first == second == ["o3"]
    assert len(calls) == 1


def test_http_catalog_without_key_is_empty(monkeypatch):
    def fail_urlopen(req, timeout):
        raise AssertionError("no request expected without an API key")

    monkeypatch.setattr(catalog_module, "urlopen", fail_urlopen)

    assert asyncio.run(HttpModelCatalog(api_key=None).fetch_available_models()) == []


def test_http_catalog_degrades_on_errors(monkeypatch):
    errors = [
        HTTPError("https://example.test/v1/models", 401, "unauthorized", {}, None),
        URLError("offline"),
    ]
    for error in errors:
        def fake_urlopen(req, timeout, error=error):
            raise error

        monkeypatch.setattr(catalog_module, "urlopen", fake_urlopen)
        catalog = HttpModelCatalog(api_key="sk-test")
        assert asyncio.run(catalog.fetch_available_models()) == []


def test_http_catalog_ignores_malformed_payload(monkeypatch):
    monkeypatch.setattr(catalog_module, "urlopen", lambda req, timeout: _FakeResponse(b"not json"))
    assert asyncio.run(HttpModelCatalog(api_key="sk-test").fetch_available_models()) == []

    monkeypatch.setattr(catalog_module, "urlopen", lambda req, timeout: _FakeResponse(b'{"data": 5}'))
    assert asyncio.run(HttpModelCatalog(api_key="sk-test").fetch_available_models()) == []


def test_build_catalog_static(tmp_path: Path):
    catalog = build_catalog(
        _bundle(tmp_path, {"source": "static", "models": ["a", "b"]}, {"recommended": ["b"]})
    )

    assert isinstance(catalog, StaticModelCatalog)
    assert asyncio.run(catalog.fetch_available_models()) == ["a", "b"]
    assert catalog.recommended_models == ("b",)


def test_build_catalog_http_reads_key_from_env(tmp_path: Path):
    catalog = build_catalog(
        _bundle(
            tmp_path,
            {"source": "http", "base_url": "https://example.test/v1", "api_key_env": "TEST_KEY"},
        ),
        env={"TEST_KEY": "sk-env"},
    )

    assert isinstance(catalog, HttpModelCatalog)
    assert catalog.api_key == "sk-env"
    assert catalog.base_url == "https://example.test/v1"
    assert catalog.recommended_models == ("o4-mini", "o3")
