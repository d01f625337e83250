from __future__ import annotations

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from chatrelay.apps.api_server import create_app
from chatrelay.apps.runtime_support import build_relay_runtime
from chatrelay.core.config.schema import ApiConfig
from chatrelay.core.runtime.timeouts import HttpInvoker

from conftest import two_provider_config


class UpstreamStub:
    """Answers alpha/beta upstream calls from a per-host script and records the request bodies."""

    def __init__(self, **responses: httpx.Response):
        self.responses = responses
        self.bodies: dict[str, list[dict]] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host.split(".")[0]
        self.bodies.setdefault(host, []).append(json.loads(request.content))
        return self.responses[host]


def _client(stub: UpstreamStub, environ: dict[str, str], **cfg_updates) -> TestClient:
    cfg = two_provider_config()
    if cfg_updates:
        cfg = cfg.model_copy(update=cfg_updates)
    runtime = build_relay_runtime(cfg=cfg, environ=environ, invoker=HttpInvoker(httpx.MockTransport(stub)))
    return TestClient(create_app(runtime=runtime))


BOTH_KEYS = {"ALPHA_KEY": "a-live", "BETA_KEY": "b-live"}


def test_relay_returns_canonical_completion():
    stub = UpstreamStub(alpha=httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": "Hi there"}}]}))
    client = _client(stub, BOTH_KEYS)

    resp = client.post("/api/ai", json={"messages": [{"role": "user", "content": "Hello"}]})

    assert resp.status_code == 200
    body = resp.json()
    assert body["choices"][0]["message"] == {"role": "assistant", "content": "Hi there"}
    assert body["provider"] == "alpha"
    assert body["model"] == "alpha-large"
    assert stub.bodies["alpha"][0]["temperature"] == 0.7
    assert stub.bodies["alpha"][0]["max_tokens"] == 800
    assert "beta" not in stub.bodies


def test_relay_falls_back_and_passes_generation_params():
    stub = UpstreamStub(
        alpha=httpx.Response(500, text="internal error"),
        beta=httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "from beta"}]}}]}),
    )
    client = _client(stub, BOTH_KEYS)

    resp = client.post(
        "/api/ai",
        json={"messages": [{"role": "user", "content": "Hello"}], "temperature": 0.2, "max_tokens": 50},
    )

    assert resp.status_code == 200
    assert resp.json()["provider"] == "beta"
    assert resp.json()["choices"][0]["message"]["content"] == "from beta"
    assert stub.bodies["beta"][0]["generationConfig"] == {"temperature": 0.2, "maxOutputTokens": 50}


@pytest.mark.parametrize("payload", [{"messages": []}, {}])
def test_relay_rejects_missing_or_empty_messages(payload):
    stub = UpstreamStub()
    client = _client(stub, BOTH_KEYS)
    resp = client.post("/api/ai", json=payload)
    assert resp.status_code == 400
    assert "error" in resp.json()
    assert stub.bodies == {}


def test_relay_rejects_request_without_body():
    stub = UpstreamStub()
    client = _client(stub, BOTH_KEYS)
    resp = client.post("/api/ai")
    assert resp.status_code == 400
    assert resp.json() == {"error": "messages must be a non-empty array"}
    assert stub.bodies == {}


def test_relay_rejects_out_of_range_temperature():
    client = _client(UpstreamStub(), BOTH_KEYS)
    resp = client.post("/api/ai", json={"messages": [{"role": "user", "content": "hi"}], "temperature": 9})
    assert resp.status_code == 422


def test_relay_without_credentials_reports_no_provider_configured():
    stub = UpstreamStub()
    client = _client(stub, {"ALPHA_KEY": "changeme"})

    resp = client.post("/api/ai", json={"messages": [{"role": "user", "content": "Hello"}]})

    assert resp.status_code == 503
    assert resp.json()["error"]["type"] == "no_provider_configured"
    assert stub.bodies == {}


def test_relay_reports_every_failed_attempt():
    stub = UpstreamStub(
        alpha=httpx.Response(401, json={"error": "bad key"}),
        beta=httpx.Response(200, json={"candidates": [{"finishReason": "SAFETY"}]}),
    )
    client = _client(stub, BOTH_KEYS)

    resp = client.post("/api/ai", json={"messages": [{"role": "user", "content": "Hello"}]})

    assert resp.status_code == 502
    error = resp.json()["error"]
    assert error["type"] == "all_providers_failed"
    assert [(a["provider"], a["outcome"], a["status"]) for a in error["attempts"]] == [
        ("alpha", "http_error", 401),
        ("beta", "empty_response", None),
    ]


def test_relay_only_accepts_post():
    client = _client(UpstreamStub(), BOTH_KEYS)
    assert client.get("/api/ai").status_code == 405


def test_cors_preflight_allows_any_origin_by_default():
    client = _client(UpstreamStub(), BOTH_KEYS)
    resp = client.options(
        "/api/ai",
        headers={"Origin": "https://chat.example", "Access-Control-Request-Method": "POST"},
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"


def test_cors_allowlist_echoes_known_origin_only():
    client = _client(UpstreamStub(), BOTH_KEYS, api=ApiConfig(allowed_origins=["https://chat.example"]))

    allowed = client.options(
        "/api/ai",
        headers={"Origin": "https://chat.example", "Access-Control-Request-Method": "POST"},
    )
    assert allowed.headers["access-control-allow-origin"] == "https://chat.example"

    denied = client.options(
        "/api/ai",
        headers={"Origin": "https://evil.example", "Access-Control-Request-Method": "POST"},
    )
    assert "access-control-allow-origin" not in denied.headers


def test_health_and_providers_endpoints():
    client = _client(UpstreamStub(), {"BETA_KEY": "b-live"})

    health = client.get("/health").json()
    assert health["status"] == "ok"
    assert health["providers"] == ["beta"]
    assert health["candidates"] == 1

    items = {row["name"]: row for row in client.get("/providers").json()["items"]}
    assert items["alpha"]["enabled"] is False
    assert items["alpha"]["reason"] == "missing credential ALPHA_KEY"
    assert items["beta"]["enabled"] is True
