from __future__ import annotations

import pytest

from chatrelay.core.orchestrator.models import Attempt, AttemptOutcome, CanonicalResponse
from chatrelay.core.orchestrator.normalizer import normalize, to_chat_completion, to_failure_payload
from chatrelay.core.runtime.errors import AllProvidersFailedError, ConfigurationError


def test_normalize_tags_provider_and_model():
    response = normalize("gemini", "gemini-2.0-flash", "Hi there")
    assert response == CanonicalResponse(provider="gemini", model="gemini-2.0-flash", content="Hi there")


def test_canonical_response_refuses_empty_content():
    with pytest.raises(ValueError):
        CanonicalResponse(provider="groq", model="m", content="")


def test_chat_completion_shape_is_provider_independent():
    payload = to_chat_completion(normalize("groq", "llama-3.3-70b-versatile", "Hello!"))
    assert payload["choices"][0]["message"] == {"role": "assistant", "content": "Hello!"}
    assert payload["provider"] == "groq"
    assert payload["model"] == "llama-3.3-70b-versatile"


def test_failure_payload_distinguishes_unconfigured_from_exhausted():
    unconfigured = to_failure_payload(ConfigurationError("no provider configured"))
    assert unconfigured["error"]["type"] == "no_provider_configured"
    assert unconfigured["error"]["attempts"] == []

    exhausted = to_failure_payload(
        AllProvidersFailedError(
            [Attempt(provider="groq", model="m1", outcome=AttemptOutcome.HTTP_ERROR, detail="UpstreamError: HTTP 429", status_code=429)]
        )
    )
    assert exhausted["error"]["type"] == "all_providers_failed"
    assert exhausted["error"]["attempts"] == [
        {"provider": "groq", "model": "m1", "outcome": "http_error", "status": 429, "message": "UpstreamError: HTTP 429"}
    ]
    assert "groq/m1=http_error" in exhausted["error"]["message"]
