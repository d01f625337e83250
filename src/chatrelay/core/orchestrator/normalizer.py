from __future__ import annotations

from chatrelay.core.orchestrator.models import CanonicalResponse
from chatrelay.core.runtime.errors import AllProvidersFailedError, ConfigurationError, RelayError


def normalize(provider: str, model: str, text: str) -> CanonicalResponse:
    return CanonicalResponse(provider=provider, model=model, content=text)


def to_chat_completion(response: CanonicalResponse) -> dict:
    return {
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": response.content},
                "finish_reason": "stop",
            }
        ],
        "provider": response.provider,
        "model": response.model,
    }


def to_failure_payload(error: RelayError) -> dict:
    if isinstance(error, ConfigurationError):
        kind = "no_provider_configured"
        attempts: list[dict] = []
    elif isinstance(error, AllProvidersFailedError):
        kind = "all_providers_failed"
        attempts = [a.to_dict() for a in error.attempts]
    else:
        kind = "relay_error"
        attempts = []
    return {"error": {"type": kind, "message": str(error), "attempts": attempts}}
