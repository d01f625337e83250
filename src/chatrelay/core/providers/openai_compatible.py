from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from chatrelay.core.providers.base import GenerationParams, Message, ProviderSpec, WireRequest


def build_chat_request(
    spec: ProviderSpec,
    model: str,
    conversation: Sequence[Message],
    params: GenerationParams,
) -> WireRequest:
    payload = {
        "model": model,
        "messages": [m.to_dict() for m in conversation],
        "temperature": params.temperature,
        "max_tokens": params.max_output_tokens,
    }
    headers = {
        "Authorization": f"Bearer {spec.api_key}",
        "Content-Type": "application/json",
    }
    return WireRequest(url=f"{spec.base_url.rstrip('/')}/chat/completions", headers=headers, body=payload)


def extract_chat_text(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0] if isinstance(choices[0], dict) else {}
    message = first.get("message") or {}
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content.strip() if isinstance(content, str) else ""
