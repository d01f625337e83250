"""Parts-based ``generateContent`` schema used by Gemini.

The schema only knows two roles, ``user`` and ``model``. System instructions
are folded into the first user turn.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from chatrelay.core.providers.base import GenerationParams, Message, ProviderSpec, Role, WireRequest

SYSTEM_PREFIX = "System instructions:\n"


def _turn(role: str, text: str) -> dict[str, Any]:
    return {"role": role, "parts": [{"text": text}]}


def format_contents(conversation: Sequence[Message]) -> list[dict[str, Any]]:
    system_text = "\n\n".join(m.content for m in conversation if m.role is Role.SYSTEM and m.content)
    contents = [
        _turn("model" if m.role is Role.ASSISTANT else "user", m.content)
        for m in conversation
        if m.role is not Role.SYSTEM
    ]
    if not system_text:
        return contents

    block = f"{SYSTEM_PREFIX}{system_text}"
    if contents and contents[0]["role"] == "user":
        first_text = contents[0]["parts"][0]["text"]
        contents[0] = _turn("user", f"{block}\n\n{first_text}")
    else:
        contents.insert(0, _turn("user", block))
    return contents


def build_gemini_request(
    spec: ProviderSpec,
    model: str,
    conversation: Sequence[Message],
    params: GenerationParams,
) -> WireRequest:
    payload = {
        "contents": format_contents(conversation),
        "generationConfig": {
            "temperature": params.temperature,
            "maxOutputTokens": params.max_output_tokens,
        },
    }
    headers = {
        "x-goog-api-key": spec.api_key,
        "Content-Type": "application/json",
    }
    url = f"{spec.base_url.rstrip('/')}/models/{model}:generateContent"
    return WireRequest(url=url, headers=headers, body=payload)


def extract_gemini_text(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return ""
    content = candidates[0].get("content") or {}
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
    return "".join(texts).strip()
