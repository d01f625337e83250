from __future__ import annotations

import pytest

from chatrelay.core.config.schema import AppConfig, ProviderConfig, ProvidersConfig, RuntimeConfig
from chatrelay.core.providers.base import RawReply


class ScriptedInvoker:
    """Plays back one scripted outcome per call and records every wire request."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    async def __call__(self, wire, timeout_seconds):
        self.calls.append((wire, timeout_seconds))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def chat_reply(text: str) -> RawReply:
    return RawReply(status_code=200, payload={"choices": [{"message": {"role": "assistant", "content": text}}]})


def gemini_reply(*texts: str) -> RawReply:
    parts = [{"text": t} for t in texts]
    return RawReply(status_code=200, payload={"candidates": [{"content": {"role": "model", "parts": parts}}]})


def two_provider_config(timeout_seconds: float = 5.0, alpha_timeout: float | None = None, **runtime) -> AppConfig:
    return AppConfig(
        runtime=RuntimeConfig(provider_timeout_seconds=timeout_seconds, **runtime),
        providers=ProvidersConfig(
            fallback_order=["alpha", "beta"],
            catalog={
                "alpha": ProviderConfig(
                    wire_format="openai_chat",
                    base_url="https://alpha.test/v1",
                    api_key_env="ALPHA_KEY",
                    models=["alpha-large"],
                    timeout_seconds=alpha_timeout,
                ),
                "beta": ProviderConfig(
                    wire_format="gemini_parts",
                    base_url="https://beta.test/v1beta",
                    api_key_env="BETA_KEY",
                    models=["beta-flash"],
                ),
            },
        ),
    )


@pytest.fixture
def keys_env() -> dict[str, str]:
    return {"GROQ_API_KEY": "gsk_live_123", "GEMINI_API_KEY": "AIza-live-456"}
