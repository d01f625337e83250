from __future__ import annotations

import os
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from chatrelay.core.config.schema import AppConfig, ProviderConfig
from chatrelay.core.providers.base import ProviderSpec, RequestBuilder, TextExtractor
from chatrelay.core.providers.gemini_adapter import build_gemini_request, extract_gemini_text
from chatrelay.core.providers.openai_compatible import build_chat_request, extract_chat_text
from chatrelay.core.telemetry.logging import get_logger

logger = get_logger(__name__)

WIRE_FORMATS: dict[str, tuple[RequestBuilder, TextExtractor]] = {
    "openai_chat": (build_chat_request, extract_chat_text),
    "gemini_parts": (build_gemini_request, extract_gemini_text),
}

PLACEHOLDER_KEYS = frozenset(
    {
        "your-api-key",
        "your_api_key",
        "your-api-key-here",
        "your_api_key_here",
        "api-key",
        "api_key",
        "changeme",
        "change-me",
        "replace-me",
        "todo",
        "none",
        "null",
        "sk-...",
        "sk-xxx",
    }
)
_FILLER_RE = re.compile(r"^[x*.\-_]+$", re.IGNORECASE)


def is_usable_credential(value: str | None) -> bool:
    token = (value or "").strip()
    if not token:
        return False
    lowered = token.lower()
    if lowered in PLACEHOLDER_KEYS:
        return False
    if lowered.startswith("<") and lowered.endswith(">"):
        return False
    if lowered.startswith("your") and ("key" in lowered or "token" in lowered):
        return False
    return not _FILLER_RE.match(token)


@dataclass(frozen=True, slots=True)
class ProviderRegistry:
    providers: tuple[ProviderSpec, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.providers)

    def __len__(self) -> int:
        return len(self.providers)

    def names(self) -> list[str]:
        return [p.name for p in self.providers]

    def candidates(self) -> Iterator[tuple[ProviderSpec, str]]:
        for spec in self.providers:
            for model in spec.model_candidates:
                yield spec, model


def _disabled_reason(entry: ProviderConfig, environ: Mapping[str, str]) -> str | None:
    if not entry.enabled:
        return "disabled"
    if entry.wire_format not in WIRE_FORMATS:
        return f"unknown wire format {entry.wire_format!r}"
    if not entry.models:
        return "no model candidates"
    if not is_usable_credential(environ.get(entry.api_key_env)):
        return f"missing credential {entry.api_key_env}"
    return None


def build_provider_registry(cfg: AppConfig, environ: Mapping[str, str] | None = None) -> ProviderRegistry:
    env = os.environ if environ is None else environ
    specs: list[ProviderSpec] = []
    for name in dict.fromkeys(cfg.providers.fallback_order):
        entry = cfg.providers.catalog.get(name)
        if entry is None:
            logger.warning("provider_not_in_catalog", provider=name)
            continue
        reason = _disabled_reason(entry, env)
        if reason is not None:
            logger.info("provider_skipped", provider=name, reason=reason)
            continue
        build, extract = WIRE_FORMATS[entry.wire_format]
        specs.append(
            ProviderSpec(
                name=name,
                wire_format=entry.wire_format,
                base_url=entry.base_url,
                api_key=env[entry.api_key_env].strip(),
                model_candidates=tuple(entry.models),
                build_request=build,
                extract_text=extract,
                timeout_seconds=entry.timeout_seconds,
            )
        )
    return ProviderRegistry(providers=tuple(specs))


def describe_providers(cfg: AppConfig, environ: Mapping[str, str] | None = None) -> list[dict]:
    env = os.environ if environ is None else environ
    rows: list[dict] = []
    for name in dict.fromkeys(cfg.providers.fallback_order):
        entry = cfg.providers.catalog.get(name)
        if entry is None:
            rows.append({"name": name, "enabled": False, "reason": "not in catalog", "wire_format": None, "models": []})
            continue
        reason = _disabled_reason(entry, env)
        rows.append(
            {
                "name": name,
                "enabled": reason is None,
                "reason": reason or "ok",
                "wire_format": entry.wire_format,
                "models": list(entry.models),
            }
        )
    return rows
