from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from chatrelay.core.config.schema import AppConfig


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    content = yaml.safe_load(path.read_text(encoding="utf-8"))
    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return content


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _apply_env_overrides(merged: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}

    if environ.get("CHATRELAY_ENVIRONMENT"):
        overrides["environment"] = environ["CHATRELAY_ENVIRONMENT"]
    if environ.get("CHATRELAY_TIMEOUT_SECONDS"):
        overrides.setdefault("runtime", {})["provider_timeout_seconds"] = environ["CHATRELAY_TIMEOUT_SECONDS"]
    if environ.get("CHATRELAY_LOG_LEVEL"):
        overrides.setdefault("telemetry", {})["log_level"] = environ["CHATRELAY_LOG_LEVEL"]
    if environ.get("ALLOWED_ORIGINS"):
        overrides.setdefault("api", {})["allowed_origins"] = _split_csv(environ["ALLOWED_ORIGINS"])
    if environ.get("CHATRELAY_FALLBACK_ORDER"):
        overrides.setdefault("providers", {})["fallback_order"] = _split_csv(environ["CHATRELAY_FALLBACK_ORDER"])

    catalog = merged.get("providers", {}).get("catalog", {})
    for name in catalog:
        prefix = name.upper().replace("-", "_")
        entry: dict[str, Any] = {}
        base_url = environ.get(f"{prefix}_BASE_URL", "").strip()
        if base_url:
            entry["base_url"] = base_url
        models = _split_csv(environ.get(f"{prefix}_MODELS", ""))
        if models:
            entry["models"] = models
        if entry:
            overrides.setdefault("providers", {}).setdefault("catalog", {})[name] = entry

    return _deep_merge(merged, overrides)


def load_app_config(
    defaults_path: str | Path = "config/defaults.yaml",
    instance_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    env = os.environ if environ is None else environ

    builtin = AppConfig().model_dump(mode="json")
    defaults = _load_yaml(Path(defaults_path))

    explicit_instance = instance_path or env.get("CHATRELAY_CONFIG_FILE")
    instance = _load_yaml(Path(explicit_instance)) if explicit_instance else {}

    merged = _deep_merge(_deep_merge(builtin, defaults), instance)
    merged = _apply_env_overrides(merged, env)

    try:
        return AppConfig.model_validate(merged)
    except ValidationError as exc:
        raise ValueError(f"Invalid chatrelay configuration: {exc}") from exc
