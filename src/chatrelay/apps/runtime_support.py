from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from chatrelay.core.config.loader import load_app_config
from chatrelay.core.config.schema import AppConfig
from chatrelay.core.orchestrator.sequencer import FallbackSequencer
from chatrelay.core.providers.registry import ProviderRegistry, build_provider_registry, describe_providers
from chatrelay.core.runtime.timeouts import Invoker
from chatrelay.core.telemetry.logging import configure_logging


@dataclass(slots=True)
class RelayRuntime:
    cfg: AppConfig
    registry: ProviderRegistry
    sequencer: FallbackSequencer
    provider_rows: list[dict]


def build_relay_runtime(
    config_path: str | None = None,
    *,
    cfg: AppConfig | None = None,
    environ: Mapping[str, str] | None = None,
    invoker: Invoker | None = None,
) -> RelayRuntime:
    cfg = cfg or load_app_config(instance_path=config_path, environ=environ)
    configure_logging(cfg.telemetry.log_level, cfg.telemetry.json_logs)
    registry = build_provider_registry(cfg, environ=environ)
    sequencer = FallbackSequencer(
        registry,
        timeout_seconds=cfg.runtime.provider_timeout_seconds,
        invoker=invoker,
        system_prompt=cfg.runtime.system_prompt,
    )
    return RelayRuntime(
        cfg=cfg,
        registry=registry,
        sequencer=sequencer,
        provider_rows=describe_providers(cfg, environ=environ),
    )
