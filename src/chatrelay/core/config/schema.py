from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class InstanceConfig(FrozenModel):
    name: str = "chatrelay"


class RuntimeConfig(FrozenModel):
    provider_timeout_seconds: float = Field(default=10.0, gt=0)
    default_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    default_max_tokens: int = Field(default=800, ge=1, le=32768)
    system_prompt: str | None = None


class TelemetryConfig(FrozenModel):
    log_level: str = "INFO"
    json_logs: bool = True


class ApiConfig(FrozenModel):
    host: str = "127.0.0.1"
    port: int = 8080
    allowed_origins: list[str] = Field(default_factory=list)


class ProviderConfig(FrozenModel):
    enabled: bool = True
    wire_format: str = "openai_chat"
    base_url: str
    api_key_env: str
    models: list[str] = Field(default_factory=list)
    timeout_seconds: float | None = Field(default=None, gt=0)


def _default_catalog() -> dict[str, ProviderConfig]:
    return {
        "groq": ProviderConfig(
            wire_format="openai_chat",
            base_url="https://api.groq.com/openai/v1",
            api_key_env="GROQ_API_KEY",
            models=["llama-3.3-70b-versatile", "llama-3.1-8b-instant"],
        ),
        "gemini": ProviderConfig(
            wire_format="gemini_parts",
            base_url="https://generativelanguage.googleapis.com/v1beta",
            api_key_env="GEMINI_API_KEY",
            models=["gemini-2.0-flash", "gemini-1.5-flash"],
        ),
        "openai": ProviderConfig(
            wire_format="openai_chat",
            base_url="https://api.openai.com/v1",
            api_key_env="OPENAI_API_KEY",
            models=["gpt-4o-mini"],
        ),
    }


class ProvidersConfig(FrozenModel):
    fallback_order: list[str] = Field(default_factory=lambda: ["groq", "gemini", "openai"])
    catalog: dict[str, ProviderConfig] = Field(default_factory=_default_catalog)


class AppConfig(FrozenModel):
    instance: InstanceConfig = Field(default_factory=InstanceConfig)
    environment: str = "dev"
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
