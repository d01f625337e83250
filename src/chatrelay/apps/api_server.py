from __future__ import annotations

import uvicorn
from fastapi import Body, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chatrelay import __version__
from chatrelay.apps.runtime_support import RelayRuntime, build_relay_runtime
from chatrelay.apps.schemas import ChatRequestModel, ProviderStatusModel
from chatrelay.cli import base_parser
from chatrelay.core.orchestrator.normalizer import to_chat_completion, to_failure_payload
from chatrelay.core.providers.base import GenerationParams, Message
from chatrelay.core.runtime.errors import AllProvidersFailedError, ConfigurationError


def _cors_origins(allowed: list[str]) -> list[str]:
    if not allowed or "*" in allowed:
        return ["*"]
    return allowed


def create_app(config_path: str | None = None, *, runtime: RelayRuntime | None = None) -> FastAPI:
    runtime = runtime or build_relay_runtime(config_path=config_path)
    app = FastAPI(title="chatrelay", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(runtime.cfg.api.allowed_origins),
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.get("/health")
    def health() -> dict:
        return {
            "status": "ok",
            "version": __version__,
            "environment": runtime.cfg.environment,
            "providers": runtime.registry.names(),
            "candidates": len(runtime.sequencer.candidates()),
        }

    @app.get("/providers")
    def providers() -> dict:
        return {"items": [ProviderStatusModel(**row).model_dump() for row in runtime.provider_rows]}

    @app.post("/api/ai")
    async def relay_chat(payload: ChatRequestModel | None = Body(default=None)) -> JSONResponse:
        if payload is None or not payload.messages:
            return JSONResponse(status_code=400, content={"error": "messages must be a non-empty array"})

        defaults = runtime.cfg.runtime
        params = GenerationParams(
            temperature=defaults.default_temperature if payload.temperature is None else payload.temperature,
            max_output_tokens=defaults.default_max_tokens if payload.max_tokens is None else payload.max_tokens,
        )
        conversation = [Message(role=m.role, content=m.content) for m in payload.messages]

        try:
            result = await runtime.sequencer.run(conversation, params)
        except ConfigurationError as exc:
            return JSONResponse(status_code=503, content=to_failure_payload(exc))
        except AllProvidersFailedError as exc:
            return JSONResponse(status_code=502, content=to_failure_payload(exc))
        return JSONResponse(status_code=200, content=to_chat_completion(result.response))

    return app


def main() -> int:
    parser = base_parser("chatrelay-api", "chatrelay chat-completion relay API")
    parser.add_argument("--config", default=None, help="Config file path")
    parser.add_argument("--host", default=None)
    parser.add_argument("--port", type=int, default=None)
    args = parser.parse_args()

    runtime = build_relay_runtime(config_path=args.config)
    api = create_app(runtime=runtime)
    uvicorn.run(
        api,
        host=args.host or runtime.cfg.api.host,
        port=args.port or runtime.cfg.api.port,
        log_level=runtime.cfg.telemetry.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
