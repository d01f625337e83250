"""Sequential provider waterfall.

Candidates are the enabled providers in priority order, each expanded into its
model candidates (provider-major). They are tried one at a time; the first
candidate that answers 2xx with non-empty text wins and nothing after it is
invoked. Every tried candidate leaves an ``Attempt`` behind, in order.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from time import perf_counter
from typing import Any

import structlog

from chatrelay.core.orchestrator.models import Attempt, AttemptOutcome, RelayResult
from chatrelay.core.orchestrator.normalizer import normalize
from chatrelay.core.providers.base import Conversation, GenerationParams, Message, ProviderSpec, Role, as_conversation
from chatrelay.core.providers.registry import ProviderRegistry
from chatrelay.core.runtime.errors import (
    AllProvidersFailedError,
    ConfigurationError,
    EmptyConversationError,
    EmptyResponseError,
    ProviderError,
    compact_error_summary,
)
from chatrelay.core.runtime.timeouts import HttpInvoker, Invoker
from chatrelay.core.telemetry.logging import get_logger

logger = get_logger(__name__)


class FallbackSequencer:
    def __init__(
        self,
        registry: ProviderRegistry,
        *,
        timeout_seconds: float = 10.0,
        invoker: Invoker | None = None,
        system_prompt: str | None = None,
    ) -> None:
        self.registry = registry
        self.timeout_seconds = timeout_seconds
        self.invoker: Invoker = invoker or HttpInvoker()
        self.system_prompt = (system_prompt or "").strip() or None

    def candidates(self) -> list[tuple[str, str]]:
        return [(spec.name, model) for spec, model in self.registry.candidates()]

    def _timeout_for(self, spec: ProviderSpec) -> float:
        if spec.timeout_seconds is None:
            return self.timeout_seconds
        return min(spec.timeout_seconds, self.timeout_seconds)

    def _prepare(self, conversation: Conversation) -> Conversation:
        if self.system_prompt is None or any(m.role is Role.SYSTEM for m in conversation):
            return conversation
        return (Message(role=Role.SYSTEM, content=self.system_prompt), *conversation)

    async def _attempt(self, spec: ProviderSpec, model: str, conversation: Conversation, params: GenerationParams) -> tuple[str, int]:
        wire = spec.build_request(spec, model, conversation, params)
        reply = await self.invoker(wire, self._timeout_for(spec))
        text = spec.extract_text(reply.payload)
        if not text:
            raise EmptyResponseError(f"HTTP {reply.status_code} with no usable text")
        return text, reply.status_code

    async def run(
        self,
        conversation: Iterable[Message | dict[str, Any]],
        params: GenerationParams | None = None,
        *,
        request_id: str | None = None,
    ) -> RelayResult:
        convo = as_conversation(conversation)
        if not convo:
            raise EmptyConversationError("conversation must contain at least one message")
        if not self.registry:
            logger.warning("relay_unconfigured")
            raise ConfigurationError("no provider configured: set a credential for at least one provider")

        params = params or GenerationParams()
        convo = self._prepare(convo)
        attempts: list[Attempt] = []

        with structlog.contextvars.bound_contextvars(request_id=request_id or uuid.uuid4().hex[:12]):
            for spec, model in self.registry.candidates():
                started = perf_counter()
                try:
                    text, status_code = await self._attempt(spec, model, convo, params)
                except ProviderError as exc:
                    attempt = Attempt(
                        provider=spec.name,
                        model=model,
                        outcome=exc.outcome,
                        detail=compact_error_summary(exc),
                        status_code=exc.status_code,
                        latency_ms=round((perf_counter() - started) * 1000, 2),
                    )
                    attempts.append(attempt)
                    _log_attempt(attempt)
                    continue

                attempt = Attempt(
                    provider=spec.name,
                    model=model,
                    outcome=AttemptOutcome.SUCCESS,
                    status_code=status_code,
                    latency_ms=round((perf_counter() - started) * 1000, 2),
                )
                attempts.append(attempt)
                _log_attempt(attempt)
                logger.info("relay_succeeded", provider=spec.name, model=model, attempts=len(attempts))
                return RelayResult(response=normalize(spec.name, model, text), attempts=tuple(attempts))

            logger.warning("relay_exhausted", attempts=len(attempts))
        raise AllProvidersFailedError(attempts)


def _log_attempt(attempt: Attempt) -> None:
    log = logger.info if attempt.succeeded else logger.warning
    log(
        "provider_attempt",
        provider=attempt.provider,
        model=attempt.model,
        outcome=attempt.outcome.value,
        status=attempt.status_code,
        latency_ms=attempt.latency_ms,
        detail=attempt.detail,
    )
