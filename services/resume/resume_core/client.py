from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from libs.core import llm_provider, logging as core_logging
from libs.core.prompts import PromptPair
from libs.core.resume_schema import provider_json_schema

from .errors import GenerationTimeout, InvalidModelOutput, ProviderUnavailable
from .validation import ModelOutputParseError, parse_json_object

LOGGER = core_logging.get_logger("resume")

STRUCTURED_TIER = "structured"
FALLBACK_TIER = "json_mode"

_DEFAULT_TIMEOUT_S = 180.0


@dataclass(frozen=True)
class _Attempt:
    payload: Optional[Dict[str, Any]] = None
    raw_text: str = ""
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.payload is not None


class StructuredAttempt(_Attempt):
    """Outcome of the schema-constrained call."""


class FallbackAttempt(_Attempt):
    """Outcome of the JSON-mode call without a formal schema."""


@dataclass(frozen=True)
class GenerationOutcome:
    payload: Dict[str, Any]
    raw_text: str
    tier: str
    attempts: Tuple[_Attempt, ...]


class GenerationClient:
    """Two-tier structured generation against a single provider.

    The whole pipeline, both tiers included, shares one wall-clock budget.
    Each provider call receives whatever is left of it as its own timeout.
    """

    def __init__(
        self,
        provider: llm_provider.LLMProvider,
        *,
        timeout_s: float = _DEFAULT_TIMEOUT_S,
        json_schema: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.provider = provider
        self.timeout_s = timeout_s if timeout_s and timeout_s > 0 else _DEFAULT_TIMEOUT_S
        self.json_schema = json_schema if json_schema is not None else provider_json_schema()

    def generate(self, prompt: PromptPair) -> GenerationOutcome:
        deadline_at = time.monotonic() + self.timeout_s
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self._run_tiers, prompt, deadline_at)
        try:
            return future.result(timeout=self.timeout_s)
        except FuturesTimeoutError as exc:
            future.cancel()
            LOGGER.warning("llm_generate_timed_out", timeout_s=self.timeout_s, model=self._model())
            raise GenerationTimeout(f"generation timed out after {self.timeout_s:g}s") from exc
        finally:
            # Never block the caller on a hung provider call.
            executor.shutdown(wait=False, cancel_futures=True)

    def attempt_structured(self, prompt: PromptPair, timeout_s: float | None = None) -> StructuredAttempt:
        return self._attempt(StructuredAttempt, prompt, self.json_schema, timeout_s)

    def attempt_fallback(self, prompt: PromptPair, timeout_s: float | None = None) -> FallbackAttempt:
        return self._attempt(FallbackAttempt, prompt, None, timeout_s)

    def _attempt(
        self,
        attempt_type: type,
        prompt: PromptPair,
        json_schema: Optional[Dict[str, Any]],
        timeout_s: float | None,
    ) -> Union[StructuredAttempt, FallbackAttempt]:
        try:
            response = self.provider.generate(
                prompt.system_text,
                prompt.user_text,
                json_schema=json_schema,
                timeout_s=timeout_s,
            )
        except llm_provider.LLMProviderError as exc:
            return attempt_type(error=exc)
        raw_text = response.content or ""
        try:
            payload = parse_json_object(raw_text)
        except ModelOutputParseError as exc:
            return attempt_type(raw_text=raw_text, error=exc)
        return attempt_type(payload=payload, raw_text=raw_text)

    def _run_tiers(self, prompt: PromptPair, deadline_at: float) -> GenerationOutcome:
        started = time.monotonic()
        structured = self.attempt_structured(prompt, timeout_s=_remaining_s(deadline_at))
        if structured.ok:
            return self._finished(STRUCTURED_TIER, structured, (structured,), started)
        self._log_failed(STRUCTURED_TIER, structured)

        remaining = _remaining_s(deadline_at)
        if remaining <= 0:
            raise GenerationTimeout(f"generation timed out after {self.timeout_s:g}s")
        fallback = self.attempt_fallback(prompt, timeout_s=remaining)
        attempts = (structured, fallback)
        if fallback.ok:
            return self._finished(FALLBACK_TIER, fallback, attempts, started)
        self._log_failed(FALLBACK_TIER, fallback)

        error = fallback.error
        if isinstance(error, llm_provider.LLMProviderTimeout):
            raise GenerationTimeout(str(error)) from error
        if isinstance(error, llm_provider.LLMProviderError):
            raise ProviderUnavailable(str(error)) from error
        raise InvalidModelOutput(
            f"model output was not a JSON object: {error}",
            raw_text=fallback.raw_text,
        ) from error

    def _finished(
        self,
        tier: str,
        attempt: _Attempt,
        attempts: Tuple[_Attempt, ...],
        started: float,
    ) -> GenerationOutcome:
        LOGGER.info(
            "llm_generate_finished",
            tier=tier,
            model=self._model(),
            attempts=len(attempts),
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        return GenerationOutcome(
            payload=attempt.payload or {},
            raw_text=attempt.raw_text,
            tier=tier,
            attempts=attempts,
        )

    def _log_failed(self, tier: str, attempt: _Attempt) -> None:
        LOGGER.warning(
            "generation_tier_failed",
            tier=tier,
            model=self._model(),
            error=str(attempt.error),
            error_type=type(attempt.error).__name__,
            raw_chars=len(attempt.raw_text),
        )

    def _model(self) -> str:
        model = getattr(self.provider, "model", None)
        return model.strip() if isinstance(model, str) else ""


def _remaining_s(deadline_at: float) -> float:
    return deadline_at - time.monotonic()
