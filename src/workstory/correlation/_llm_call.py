"""litellm completion behind a per-model circuit breaker.

Rate limits are retried here (tenacity, jittered exponential backoff)
and never count as breaker failures; any other error counts against
the model's breaker and propagates. Once a breaker is open, calls for
that model raise ``CircuitBreakerError`` without touching the network
until the recovery timeout passes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import litellm
from circuitbreaker import (  # pyright: ignore[reportUnknownVariableType]
    CircuitBreaker,
    CircuitBreakerError,
)
from litellm.exceptions import RateLimitError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from workstory.constants import (
    CB_LLM_FAILURE_THRESHOLD,
    CB_LLM_RECOVERY_TIMEOUT,
    LLM_MAX_OUTPUT_TOKENS,
    RETRY_INITIAL_WAIT,
    RETRY_MAX_ATTEMPTS,
    RETRY_MAX_WAIT,
)

logger = logging.getLogger(__name__)

# litellm stubs have partially unknown types
if TYPE_CHECKING:
    _acompletion: Callable[..., Coroutine[Any, Any, Any]]
else:
    _acompletion = litellm.acompletion

_RETRY_WAIT = wait_exponential_jitter(
    initial=RETRY_INITIAL_WAIT, max=RETRY_MAX_WAIT
)


@dataclass(frozen=True)
class LLMCallResult:
    content: str
    model: str
    input_tokens: int
    output_tokens: int


def _counts_as_failure(thrown_type: type, _value: BaseException) -> bool:
    return not issubclass(thrown_type, RateLimitError)


class ModelBreakers:
    """One lazily created breaker per model name.

    An outage of the premium model never trips the quick model's
    breaker, and the other way round.
    """

    def __init__(
        self,
        failure_threshold: int = CB_LLM_FAILURE_THRESHOLD,
        recovery_timeout: int = CB_LLM_RECOVERY_TIMEOUT,
    ) -> None:
        self._failure_threshold = failure_threshold
        self._recovery_timeout = recovery_timeout
        self._by_model: dict[str, CircuitBreaker] = {}  # pyright: ignore[reportUnknownVariableType]

    def get(self, model: str) -> CircuitBreaker:  # pyright: ignore[reportUnknownParameterType]
        breaker = self._by_model.get(model)
        if breaker is None:
            breaker = CircuitBreaker(  # pyright: ignore[reportUnknownMemberType]
                failure_threshold=self._failure_threshold,
                recovery_timeout=self._recovery_timeout,
                expected_exception=_counts_as_failure,
                name=f"llm_{model}",
            )
            self._by_model[model] = breaker
        return breaker

    def reset(self) -> None:
        self._by_model.clear()


breakers = ModelBreakers()


def _request(
    model: str,
    messages: list[dict[str, str]],
    timeout: int,
    json_mode: bool,
) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "model": model,
        "messages": messages,
        "timeout": timeout,
        "max_tokens": LLM_MAX_OUTPUT_TOKENS,
        "temperature": 0,
    }
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}
    return kwargs


def _to_result(model: str, response: Any) -> LLMCallResult:
    usage: Any = getattr(response, "usage", None)
    return LLMCallResult(
        content=str(response.choices[0].message.content or ""),
        model=model,
        input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
        output_tokens=getattr(usage, "completion_tokens", 0) or 0,
    )


async def guarded_llm_call(
    model: str,
    messages: list[dict[str, str]],
    timeout: int,
    *,
    json_mode: bool = True,
) -> LLMCallResult:
    breaker = breakers.get(model)
    response: Any = None
    retrying = AsyncRetrying(
        stop=stop_after_attempt(RETRY_MAX_ATTEMPTS),
        wait=_RETRY_WAIT,
        retry=retry_if_exception_type(RateLimitError),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            if breaker.opened:  # pyright: ignore[reportUnknownMemberType]
                raise CircuitBreakerError(breaker)  # pyright: ignore[reportUnknownArgumentType]
            with breaker:  # pyright: ignore[reportUnknownMemberType]
                response = await _acompletion(
                    **_request(model, messages, timeout, json_mode)
                )

    result = _to_result(model, response)
    logger.debug(
        "event=llm_call_complete model=%s input_tokens=%d output_tokens=%d",
        model,
        result.input_tokens,
        result.output_tokens,
    )
    return result
