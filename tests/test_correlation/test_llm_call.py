"""Tests for the guarded litellm call: breaker, rate-limit retry."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from circuitbreaker import CircuitBreakerError
from litellm.exceptions import RateLimitError
from tenacity import wait_none

from workstory.correlation._llm_call import breakers, guarded_llm_call

MESSAGES = [{"role": "user", "content": "hi"}]
ACOMPLETION = "workstory.correlation._llm_call._acompletion"


@pytest.fixture(autouse=True)
def _reset_breakers() -> None:
    breakers.reset()


@pytest.fixture(autouse=True)
def _disable_retry_wait() -> Any:
    with patch("workstory.correlation._llm_call._RETRY_WAIT", wait_none()):
        yield


def _completion(content: str) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=3),
    )


def _rate_limited() -> RateLimitError:
    return RateLimitError(
        "slow down", llm_provider="openai", model="quick-model"
    )


class TestCompletion:
    async def test_returns_content_and_usage(self) -> None:
        with patch(
            ACOMPLETION,
            new_callable=AsyncMock,
            return_value=_completion('{"correlations": []}'),
        ) as mock:
            result = await guarded_llm_call("quick-model", MESSAGES, 10)
        assert result.content == '{"correlations": []}'
        assert (result.input_tokens, result.output_tokens) == (12, 3)
        kwargs = mock.call_args.kwargs
        assert kwargs["temperature"] == 0
        assert kwargs["response_format"] == {"type": "json_object"}

    async def test_json_mode_off(self) -> None:
        with patch(
            ACOMPLETION,
            new_callable=AsyncMock,
            return_value=_completion("plain"),
        ) as mock:
            await guarded_llm_call(
                "quick-model", MESSAGES, 10, json_mode=False
            )
        assert "response_format" not in mock.call_args.kwargs


class TestCircuitBreaker:
    async def test_circuit_opens_after_threshold(self) -> None:
        with patch(
            ACOMPLETION,
            new_callable=AsyncMock,
            side_effect=ConnectionError("API down"),
        ):
            for _ in range(5):
                with pytest.raises(ConnectionError):
                    await guarded_llm_call("quick-model", MESSAGES, 10)

            with pytest.raises(CircuitBreakerError):
                await guarded_llm_call("quick-model", MESSAGES, 10)

    async def test_breakers_are_per_model(self) -> None:
        with patch(
            ACOMPLETION,
            new_callable=AsyncMock,
            side_effect=ConnectionError("API down"),
        ):
            for _ in range(5):
                with pytest.raises(ConnectionError):
                    await guarded_llm_call("quick-model", MESSAGES, 10)

        with patch(
            ACOMPLETION,
            new_callable=AsyncMock,
            return_value=_completion("{}"),
        ):
            result = await guarded_llm_call("premium-model", MESSAGES, 10)
        assert result.model == "premium-model"


class TestRateLimitRetry:
    async def test_retries_then_succeeds(self) -> None:
        mock = AsyncMock(side_effect=[_rate_limited(), _completion("{}")])
        with patch(ACOMPLETION, mock):
            result = await guarded_llm_call("quick-model", MESSAGES, 10)
        assert result.content == "{}"
        assert mock.await_count == 2

    async def test_gives_up_after_max_attempts(self) -> None:
        mock = AsyncMock(side_effect=_rate_limited())
        with patch(ACOMPLETION, mock), pytest.raises(RateLimitError):
            await guarded_llm_call("quick-model", MESSAGES, 10)
        assert mock.await_count == 3

    async def test_rate_limits_do_not_open_breaker(self) -> None:
        with patch(
            ACOMPLETION,
            new_callable=AsyncMock,
            side_effect=_rate_limited(),
        ):
            for _ in range(6):
                with pytest.raises(RateLimitError):
                    await guarded_llm_call("quick-model", MESSAGES, 10)

        with patch(
            ACOMPLETION,
            new_callable=AsyncMock,
            return_value=_completion("{}"),
        ):
            result = await guarded_llm_call("quick-model", MESSAGES, 10)
        assert result.content == "{}"

    async def test_other_errors_are_not_retried(self) -> None:
        mock = AsyncMock(side_effect=ValueError("bad request"))
        with patch(ACOMPLETION, mock), pytest.raises(ValueError):
            await guarded_llm_call("quick-model", MESSAGES, 10)
        assert mock.await_count == 1
