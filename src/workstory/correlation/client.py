"""Inference client interface and its litellm implementation.

The correlation agent depends on ``InferenceClient`` structurally;
tests pass a plain fake or an ``AsyncMock`` with the same signature.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from workstory.config import Settings
from workstory.constants import InferenceTier
from workstory.correlation._llm_call import guarded_llm_call

logger = logging.getLogger(__name__)


class InferenceClient(Protocol):
    async def complete(
        self, tier: InferenceTier, messages: list[dict[str, str]]
    ) -> str: ...


class LiteLLMInferenceClient:
    """Maps tiers to configured models and calls them through litellm."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or Settings()

    def model_for(self, tier: InferenceTier) -> str:
        if tier == InferenceTier.PREMIUM:
            return self._settings.premium_model
        return self._settings.quick_model

    async def complete(
        self, tier: InferenceTier, messages: list[dict[str, str]]
    ) -> str:
        """Return raw completion text; raises on any transport failure.

        The outer ``wait_for`` bounds the whole call, rate-limit retries
        included.
        """
        model = self.model_for(tier)
        timeout = self._settings.llm_timeout_seconds
        result = await asyncio.wait_for(
            guarded_llm_call(model, messages, timeout),
            timeout=timeout,
        )
        logger.info(
            "event=inference_complete tier=%s model=%s "
            "input_tokens=%d output_tokens=%d",
            tier,
            result.model,
            result.input_tokens,
            result.output_tokens,
        )
        return result.content
