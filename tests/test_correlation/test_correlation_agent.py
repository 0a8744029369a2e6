"""Tests for the two-tier correlation agent state machine."""

from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock

import pytest
from circuitbreaker import CircuitBreaker, CircuitBreakerError

from workstory.config import Settings
from workstory.constants import (
    CorrelationSource,
    CorrelationType,
    InferenceTier,
)
from workstory.correlation.agent import CorrelationAgent
from workstory.correlation.schemas import AnalyzedActivity

T0 = datetime(2024, 3, 4, 9, 0, tzinfo=UTC)


def _activities() -> list[AnalyzedActivity]:
    return [
        AnalyzedActivity(
            id="github:pr-42",
            source="github",
            title="Add OAuth login",
            description="Implements AUTH-123",
            timestamp=T0,
            refs=["AUTH-123"],
            canonical_key="acme/backend#42",
        ),
        AnalyzedActivity(
            id="jira:AUTH-123",
            source="jira",
            title="OAuth login for web",
            timestamp=T0 + timedelta(hours=1),
            canonical_key="AUTH-123",
        ),
        AnalyzedActivity(
            id="slack:C1",
            source="slack",
            title="Lunch plans",
            timestamp=T0 + timedelta(days=2),
            canonical_key="C1",
        ),
    ]


def _keyword_pair() -> list[AnalyzedActivity]:
    return [
        AnalyzedActivity(
            id="figma:f1",
            source="figma",
            title="checkout redesign mockups",
            timestamp=T0,
        ),
        AnalyzedActivity(
            id="slack:m1",
            source="slack",
            title="feedback on checkout redesign",
            timestamp=T0 + timedelta(minutes=30),
        ),
    ]


def _response(*confidences: float) -> str:
    pairs = [("github:pr-42", "jira:AUTH-123"), ("jira:AUTH-123", "slack:C1")]
    return json.dumps(
        {
            "correlations": [
                {
                    "id": f"corr-{i}",
                    "type": "ref_based",
                    "source1": {"tool": "x", "id": pairs[i][0]},
                    "source2": {"tool": "y", "id": pairs[i][1]},
                    "confidence": conf,
                    "reasoning": "test",
                    "impact": "high",
                }
                for i, conf in enumerate(confidences)
            ],
            "insights": ["model insight"],
        }
    )


class _ScriptedClient:
    """Returns (or raises) the scripted result for each tier."""

    def __init__(self, **by_tier: Any) -> None:
        self.by_tier = by_tier
        self.calls: list[InferenceTier] = []

    async def complete(
        self, tier: InferenceTier, messages: list[dict[str, str]]
    ) -> str:
        self.calls.append(tier)
        result = self.by_tier[tier.value]
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def settings() -> Settings:
    return Settings()


class TestEmptyBatch:
    async def test_returns_empty_without_calls(self, settings) -> None:
        client = AsyncMock()
        agent = CorrelationAgent(client, settings)
        result = await agent.detect_correlations([])
        assert result.correlations == []
        assert result.avg_confidence == 0
        assert result.inference_calls == 0
        client.complete.assert_not_called()


class TestQuickPass:
    async def test_confident_quick_result_is_used(self, settings) -> None:
        client = _ScriptedClient(quick=_response(0.95))
        agent = CorrelationAgent(client, settings)
        result = await agent.detect_correlations(_activities())
        assert client.calls == [InferenceTier.QUICK]
        assert result.source == CorrelationSource.QUICK
        assert result.escalated is False
        assert result.inference_calls == 1
        assert [c.confidence for c in result.correlations] == [0.95]
        assert result.strong_correlations == 1
        assert result.insights == ["model insight"]


class TestEscalation:
    async def test_low_confidence_escalates_once(self, settings) -> None:
        client = _ScriptedClient(
            quick=_response(0.75, 0.5), premium=_response(0.9)
        )
        agent = CorrelationAgent(client, settings)
        result = await agent.detect_correlations(_activities())
        assert client.calls == [InferenceTier.QUICK, InferenceTier.PREMIUM]
        assert result.source == CorrelationSource.PREMIUM
        assert result.escalated is True
        assert result.inference_calls == 2
        assert [c.confidence for c in result.correlations] == [0.9]

    async def test_premium_low_confidence_does_not_escalate_again(
        self, settings
    ) -> None:
        client = _ScriptedClient(
            quick=_response(0.4), premium=_response(0.5, 0.75)
        )
        agent = CorrelationAgent(client, settings)
        result = await agent.detect_correlations(_activities())
        assert len(client.calls) == 2
        assert result.source == CorrelationSource.PREMIUM
        # 0.5 is below the threshold and dropped
        assert [c.confidence for c in result.correlations] == [0.75]
        assert result.avg_confidence == pytest.approx(0.75)

    async def test_empty_quick_result_escalates(self, settings) -> None:
        client = _ScriptedClient(quick=_response(), premium=_response(0.8))
        agent = CorrelationAgent(client, settings)
        result = await agent.detect_correlations(_activities())
        assert result.escalated is True
        assert len(result.correlations) == 1

    async def test_lower_gate_skips_escalation_but_keeps_floor(self) -> None:
        settings = Settings(correlation_confidence_threshold=0.5)
        client = _ScriptedClient(quick=_response(0.6, 0.55))
        agent = CorrelationAgent(client, settings)
        result = await agent.detect_correlations(_activities())
        assert client.calls == [InferenceTier.QUICK]
        assert result.escalated is False
        assert result.correlations == []
        assert result.avg_confidence == 0.0

    async def test_higher_gate_keeps_fallback_general_links(self) -> None:
        settings = Settings(correlation_confidence_threshold=0.9)
        client = _ScriptedClient(quick=ConnectionError("network down"))
        agent = CorrelationAgent(client, settings)
        result = await agent.detect_correlations(_keyword_pair())
        assert result.source == CorrelationSource.FALLBACK
        assert [c.confidence for c in result.correlations] == [0.7]
        assert result.correlations[0].type == CorrelationType.GENERAL


class TestFallback:
    async def test_quick_failure_falls_back_with_ref_match(
        self, settings
    ) -> None:
        client = _ScriptedClient(quick=ConnectionError("network down"))
        agent = CorrelationAgent(client, settings)
        result = await agent.detect_correlations(_activities())
        assert client.calls == [InferenceTier.QUICK]
        assert result.source == CorrelationSource.FALLBACK
        assert result.inference_calls == 1
        assert len(result.correlations) >= 1
        ref = result.correlations[0]
        assert ref.type == CorrelationType.REF_BASED
        assert ref.confidence == 0.9
        assert ref.pair == frozenset({"github:pr-42", "jira:AUTH-123"})

    async def test_mixed_naive_and_aware_batch_falls_back(
        self, settings
    ) -> None:
        aware = _keyword_pair()[0]
        naive = AnalyzedActivity(
            id="slack:m2",
            source="slack",
            title="checkout redesign feedback",
            timestamp=datetime(2024, 3, 4, 9, 30),
        )
        client = _ScriptedClient(quick=ConnectionError("network down"))
        agent = CorrelationAgent(client, settings)
        result = await agent.detect_correlations([aware, naive])
        assert result.source == CorrelationSource.FALLBACK
        assert len(result.correlations) == 1

    async def test_malformed_output_falls_back(self, settings) -> None:
        client = _ScriptedClient(quick="I think these are related!")
        agent = CorrelationAgent(client, settings)
        result = await agent.detect_correlations(_activities())
        assert result.source == CorrelationSource.FALLBACK

    async def test_wrong_json_shape_falls_back(self, settings) -> None:
        client = _ScriptedClient(quick=json.dumps({"links": []}))
        agent = CorrelationAgent(client, settings)
        result = await agent.detect_correlations(_activities())
        assert result.source == CorrelationSource.FALLBACK

    async def test_escalation_failure_falls_back(self, settings) -> None:
        client = _ScriptedClient(
            quick=_response(0.3), premium=TimeoutError()
        )
        agent = CorrelationAgent(client, settings)
        result = await agent.detect_correlations(_activities())
        assert len(client.calls) == 2
        assert result.escalated is True
        assert result.source == CorrelationSource.FALLBACK
        assert result.inference_calls == 2

    async def test_open_circuit_falls_back(self, settings) -> None:
        breaker = CircuitBreaker(name="test_open_circuit")
        client = _ScriptedClient(quick=CircuitBreakerError(breaker))
        agent = CorrelationAgent(client, settings)
        result = await agent.detect_correlations(_activities())
        assert result.source == CorrelationSource.FALLBACK

    async def test_cancellation_propagates(self, settings) -> None:
        client = _ScriptedClient(quick=asyncio.CancelledError())
        agent = CorrelationAgent(client, settings)
        with pytest.raises(asyncio.CancelledError):
            await agent.detect_correlations(_activities())


class TestInvariants:
    @pytest.mark.parametrize(
        ("quick", "premium"),
        [
            (_response(0.95), _response(0.9)),
            (_response(0.1), _response(0.2)),
            (_response(0.1), ValueError("boom")),
            (RuntimeError("boom"), _response(0.9)),
            ("{}", "{}"),
        ],
    )
    async def test_at_most_two_calls_and_bounded_confidence(
        self, settings, quick: Any, premium: Any
    ) -> None:
        client = _ScriptedClient(quick=quick, premium=premium)
        agent = CorrelationAgent(client, settings)
        result = await agent.detect_correlations(_activities())
        assert len(client.calls) <= 2
        assert result.inference_calls == len(client.calls)
        for c in result.correlations:
            assert 0.7 <= c.confidence <= 1.0


class TestStrongCorrelations:
    async def test_only_above_strong_cutoff(self, settings) -> None:
        client = _ScriptedClient(quick=_response(0.95, 0.8))
        agent = CorrelationAgent(client, settings)
        strong = await agent.find_strong_correlations(_activities())
        assert [c.confidence for c in strong] == [0.95]


class TestPrompt:
    async def test_same_messages_sent_to_both_tiers(self, settings) -> None:
        client = AsyncMock()
        client.complete.side_effect = [_response(0.2), _response(0.9)]
        agent = CorrelationAgent(client, settings)
        await agent.detect_correlations(_activities())
        (tier1, msgs1), (tier2, msgs2) = (
            call.args for call in client.complete.call_args_list
        )
        assert (tier1, tier2) == (InferenceTier.QUICK, InferenceTier.PREMIUM)
        assert msgs1 == msgs2
        assert "github:pr-42" in msgs1[1]["content"]
