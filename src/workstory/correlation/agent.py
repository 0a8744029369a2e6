"""Correlation agent: confidence-gated two-tier inference with fallback.

State machine per batch::

    Quick -> gate -> (mean confidence < threshold) Premium
                  \\-> any failed call -> rule-based fallback

Every tier call is turned into a ``TierOutcome`` so control flow never
depends on exceptions escaping; ``detect_correlations`` always returns
a result. At most two inference calls are made per batch.
"""

from __future__ import annotations

import logging
from collections import Counter

from circuitbreaker import CircuitBreakerError

from workstory.config import Settings
from workstory.constants import (
    Confidence,
    CorrelationSource,
    InferenceTier,
)
from workstory.correlation.client import InferenceClient
from workstory.correlation.fallback import correlate_by_rules
from workstory.correlation.parsing import parse_correlation_output
from workstory.correlation.prompts import build_messages
from workstory.correlation.schemas import (
    AnalyzedActivity,
    Correlation,
    CorrelationResult,
    TierOutcome,
)
from workstory.resilience.errors import describe_error

logger = logging.getLogger(__name__)


class CorrelationAgent:
    """Finds relationships between activities that ref sharing misses."""

    def __init__(
        self,
        client: InferenceClient,
        settings: Settings | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or Settings()

    @property
    def threshold(self) -> float:
        """Escalation gate; the output floor stays at 0.7."""
        return self._settings.correlation_confidence_threshold

    async def detect_correlations(
        self, activities: list[AnalyzedActivity]
    ) -> CorrelationResult:
        if not activities:
            logger.info("event=correlation_skipped reason=empty_batch")
            return CorrelationResult()

        by_id: dict[str, AnalyzedActivity] = {}
        for a in activities:
            by_id.setdefault(a.id, a)
        unique = list(by_id.values())
        messages = build_messages(unique)

        outcome = await self._call_tier(InferenceTier.QUICK, messages, by_id)
        calls = 1
        source = CorrelationSource.QUICK
        escalated = False

        if outcome.ok and outcome.avg_confidence < self.threshold:
            logger.info(
                "event=correlation_escalate avg_confidence=%.2f "
                "threshold=%.2f",
                outcome.avg_confidence,
                self.threshold,
            )
            escalated = True
            outcome = await self._call_tier(
                InferenceTier.PREMIUM, messages, by_id
            )
            calls = 2
            source = CorrelationSource.PREMIUM

        if outcome.ok:
            correlations, insights = outcome.correlations, outcome.insights
        else:
            correlations, insights = correlate_by_rules(unique)
            source = CorrelationSource.FALLBACK

        return self._finalize(
            correlations,
            insights,
            source=source,
            escalated=escalated,
            calls=calls,
        )

    async def find_strong_correlations(
        self, activities: list[AnalyzedActivity]
    ) -> list[Correlation]:
        """Correlations above the strong cutoff (0.85) only."""
        result = await self.detect_correlations(activities)
        return [
            c
            for c in result.correlations
            if c.confidence > Confidence.STRONG_CORRELATION
        ]

    async def _call_tier(
        self,
        tier: InferenceTier,
        messages: list[dict[str, str]],
        by_id: dict[str, AnalyzedActivity],
    ) -> TierOutcome:
        try:
            raw = await self._client.complete(tier, messages)
            correlations, insights = parse_correlation_output(raw, by_id)
        except CircuitBreakerError:
            logger.warning("event=circuit_open tier=%s", tier)
            return TierOutcome(tier=tier, error="circuit open")
        except Exception as exc:
            error = describe_error(exc)
            logger.warning(
                "event=inference_failed tier=%s error=%s", tier, error
            )
            return TierOutcome(tier=tier, error=error)
        return TierOutcome(
            tier=tier, correlations=correlations, insights=insights
        )

    def _finalize(
        self,
        correlations: list[Correlation],
        insights: list[str],
        *,
        source: CorrelationSource,
        escalated: bool,
        calls: int,
    ) -> CorrelationResult:
        kept = [
            c
            for c in correlations
            if c.confidence >= Confidence.CORRELATION_THRESHOLD
        ]
        avg = sum(c.confidence for c in kept) / len(kept) if kept else 0.0
        strong = sum(
            1 for c in kept if c.confidence > Confidence.STRONG_CORRELATION
        )
        logger.info(
            "event=correlation_complete source=%s escalated=%s calls=%d "
            "returned=%d kept=%d avg_confidence=%.2f",
            source,
            escalated,
            calls,
            len(correlations),
            len(kept),
            avg,
        )
        return CorrelationResult(
            correlations=kept,
            avg_confidence=avg,
            source=source,
            escalated=escalated,
            inference_calls=calls,
            strong_correlations=strong,
            insights=insights or _summarize(kept),
        )


def _summarize(correlations: list[Correlation]) -> list[str]:
    if not correlations:
        return []
    by_type = Counter(c.type for c in correlations)
    top_type, top_count = by_type.most_common(1)[0]
    return [
        f"Found {len(correlations)} correlations",
        f"Most common relationship: {top_type} ({top_count})",
    ]
