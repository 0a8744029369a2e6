"""Deterministic rule-based correlator used when inference fails.

Two rules, checked per unordered pair; at most one correlation per
pair and the reference rule wins:

1. One activity mentions the other's canonical key (a ref or a ticket
   key in its title/description) -> ``ref_based`` at 0.9.
2. Different sources, less than two hours apart, and at least two
   shared title keywords longer than three characters -> ``general``
   at 0.7.
"""

from __future__ import annotations

import logging
import re
from itertools import combinations

from workstory.constants import (
    FALLBACK_MIN_KEYWORD_LENGTH,
    FALLBACK_MIN_SHARED_KEYWORDS,
    FALLBACK_WINDOW_SECONDS,
    Confidence,
    CorrelationType,
    Impact,
)
from workstory.correlation.schemas import (
    AnalyzedActivity,
    Correlation,
    CorrelationEndpoint,
)

logger = logging.getLogger(__name__)

_TICKET_KEY = re.compile(r"\b[A-Z][A-Z0-9]+-\d+\b")


def _mentions(a: AnalyzedActivity) -> set[str]:
    text = f"{a.title}\n{a.description or ''}"
    return set(a.refs) | set(_TICKET_KEY.findall(text))


def _keywords(title: str) -> set[str]:
    return {
        w for w in title.lower().split()
        if len(w) >= FALLBACK_MIN_KEYWORD_LENGTH
    }


def _ref_match(
    a: AnalyzedActivity, b: AnalyzedActivity, mentions: dict[str, set[str]]
) -> str | None:
    if b.canonical_key and b.canonical_key in mentions[a.id]:
        return b.canonical_key
    if a.canonical_key and a.canonical_key in mentions[b.id]:
        return a.canonical_key
    return None


def correlate_by_rules(
    activities: list[AnalyzedActivity],
) -> tuple[list[Correlation], list[str]]:
    """Return (correlations, insights) using the fixed rules only."""
    mentions = {a.id: _mentions(a) for a in activities}
    keywords = {a.id: _keywords(a.title) for a in activities}
    correlations: list[Correlation] = []

    for a, b in combinations(activities, 2):
        if a.id == b.id:
            continue
        key = _ref_match(a, b, mentions)
        if key is not None:
            high = Impact.HIGH in (a.importance, b.importance)
            correlations.append(
                Correlation(
                    id=f"corr-{len(correlations) + 1}",
                    type=CorrelationType.REF_BASED,
                    endpoint_a=CorrelationEndpoint.of(a),
                    endpoint_b=CorrelationEndpoint.of(b),
                    confidence=Confidence.FALLBACK_REF_MATCH,
                    reasoning=f"Direct reference found: {key}",
                    impact=Impact.HIGH if high else Impact.MEDIUM,
                )
            )
            continue

        if a.source == b.source:
            continue
        gap = abs((a.timestamp - b.timestamp).total_seconds())
        if gap >= FALLBACK_WINDOW_SECONDS:
            continue
        shared = sorted(keywords[a.id] & keywords[b.id])
        if len(shared) >= FALLBACK_MIN_SHARED_KEYWORDS:
            correlations.append(
                Correlation(
                    id=f"corr-{len(correlations) + 1}",
                    type=CorrelationType.GENERAL,
                    endpoint_a=CorrelationEndpoint.of(a),
                    endpoint_b=CorrelationEndpoint.of(b),
                    confidence=Confidence.FALLBACK_TEMPORAL,
                    reasoning=(
                        "Temporal proximity and shared keywords: "
                        + ", ".join(shared)
                    ),
                    impact=Impact.MEDIUM,
                )
            )

    insights = [f"Found {len(correlations)} correlations"]
    if any(c.type == CorrelationType.REF_BASED for c in correlations):
        insights.append("Work is linked through explicit references")
    insights.append(
        "Consider adding more explicit references for better tracking"
    )
    logger.info(
        "event=fallback_correlation activities=%d correlations=%d",
        len(activities),
        len(correlations),
    )
    return correlations, insights
